"""
Runtime values for the Ember interpreter.

Three kinds of object exist: Integer, Boolean and Function. Booleans are
two process-wide singletons (TRUE and FALSE) so they can be compared by
identity. "No value" (an if without else whose condition failed, an empty
block) is Python ``None`` and is not an object.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from ..ast import Block

if TYPE_CHECKING:
    from .environment import Environment


class ObjectType(Enum):
    """Runtime type tags."""
    INTEGER = "INTEGER"
    BOOLEAN = "BOOLEAN"
    FUNCTION = "FUNCTION"


class Object:
    """Base class for runtime objects."""

    type: ObjectType

    def inspect(self) -> str:
        """Display form used by the REPL."""
        raise NotImplementedError


@dataclass(frozen=True)
class Integer(Object):
    """An integer value."""
    value: int

    @property
    def type(self) -> ObjectType:
        return ObjectType.INTEGER

    def inspect(self) -> str:
        return str(self.value)


class Boolean(Object):
    """A boolean value. Use TRUE, FALSE or native_bool(), never the constructor."""

    __slots__ = ("value",)

    def __init__(self, value: bool):
        self.value = value

    @property
    def type(self) -> ObjectType:
        return ObjectType.BOOLEAN

    def inspect(self) -> str:
        return "true" if self.value else "false"

    def __repr__(self) -> str:
        return f"Boolean({self.value})"


TRUE = Boolean(True)
FALSE = Boolean(False)


def native_bool(b: bool) -> Boolean:
    """Map a Python bool onto the singleton Boolean objects."""
    return TRUE if b else FALSE


class Function(Object):
    """A closure: parameter names, body and the environment it was defined in.

    Two Function objects are equal only when they share body and
    environment, i.e. come from the same evaluation of a function literal.
    """

    def __init__(self, parameters: List[str], body: Block, env: "Environment"):
        self.parameters = list(parameters)
        self.body = body
        self.env = env

    @property
    def type(self) -> ObjectType:
        return ObjectType.FUNCTION

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def inspect(self) -> str:
        return f"function({', '.join(self.parameters)}) {self.body}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Function):
            return NotImplemented
        return self.body is other.body and self.env is other.env

    def __hash__(self) -> int:
        return hash((id(self.body), id(self.env)))

    def __repr__(self) -> str:
        return f"Function({self.parameters!r})"


def is_truthy(obj: Optional[Object]) -> bool:
    """Condition outcome for if, while and for.

    Booleans use their own value, integers are truthy when non-zero, any
    other object is truthy and no value is falsy.
    """
    if obj is None:
        return False
    if isinstance(obj, Boolean):
        return obj.value
    if isinstance(obj, Integer):
        return obj.value != 0
    return True


def type_name(obj: Optional[Object]) -> str:
    """Name used in error messages."""
    if obj is None:
        return "NO_VALUE"
    return obj.type.name


def inspect(obj: Optional[Object]) -> str:
    """Display form, with an empty string for no value."""
    if obj is None:
        return ""
    return obj.inspect()
