"""
Lexical environments for the Ember interpreter.

An Environment maps names to bindings and points at an optional outer
environment. Lookups walk outward; writes always land in the local frame.

Each binding is a small mutable cell. ``let`` creates a fresh cell for
the name (shadowing the previous one), while assignment writes into the
existing local cell. A function literal captures the cells visible in its
defining frame at that moment, so

    let x = 10; let f = function() { x }; let x = 20; f();

yields 10, whereas ``x = 20`` instead of ``let x = 20`` would yield 20.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from .values import Object
from ..errors import error_undefined_identifier
from ..tokens import SourceSpan


@dataclass
class Binding:
    """A single variable cell. ``value`` is None for no value."""
    value: Optional[Object]


@dataclass(eq=False)
class Environment:
    """
    A single scope frame.

    Frames form a chain via the ``outer`` field for lexical scoping.
    """
    store: Dict[str, Binding] = field(default_factory=dict)
    outer: Optional["Environment"] = None
    name: str = "anonymous"  # For debugging

    def lookup(self, name: str) -> Optional[Binding]:
        """Find the nearest binding for name, or None if unbound."""
        env: Optional[Environment] = self
        while env is not None:
            binding = env.store.get(name)
            if binding is not None:
                return binding
            env = env.outer
        return None

    def get(self, name: str, span: Optional[SourceSpan] = None) -> Optional[Object]:
        """Value bound to name, searching outward.

        Raises:
            UndefinedIdentifierError: if no frame in the chain binds name
        """
        binding = self.lookup(name)
        if binding is None:
            raise error_undefined_identifier(name, span)
        return binding.value

    def set(self, name: str, value: Optional[Object]) -> Optional[Object]:
        """Assign in this frame, reusing the local cell if there is one.

        Outer frames are never modified.
        """
        binding = self.store.get(name)
        if binding is None:
            self.store[name] = Binding(value)
        else:
            binding.value = value
        return value

    def declare(self, name: str, value: Optional[Object]) -> Optional[Object]:
        """Bind name to a fresh cell in this frame."""
        self.store[name] = Binding(value)
        return value

    def contains(self, name: str) -> bool:
        """Check if a name is bound in this frame or any outer frame."""
        return self.lookup(name) is not None

    def names(self) -> List[str]:
        """Names visible from this frame, innermost first, without duplicates."""
        seen: List[str] = []
        for env in self._chain():
            for key in env.store:
                if key not in seen:
                    seen.append(key)
        return seen

    def _chain(self) -> Iterator["Environment"]:
        env: Optional[Environment] = self
        while env is not None:
            yield env
            env = env.outer

    def enclose(self, name: str = "call") -> "Environment":
        """A new empty child frame."""
        return Environment(outer=self, name=name)

    def capture(self) -> "Environment":
        """The environment a function literal closes over.

        The returned frame holds the cells currently bound here; names
        bound here later (a recursive function's own name, for one) are
        still found through the live frame behind it.

        The snapshot copies this frame's name-to-cell table, so creating a
        closure costs time proportional to the number of names bound in the
        defining frame (not in outer frames, and not to the values).
        """
        return Environment(store=dict(self.store), outer=self, name=f"closure:{self.name}")


def create_global_environment() -> Environment:
    """The root environment a session evaluates against."""
    return Environment(name="global")
