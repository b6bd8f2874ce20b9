"""
Abstract Syntax Tree (AST) node definitions for Ember.

The AST is pure data produced by the parser and consumed by the
interpreter. Nodes are never modified after construction. ``str(node)``
renders a source-like form used for diagnostics and the REPL echo; it is
not used for evaluation.

Statements: LetStatement, AssignmentStatement, ExpressionStatement,
Block, WhileStatement, ForStatement.

Expressions: Identifier, IntegerLiteral, UnaryOp, BinaryOp, IfExpr,
FunctionLiteral, FunctionCall.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Any
from abc import ABC
from .tokens import SourceSpan


# =============================================================================
# Base Classes
# =============================================================================

@dataclass
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: Optional[SourceSpan]  # Source location for error reporting

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


@dataclass
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass
class Statement(AstNode):
    """Base class for all statements."""
    pass


def _render(node: Optional[AstNode]) -> str:
    # Subtrees can be missing after a syntax error
    return "" if node is None else str(node)


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class Identifier(Expression):
    """A variable or function name reference."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass
class IntegerLiteral(Expression):
    """An integer literal."""
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class UnaryOp(Expression):
    """A prefix operation (e.g., !x, -n)."""
    operator: str
    operand: Optional[Expression]

    def __str__(self) -> str:
        return f"({self.operator}{_render(self.operand)})"


@dataclass
class BinaryOp(Expression):
    """An infix operation (e.g., a + b, x < y)."""
    left: Expression
    operator: str
    right: Optional[Expression]

    def __str__(self) -> str:
        return f"({_render(self.left)} {self.operator} {_render(self.right)})"


@dataclass
class IfExpr(Expression):
    """An if-else expression; its value is the value of the branch taken.

    An ``else if`` chain is stored as an alternative block holding a
    single nested IfExpr.
    """
    condition: Optional[Expression]
    consequence: "Block"
    alternative: Optional["Block"] = None

    def __str__(self) -> str:
        text = f"if ({_render(self.condition)}) {self.consequence}"
        if self.alternative is not None:
            text += f" else {self.alternative}"
        return text


@dataclass
class FunctionLiteral(Expression):
    """An anonymous function (e.g., function(x, y) { x + y })."""
    parameters: List[Identifier]
    body: "Block"

    @property
    def parameter_names(self) -> List[str]:
        return [p.name for p in self.parameters]

    def __str__(self) -> str:
        return f"function({', '.join(self.parameter_names)}) {self.body}"


@dataclass
class FunctionCall(Expression):
    """A call (e.g., f(1, 2) or function(x) { x }(3))."""
    callee: Expression
    arguments: List[Optional[Expression]] = field(default_factory=list)

    def __str__(self) -> str:
        args = ", ".join(_render(a) for a in self.arguments)
        return f"{_render(self.callee)}({args})"


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class LetStatement(Statement):
    """A variable declaration (e.g., let x = 5;)."""
    name: Identifier
    value: Optional[Expression]

    def __str__(self) -> str:
        return f"let {self.name} = {_render(self.value)};"


@dataclass
class AssignmentStatement(Statement):
    """An assignment (e.g., x = x + 1;)."""
    name: Identifier
    value: Optional[Expression]

    def __str__(self) -> str:
        return f"{self.name} = {_render(self.value)};"


@dataclass
class ExpressionStatement(Statement):
    """An expression used as a statement."""
    expression: Optional[Expression]

    def __str__(self) -> str:
        return _render(self.expression)


@dataclass
class Block(Statement):
    """A brace-delimited list of statements."""
    statements: List[Statement] = field(default_factory=list)

    def __str__(self) -> str:
        if not self.statements:
            return "{ }"
        return "{ " + " ".join(str(s) for s in self.statements) + " }"


@dataclass
class WhileStatement(Statement):
    """A while loop (e.g., while (i < 3) { i = i + 1; })."""
    condition: Optional[Expression]
    body: Block

    def __str__(self) -> str:
        return f"while ({_render(self.condition)}) {self.body}"


@dataclass
class ForStatement(Statement):
    """A C-style for loop: for (init; condition; post) { body }.

    ``init`` and ``post`` are LetStatement or AssignmentStatement nodes.
    """
    init: Statement
    condition: Optional[Expression]
    post: Statement
    body: Block

    def __str__(self) -> str:
        init = _render(self.init).rstrip(";")
        post = _render(self.post).rstrip(";")
        return f"for ({init}; {_render(self.condition)}; {post}) {self.body}"


@dataclass
class Program(AstNode):
    """A complete parsed source text."""
    statements: List[Statement] = field(default_factory=list)

    def __str__(self) -> str:
        return "\n".join(str(s) for s in self.statements)


# =============================================================================
# Visitor Helpers
# =============================================================================

class PrintVisitor(AstVisitor):
    """Debug visitor that renders the AST structure, one node per line.

    It defines no ``visit_*`` methods, so every node reaches generic_visit
    through ``accept``; subclasses can override single node kinds.
    """

    def __init__(self, indent: int = 0, lines: Optional[List[str]] = None):
        self.indent = indent
        self.lines = lines if lines is not None else []

    def _emit(self, text: str) -> None:
        self.lines.append("  " * self.indent + text)

    def _child(self) -> "PrintVisitor":
        return PrintVisitor(self.indent + 2, self.lines)

    def generic_visit(self, node: AstNode) -> List[str]:
        self._emit(f"{node.__class__.__name__}")
        for name, value in node.__dict__.items():
            if name == "span":
                continue
            if isinstance(value, AstNode):
                self._emit(f"  {name}:")
                value.accept(self._child())
            elif isinstance(value, list):
                self._emit(f"  {name}: [")
                for item in value:
                    if isinstance(item, AstNode):
                        item.accept(self._child())
                    else:
                        self._emit(f"    {item!r}")
                self._emit("  ]")
            else:
                self._emit(f"  {name}: {value!r}")
        return self.lines


def format_ast(node: AstNode) -> str:
    """Render an AST node as an indented tree."""
    return "\n".join(node.accept(PrintVisitor()))
