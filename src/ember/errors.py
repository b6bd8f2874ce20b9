"""
Ember exceptions and diagnostics.

Error code ranges:
- E1xx: Parser errors (collected, never raised out of the parser)
- E4xx: Runtime errors (abort the current evaluation)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List
from .tokens import SourceSpan


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"


@dataclass
class Diagnostic:
    """A single diagnostic message (error, warning, etc.)."""
    code: str                       # E101, E401, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: Optional[SourceSpan] = None
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: severity[code]: message
        if self.span is not None:
            parts.append(f"{self.span.start}: {self.severity.value}[{self.code}]: {self.message}")
        else:
            parts.append(f"{self.severity.value}[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.source_line is not None and self.span is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            if self.span.start.line == self.span.end.line:
                end_col = self.span.end.column
            else:
                end_col = len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        data = {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "hints": self.hints,
        }
        if self.span is not None:
            data["range"] = {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            }
        return data


class EmberError(Exception):
    """Base exception for Ember errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def code(self) -> str:
        return self.diagnostic.code

    @property
    def message(self) -> str:
        return self.diagnostic.message

    def __str__(self) -> str:
        return self.diagnostic.format()


class ParserError(EmberError):
    """Syntax error (E1xx)."""
    pass


class EvaluationError(EmberError):
    """Error during evaluation (E4xx)."""
    pass


class UndefinedIdentifierError(EvaluationError):
    """E401: name not bound anywhere in the environment chain."""
    pass


class TypeMismatchError(EvaluationError):
    """E402: operator applied to unsupported operand types."""
    pass


class DivisionByZeroError(EvaluationError):
    """E403: integer division by zero."""
    pass


class NotCallableError(EvaluationError):
    """E404: call of something that is not a function."""
    pass


class ArityMismatchError(EvaluationError):
    """E405: argument count differs from parameter count."""
    pass


class RecursionDepthError(EvaluationError):
    """E406: host stack exhausted."""
    pass


def _diagnostic(code: str, message: str, span: Optional[SourceSpan],
                source_line: Optional[str] = None,
                hints: Optional[List[str]] = None) -> Diagnostic:
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=hints or [],
    )


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParserError:
    """E101: Unexpected token."""
    return ParserError(_diagnostic(
        "E101",
        f"expected next token to be {expected}, got {found} instead",
        span, source_line,
    ))


def error_unexpected_eof(expected: str, span: SourceSpan,
                         source_line: str = None) -> ParserError:
    """E102: Unexpected end of input."""
    return ParserError(_diagnostic(
        "E102",
        f"expected next token to be {expected}, got EOF instead",
        span, source_line,
    ))


def error_no_prefix_rule(found: str, span: SourceSpan,
                         source_line: str = None) -> ParserError:
    """E103: Token cannot start an expression."""
    return ParserError(_diagnostic(
        "E103",
        f"no prefix parse function for {found} found",
        span, source_line,
    ))


def error_illegal_character(char: str, span: SourceSpan,
                            source_line: str = None) -> ParserError:
    """E104: Character the lexer could not classify."""
    return ParserError(_diagnostic(
        "E104",
        f"illegal character '{char}'",
        span, source_line,
    ))


def error_invalid_statement(found: str, context: str, span: SourceSpan,
                            source_line: str = None) -> ParserError:
    """E105: Statement of the wrong kind (for loop init/post)."""
    return ParserError(_diagnostic(
        "E105",
        f"expected {context} statement in 'for', got {found}",
        span, source_line,
        hints=["for loop init and post must be 'let' or an assignment"],
    ))


def error_nesting_too_deep(span: SourceSpan, source_line: str = None) -> ParserError:
    """E106: Expression nested beyond the recursion limit."""
    return ParserError(_diagnostic(
        "E106",
        "expression nested too deeply",
        span, source_line,
        hints=["raise 'recursion_limit' in the configuration for deeper nesting"],
    ))


# --- Runtime error codes ---

def error_undefined_identifier(name: str, span: Optional[SourceSpan] = None) -> UndefinedIdentifierError:
    """E401: Undefined identifier."""
    return UndefinedIdentifierError(_diagnostic(
        "E401", f"identifier not found: {name}", span,
    ))


def error_type_mismatch(message: str, span: Optional[SourceSpan] = None) -> TypeMismatchError:
    """E402: Type mismatch."""
    return TypeMismatchError(_diagnostic(
        "E402", f"type mismatch: {message}", span,
    ))


def error_division_by_zero(span: Optional[SourceSpan] = None) -> DivisionByZeroError:
    """E403: Division by zero."""
    return DivisionByZeroError(_diagnostic(
        "E403", "division by zero", span,
    ))


def error_not_callable(type_name: str, span: Optional[SourceSpan] = None) -> NotCallableError:
    """E404: Not a function."""
    return NotCallableError(_diagnostic(
        "E404", f"not a function: {type_name}", span,
    ))


def error_arity_mismatch(expected: int, found: int,
                         span: Optional[SourceSpan] = None) -> ArityMismatchError:
    """E405: Wrong number of arguments."""
    return ArityMismatchError(_diagnostic(
        "E405",
        f"wrong number of arguments: expected {expected}, got {found}",
        span,
    ))


def error_recursion_depth(span: Optional[SourceSpan] = None) -> RecursionDepthError:
    """E406: Recursion too deep."""
    return RecursionDepthError(_diagnostic(
        "E406", "maximum recursion depth exceeded", span,
        hints=["raise 'recursion_limit' in the configuration for deeper recursion"],
    ))


class DiagnosticCollector:
    """Collects diagnostics during parsing."""

    def __init__(self, max_errors: int = 20):
        self.diagnostics: List[Diagnostic] = []
        self.max_errors = max_errors
        self._error_count = 0

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic."""
        self.diagnostics.append(diagnostic)
        if diagnostic.severity == ErrorSeverity.ERROR:
            self._error_count += 1

    def add_error(self, error: EmberError) -> None:
        """Add an error exception as a diagnostic."""
        self.add(error.diagnostic)

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def has_errors(self) -> bool:
        return self._error_count > 0

    @property
    def should_stop(self) -> bool:
        """Check if we've hit the max error limit."""
        return self._error_count >= self.max_errors

    @property
    def messages(self) -> List[str]:
        """Plain messages, in the order they were reported."""
        return [d.message for d in self.diagnostics]

    def format_all(self, show_source: bool = True) -> str:
        """Format all diagnostics for display."""
        parts = [d.format(show_source) for d in self.diagnostics]
        if self._error_count > 0:
            parts.append(f"{self._error_count} error(s)")
        return "\n\n".join(parts)

    def to_json(self) -> dict:
        """Convert all diagnostics to JSON format."""
        return {
            "diagnostics": [d.to_json() for d in self.diagnostics],
            "error_count": self._error_count,
        }
