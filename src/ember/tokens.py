"""
Token types for the Ember lexer.

Error code ranges:
- E1xx: Parser errors
- E4xx: Runtime errors

The lexer itself never fails; characters it cannot classify become
ILLEGAL tokens and are reported by the parser.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Optional


class TokenType(Enum):
    """All token types recognized by the lexer."""

    # --- Special ---
    ILLEGAL = auto()            # any unrecognized character
    EOF = auto()                # end of input

    # --- Literals and names ---
    IDENTIFIER = auto()         # user-defined names
    INT_LITERAL = auto()        # 42

    # --- Operators ---
    ASSIGN = auto()             # =
    PLUS = auto()               # +
    MINUS = auto()              # -
    BANG = auto()               # !
    STAR = auto()               # *
    SLASH = auto()              # /

    # --- Comparison operators ---
    LT = auto()                 # <
    GT = auto()                 # >
    LE = auto()                 # <=
    GE = auto()                 # >=
    EQ = auto()                 # ==
    NE = auto()                 # !=

    # --- Delimiters ---
    COMMA = auto()              # ,
    SEMICOLON = auto()          # ;
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LBRACE = auto()             # {
    RBRACE = auto()             # }

    # --- Keywords ---
    LET = auto()                # let
    FUNCTION = auto()           # function
    IF = auto()                 # if
    ELSE = auto()               # else
    FOR = auto()                # for
    WHILE = auto()              # while


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    literal: str            # The exact source text ('' for EOF)
    span: Optional[SourceSpan] = None

    def __str__(self) -> str:
        return f"Token({self.type.name}, {self.literal!r})"


# Keyword mapping - maps string to token type
KEYWORDS: dict[str, TokenType] = {
    "let": TokenType.LET,
    "function": TokenType.FUNCTION,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "for": TokenType.FOR,
    "while": TokenType.WHILE,
}


def lookup_identifier(literal: str) -> TokenType:
    """Classify a letter run as a keyword or a plain identifier."""
    return KEYWORDS.get(literal, TokenType.IDENTIFIER)
