"""
Lexer for Ember.

Converts source text into a lazy stream of tokens for the parser.
Supports:
- Integer literals (decimal digit runs, kept as raw text)
- Identifiers and the keywords let, function, if, else, for, while
- Single and two-character operators (= == ! != < <= > >=)
- Whitespace, including newlines, between tokens

Unknown characters are returned as ILLEGAL tokens; the lexer never raises.
"""

from typing import List, Optional, Iterator
from .tokens import Token, TokenType, SourceLocation, SourceSpan, lookup_identifier


# Tokens that are complete after their first character
SINGLE_CHAR_TOKENS = {
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    ',': TokenType.COMMA,
    ';': TokenType.SEMICOLON,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
}

# First character -> (single-char type, type when followed by '=')
EQUALS_PAIRS = {
    '=': (TokenType.ASSIGN, TokenType.EQ),
    '!': (TokenType.BANG, TokenType.NE),
    '<': (TokenType.LT, TokenType.LE),
    '>': (TokenType.GT, TokenType.GE),
}


def is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


def is_letter(ch: str) -> bool:
    return ch.isalpha()


class Lexer:
    """
    Tokenizer for Ember.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()

    Or for streaming (tokens are produced on demand):
        lexer = Lexer(source_code)
        for token in lexer:
            process(token)

    A lexer can be consumed once; build a new one to start over.
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self._lines: Optional[List[str]] = None  # Cached line list

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def _location(self) -> SourceLocation:
        """Get current source location."""
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        """Create a span from start to current position."""
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _match(self, expected: str) -> bool:
        """Consume character if it matches expected."""
        if self._peek() == expected:
            self._advance()
            return True
        return False

    def _is_at_end(self) -> bool:
        """Check if we've reached end of source."""
        return self.pos >= len(self.source)

    def _skip_whitespace(self) -> None:
        """Skip whitespace, newlines included."""
        while not self._is_at_end() and self._peek().isspace():
            self._advance()

    def _make_token(self, token_type: TokenType, start: SourceLocation) -> Token:
        """Create a token whose literal is the source text since start."""
        literal = self.source[start.offset:self.pos]
        return Token(token_type, literal, self._span(start))

    def _scan_number(self) -> Token:
        """Scan a run of digits. The text is converted by the parser."""
        start = self._location()
        while is_digit(self._peek()):
            self._advance()
        return self._make_token(TokenType.INT_LITERAL, start)

    def _scan_identifier_or_keyword(self) -> Token:
        """Scan a letter followed by letters or digits."""
        start = self._location()
        while is_letter(self._peek()) or is_digit(self._peek()):
            self._advance()
        literal = self.source[start.offset:self.pos]
        return Token(lookup_identifier(literal), literal, self._span(start))

    def next_token(self) -> Token:
        """Scan the next token. Returns EOF forever once input is exhausted."""
        self._skip_whitespace()

        start = self._location()
        if self._is_at_end():
            return Token(TokenType.EOF, "", self._span(start))

        ch = self._peek()

        if is_digit(ch):
            return self._scan_number()

        if is_letter(ch):
            return self._scan_identifier_or_keyword()

        self._advance()

        if ch in EQUALS_PAIRS:
            single, double = EQUALS_PAIRS[ch]
            if self._match('='):
                return self._make_token(double, start)
            return self._make_token(single, start)

        if ch in SINGLE_CHAR_TOKENS:
            return self._make_token(SINGLE_CHAR_TOKENS[ch], start)

        return self._make_token(TokenType.ILLEGAL, start)

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        return list(self)

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens, ending with (and including) EOF."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                break


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for diagnostics

    Returns:
        List of tokens, the last one being EOF
    """
    lexer = Lexer(source, filename)
    return lexer.tokenize()
