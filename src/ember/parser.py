"""
Pratt (operator-precedence) parser for Ember.

Pulls tokens lazily from a Lexer and builds a Program AST. Syntax errors
are collected rather than raised: a failing rule records a diagnostic and
returns None for its subtree, and parsing resumes with the next token.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from .tokens import Token, TokenType, SourceSpan
from .lexer import Lexer
from .ast import (
    # Expressions
    Expression, Identifier, IntegerLiteral, UnaryOp, BinaryOp,
    IfExpr, FunctionLiteral, FunctionCall,
    # Statements
    Statement, LetStatement, AssignmentStatement, ExpressionStatement,
    Block, WhileStatement, ForStatement, Program,
)
from .errors import (
    ParserError,
    DiagnosticCollector,
    error_unexpected_token,
    error_unexpected_eof,
    error_no_prefix_rule,
    error_illegal_character,
    error_invalid_statement,
    error_nesting_too_deep,
)
from .config import DEFAULT_RECURSION_LIMIT, recursion_limit

logger = logging.getLogger(__name__)


# Binding strengths (higher = tighter binding)
LOWEST = 1
EQUALS = 2      # == != < > <= >=
SUM = 3         # + -
PRODUCT = 4     # * /
CALL = 5        # f(x)


class Parser:
    """
    Pratt parser with a two-token window (current, peek).

    Usage:
        parser = Parser(Lexer(source))
        program = parser.parse_program()
        if parser.errors:
            ...

    Precedence, lowest to highest:
        == != < > <= >=
        + -
        * /
        call
    Prefix operators (! -) bind their operand at the multiplicative level.
    """

    PRECEDENCE = {
        TokenType.EQ: EQUALS,
        TokenType.NE: EQUALS,
        TokenType.LT: EQUALS,
        TokenType.GT: EQUALS,
        TokenType.LE: EQUALS,
        TokenType.GE: EQUALS,
        TokenType.PLUS: SUM,
        TokenType.MINUS: SUM,
        TokenType.STAR: PRODUCT,
        TokenType.SLASH: PRODUCT,
        TokenType.LPAREN: CALL,
    }

    def __init__(self, lexer: Lexer, max_errors: int = 20,
                 recursion_limit: int = DEFAULT_RECURSION_LIMIT):
        self.lexer = lexer
        self.recursion_limit = recursion_limit
        self.diagnostics = DiagnosticCollector(max_errors)

        self._prefix_rules: Dict[TokenType, Callable[[], Optional[Expression]]] = {
            TokenType.IDENTIFIER: self._parse_identifier,
            TokenType.INT_LITERAL: self._parse_integer_literal,
            TokenType.BANG: self._parse_prefix_expression,
            TokenType.MINUS: self._parse_prefix_expression,
            TokenType.LPAREN: self._parse_grouped_expression,
            TokenType.IF: self._parse_if_expression,
            TokenType.FUNCTION: self._parse_function_literal,
        }
        self._infix_rules: Dict[TokenType, Callable[[Expression], Optional[Expression]]] = {
            token_type: self._parse_infix_expression
            for token_type in self.PRECEDENCE
        }
        self._infix_rules[TokenType.LPAREN] = self._parse_call_expression

        self.current: Token = self.lexer.next_token()
        self.peek: Token = self.lexer.next_token()

    @property
    def errors(self) -> List[str]:
        """Syntax error messages in the order they were found."""
        return self.diagnostics.messages

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _advance(self) -> None:
        """Shift the window one token forward."""
        self.current = self.peek
        self.peek = self.lexer.next_token()

    def _current_is(self, token_type: TokenType) -> bool:
        return self.current.type == token_type

    def _peek_is(self, token_type: TokenType) -> bool:
        return self.peek.type == token_type

    def _expect_peek(self, token_type: TokenType) -> bool:
        """Advance if the next token has the given type, else record an error."""
        if self._peek_is(token_type):
            self._advance()
            return True
        self._peek_error(token_type)
        return False

    def _peek_precedence(self) -> int:
        return self.PRECEDENCE.get(self.peek.type, LOWEST)

    def _current_precedence(self) -> int:
        return self.PRECEDENCE.get(self.current.type, LOWEST)

    def _span_from(self, start: Token) -> SourceSpan:
        """Span from the start token to the current token."""
        return SourceSpan(start.span.start, self.current.span.end)

    def _source_line(self, token: Token) -> Optional[str]:
        return self.lexer.get_source_line(token.span.start.line)

    # =========================================================================
    # Error Reporting
    # =========================================================================

    def _error(self, error: ParserError) -> None:
        self.diagnostics.add_error(error)

    def _peek_error(self, expected: TokenType) -> None:
        token = self.peek
        if token.type == TokenType.EOF:
            self._error(error_unexpected_eof(
                expected.name, token.span, self._source_line(token)))
        else:
            self._error(error_unexpected_token(
                expected.name, token.type.name, token.span, self._source_line(token)))

    def _no_prefix_rule_error(self) -> None:
        token = self.current
        if token.type == TokenType.ILLEGAL:
            self._error(error_illegal_character(
                token.literal, token.span, self._source_line(token)))
        else:
            self._error(error_no_prefix_rule(
                token.type.name, token.span, self._source_line(token)))

    # =========================================================================
    # Program and Statements
    # =========================================================================

    def parse_program(self) -> Program:
        """Parse statements until end of input.

        Nesting deeper than the recursion limit allows is recorded as a
        syntax error and ends the parse.
        """
        start = self.current
        statements: List[Statement] = []

        with recursion_limit(self.recursion_limit):
            self._parse_statements(statements)

        program = Program(span=self._span_from(start), statements=statements)
        logger.debug("parsed %d statement(s), %d error(s)",
                     len(statements), self.diagnostics.error_count)
        return program

    def _parse_statements(self, statements: List[Statement]) -> None:
        while not self._current_is(TokenType.EOF):
            try:
                stmt = self._parse_statement()
            except RecursionError:
                token = self.current
                self._error(error_nesting_too_deep(token.span, self._source_line(token)))
                logger.debug("nesting exceeded the recursion limit at %s", token.span.start)
                break
            if stmt is not None:
                statements.append(stmt)
            if self.diagnostics.should_stop:
                logger.debug("stopping after %d syntax error(s)", self.diagnostics.error_count)
                break
            self._advance()

    def _parse_statement(self) -> Optional[Statement]:
        """Dispatch on the current token.

        On return the current token is the last token of the statement.
        """
        if self._current_is(TokenType.LET):
            return self._parse_let_statement()
        if self._current_is(TokenType.WHILE):
            return self._parse_while_statement()
        if self._current_is(TokenType.FOR):
            return self._parse_for_statement()
        if self._current_is(TokenType.IDENTIFIER) and self._peek_is(TokenType.ASSIGN):
            return self._parse_assignment_statement()
        return self._parse_expression_statement()

    def _parse_let_statement(self, terminated: bool = True) -> Optional[LetStatement]:
        """let <identifier> = <expression> [;]"""
        start = self.current
        if not self._expect_peek(TokenType.IDENTIFIER):
            return None
        name = Identifier(span=self.current.span, name=self.current.literal)
        if not self._expect_peek(TokenType.ASSIGN):
            return None
        self._advance()

        value = self._parse_expression(LOWEST)
        if terminated and self._peek_is(TokenType.SEMICOLON):
            self._advance()
        return LetStatement(span=self._span_from(start), name=name, value=value)

    def _parse_assignment_statement(self, terminated: bool = True) -> Optional[AssignmentStatement]:
        """<identifier> = <expression> [;]"""
        start = self.current
        name = Identifier(span=self.current.span, name=self.current.literal)
        if not self._expect_peek(TokenType.ASSIGN):
            return None
        self._advance()

        value = self._parse_expression(LOWEST)
        if terminated and self._peek_is(TokenType.SEMICOLON):
            self._advance()
        return AssignmentStatement(span=self._span_from(start), name=name, value=value)

    def _parse_expression_statement(self) -> Optional[ExpressionStatement]:
        start = self.current
        expression = self._parse_expression(LOWEST)
        if expression is None:
            return None
        if self._peek_is(TokenType.SEMICOLON):
            self._advance()
        return ExpressionStatement(span=self._span_from(start), expression=expression)

    def _parse_block(self) -> Block:
        """Parse statements after '{' up to the matching '}'."""
        start = self.current
        statements: List[Statement] = []
        self._advance()

        while not self._current_is(TokenType.RBRACE):
            if self._current_is(TokenType.EOF):
                self._error(error_unexpected_eof(
                    TokenType.RBRACE.name, self.current.span, self._source_line(start)))
                break
            stmt = self._parse_statement()
            if stmt is not None:
                statements.append(stmt)
            self._advance()

        return Block(span=self._span_from(start), statements=statements)

    def _parse_while_statement(self) -> Optional[WhileStatement]:
        """while (<condition>) { <body> }"""
        start = self.current
        if not self._expect_peek(TokenType.LPAREN):
            return None
        self._advance()
        condition = self._parse_expression(LOWEST)
        if not self._expect_peek(TokenType.RPAREN):
            return None
        if not self._expect_peek(TokenType.LBRACE):
            return None
        body = self._parse_block()
        return WhileStatement(span=self._span_from(start), condition=condition, body=body)

    def _parse_loop_clause(self, context: str) -> Optional[Statement]:
        """The init or post part of a for loop: a let or an assignment."""
        if self._current_is(TokenType.LET):
            return self._parse_let_statement(terminated=False)
        if self._current_is(TokenType.IDENTIFIER) and self._peek_is(TokenType.ASSIGN):
            return self._parse_assignment_statement(terminated=False)
        self._error(error_invalid_statement(
            self.current.type.name, context, self.current.span,
            self._source_line(self.current)))
        return None

    def _parse_for_statement(self) -> Optional[ForStatement]:
        """for (<init>; <condition>; <post>) { <body> }"""
        start = self.current
        if not self._expect_peek(TokenType.LPAREN):
            return None
        self._advance()

        init = self._parse_loop_clause("init")
        if init is None:
            return None
        if not self._expect_peek(TokenType.SEMICOLON):
            return None
        self._advance()

        condition = self._parse_expression(LOWEST)
        if not self._expect_peek(TokenType.SEMICOLON):
            return None
        self._advance()

        post = self._parse_loop_clause("post")
        if post is None:
            return None
        if not self._expect_peek(TokenType.RPAREN):
            return None
        if not self._expect_peek(TokenType.LBRACE):
            return None

        body = self._parse_block()
        return ForStatement(
            span=self._span_from(start),
            init=init,
            condition=condition,
            post=post,
            body=body,
        )

    # =========================================================================
    # Expressions
    # =========================================================================

    def _parse_expression(self, precedence: int) -> Optional[Expression]:
        """Parse an expression whose operators bind tighter than precedence."""
        prefix = self._prefix_rules.get(self.current.type)
        if prefix is None:
            self._no_prefix_rule_error()
            return None
        left = prefix()

        while (left is not None
               and not self._peek_is(TokenType.SEMICOLON)
               and precedence < self._peek_precedence()):
            infix = self._infix_rules.get(self.peek.type)
            if infix is None:
                return left
            self._advance()
            left = infix(left)

        return left

    def _parse_identifier(self) -> Expression:
        return Identifier(span=self.current.span, name=self.current.literal)

    def _parse_integer_literal(self) -> Expression:
        return IntegerLiteral(span=self.current.span, value=int(self.current.literal))

    def _parse_prefix_expression(self) -> Optional[Expression]:
        start = self.current
        self._advance()
        operand = self._parse_expression(PRODUCT)
        if operand is None:
            return None
        return UnaryOp(span=self._span_from(start), operator=start.literal, operand=operand)

    def _parse_infix_expression(self, left: Expression) -> Optional[Expression]:
        operator = self.current
        precedence = self._current_precedence()
        self._advance()
        right = self._parse_expression(precedence)
        if right is None:
            return None
        return BinaryOp(
            span=SourceSpan(left.span.start, self.current.span.end),
            left=left,
            operator=operator.literal,
            right=right,
        )

    def _parse_grouped_expression(self) -> Optional[Expression]:
        self._advance()  # consume '('
        expression = self._parse_expression(LOWEST)
        if not self._expect_peek(TokenType.RPAREN):
            return None
        return expression

    def _parse_if_expression(self) -> Optional[Expression]:
        """if (<condition>) { ... } [else { ... } | else if ...]"""
        start = self.current
        if not self._expect_peek(TokenType.LPAREN):
            return None
        self._advance()
        condition = self._parse_expression(LOWEST)
        if not self._expect_peek(TokenType.RPAREN):
            return None
        if not self._expect_peek(TokenType.LBRACE):
            return None
        consequence = self._parse_block()

        alternative = None
        if self._peek_is(TokenType.ELSE):
            self._advance()
            if self._peek_is(TokenType.IF):
                self._advance()
                nested = self._parse_if_expression()
                if nested is None:
                    return None
                alternative = Block(
                    span=nested.span,
                    statements=[ExpressionStatement(span=nested.span, expression=nested)],
                )
            elif self._expect_peek(TokenType.LBRACE):
                alternative = self._parse_block()
            else:
                return None

        return IfExpr(
            span=self._span_from(start),
            condition=condition,
            consequence=consequence,
            alternative=alternative,
        )

    def _parse_function_literal(self) -> Optional[Expression]:
        """function(<params>) { <body> }"""
        start = self.current
        if not self._expect_peek(TokenType.LPAREN):
            return None
        parameters = self._parse_function_parameters()
        if parameters is None:
            return None
        if not self._expect_peek(TokenType.LBRACE):
            return None
        body = self._parse_block()
        return FunctionLiteral(span=self._span_from(start), parameters=parameters, body=body)

    def _parse_function_parameters(self) -> Optional[List[Identifier]]:
        parameters: List[Identifier] = []
        if self._peek_is(TokenType.RPAREN):
            self._advance()
            return parameters

        if not self._expect_peek(TokenType.IDENTIFIER):
            return None
        parameters.append(Identifier(span=self.current.span, name=self.current.literal))

        while self._peek_is(TokenType.COMMA):
            self._advance()
            if not self._expect_peek(TokenType.IDENTIFIER):
                return None
            parameters.append(Identifier(span=self.current.span, name=self.current.literal))

        if not self._expect_peek(TokenType.RPAREN):
            return None
        return parameters

    def _parse_call_expression(self, callee: Expression) -> Optional[Expression]:
        arguments = self._parse_expression_list(TokenType.RPAREN)
        if arguments is None:
            return None
        return FunctionCall(
            span=SourceSpan(callee.span.start, self.current.span.end),
            callee=callee,
            arguments=arguments,
        )

    def _parse_expression_list(self, end: TokenType) -> Optional[List[Expression]]:
        """Comma-separated expressions closed by the end token."""
        items: List[Expression] = []
        if self._peek_is(end):
            self._advance()
            return items

        self._advance()
        items.append(self._parse_expression(LOWEST))
        while self._peek_is(TokenType.COMMA):
            self._advance()
            self._advance()
            items.append(self._parse_expression(LOWEST))

        if not self._expect_peek(end):
            return None
        return items


def parse(source: str, filename: Optional[str] = None,
          max_errors: int = 20,
          recursion_limit: int = DEFAULT_RECURSION_LIMIT) -> Tuple[Program, List[str]]:
    """
    Convenience function to parse source text.

    Args:
        source: The source code to parse
        filename: Optional filename for diagnostics
        max_errors: Stop after this many syntax errors
        recursion_limit: Python recursion limit while parsing

    Returns:
        (program, errors) where errors is the ordered list of syntax
        error messages; the program may be partial when errors is non-empty
    """
    parser = Parser(Lexer(source, filename), max_errors=max_errors,
                    recursion_limit=recursion_limit)
    program = parser.parse_program()
    return program, parser.errors
