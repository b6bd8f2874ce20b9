"""
Ember: a small imperative expression language.

This package provides:
- Lexer: Tokenizes source text lazily
- Parser: Builds an AST with operator-precedence (Pratt) parsing
- Interpreter: Evaluates the AST with lexical scoping and closures

Usage:
    from ember import evaluate, create_global_environment

    env = create_global_environment()
    result = evaluate('let f = function(x) { x * x }; f(5);', env)
    if result.success:
        print(result.display())
    else:
        print(result.error_message)

    # Or drive the stages yourself
    program, errors = parse('1 + 2 * 3')
    if not errors:
        result = evaluate_program(program, env)
"""

__version__ = "0.3.0"

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
    lookup_identifier,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    parse,
)

from .ast import (
    # Base
    AstNode,
    AstVisitor,
    Expression,
    Statement,
    # Expressions
    Identifier,
    IntegerLiteral,
    UnaryOp,
    BinaryOp,
    IfExpr,
    FunctionLiteral,
    FunctionCall,
    # Statements
    LetStatement,
    AssignmentStatement,
    ExpressionStatement,
    Block,
    WhileStatement,
    ForStatement,
    Program,
    # Helpers
    format_ast,
)

from .errors import (
    EmberError,
    ParserError,
    EvaluationError,
    UndefinedIdentifierError,
    TypeMismatchError,
    DivisionByZeroError,
    NotCallableError,
    ArityMismatchError,
    RecursionDepthError,
    Diagnostic,
    DiagnosticCollector,
    ErrorSeverity,
)

from .runtime import (
    Object,
    ObjectType,
    Integer,
    Boolean,
    Function,
    TRUE,
    FALSE,
    is_truthy,
    Environment,
    create_global_environment,
    Interpreter,
    EvaluationResult,
    evaluate,
    evaluate_program,
)

from .config import (
    EmberConfig,
    ConfigError,
    load_config,
)
