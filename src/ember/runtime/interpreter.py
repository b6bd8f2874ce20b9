"""
Tree-walking interpreter for Ember.

Evaluates AST nodes against an Environment. Runtime failures are raised
as EvaluationError subclasses inside the walk and turned into an
EvaluationResult at the entry points, so they never escape to the caller.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .values import (
    Object, Integer, Boolean, Function,
    TRUE, FALSE, native_bool, is_truthy, type_name, inspect,
)
from .environment import Environment
from ..ast import (
    AstNode, Program, Statement, Expression,
    LetStatement, AssignmentStatement, ExpressionStatement, Block,
    WhileStatement, ForStatement,
    Identifier, IntegerLiteral, UnaryOp, BinaryOp, IfExpr,
    FunctionLiteral, FunctionCall,
)
from ..errors import (
    Diagnostic,
    EvaluationError,
    error_type_mismatch,
    error_division_by_zero,
    error_not_callable,
    error_arity_mismatch,
    error_recursion_depth,
)
from ..parser import Parser
from ..lexer import Lexer
from ..config import DEFAULT_RECURSION_LIMIT, recursion_limit

logger = logging.getLogger(__name__)


@dataclass
class EvaluationResult:
    """Outcome of evaluating a source text or program.

    Exactly one of these holds:
    - ``errors`` is non-empty: syntax errors, nothing was evaluated
    - ``error`` is set: evaluation started and failed
    - otherwise success, with ``value`` possibly None (no value)
    """
    value: Optional[Object] = None
    errors: List[str] = field(default_factory=list)
    error: Optional[EvaluationError] = None
    program: Optional[Program] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors and self.error is None

    @property
    def has_value(self) -> bool:
        return self.success and self.value is not None

    @property
    def error_message(self) -> Optional[str]:
        """A one-line summary of what went wrong, if anything."""
        if self.errors:
            return "; ".join(self.errors)
        if self.error is not None:
            return self.error.message
        return None

    def display(self) -> str:
        """Display form of the value ('' for no value)."""
        return inspect(self.value)


class Interpreter:
    """
    Tree-walking interpreter.

    Holds no evaluation state of its own: everything lives in the
    Environment passed to each call, so evaluating the same tree against
    the same environment state always gives the same result.

    Each Ember call uses several Python frames, so ``run`` raises Python's
    recursion limit to ``recursion_limit`` for the duration of the walk.
    """

    def __init__(self, recursion_limit: int = DEFAULT_RECURSION_LIMIT):
        self.recursion_limit = recursion_limit

    def run(self, program: Program, env: Environment) -> EvaluationResult:
        """Evaluate a parsed program, capturing runtime errors."""
        try:
            with recursion_limit(self.recursion_limit):
                value = self.eval(program, env)
        except EvaluationError as e:
            logger.debug("evaluation failed: %s", e.message)
            return EvaluationResult(error=e, program=program, diagnostics=[e.diagnostic])
        except RecursionError:
            logger.debug("evaluation exceeded the recursion limit")
            e = error_recursion_depth(program.span)
            return EvaluationResult(error=e, program=program, diagnostics=[e.diagnostic])
        return EvaluationResult(value=value, program=program)

    def eval(self, node: AstNode, env: Environment) -> Optional[Object]:
        """Evaluate any node. Raises EvaluationError on failure."""
        if isinstance(node, Program):
            return self._eval_statements(node.statements, env)
        elif isinstance(node, Statement):
            return self._execute_statement(node, env)
        elif isinstance(node, Expression):
            return self._evaluate(node, env)
        raise TypeError(f"Unknown node type: {type(node).__name__}")

    # =========================================================================
    # Statements
    # =========================================================================

    def _eval_statements(self, statements: List[Statement], env: Environment) -> Optional[Object]:
        """Run statements in order; the value is that of the last one."""
        result = None
        for stmt in statements:
            result = self._execute_statement(stmt, env)
        return result

    def _execute_statement(self, stmt: Statement, env: Environment) -> Optional[Object]:
        """Execute a statement."""
        if isinstance(stmt, ExpressionStatement):
            return self._evaluate(stmt.expression, env)
        elif isinstance(stmt, LetStatement):
            return self._execute_let(stmt, env)
        elif isinstance(stmt, AssignmentStatement):
            return self._execute_assignment(stmt, env)
        elif isinstance(stmt, Block):
            return self._eval_statements(stmt.statements, env)
        elif isinstance(stmt, WhileStatement):
            return self._execute_while(stmt, env)
        elif isinstance(stmt, ForStatement):
            return self._execute_for(stmt, env)
        else:
            raise TypeError(f"Unknown statement type: {type(stmt).__name__}")

    def _execute_let(self, stmt: LetStatement, env: Environment) -> Optional[Object]:
        """Execute a let statement."""
        value = self._evaluate(stmt.value, env)
        return env.declare(stmt.name.name, value)

    def _execute_assignment(self, stmt: AssignmentStatement, env: Environment) -> Optional[Object]:
        """Execute an assignment; it binds in the current frame."""
        value = self._evaluate(stmt.value, env)
        return env.set(stmt.name.name, value)

    def _execute_while(self, stmt: WhileStatement, env: Environment) -> Optional[Object]:
        """Execute a while loop. There is no iteration cap."""
        result = None
        while is_truthy(self._evaluate(stmt.condition, env)):
            result = self._eval_statements(stmt.body.statements, env)
        return result

    def _execute_for(self, stmt: ForStatement, env: Environment) -> Optional[Object]:
        """Execute a for loop: init once, then condition, body, post."""
        self._execute_statement(stmt.init, env)
        result = None
        while is_truthy(self._evaluate(stmt.condition, env)):
            result = self._eval_statements(stmt.body.statements, env)
            self._execute_statement(stmt.post, env)
        return result

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression, env: Environment) -> Optional[Object]:
        """Evaluate an expression to an object (or None for no value)."""
        if isinstance(expr, IntegerLiteral):
            return Integer(expr.value)
        elif isinstance(expr, Identifier):
            return env.get(expr.name, expr.span)
        elif isinstance(expr, UnaryOp):
            return self._eval_unary_op(expr, env)
        elif isinstance(expr, BinaryOp):
            return self._eval_binary_op(expr, env)
        elif isinstance(expr, IfExpr):
            return self._eval_if_expr(expr, env)
        elif isinstance(expr, FunctionLiteral):
            return Function(expr.parameter_names, expr.body, env.capture())
        elif isinstance(expr, FunctionCall):
            return self._eval_function_call(expr, env)
        else:
            raise TypeError(f"Unknown expression type: {type(expr).__name__}")

    def _eval_unary_op(self, op: UnaryOp, env: Environment) -> Object:
        """Evaluate a prefix operation."""
        operand = self._evaluate(op.operand, env)

        if op.operator == "!":
            return FALSE if is_truthy(operand) else TRUE
        elif op.operator == "-":
            if not isinstance(operand, Integer):
                raise error_type_mismatch(f"-{type_name(operand)}", op.span)
            return Integer(-operand.value)
        raise error_type_mismatch(f"unknown operator {op.operator}{type_name(operand)}", op.span)

    def _eval_binary_op(self, op: BinaryOp, env: Environment) -> Object:
        """Evaluate an infix operation."""
        left = self._evaluate(op.left, env)
        right = self._evaluate(op.right, env)

        if isinstance(left, Integer) and isinstance(right, Integer):
            return self._eval_integer_op(op, left.value, right.value)

        if left is None or right is None:
            raise error_type_mismatch(
                f"{type_name(left)} {op.operator} {type_name(right)}", op.span)

        if op.operator == "==":
            return native_bool(self._same_object(left, right))
        elif op.operator == "!=":
            return native_bool(not self._same_object(left, right))

        raise error_type_mismatch(
            f"{type_name(left)} {op.operator} {type_name(right)}", op.span)

    def _eval_integer_op(self, op: BinaryOp, left: int, right: int) -> Object:
        operator = op.operator
        if operator == "+":
            return Integer(left + right)
        elif operator == "-":
            return Integer(left - right)
        elif operator == "*":
            return Integer(left * right)
        elif operator == "/":
            if right == 0:
                raise error_division_by_zero(op.span)
            return Integer(truncating_divide(left, right))
        elif operator == "<":
            return native_bool(left < right)
        elif operator == ">":
            return native_bool(left > right)
        elif operator == "<=":
            return native_bool(left <= right)
        elif operator == ">=":
            return native_bool(left >= right)
        elif operator == "==":
            return native_bool(left == right)
        elif operator == "!=":
            return native_bool(left != right)
        raise error_type_mismatch(f"unknown operator INTEGER {operator} INTEGER", op.span)

    @staticmethod
    def _same_object(left: Object, right: Object) -> bool:
        """Equality for non-integer operands.

        Booleans are singletons and compare by identity; functions are equal
        when they share body and captured environment; different kinds are
        never equal.
        """
        if type(left) is not type(right):
            return False
        if isinstance(left, Boolean):
            return left is right
        return left == right

    def _eval_if_expr(self, expr: IfExpr, env: Environment) -> Optional[Object]:
        """Evaluate an if expression."""
        condition = self._evaluate(expr.condition, env)
        if is_truthy(condition):
            return self._eval_statements(expr.consequence.statements, env)
        elif expr.alternative is not None:
            return self._eval_statements(expr.alternative.statements, env)
        return None

    def _eval_function_call(self, call: FunctionCall, env: Environment) -> Optional[Object]:
        """Evaluate a call: callee, then arguments left to right, then apply."""
        function = self._evaluate(call.callee, env)
        args = [self._evaluate(arg, env) for arg in call.arguments]
        return self._apply_function(function, args, call)

    def _apply_function(self, function: Optional[Object], args: List[Optional[Object]],
                        call: FunctionCall) -> Optional[Object]:
        if not isinstance(function, Function):
            raise error_not_callable(type_name(function), call.span)
        if len(args) != function.arity:
            raise error_arity_mismatch(function.arity, len(args), call.span)

        call_env = function.env.enclose(name=f"call:{call.callee}")
        for param, arg in zip(function.parameters, args):
            call_env.declare(param, arg)
        return self._eval_statements(function.body.statements, call_env)


def truncating_divide(left: int, right: int) -> int:
    """Integer division rounding toward zero (7 / -2 == -3)."""
    quotient = abs(left) // abs(right)
    if (left < 0) != (right < 0):
        return -quotient
    return quotient


def evaluate_program(program: Program, env: Environment,
                     recursion_limit: int = DEFAULT_RECURSION_LIMIT) -> EvaluationResult:
    """Evaluate an already-parsed program."""
    return Interpreter(recursion_limit).run(program, env)


def evaluate(source: str, env: Environment, filename: Optional[str] = None,
             max_errors: int = 20,
             recursion_limit: int = DEFAULT_RECURSION_LIMIT) -> EvaluationResult:
    """
    Lex, parse and evaluate source text against an environment.

    This is the whole pipeline in one call:

        from ember import evaluate, create_global_environment

        env = create_global_environment()
        result = evaluate("let f = function(x) { x * x }; f(5);", env)
        if result.success:
            print(result.display())      # 25
        else:
            print(result.error_message)

    Args:
        source: Ember source text
        env: The environment to evaluate in; bindings persist in it
        filename: Optional filename for diagnostics
        max_errors: Stop parsing after this many syntax errors
        recursion_limit: Python recursion limit while parsing and evaluating

    Returns:
        EvaluationResult. When there are syntax errors nothing is
        evaluated and ``errors`` lists them.
    """
    lexer = Lexer(source, filename)
    parser = Parser(lexer, max_errors=max_errors, recursion_limit=recursion_limit)
    program = parser.parse_program()
    if parser.errors:
        return EvaluationResult(
            errors=parser.errors,
            program=program,
            diagnostics=list(parser.diagnostics.diagnostics),
        )

    result = Interpreter(recursion_limit).run(program, env)
    for diag in result.diagnostics:
        if diag.span is not None and diag.source_line is None:
            diag.source_line = lexer.get_source_line(diag.span.start.line)
    return result
