"""
Tests for the Ember runtime (interpreter, values, environment).
"""

import sys

import pytest
import textwrap

from ember import (
    parse, evaluate, evaluate_program, create_global_environment,
    Interpreter, EvaluationResult, Environment,
    Integer, Boolean, Function, TRUE, FALSE, is_truthy, ObjectType,
    UndefinedIdentifierError, TypeMismatchError, DivisionByZeroError,
    NotCallableError, ArityMismatchError, RecursionDepthError,
)
from ember.runtime import native_bool, type_name, inspect, truncating_divide


def run(source: str):
    """Evaluate source in a fresh environment and return the value."""
    result = evaluate(textwrap.dedent(source), create_global_environment())
    assert result.success, result.error_message
    return result.value


def run_error(source: str):
    """Evaluate source expecting a runtime error; return the error."""
    result = evaluate(textwrap.dedent(source), create_global_environment())
    assert result.errors == []
    assert result.error is not None
    return result.error


# --- Value Tests ---

class TestValues:
    """Test runtime value objects."""

    def test_integer(self):
        """Integers carry a Python int."""
        v = Integer(42)
        assert v.value == 42
        assert v.type == ObjectType.INTEGER
        assert v.inspect() == "42"

    def test_integer_equality(self):
        """Integers compare by value."""
        assert Integer(3) == Integer(3)
        assert Integer(3) != Integer(4)

    def test_boolean_singletons(self):
        """native_bool always returns the shared objects."""
        assert native_bool(True) is TRUE
        assert native_bool(False) is FALSE
        assert TRUE.type == ObjectType.BOOLEAN
        assert TRUE.inspect() == "true"
        assert FALSE.inspect() == "false"

    @pytest.mark.parametrize("obj,expected", [
        (TRUE, True),
        (FALSE, False),
        (Integer(1), True),
        (Integer(-3), True),
        (Integer(0), False),
        (None, False),
    ])
    def test_truthiness(self, obj, expected):
        """Conditions follow the truthiness table."""
        assert is_truthy(obj) is expected

    def test_function_is_truthy(self):
        """Functions are truthy."""
        fn = run("function(x) { x }")
        assert isinstance(fn, Function)
        assert is_truthy(fn)

    def test_type_names(self):
        """Type names used in messages."""
        assert type_name(Integer(1)) == "INTEGER"
        assert type_name(TRUE) == "BOOLEAN"
        assert type_name(None) == "NO_VALUE"

    def test_inspect_no_value(self):
        """No value displays as an empty string."""
        assert inspect(None) == ""

    def test_function_inspect(self):
        """Functions display their parameters and body."""
        fn = run("function(x, y) { x + y }")
        assert fn.inspect() == "function(x, y) { (x + y) }"
        assert fn.arity == 2

    @pytest.mark.parametrize("left,right,expected", [
        (7, 2, 3),
        (-7, 2, -3),
        (7, -2, -3),
        (-7, -2, 3),
        (6, 3, 2),
        (0, 5, 0),
    ])
    def test_truncating_divide(self, left, right, expected):
        """Division rounds toward zero."""
        assert truncating_divide(left, right) == expected


# --- Environment Tests ---

class TestEnvironment:
    """Test scope frames and bindings."""

    def test_get_unbound(self):
        """Looking up an unknown name raises."""
        env = create_global_environment()
        with pytest.raises(UndefinedIdentifierError, match="identifier not found: y"):
            env.get("y")

    def test_lookup_walks_outward(self):
        """Inner frames see outer bindings."""
        outer = Environment()
        outer.declare("x", Integer(1))
        inner = outer.enclose()
        assert inner.get("x") == Integer(1)
        assert inner.contains("x")
        assert not inner.contains("y")

    def test_set_never_touches_outer(self):
        """Assignment binds in the local frame."""
        outer = Environment()
        outer.declare("x", Integer(1))
        inner = outer.enclose()
        inner.set("x", Integer(2))
        assert inner.get("x") == Integer(2)
        assert outer.get("x") == Integer(1)

    def test_set_reuses_local_cell(self):
        """Assignment updates a captured cell in place."""
        env = Environment()
        env.declare("x", Integer(1))
        snapshot = env.capture()
        env.set("x", Integer(5))
        assert snapshot.get("x") == Integer(5)

    def test_declare_makes_fresh_cell(self):
        """let shadows without changing earlier captures."""
        env = Environment()
        env.declare("x", Integer(1))
        snapshot = env.capture()
        env.declare("x", Integer(2))
        assert snapshot.get("x") == Integer(1)
        assert env.get("x") == Integer(2)

    def test_capture_sees_later_names(self):
        """Names declared after capture resolve through the live frame."""
        env = Environment()
        snapshot = env.capture()
        env.declare("later", Integer(9))
        assert snapshot.get("later") == Integer(9)

    def test_capture_copies_only_local_cells(self):
        """A snapshot holds this frame's cells, not the outer frames'."""
        outer = Environment()
        outer.declare("a", Integer(1))
        inner = outer.enclose()
        inner.declare("b", Integer(2))
        snapshot = inner.capture()
        assert list(snapshot.store) == ["b"]
        assert snapshot.store["b"] is inner.store["b"]
        assert snapshot.get("a") == Integer(1)

    def test_names(self):
        """Visible names, innermost first, no duplicates."""
        outer = Environment()
        outer.declare("a", Integer(1))
        outer.declare("b", Integer(2))
        inner = outer.enclose()
        inner.declare("b", Integer(3))
        assert inner.names() == ["b", "a"]

    def test_no_value_binding(self):
        """A name may be bound to no value."""
        env = Environment()
        env.declare("n", None)
        assert env.contains("n")
        assert env.get("n") is None


# --- Interpreter Tests ---

class TestArithmetic:
    """Test integer and boolean operators."""

    @pytest.mark.parametrize("source,expected", [
        ("5", 5),
        ("-5", -5),
        ("--5", 5),
        ("5 + 5 + 5 + 5 - 10", 10),
        ("2 * 2 * 2 * 2 * 2", 32),
        ("1 + 2 * 3", 7),
        ("(1 + 2) * 3", 9),
        ("50 / 2 * 2 + 10", 60),
        ("3 * (3 * 3) + 10", 37),
        ("(5 + 10 * 2 + 15 / 3) * 2 + -10", 50),
        ("7 / 2", 3),
        ("-7 / 2", -3),
        ("7 / -2", -3),
        ("-7 / -2", 3),
    ])
    def test_integer_expressions(self, source, expected):
        """Integer arithmetic."""
        assert run(source) == Integer(expected)

    def test_unbounded_integers(self):
        """Results are not limited to a machine word."""
        assert run("4294967296 * 4294967296 * 4294967296") == Integer(2 ** 96)

    @pytest.mark.parametrize("source,expected", [
        ("1 < 2", TRUE),
        ("1 > 2", FALSE),
        ("2 <= 2", TRUE),
        ("3 >= 4", FALSE),
        ("1 == 1", TRUE),
        ("1 != 1", FALSE),
        ("(1 < 2) == (2 < 3)", TRUE),
        ("(1 < 2) != (1 > 2)", TRUE),
        ("(1 < 2) == 1", FALSE),
        ("(1 < 2) != 5", TRUE),
        ("!5", FALSE),
        ("!0", TRUE),
        ("!!5", TRUE),
        ("!(1 < 2)", FALSE),
    ])
    def test_boolean_expressions(self, source, expected):
        """Comparisons and negation yield the singleton booleans."""
        assert run(source) is expected

    def test_not_of_no_value(self):
        """No value is falsy, so its negation is true."""
        assert run("let n = if (0) { 1 }; !n") is TRUE


class TestConditionals:
    """Test if expressions."""

    @pytest.mark.parametrize("source,expected", [
        ("if (1) { 10 }", Integer(10)),
        ("if (1 < 2) { 10 }", Integer(10)),
        ("if (0) { 10 }", None),
        ("if (1 > 2) { 10 }", None),
        ("if (1 > 2) { 10 } else { 20 }", Integer(20)),
        ("if (1 < 2) { 10 } else { 20 }", Integer(10)),
        ("if (1) { }", None),
    ])
    def test_if_else(self, source, expected):
        """The taken branch gives the value; no branch gives no value."""
        assert run(source) == expected

    def test_else_if_chain(self):
        """else-if picks the first matching branch."""
        source = """
            let classify = function(x) {
                if (x < 3) { 1 } else if (x < 10) { 2 } else { 3 }
            };
            classify(1) * 100 + classify(5) * 10 + classify(50)
        """
        assert run(source) == Integer(123)

    def test_if_does_not_create_scope(self):
        """Bindings made in a branch stay visible."""
        assert run("if (1) { let y = 4; }; y") == Integer(4)


class TestBindings:
    """Test let and assignment."""

    def test_let(self):
        """let binds and yields its value."""
        assert run("let a = 5; a") == Integer(5)
        assert run("let a = 5;") == Integer(5)

    def test_let_chain(self):
        """Bindings build on earlier ones."""
        assert run("let a = 5 * 5; let b = a; let c = a + b + 5; c") == Integer(55)

    def test_assignment(self):
        """Assignment rebinds and yields its value."""
        assert run("let a = 1; a = a + 1; a") == Integer(2)
        assert run("let a = 1; a = 7;") == Integer(7)

    def test_assignment_creates_binding(self):
        """Assigning an unbound name binds it locally."""
        assert run("b = 3; b") == Integer(3)

    def test_environment_persists_between_evaluations(self):
        """Bindings survive in the environment passed in."""
        env = create_global_environment()
        evaluate("let x = 2;", env)
        assert evaluate("x * 3", env).value == Integer(6)


class TestLoops:
    """Test while and for loops."""

    def test_while(self):
        """While repeats until the condition fails."""
        assert run("let i = 0; while (i < 5) { i = i + 1; } i;") == Integer(5)

    def test_while_value(self):
        """A loop's value is its last body value."""
        assert run("let i = 0; while (i < 3) { i = i + 1; }") == Integer(3)

    def test_while_never_runs(self):
        """A loop whose body never runs has no value."""
        assert run("while (0) { 1 }") is None

    def test_for(self):
        """For runs init once, then condition, body, post."""
        source = "let s = 0; for (let i = 1; i <= 4; i = i + 1) { s = s + i; } s"
        assert run(source) == Integer(10)

    def test_for_counter_visible_after(self):
        """The loop counter lives in the enclosing frame."""
        assert run("for (let i = 0; i < 5; i = i + 1) { } i") == Integer(5)

    def test_loops_inside_function(self):
        """Loops assign to the call frame."""
        source = """
            let sum = function(n) {
                let s = 0;
                let i = 0;
                while (i < n) {
                    i = i + 1;
                    s = s + i;
                }
                s
            };
            sum(100)
        """
        assert run(source) == Integer(5050)


class TestFunctions:
    """Test function literals, calls and closures."""

    @pytest.mark.parametrize("source,expected", [
        ("let identity = function(x) { x; }; identity(5);", 5),
        ("let double = function(x) { x * 2; }; double(5);", 10),
        ("let add = function(x, y) { x + y; }; add(5, 5);", 10),
        ("let add = function(x, y) { x + y; }; add(5 + 5, add(5, 5));", 20),
        ("function(x) { x; }(5)", 5),
        ("let f = function(x) { x * x }; f(5);", 25),
    ])
    def test_application(self, source, expected):
        """Calls bind parameters positionally."""
        assert run(source) == Integer(expected)

    def test_empty_body(self):
        """An empty body returns no value."""
        assert run("let f = function() { }; f()") is None

    def test_closures(self):
        """Inner functions keep their defining frame."""
        source = """
            let newAdder = function(x) { function(y) { x + y } };
            let addTwo = newAdder(2);
            addTwo(3)
        """
        assert run(source) == Integer(5)

    def test_closure_keeps_binding_at_definition(self):
        """A later let does not change what a closure sees."""
        source = "let x = 10; let f = function() { x }; let x = 20; f();"
        assert run(source) == Integer(10)

    def test_closure_sees_assignment(self):
        """Assignment updates the binding a closure holds."""
        source = "let x = 10; let f = function() { x }; x = 20; f();"
        assert run(source) == Integer(20)

    def test_recursion(self):
        """A function can call itself by its let name."""
        source = """
            let fact = function(n) {
                if (n < 2) { 1 } else { n * fact(n - 1) }
            };
            fact(10)
        """
        assert run(source) == Integer(3628800)

    def test_fibonacci(self):
        """Double recursion."""
        source = """
            let fib = function(n) {
                if (n < 2) { n } else { fib(n - 1) + fib(n - 2) }
            };
            fib(15)
        """
        assert run(source) == Integer(610)

    @pytest.mark.parametrize("depth", [100, 300, 500])
    def test_deep_recursion(self, depth):
        """Ordinary recursion hundreds of calls deep succeeds."""
        source = f"let s = function(n) {{ if (n < 1) {{ 0 }} else {{ n + s(n - 1) }} }}; s({depth});"
        assert run(source) == Integer(depth * (depth + 1) // 2)

    def test_nested_groups(self):
        """Hundreds of nested parentheses evaluate."""
        assert run("(" * 600 + "1 + 1" + ")" * 600) == Integer(2)

    def test_big_results(self):
        """Recursive results grow beyond a machine word."""
        source = "let p = function(n) { if (n == 0) { 1 } else { 2 * p(n - 1) } }; p(100)"
        assert run(source) == Integer(2 ** 100)

    def test_assignment_in_function_is_local(self):
        """Assigning inside a call never changes the caller's binding."""
        env = create_global_environment()
        result = evaluate("let x = 1; let f = function() { x = 5; x }; f()", env)
        assert result.value == Integer(5)
        assert env.get("x") == Integer(1)

    def test_parameters_shadow(self):
        """Parameters shadow outer names."""
        assert run("let x = 1; let f = function(x) { x * 10 }; f(3) + x") == Integer(31)

    def test_higher_order(self):
        """Functions are values."""
        source = """
            let twice = function(f, x) { f(f(x)) };
            let inc = function(n) { n + 1 };
            twice(inc, 5)
        """
        assert run(source) == Integer(7)

    def test_function_equality(self):
        """Functions compare by identity of body and environment."""
        assert run("let f = function(x) { x }; f == f") is TRUE
        assert run("let f = function(x) { x }; let g = function(x) { x }; f == g") is FALSE
        assert run("let mk = function() { function() { 1 } }; mk() == mk()") is FALSE
        assert run("let f = function(x) { x }; f == 1") is FALSE


class TestRuntimeErrors:
    """Test runtime error reporting."""

    def test_undefined_identifier(self):
        """Unknown names."""
        error = run_error("foobar")
        assert isinstance(error, UndefinedIdentifierError)
        assert error.code == "E401"
        assert error.message == "identifier not found: foobar"

    @pytest.mark.parametrize("source,message", [
        ("5 + (1 < 2)", "type mismatch: INTEGER + BOOLEAN"),
        ("(1 < 2) + (1 < 2)", "type mismatch: BOOLEAN + BOOLEAN"),
        ("(1 < 2) < (2 < 3)", "type mismatch: BOOLEAN < BOOLEAN"),
        ("-(1 < 2)", "type mismatch: -BOOLEAN"),
        ("let n = if (0) { 1 }; n == 1", "type mismatch: NO_VALUE == INTEGER"),
        ("let f = function() { 1 }; f * 2", "type mismatch: FUNCTION * INTEGER"),
    ])
    def test_type_mismatch(self, source, message):
        """Operators reject unsupported operand types."""
        error = run_error(source)
        assert isinstance(error, TypeMismatchError)
        assert error.message == message

    def test_division_by_zero(self):
        """Division by zero is reported, not raised."""
        error = run_error("1 / 0")
        assert isinstance(error, DivisionByZeroError)
        assert error.code == "E403"

    def test_not_callable(self):
        """Calling a non-function."""
        error = run_error("5(1)")
        assert isinstance(error, NotCallableError)
        assert error.message == "not a function: INTEGER"

    def test_arity_mismatch(self):
        """Argument count must match."""
        error = run_error("let f = function(x) { x }; f(1, 2)")
        assert isinstance(error, ArityMismatchError)
        assert error.message == "wrong number of arguments: expected 1, got 2"

    def test_recursion_depth(self):
        """Unbounded recursion is reported."""
        error = run_error("let f = function(n) { f(n + 1) }; f(0)")
        assert isinstance(error, RecursionDepthError)
        assert error.code == "E406"

    def test_recursion_limit_restored(self):
        """Running out of stack leaves Python's recursion limit as it was."""
        before = sys.getrecursionlimit()
        run_error("let f = function(n) { f(n + 1) }; f(0)")
        assert sys.getrecursionlimit() == before

    def test_deeply_nested_source(self):
        """Nesting past the recursion limit is a syntax error, not a crash."""
        env = create_global_environment()
        result = evaluate("(" * 20000 + "1" + ")" * 20000, env)
        assert result.errors == ["expression nested too deeply"]
        assert result.error is None
        assert result.diagnostics[0].code == "E106"

    def test_callee_evaluated_first(self):
        """The callee is evaluated before the arguments."""
        error = run_error("g(1 / 0)")
        assert isinstance(error, UndefinedIdentifierError)

    def test_arguments_left_to_right(self):
        """Arguments are evaluated in order."""
        error = run_error("let f = function(a, b) { a }; f(1 / 0, nope)")
        assert isinstance(error, DivisionByZeroError)

    def test_error_aborts_program(self):
        """Statements after a failure do not run."""
        env = create_global_environment()
        result = evaluate("let a = 1; a = 1 / 0; a = 3;", env)
        assert not result.success
        assert env.get("a") == Integer(1)

    def test_error_diagnostic_has_source(self):
        """Runtime diagnostics point at the source line."""
        result = evaluate("let a = 1;\na / 0", create_global_environment())
        diag = result.diagnostics[0]
        assert diag.code == "E403"
        assert diag.span.start.line == 2
        assert diag.source_line == "a / 0"


class TestEvaluationResult:
    """Test the evaluate entry points."""

    def test_success(self):
        """A successful evaluation with a value."""
        result = evaluate("1 + 1", create_global_environment())
        assert isinstance(result, EvaluationResult)
        assert result.success
        assert result.has_value
        assert result.display() == "2"
        assert result.error_message is None

    def test_no_value(self):
        """Success without a value."""
        result = evaluate("", create_global_environment())
        assert result.success
        assert not result.has_value
        assert result.display() == ""

    def test_syntax_errors_skip_evaluation(self):
        """Nothing runs when the program has syntax errors."""
        env = create_global_environment()
        result = evaluate("let a = 5; (1 + 2", env)
        assert not result.success
        assert result.errors == ["expected next token to be RPAREN, got EOF instead"]
        assert result.error is None
        assert not env.contains("a")

    def test_runtime_error_message(self):
        """error_message summarizes a runtime failure."""
        result = evaluate("1 / 0", create_global_environment())
        assert result.error_message == "division by zero"
        assert result.value is None

    def test_idempotent(self):
        """The same program against equal environments gives equal results."""
        program, errors = parse("let f = function(n) { n * 3 }; let x = 4; f(x) + x")
        assert errors == []
        first = evaluate_program(program, create_global_environment())
        second = evaluate_program(program, create_global_environment())
        assert first.value == second.value == Integer(16)

    def test_interpreter_eval_raises(self):
        """Interpreter.eval propagates runtime errors to the caller."""
        program, _ = parse("1 / 0")
        with pytest.raises(DivisionByZeroError):
            Interpreter().eval(program, create_global_environment())
