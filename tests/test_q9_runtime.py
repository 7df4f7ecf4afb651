"""
Unit tests for the q9 interpreter, its context and configuration.
"""

import math
import pytest
import textwrap

from q9 import (
    parse_source, Interpreter, InterpreterConfig, load_config, run,
    Value, ValueKind, VOID, num_val, BinOp,
    EvalError, ParseError, SyntaxError, ConfigError,
    DuplicateDefinitionError, UndefinedVariableError, UndefinedFunctionError,
    ArityError, InvalidContextError, DivideByZeroError, OperandError,
    RecursionLimitError,
)
from q9.runtime import ExecutionContext, Frame, EvalFunction, EvalVariable, combine, format_number


def run_source(source: str, config: InterpreterConfig = None) -> Interpreter:
    """Parse and evaluate source; return the interpreter for inspection."""
    interpreter = Interpreter(config)
    program = parse_source(textwrap.dedent(source))
    interpreter.evaluate(program.statements)
    return interpreter


class TestValues:
    """Test runtime values and arithmetic."""

    def test_num_val_is_float(self):
        value = num_val(3)
        assert value.kind == ValueKind.NUM
        assert isinstance(value.data, float)
        assert value == Value(3.0, ValueKind.NUM)

    def test_void(self):
        assert VOID.is_void
        assert str(VOID) == "void"
        assert not num_val(0).is_void

    def test_number_formatting(self):
        assert str(num_val(7)) == "7"
        assert str(num_val(2.5)) == "2.5"
        assert format_number(-3.0) == "-3"

    def test_non_finite_formatting(self):
        """Overflowed literals and inf - inf stay printable."""
        assert format_number(math.inf) == "inf"
        assert format_number(-math.inf) == "-inf"
        assert format_number(math.nan) == "nan"
        assert str(num_val(1e300 * 1e300)) == "inf"

    def test_combine(self):
        assert combine(6.0, BinOp.ADD, 2.0) == 8.0
        assert combine(6.0, BinOp.SUB, 2.0) == 4.0
        assert combine(6.0, BinOp.MUL, 2.0) == 12.0
        assert combine(6.0, BinOp.DIV, 2.0) == 3.0

    def test_combine_divide_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            combine(1.0, BinOp.DIV, 0.0)

    def test_function_bind(self):
        function = EvalFunction(name="f", body=[], parameters=["a", "b"])
        assert function.arity == 2
        bound = function.bind([num_val(1), num_val(2)])
        assert [(v.name, v.value) for v in bound] == [("a", num_val(1)), ("b", num_val(2))]


class TestExecutionContext:
    """Test scope frames and variable lookup."""

    def test_global_definition(self):
        ctx = ExecutionContext()
        assert ctx.is_global
        ctx.define_variable("x", num_val(1))
        assert ctx.globals == {"x": num_val(1)}

    def test_block_scope_is_child(self):
        ctx = ExecutionContext()
        with ctx.call_scope("f", [EvalVariable("a", num_val(1))]):
            with ctx.block_scope():
                ctx.define_variable("b", num_val(2))
                assert ctx.get_variable("a") == num_val(1)
                assert ctx.local_variables() == {"a": num_val(1), "b": num_val(2)}
            assert ctx.get_variable("b") is None
        assert ctx.is_global

    def test_call_scope_hides_caller_locals(self):
        ctx = ExecutionContext()
        with ctx.call_scope("outer", [EvalVariable("a", num_val(1))]):
            with ctx.call_scope("inner", []):
                assert ctx.get_variable("a") is None
                assert ctx.call_depth == 2

    def test_globals_visible_in_call(self):
        ctx = ExecutionContext()
        ctx.define_variable("g", num_val(5))
        with ctx.call_scope("f", []):
            assert ctx.get_variable("g") == num_val(5)
            assert ctx.update_variable("g", num_val(6))
        assert ctx.globals["g"] == num_val(6)

    def test_scopes_pop_on_error(self):
        ctx = ExecutionContext()
        with pytest.raises(RuntimeError):
            with ctx.call_scope("f", []):
                with ctx.block_scope():
                    raise RuntimeError("boom")
        assert ctx.frames == []

    def test_in_function(self):
        ctx = ExecutionContext()
        with ctx.block_scope():
            assert not ctx.is_global
            assert not ctx.in_function
        with ctx.call_scope("f", []):
            assert ctx.in_function

    def test_update_unbound(self):
        ctx = ExecutionContext()
        assert not ctx.update_variable("x", num_val(1))

    def test_reset_drops_frames_and_return(self):
        ctx = ExecutionContext()
        ctx.define_variable("g", num_val(1))
        ctx.frames.append(Frame(name="f", is_call=True))
        ctx.signal_return(num_val(2))
        ctx.reset()
        assert ctx.is_global
        assert not ctx.should_return
        assert ctx.globals == {"g": num_val(1)}


class TestDeclarations:
    """Test let and assignment."""

    def test_let_at_global_scope(self):
        """'let x = 2' leaves {x: 2.0} in globals and evaluates to void."""
        interpreter = Interpreter()
        result = interpreter.evaluate(parse_source("let x = 2").statements)
        assert result == VOID
        assert interpreter.globals == {"x": num_val(2.0)}

    def test_assignment_overwrites(self):
        interpreter = run_source("let x = 2 x = 3")
        assert interpreter.globals["x"] == num_val(3)

    def test_duplicate_let_keeps_first_value(self):
        interpreter = Interpreter()
        with pytest.raises(DuplicateDefinitionError) as exc_info:
            interpreter.evaluate(parse_source("let x = 2 let x = 3").statements)
        assert exc_info.value.code == "E401"
        assert interpreter.globals["x"] == num_val(2)

    def test_duplicate_let_does_not_evaluate_initializer(self):
        """The duplicate check runs before the initializer's side effects."""
        source = """
        let x = 1
        let g = 0
        fn bump() { g = 1 return 5 }
        let x = bump()
        """
        interpreter = Interpreter()
        with pytest.raises(DuplicateDefinitionError):
            interpreter.evaluate(parse_source(textwrap.dedent(source)).statements)
        assert interpreter.globals["g"] == num_val(0)

    def test_assign_undefined(self):
        with pytest.raises(UndefinedVariableError) as exc_info:
            run_source("y = 1")
        assert exc_info.value.code == "E402"
        assert "'y'" in exc_info.value.diagnostic.message

    def test_read_undefined(self):
        with pytest.raises(UndefinedVariableError):
            run_source("let x = y")

    def test_local_cannot_shadow_global(self):
        source = """
        let x = 1
        fn f() { let x = 2 }
        f()
        """
        with pytest.raises(DuplicateDefinitionError):
            run_source(source)

    def test_statements_persist_across_evaluate(self):
        interpreter = Interpreter()
        interpreter.evaluate(parse_source("let x = 1").statements)
        interpreter.evaluate(parse_source("x = x + 1").statements)
        assert interpreter.globals["x"] == num_val(2)


class TestFunctions:
    """Test function definition and calls."""

    def test_add(self):
        source = """
        fn add(a, b) { return a + b }
        let x = add(3, 4)
        """
        interpreter = run_source(source)
        assert interpreter.globals["x"] == num_val(7)
        assert "add" in interpreter.functions

    def test_return_first_argument(self):
        source = """
        fn add(a, b) { return a }
        let x = add(3, 4)
        """
        assert run_source(source).globals["x"] == num_val(3.0)

    def test_definition_order_before_call(self):
        with pytest.raises(UndefinedFunctionError) as exc_info:
            run_source("f() fn f() { }")
        assert exc_info.value.code == "E403"

    def test_duplicate_function(self):
        with pytest.raises(DuplicateDefinitionError):
            run_source("fn f() { } fn f() { }")

    def test_duplicate_parameter(self):
        with pytest.raises(DuplicateDefinitionError):
            run_source("fn f(a, a) { }")

    def test_parameter_shadowing_global(self):
        source = """
        let a = 1
        fn f(a) { return a }
        let y = f(2)
        """
        with pytest.raises(DuplicateDefinitionError):
            run_source(source)

    def test_arity_mismatch(self):
        with pytest.raises(ArityError) as exc_info:
            run_source("fn f(a) { } f(1, 2)")
        assert exc_info.value.code == "E404"
        assert "1 argument(s), 2 given" in exc_info.value.diagnostic.message

    def test_arity_checked_before_arguments(self):
        """A bad call evaluates none of its arguments."""
        source = """
        let g = 0
        fn bump() { g = 1 return 1 }
        fn f(a) { }
        f(bump(), 2)
        """
        interpreter = Interpreter()
        with pytest.raises(ArityError):
            interpreter.evaluate(parse_source(textwrap.dedent(source)).statements)
        assert interpreter.globals["g"] == num_val(0)

    def test_arguments_left_to_right(self):
        source = """
        let log = 0
        fn mark(d) { log = log * 10 + d return d }
        fn pair(a, b) { return a - b }
        let r = pair(mark(1), mark(2))
        """
        interpreter = run_source(source)
        assert interpreter.globals["log"] == num_val(12)
        assert interpreter.globals["r"] == num_val(-1)

    def test_no_return_gives_void(self):
        interpreter = run_source("fn f() { } let v = f()")
        assert interpreter.globals["v"] == VOID

    def test_callee_cannot_see_caller_locals(self):
        source = """
        fn g() { return y }
        fn f() { let y = 1 return g() }
        let r = f()
        """
        with pytest.raises(UndefinedVariableError):
            run_source(source)

    def test_locals_discarded_after_call(self):
        source = """
        fn f() { let t = 1 return t }
        let a = f()
        let b = f()
        """
        interpreter = run_source(source)
        assert interpreter.globals["b"] == num_val(1)
        assert "t" not in interpreter.globals

    def test_recursion(self):
        source = """
        fn down(n) { return n }
        fn twice(n) { return down(n) * 2 }
        let x = twice(twice(3))
        """
        assert run_source(source).globals["x"] == num_val(12)

    def test_recursion_limit(self):
        config = InterpreterConfig(max_call_depth=20)
        interpreter = Interpreter(config)
        program = parse_source("fn loop(n) { return loop(n) } let x = loop(1)")
        with pytest.raises(RecursionLimitError) as exc_info:
            interpreter.evaluate(program.statements)
        assert exc_info.value.code == "E408"
        assert interpreter.ctx.frames == []

    def test_recursion_limit_above_python_stack(self):
        """A depth limit Python cannot reach still ends in a typed error."""
        interpreter = Interpreter(InterpreterConfig(max_call_depth=100000))
        program = parse_source("fn loop(n) { return loop(n) } let x = loop(1)")
        with pytest.raises(RecursionLimitError) as exc_info:
            interpreter.evaluate(program.statements)
        assert exc_info.value.code == "E408"
        assert "loop" in exc_info.value.diagnostic.message
        assert interpreter.ctx.frames == []
        assert not interpreter.ctx.should_return

    def test_interpreter_usable_after_error(self):
        interpreter = Interpreter()
        with pytest.raises(UndefinedVariableError):
            interpreter.evaluate(parse_source("fn f() { { return y } } f()").statements)
        assert interpreter.ctx.is_global
        interpreter.evaluate(parse_source("let y = 1 let z = f()").statements)
        assert interpreter.globals["z"] == num_val(1)

    def test_infinite_argument(self):
        big = "9" * 400
        interpreter = run_source(f"fn id(a) {{ return a }} let x = id({big})")
        assert interpreter.globals["x"] == num_val(math.inf)

    def test_function_def_outside_global_scope(self):
        """A definition reached inside an activation is rejected at runtime."""
        program = parse_source("fn f() { }")
        with pytest.raises(InvalidContextError):
            Interpreter().evaluate(program.statements, bindings=[])


class TestReturn:
    """Test return legality and propagation."""

    def test_return_at_global_scope(self):
        with pytest.raises(InvalidContextError) as exc_info:
            run_source("return 1")
        assert exc_info.value.code == "E405"

    def test_return_in_global_block(self):
        with pytest.raises(InvalidContextError):
            run_source("{ return 1 }")

    def test_return_from_nested_block(self):
        """A return inside a block ends the whole function."""
        source = """
        fn f() {
            { { return 5 } }
            return 6
        }
        let r = f()
        """
        assert run_source(source).globals["r"] == num_val(5)

    def test_statements_after_return_skipped(self):
        source = """
        let g = 0
        fn f() { return 1 g = 2 }
        f()
        """
        assert run_source(source).globals["g"] == num_val(0)

    def test_return_does_not_leak_to_caller(self):
        source = """
        fn inner() { return 1 }
        fn outer() { inner() return 2 }
        let r = outer()
        """
        assert run_source(source).globals["r"] == num_val(2)

    def test_evaluate_with_bindings(self):
        interpreter = Interpreter()
        program = parse_source("return a * 2")
        value = interpreter.evaluate(program.statements, [EvalVariable("a", num_val(4))])
        assert value == num_val(8)
        assert interpreter.ctx.is_global
        assert not interpreter.ctx.should_return


class TestBlocks:
    """Test bare block scoping."""

    def test_block_locals_vanish(self):
        with pytest.raises(UndefinedVariableError):
            run_source("{ let y = 1 } let z = y")

    def test_name_reusable_after_block(self):
        interpreter = run_source("{ let y = 1 } let y = 2")
        assert interpreter.globals == {"y": num_val(2)}

    def test_block_updates_global(self):
        interpreter = run_source("let g = 1 { g = 2 }")
        assert interpreter.globals["g"] == num_val(2)

    def test_call_inside_block(self):
        source = """
        let g = 0
        fn f() { return 3 }
        { let a = f() g = a }
        """
        assert run_source(source).globals["g"] == num_val(3)

    def test_inner_block_sees_outer_block(self):
        source = """
        let g = 0
        { let a = 1 { g = a } }
        """
        assert run_source(source).globals["g"] == num_val(1)


class TestArithmetic:
    """Test binary operator evaluation."""

    @pytest.mark.parametrize("source,expected", [
        ("1 + 2 * 3", 7),
        ("(1 + 2) * 3", 9),
        ("10 - 4 - 3", 3),
        ("8 / 4 / 2", 1),
        ("7 / 2", 3.5),
    ])
    def test_expressions(self, source, expected):
        interpreter = run_source(f"let x = {source}")
        assert interpreter.globals["x"] == num_val(expected)

    def test_divide_by_zero(self):
        with pytest.raises(DivideByZeroError) as exc_info:
            run_source("let x = 1 / (2 - 2)")
        assert exc_info.value.code == "E406"

    def test_void_operand(self):
        with pytest.raises(OperandError) as exc_info:
            run_source("fn f() { } let x = f() + 1")
        assert exc_info.value.code == "E407"


class TestRun:
    """Test the one-call run() facade."""

    def test_success(self):
        result = run("fn add(a, b) { return a + b } let x = add(3, 4)")
        assert result.success
        assert result.value == VOID
        assert result.error is None
        assert result.globals == {"x": num_val(7)}

    def test_eval_failure_keeps_state(self):
        result = run("let x = 2\nlet x = 3")
        assert not result.success
        assert isinstance(result.error, DuplicateDefinitionError)
        assert result.globals == {"x": num_val(2)}
        assert result.error.diagnostic.source_line == "let x = 3"
        assert "already defined" in result.error_message

    def test_parse_failure(self):
        result = run("let x = ")
        assert not result.success
        assert isinstance(result.error, ParseError)
        assert result.program is None
        assert result.globals == {}

    def test_lexer_failure(self):
        result = run("let x = 1 ~")
        assert result.error.code == "E001"

    def test_config_applies(self):
        result = run("fn f() { return f() } f()", config=InterpreterConfig(max_call_depth=5))
        assert isinstance(result.error, RecursionLimitError)
        assert "5" in result.error_message

    def test_error_format_has_caret(self):
        result = run("let x = y", filename="demo.q9")
        text = str(result.error)
        assert text.startswith("demo.q9:1:9: error[E402]")
        assert "^" in text

    def test_non_finite_results(self):
        big = "9" * 400
        result = run(f"fn id(a) {{ return a }} let x = id({big}) let y = x - x")
        assert result.success
        assert str(result.globals["x"]) == "inf"
        assert math.isnan(result.globals["y"].data)
        assert str(result.globals["y"]) == "nan"

    def test_deep_recursion_returned_as_result(self):
        config = InterpreterConfig(max_call_depth=500)
        result = run("fn loop(n) { return loop(n) } let x = loop(1)", config=config)
        assert not result.success
        assert isinstance(result.error, RecursionLimitError)


class TestConfig:
    """Test configuration loading."""

    def test_defaults(self):
        config = load_config()
        assert config.max_call_depth == 100
        assert config.log_level == "WARNING"

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "q9.yaml"
        path.write_text("max_call_depth: 50\nlog_level: debug\n")
        config = load_config(path)
        assert config.max_call_depth == 50
        assert config.log_level == "DEBUG"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "q9.yaml"
        path.write_text("")
        assert load_config(path) == InterpreterConfig()

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "q9.yaml"
        path.write_text("max_depth: 5\n")
        with pytest.raises(ConfigError) as exc_info:
            load_config(path)
        assert exc_info.value.code == "E501"
        assert "max_depth" in exc_info.value.diagnostic.message

    @pytest.mark.parametrize("text", [
        "max_call_depth: 0\n",
        "max_call_depth: many\n",
        "max_call_depth: true\n",
        "log_level: chatty\n",
        "- a list\n",
        "max_call_depth: [\n",
    ])
    def test_invalid_files(self, tmp_path, text):
        path = tmp_path / "q9.yaml"
        path.write_text(text)
        with pytest.raises(ConfigError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "absent.yaml")

    def test_round_trip_dict(self):
        config = InterpreterConfig(max_call_depth=7, log_level="info")
        assert InterpreterConfig.from_dict(config.to_dict()) == config


def test_error_hierarchy():
    assert issubclass(SyntaxError, ParseError)
    assert issubclass(RecursionLimitError, EvalError)
    assert not issubclass(ConfigError, EvalError)
