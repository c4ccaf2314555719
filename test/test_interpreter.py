"""
Interpreter tests for NL
"""

import pytest
from syntax import BinaryOperation, NumberLiteral, Print, Program, StringLiteral, TokenType, make_token
from parsing import scan_and_parse
from interpreter import (
  create_debug_interpreter,
  create_interpreter,
  env_bind_value,
  env_lookup_value,
  make_execution_context,
  make_runtime_env,
  run,
  stringify_value,
)
from error_handling import NLRuntimeError
import utilities
from utilities import truncating_divmod


class TestBasicPrograms:
  """Programs from the language reference"""

  def test_print_variable(self, run_code):
    assert run_code("let x = 5; print x;") == ["5"]

  def test_no_operator_precedence(self, run_code):
    """(a + b) * 2, not a + (b * 2)"""
    assert run_code("let a = 2; let b = 3; print a + b * 2;") == ["10"]

  def test_truthy_condition(self, run_code):
    assert run_code('let x = 1; if x { print "yes"; } else { print "no"; }') == ["yes"]

  def test_falsy_condition(self, run_code):
    assert run_code('let x = 0; if x { print "yes"; } else { print "no"; }') == ["no"]

  def test_falsy_without_else(self, run_code):
    assert run_code('if 0 { print "never"; } print "after";') == ["after"]

  def test_negative_condition_is_truthy(self, run_code):
    assert run_code('if 0 - 1 { print "yes"; }') == ["yes"]

  def test_redeclaration_replaces(self, run_code):
    assert run_code("let x = 1; let x = 2; print x;") == ["2"]

  def test_assignment_without_declaration(self, run_code):
    assert run_code("x = 3; print x;") == ["3"]

  def test_bindings_are_global(self, run_code):
    """Blocks do not introduce scopes"""
    assert run_code("let x = 1; if x { let y = 2; } print y;") == ["2"]

  def test_strings_print_raw(self, run_code):
    assert run_code('print "hello world";') == ["hello world"]

  def test_output_order(self, run_code):
    assert run_code('print 1; print "two"; print 1 + 2;') == ["1", "two", "3"]


class TestArithmetic:
  """Operators evaluate left to right with equal precedence"""

  def test_equality_reapplied_at_term_level(self, run_code):
    # (3 == 1) + 2
    assert run_code("print 3 == 1 + 2;") == ["2"]

  def test_multiplication_by_comparison(self, run_code):
    # 2 * (3 == 6)
    assert run_code("print 2 * 3 == 6;") == ["0"]

  def test_subtraction_chain(self, run_code):
    assert run_code("print 10 - 2 - 3;") == ["5"]

  def test_division_truncates_toward_zero(self, run_code):
    assert run_code("print 7 / 2; print 0 - 7 / 2;") == ["3", "-3"]

  def test_remainder_sign_follows_dividend(self, run_code):
    assert run_code("print (0 - 7) % 3; print 7 % (0 - 3);") == ["-1", "1"]

  def test_comparisons(self, run_code):
    assert run_code("print 1 < 2; print 2 > 3; print 2 != 3; print 4 == 4;") == ["1", "0", "1", "1"]

  def test_string_equality(self, run_code):
    assert run_code('print "a" == "a"; print "a" != "b"; print "a" == "b";') == ["1", "1", "0"]

  def test_smallest_integer(self, run_code):
    assert run_code("print 0 - 2147483647 - 1;") == ["-2147483648"]

  def test_truncating_divmod(self):
    assert truncating_divmod(7, 2) == (3, 1)
    assert truncating_divmod(-7, 2) == (-3, -1)
    assert truncating_divmod(7, -2) == (-3, 1)
    assert truncating_divmod(-7, -2) == (3, -1)


class TestRuntimeFaults:
  """Faults abort the run without undoing earlier output"""

  def fault_of(self, code):
    lines = []
    interpreter = create_interpreter(output=lines.append)
    with pytest.raises(NLRuntimeError) as excinfo:
      interpreter.interpret(scan_and_parse(code))
    return excinfo.value, lines

  def test_string_addition(self):
    error, lines = self.fault_of('print "hi" + "there";')
    assert error.kind == NLRuntimeError.TYPE_MISMATCH
    assert lines == []

  def test_division_by_zero(self):
    error, lines = self.fault_of("let x = 10; let y = 0; print x / y;")
    assert error.kind == NLRuntimeError.DIVISION_BY_ZERO
    assert lines == []

  def test_modulo_by_zero(self):
    error, _ = self.fault_of("print 5 % 0;")
    assert error.kind == NLRuntimeError.DIVISION_BY_ZERO
    assert "modulo" in error.message

  def test_earlier_output_is_kept(self):
    error, lines = self.fault_of("print 1; print 1 / 0; print 2;")
    assert error.kind == NLRuntimeError.DIVISION_BY_ZERO
    assert lines == ["1"]

  def test_undefined_variable(self):
    error, _ = self.fault_of("print z;")
    assert error.kind == NLRuntimeError.UNDEFINED_VARIABLE
    assert error.detail == "z"
    assert "z" in str(error)
    assert error.span.column == 7

  def test_left_operand_evaluated_first(self):
    error, _ = self.fault_of("print z + (1 / 0);")
    assert error.kind == NLRuntimeError.UNDEFINED_VARIABLE

  def test_mixed_equality(self):
    error, _ = self.fault_of('print "a" == 1;')
    assert error.kind == NLRuntimeError.TYPE_MISMATCH

  def test_string_ordering(self):
    error, _ = self.fault_of('print "a" < "b";')
    assert error.kind == NLRuntimeError.TYPE_MISMATCH
    assert "string" in error.message

  def test_string_condition(self):
    error, lines = self.fault_of('if "x" { print 1; } print 2;')
    assert error.kind == NLRuntimeError.INVALID_CONDITION
    assert lines == []

  def test_addition_overflow(self):
    error, _ = self.fault_of("print 2147483647 + 1;")
    assert error.kind == NLRuntimeError.INTEGER_OVERFLOW

  def test_multiplication_overflow(self):
    error, _ = self.fault_of("print 65536 * 65536;")
    assert error.kind == NLRuntimeError.INTEGER_OVERFLOW

  def test_division_overflow(self):
    error, _ = self.fault_of("let m = 0 - 2147483647 - 1; print m / (0 - 1);")
    assert error.kind == NLRuntimeError.INTEGER_OVERFLOW

  def test_non_operator_token(self):
    program = Program((Print(BinaryOperation(NumberLiteral(1), make_token(TokenType.ASSIGN), NumberLiteral(2))),))
    with pytest.raises(NLRuntimeError):
      run(program, make_execution_context(output=lambda line: None))

  def test_unknown_node(self):
    with pytest.raises(TypeError):
      run(Program((NumberLiteral(1),)))


class TestEnvironment:
  """The environment belongs to one run"""

  def test_run_returns_bindings(self):
    bindings = run(scan_and_parse("let x = 1; let y = x + 1; let s = \"t\";"))
    assert bindings == {"x": NumberLiteral(1), "y": NumberLiteral(2), "s": StringLiteral("t")}

  def test_no_leak_between_runs(self):
    lines = []
    interpreter = create_interpreter(output=lines.append)
    interpreter.interpret(scan_and_parse("let x = 1; print x;"))
    with pytest.raises(NLRuntimeError) as excinfo:
      interpreter.interpret(scan_and_parse("print x;"))
    assert excinfo.value.kind == NLRuntimeError.UNDEFINED_VARIABLE
    assert lines == ["1"]

  def test_env_operations(self):
    env = make_runtime_env()
    updated = env_bind_value(env, "a", NumberLiteral(3))
    assert env_lookup_value(env, "a") is None
    assert env_lookup_value(updated, "a") == NumberLiteral(3)

  def test_stringify_value(self):
    assert stringify_value(NumberLiteral(-12)) == "-12"
    assert stringify_value(StringLiteral("raw \"text")) == "raw \"text"


class TestOutputAndTracing:
  """Output goes to stdout by default; debug traces go to stderr"""

  def test_default_output(self, capsys):
    run(scan_and_parse('print "hi"; print 2;'))
    assert capsys.readouterr().out == "hi\n2\n"

  def test_debug_trace(self, capsys):
    interpreter = create_debug_interpreter()
    interpreter.interpret(scan_and_parse("let x = 1 + 2; print x;"))
    captured = capsys.readouterr()
    assert captured.out == "3\n"
    assert "[debug]" in captured.err
    assert "bind x" in captured.err


class TestLongPrograms:
  """Long chains and deep nesting evaluate without exhausting the stack"""

  def test_thousand_term_sum(self, run_code):
    assert run_code("print " + " + ".join(["1"] * 1000) + ";") == ["1000"]

  def test_long_chain_keeps_left_to_right_order(self, run_code):
    # ((((1 + 1) ... ) * 2) - 5
    source = "print " + " + ".join(["1"] * 600) + " * 2 - 5;"
    assert run_code(source) == ["1195"]

  def test_long_chain_fault_stops_at_failing_step(self):
    lines = []
    interpreter = create_interpreter(output=lines.append)
    program = scan_and_parse("print " + " + ".join(["1"] * 800) + " / 0 + z;")
    with pytest.raises(NLRuntimeError) as excinfo:
      interpreter.interpret(program)
    assert excinfo.value.kind == NLRuntimeError.DIVISION_BY_ZERO
    assert lines == []

  def test_deeply_nested_parentheses(self, run_code):
    depth = 150
    source = "print " + "(1 + " * depth + "1" + ")" * depth + ";"
    assert run_code(source) == [str(depth + 1)]

  def test_deeply_nested_blocks(self, run_code):
    depth = 150
    assert run_code("if 1 { " * depth + "print 7;" + " }" * depth) == ["7"]


class TestColorOption:
  """The color flag reaches the execution context and the trace output"""

  @pytest.fixture
  def marked_color(self, monkeypatch):
    """Replace terminal colouring with a visible marker"""
    monkeypatch.setattr(utilities, "colored", lambda text, color: f"<{color}>{text}")

  def test_factory_passes_color(self):
    assert create_interpreter(color=False).context['color'] is False
    assert create_interpreter().context['color'] is True

  def test_plain_trace(self, capsys, marked_color):
    create_interpreter(debug=True, color=False).interpret(scan_and_parse("print 1;"))
    err = capsys.readouterr().err
    assert "[debug]" in err
    assert "<cyan>" not in err

  def test_coloured_trace(self, capsys, marked_color):
    create_interpreter(debug=True).interpret(scan_and_parse("print 1;"))
    assert "<cyan>[debug]" in capsys.readouterr().err
