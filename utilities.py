"""
Utilities module for the NL interpreter
Contains common helper functions shared by the operator library and evaluator
"""

from typing import Any, Callable, Optional, Tuple
import sys

from termcolor import colored

from syntax import NumberLiteral, StringLiteral, Literal, SourceSpan
from error_handling import NLRuntimeError


INT32_MIN = -2 ** 31
INT32_MAX = 2 ** 31 - 1


# ==================== DIAGNOSTICS ====================

def debug_trace(message: str, color: bool = True) -> None:
  """Write a debug line to stderr, never to program output"""
  line = f"[debug] {message}"
  if color:
    line = colored(line, "cyan")
  print(line, file=sys.stderr)


# ==================== VALUE UTILITIES ====================

def value_type_name(value: Any) -> str:
  """
  Name of a runtime value's kind, for error messages

  Args:
    value: NumberLiteral or StringLiteral

  Returns:
    "number", "string" or the Python class name for anything else
  """
  if isinstance(value, NumberLiteral):
    return "number"
  if isinstance(value, StringLiteral):
    return "string"
  return type(value).__name__


def checked_int32(value: int, op_name: str, span: Optional[SourceSpan] = None) -> NumberLiteral:
  """
  Wrap an integer result, refusing values outside the 32-bit signed range

  Raises:
    NLRuntimeError (integer overflow)
  """
  if value < INT32_MIN or value > INT32_MAX:
    raise NLRuntimeError(
      NLRuntimeError.INTEGER_OVERFLOW,
      f"result of {op_name} does not fit in 32 bits",
      span
    )
  return NumberLiteral(value)


def truncating_divmod(dividend: int, divisor: int) -> Tuple[int, int]:
  """
  Integer division rounding toward zero

  The remainder takes the sign of the dividend, so
  dividend == quotient * divisor + remainder always holds.

  Examples:
    truncating_divmod(7, 2) -> (3, 1)
    truncating_divmod(-7, 2) -> (-3, -1)
    truncating_divmod(7, -2) -> (-3, 1)
  """
  quotient = abs(dividend) // abs(divisor)
  if (dividend < 0) != (divisor < 0):
    quotient = -quotient
  return quotient, dividend - quotient * divisor


# ==================== ERROR MESSAGE BUILDERS ====================

def operation_error(
  op: str,
  left: Any,
  right: Any,
  span: Optional[SourceSpan] = None
) -> NLRuntimeError:
  """
  Generate type mismatch error for a binary operation

  Args:
    op: Operator symbol
    left: Left operand value
    right: Right operand value
    span: Operator location, if known

  Returns:
    NLRuntimeError with formatted message
  """
  return NLRuntimeError(
    NLRuntimeError.TYPE_MISMATCH,
    f"'{op}' is not defined for {value_type_name(left)} and {value_type_name(right)}",
    span
  )


def division_by_zero_error(op: str, span: Optional[SourceSpan] = None) -> NLRuntimeError:
  """Generate division/modulo by zero error"""
  name = "division" if op == "/" else "modulo"
  return NLRuntimeError(NLRuntimeError.DIVISION_BY_ZERO, f"{name} by zero", span)


# ==================== BINARY OPERATION FACTORIES ====================

def binary_arithmetic_op(
  op: Callable[[int, int], int],
  op_name: str,
  zero_divisor_check: bool = False
) -> Callable[[Literal, Literal, Optional[SourceSpan]], NumberLiteral]:
  """
  Factory for binary arithmetic operations on numbers

  Args:
    op: Integer function (e.g., operator.add)
    op_name: Operator symbol for error messages
    zero_divisor_check: Fault when the right operand is zero

  Returns:
    Function that performs the arithmetic operation

  Examples:
    nl_add = binary_arithmetic_op(operator.add, "+")
    nl_add(NumberLiteral(1), NumberLiteral(2)) -> NumberLiteral(3)
  """
  def arithmetic(x: Literal, y: Literal, span: Optional[SourceSpan] = None) -> NumberLiteral:
    if not (isinstance(x, NumberLiteral) and isinstance(y, NumberLiteral)):
      raise operation_error(op_name, x, y, span)
    if zero_divisor_check and y.value == 0:
      raise division_by_zero_error(op_name, span)
    return checked_int32(op(x.value, y.value), op_name, span)

  return arithmetic


def binary_comparison_op(
  op: Callable[[Any, Any], bool],
  op_name: str,
  allow_strings: bool = False
) -> Callable[[Literal, Literal, Optional[SourceSpan]], NumberLiteral]:
  """
  Factory for binary comparison operations

  Comparisons yield NumberLiteral(1) for true and NumberLiteral(0) for false.

  Args:
    op: Python operator function (e.g., operator.lt)
    op_name: Operator symbol for error messages
    allow_strings: Also accept two string operands

  Returns:
    Function that performs the comparison
  """
  def comparison(x: Literal, y: Literal, span: Optional[SourceSpan] = None) -> NumberLiteral:
    numbers = isinstance(x, NumberLiteral) and isinstance(y, NumberLiteral)
    strings = allow_strings and isinstance(x, StringLiteral) and isinstance(y, StringLiteral)
    if not (numbers or strings):
      raise operation_error(op_name, x, y, span)
    return NumberLiteral(1 if op(x.value, y.value) else 0)

  return comparison
