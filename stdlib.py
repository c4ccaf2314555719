"""
NL Standard Operators
Implementations of the binary operators and of value display
"""

from typing import Dict, Callable
import operator

from syntax import NumberLiteral, StringLiteral, Literal, TokenType, UnknownNodeError
from utilities import (
  binary_arithmetic_op,
  binary_comparison_op,
  truncating_divmod,
)


# ============================================================================
# ARITHMETIC FUNCTIONS
# ============================================================================

def _truncating_div(x: int, y: int) -> int:
  return truncating_divmod(x, y)[0]


def _truncating_mod(x: int, y: int) -> int:
  return truncating_divmod(x, y)[1]


nl_add = binary_arithmetic_op(operator.add, "+")
nl_sub = binary_arithmetic_op(operator.sub, "-")
nl_mul = binary_arithmetic_op(operator.mul, "*")
nl_div = binary_arithmetic_op(_truncating_div, "/", zero_divisor_check=True)
nl_mod = binary_arithmetic_op(_truncating_mod, "%", zero_divisor_check=True)


# ============================================================================
# COMPARISON FUNCTIONS
# ============================================================================

# Equality also compares two strings; mixed kinds are a type mismatch
nl_eq = binary_comparison_op(operator.eq, "==", allow_strings=True)
nl_ne = binary_comparison_op(operator.ne, "!=", allow_strings=True)
nl_lt = binary_comparison_op(operator.lt, "<")
nl_gt = binary_comparison_op(operator.gt, ">")


OPERATORS: Dict[TokenType, Callable] = {
    TokenType.PLUS: nl_add,
    TokenType.MINUS: nl_sub,
    TokenType.STAR: nl_mul,
    TokenType.SLASH: nl_div,
    TokenType.PERCENT: nl_mod,
    TokenType.EQUAL_EQUAL: nl_eq,
    TokenType.NOT_EQUAL: nl_ne,
    TokenType.LESS: nl_lt,
    TokenType.GREATER: nl_gt,
}


# ============================================================================
# DISPLAY
# ============================================================================

def nl_show(value: Literal) -> str:
  """Display text of a value: numbers in decimal, strings raw"""
  if isinstance(value, NumberLiteral):
    return str(value.value)
  if isinstance(value, StringLiteral):
    return value.value
  raise UnknownNodeError(value)
