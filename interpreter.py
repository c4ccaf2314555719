"""
NL Interpreter - tree walking evaluation
Single threaded, depth first, left to right. The environment is created per
run and passed explicitly into every evaluation function.
"""

from typing import Any, Callable, Dict, Optional, Tuple
import sys

from syntax import (
  Assignment, BinaryOperation, Expression, Identifier, If, IfElse, Literal,
  NumberLiteral, Print, Program, Statement, StringLiteral, Token,
  UnknownNodeError, VariableDeclaration, unwind_operations,
)
from error_handling import NLRuntimeError
from stdlib import OPERATORS, nl_show
from utilities import debug_trace, value_type_name


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def write_stdout_line(text: str) -> None:
  """Default output sink: one line to stdout, flushed"""
  sys.stdout.write(text + "\n")
  sys.stdout.flush()


def make_execution_context(debug: bool = False, output: Optional[Callable[[str], Any]] = None,
                           color: bool = True) -> Dict:
  """Create the per-run options: debug tracing and the print sink"""
  return {
      'debug': debug,
      'output': output or write_stdout_line,
      'color': color
  }


def make_runtime_env(bindings: Optional[Dict[str, Literal]] = None) -> Dict:
  """Create an immutable runtime environment"""
  return {
      'bindings': dict(bindings or {})
  }


# ============================================================================
# ENVIRONMENT OPERATIONS
# ============================================================================

def env_bind_value(env: Dict, name: str, value: Literal) -> Dict:
  """Return new environment with name bound to value"""
  return {
      **env,
      'bindings': {**env['bindings'], name: value}
  }


def env_lookup_value(env: Dict, name: str) -> Optional[Literal]:
  """Look up a value in the environment"""
  return env['bindings'].get(name)


def _trace(context: Dict, message: str) -> None:
  if context['debug']:
    debug_trace(message, context.get('color', True))


# ============================================================================
# EXPRESSION EVALUATION
# ============================================================================

def eval_expression(node: Expression, env: Dict, context: Dict) -> Literal:
  """Evaluate an expression to a NumberLiteral or StringLiteral"""
  if isinstance(node, (NumberLiteral, StringLiteral)):
    return node
  elif isinstance(node, Identifier):
    return eval_identifier(node, env, context)
  elif isinstance(node, BinaryOperation):
    return eval_binary_operation(node, env, context)
  raise UnknownNodeError(node)


def eval_identifier(node: Identifier, env: Dict, context: Dict) -> Literal:
  """Evaluate identifier by looking up in environment"""
  value = env_lookup_value(env, node.name)

  if value is None:
    raise NLRuntimeError(NLRuntimeError.UNDEFINED_VARIABLE, node.name, node.span)

  return value


def eval_binary_operation(node: BinaryOperation, env: Dict, context: Dict) -> Literal:
  """
  Evaluate both operands, left first, then apply the operator.

  Left-grouped chains are folded in a loop over their unwound steps, so
  'a + b + c + ...' keeps a constant stack depth however long it is.
  """
  first, steps = unwind_operations(node)
  result = eval_expression(first, env, context)

  for operator, right in steps:
    left_val = result
    right_val = eval_expression(right, env, context)
    result = apply_operator(operator, left_val, right_val)
    _trace(context, f"{nl_show(left_val)!r} {operator.type.value} {nl_show(right_val)!r} => {nl_show(result)!r}")

  return result


def apply_operator(operator: Token, left_val: Literal, right_val: Literal) -> Literal:
  """Dispatch one binary operator on two evaluated operands"""
  op_func = OPERATORS.get(operator.type)
  if op_func is None:
    raise NLRuntimeError(
      NLRuntimeError.TYPE_MISMATCH,
      f"{operator.describe()} is not a binary operator",
      operator.span
    )
  return op_func(left_val, right_val, operator.span)


def eval_condition(node: Expression, env: Dict, context: Dict) -> bool:
  """Numbers are truthy when non-zero; any other value is a fault"""
  value = eval_expression(node, env, context)
  if not isinstance(value, NumberLiteral):
    raise NLRuntimeError(
      NLRuntimeError.INVALID_CONDITION,
      f"condition must be a number, got {value_type_name(value)}"
    )
  return value.value != 0


def stringify_value(value: Literal) -> str:
  """Display text of a value"""
  return nl_show(value)


# ============================================================================
# STATEMENT EXECUTION
# ============================================================================

def exec_statement(node: Statement, env: Dict, context: Dict) -> Dict:
  """Execute one statement and return the updated environment"""
  _trace(context, f"executing {type(node).__name__}")

  if isinstance(node, VariableDeclaration):
    return exec_binding(node.name, node.initializer, env, context)
  elif isinstance(node, Assignment):
    return exec_binding(node.name, node.value, env, context)
  elif isinstance(node, Print):
    return exec_print(node, env, context)
  elif isinstance(node, If):
    if eval_condition(node.condition, env, context):
      return exec_block(node.then_branch, env, context)
    return env
  elif isinstance(node, IfElse):
    if eval_condition(node.condition, env, context):
      return exec_block(node.then_branch, env, context)
    return exec_block(node.else_branch, env, context)
  raise UnknownNodeError(node)


def exec_binding(name: str, expression: Expression, env: Dict, context: Dict) -> Dict:
  """Declaration and assignment both insert or overwrite the binding"""
  value = eval_expression(expression, env, context)
  _trace(context, f"bind {name} = {nl_show(value)!r}")
  return env_bind_value(env, name, value)


def exec_print(node: Print, env: Dict, context: Dict) -> Dict:
  """Evaluate and emit the display text followed by a line break"""
  value = eval_expression(node.expression, env, context)
  context['output'](stringify_value(value))
  return env


def exec_block(statements: Tuple[Statement, ...], env: Dict, context: Dict) -> Dict:
  """Execute statements in order; a fault aborts the rest"""
  for statement in statements:
    env = exec_statement(statement, env, context)
  return env


# ============================================================================
# PROGRAM EVALUATION
# ============================================================================

def eval_program(program: Program, context: Optional[Dict] = None) -> Dict:
  """Evaluate a program in a fresh environment and return the final environment"""
  if context is None:
    context = make_execution_context()
  if not isinstance(program, Program):
    raise UnknownNodeError(program)

  env = make_runtime_env()
  return exec_block(program.statements, env, context)


def run(program: Program, context: Optional[Dict] = None) -> Dict[str, Literal]:
  """Run a program; returns the final bindings, raises NLRuntimeError on a fault"""
  return eval_program(program, context)['bindings']


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

class NLInterpreter:
  """Runs programs with a fixed execution context; nothing is kept between runs"""

  def __init__(self, debug: bool = False, output: Optional[Callable[[str], Any]] = None,
               color: bool = True):
    self.context = make_execution_context(debug, output, color)

  def interpret(self, program: Program) -> Dict[str, Literal]:
    return run(program, self.context)


def create_interpreter(debug: bool = False, output: Optional[Callable[[str], Any]] = None,
                       color: bool = True) -> NLInterpreter:
  """Factory function returning an interpreter"""
  return NLInterpreter(debug=debug, output=output, color=color)


def create_debug_interpreter() -> NLInterpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True)
