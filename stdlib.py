"""
AQA Standard Library
Operator semantics, literal decoding and output for the AQA interpreter
Pure functions from values to a value; failures are returned as Error values
"""

from typing import Callable, Dict, Optional
import operator
import re

from values import (
  NUM,
  BOOL,
  make_number,
  make_boolean,
  is_error,
  show_value,
)
from utilities import (
  runtime_error,
  malformed_error,
  operation_error,
  type_mismatch_error,
)
from syntax_tree import NUMBER, BOOLEAN, TRUE_LITERAL


# ============================================================================
# OPERATOR FACTORIES
# ============================================================================

def binary_arithmetic_op(op: Callable, op_name: str) -> Callable[[Dict, Dict], Dict]:
  """
  Factory for binary operations on a pair of numbers

  Examples:
    aqa_mul = binary_arithmetic_op(operator.mul, "MUL")
    aqa_mul(make_number(2), make_number(3)) -> {'value': 6.0, 'type': 'Num'}
  """
  def arithmetic(x: Dict, y: Dict) -> Dict:
    if x['type'] != NUM or y['type'] != NUM:
      return operation_error(op_name, x, y)
    return make_number(op(x['value'], y['value']))

  return arithmetic


def binary_logical_op(op: Callable, op_name: str) -> Callable[[Dict, Dict], Dict]:
  """Factory for binary operations on a pair of booleans"""
  def logical(x: Dict, y: Dict) -> Dict:
    if x['type'] != BOOL or y['type'] != BOOL:
      return operation_error(op_name, x, y)
    return make_boolean(op(x['value'], y['value']))

  return logical


def binary_comparison_op(op: Callable, rel_name: str) -> Callable[[Dict, Dict], Dict]:
  """Factory for relations; only numbers can be compared"""
  def comparison(x: Dict, y: Dict) -> Dict:
    if x['type'] != NUM or y['type'] != NUM:
      return operation_error(rel_name, x, y)
    return make_boolean(op(x['value'], y['value']))

  return comparison


# ============================================================================
# ARITHMETIC AND LOGICAL OPERATORS
# ============================================================================

def aqa_div(x: Dict, y: Dict) -> Dict:
  """Division"""
  if x['type'] != NUM or y['type'] != NUM:
    return operation_error("DIV", x, y)
  if y['value'] == 0:
    return runtime_error("Division by zero.")
  return make_number(x['value'] / y['value'])


def aqa_nop(x: Dict, y: Dict) -> Dict:
  """No operation: keeps the left operand"""
  if x['type'] != y['type'] or x['type'] not in (NUM, BOOL):
    return operation_error("NOP", x, y)
  return x


BINARY_OPERATORS: Dict[str, Callable[[Dict, Dict], Dict]] = {
    'ADD': binary_arithmetic_op(operator.add, "ADD"),
    'SUB': binary_arithmetic_op(operator.sub, "SUB"),
    'MUL': binary_arithmetic_op(operator.mul, "MUL"),
    'DIV': aqa_div,
    'AND': binary_logical_op(operator.and_, "AND"),
    'OR': binary_logical_op(operator.or_, "OR"),
    'NOP': aqa_nop,
}

RELATIONS: Dict[str, Callable[[Dict, Dict], Dict]] = {
    'EQ': binary_comparison_op(operator.eq, "EQ"),
    'NEQ': binary_comparison_op(operator.ne, "NEQ"),
    'LT': binary_comparison_op(operator.lt, "LT"),
    'GT': binary_comparison_op(operator.gt, "GT"),
    'LEQ': binary_comparison_op(operator.le, "LEQ"),
    'GEQ': binary_comparison_op(operator.ge, "GEQ"),
}

# operation -> {operand type: function}
UNARY_OPERATORS: Dict[str, Dict[str, Callable]] = {
    'SUB': {NUM: lambda v: make_number(-v['value'])},
    'ADD': {NUM: lambda v: v},
    'NOT': {BOOL: lambda v: make_boolean(not v['value'])},
    'NOP': {NUM: lambda v: v, BOOL: lambda v: v},
}


def binary(op: str, v1: Dict, v2: Dict) -> Dict:
  """Apply a binary operator; an Error operand is returned as is, left first"""
  if is_error(v1):
    return v1
  if is_error(v2):
    return v2
  func = BINARY_OPERATORS.get(op)
  if func is None:
    return runtime_error(f"Unknown binary operation '{op}'.")
  return func(v1, v2)


def unary(op: str, v1: Dict) -> Dict:
  """Apply a unary operator"""
  if is_error(v1):
    return v1
  handlers = UNARY_OPERATORS.get(op)
  if handlers is None:
    return runtime_error(f"Unknown unary operation '{op}'.")
  handler = handlers.get(v1['type'])
  if handler is None:
    return type_mismatch_error(op, " or ".join(handlers), v1)
  return handler(v1)


def relation(rel: str, v1: Dict, v2: Dict) -> Dict:
  """Compare two numbers"""
  if is_error(v1):
    return v1
  if is_error(v2):
    return v2
  func = RELATIONS.get(rel)
  if func is None:
    return runtime_error(f"Unknown relation '{rel}'.")
  return func(v1, v2)


# ============================================================================
# LITERALS
# ============================================================================

# Digits with an optional fraction; the only spelling number literals have
NUMBER_SPELLING = re.compile(r"\d+(?:\.\d+)?")


def parse_number(significand: Optional[str]) -> Dict:
  """Decode a number literal; no significand is malformed, never zero"""
  if significand is None or not str(significand).strip():
    return malformed_error(NUMBER, 'significand')
  if NUMBER_SPELLING.fullmatch(str(significand)):
    return make_number(float(significand))
  return runtime_error(f"Malformed {NUMBER} node (cannot read '{significand}').")


def parse_boolean(significand: Optional[str]) -> Dict:
  """Decode a boolean literal; anything but the true spelling is false"""
  if significand is None:
    return malformed_error(BOOLEAN, 'significand')
  return make_boolean(significand == TRUE_LITERAL)


# ============================================================================
# OUTPUT
# ============================================================================

def aqa_output(value: Dict) -> Dict:
  """Print a value to stdout and pass it through"""
  print(show_value(value))
  return value


def collect_output(buffer: list) -> Callable[[Dict], Dict]:
  """Output sink that appends display text to a list"""
  def sink(value: Dict) -> Dict:
    buffer.append(show_value(value))
    return value

  return sink
