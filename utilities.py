"""
Utilities module for the AQA interpreter
Error message builders and slot checks shared by the operators and evaluator
"""

from typing import Dict, Optional, Sequence

from values import make_error


ERROR_PREFIX = "ERROR! "


# ==================== ERROR MESSAGE BUILDERS ====================

def runtime_error(message: str) -> Dict:
  """
  Build an Error value with the standard prefix

  Args:
    message: Human readable description

  Returns:
    Error value dict
  """
  return make_error(ERROR_PREFIX + message)


def malformed_error(node_type: str, missing: Optional[str] = None) -> Dict:
  """
  Generate malformed node error

  Examples:
    malformed_error("Sequence") -> "ERROR! Malformed Sequence node."
    malformed_error("Sequence", "right")
      -> "ERROR! Malformed Sequence node (missing 'right')."
  """
  if missing:
    return runtime_error(f"Malformed {node_type} node (missing '{missing}').")
  return runtime_error(f"Malformed {node_type} node.")


def type_mismatch_error(op_name: str, expected: str, actual: Dict) -> Dict:
  """
  Generate type mismatch error for a single operand

  Args:
    op_name: Operation name
    expected: Expected type
    actual: Actual value dict
  """
  return runtime_error(f"{op_name} requires {expected}, got {actual['type']}.")


def operation_error(op_name: str, left: Dict, right: Dict) -> Dict:
  """
  Generate operation error for an operand pair

  Args:
    op_name: Operation name
    left: Left operand value
    right: Right operand value
  """
  return runtime_error(f"Cannot apply {op_name} to {left['type']} and {right['type']}.")


def arity_error(name: str, expected: int, got: int) -> Dict:
  """
  Generate arity mismatch error

  Args:
    name: Subroutine name
    expected: Number of formal parameters
    got: Number of supplied arguments
  """
  return runtime_error(f"Subroutine '{name}' expects {expected} argument(s) but received {got}.")


def unresolved_error(kind: str, name: str) -> Dict:
  return runtime_error(f"{kind} '{name}' not found.")


def kind_mismatch_error(name: str, expected: str, actual: str) -> Dict:
  """
  Generate binding kind mismatch error

  Examples:
    kind_mismatch_error("f", "variable", "subroutine")
      -> "ERROR! 'f' is a subroutine, not a variable."
  """
  return runtime_error(f"'{name}' is a {actual}, not a {expected}.")


# ==================== VALIDATION UTILITIES ====================

def missing_slots(node, properties: Sequence[str] = (), children: Sequence[str] = ()) -> Optional[str]:
  """
  Check a node for required properties and child slots

  Args:
    node: Tree node
    properties: Property keys that must be present (None counts as absent)
    children: Child slots that must be present

  Returns:
    Name of the first missing entry, or None if the node is complete
  """
  for key in properties:
    if node.prop(key) is None:
      return key
  for slot in children:
    if node.child(slot) is None:
      return slot
  return None
