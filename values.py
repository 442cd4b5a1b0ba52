"""
AQA Runtime Values and Bindings
Tagged dictionaries for runtime values, variable/subroutine bindings
and the binding environment
"""

import math
from typing import Any, Dict, List, Optional


# Runtime value tags
NUM = "Num"
BOOL = "Bool"
STRING = "String"
VOID = "Void"
ERROR = "Error"

# Binding kinds
VARIABLE = "variable"
SUBROUTINE = "subroutine"


# ============================================================================
# RUNTIME VALUES
# ============================================================================

def make_value(value: Any, type_name: str) -> Dict:
  """Create an immutable runtime value"""
  return {
      'value': value,
      'type': type_name
  }


def make_number(value: float) -> Dict:
  return make_value(float(value), NUM)


def make_boolean(value: bool) -> Dict:
  return make_value(bool(value), BOOL)


def make_string(value: str) -> Dict:
  return make_value(value, STRING)


def make_void() -> Dict:
  return make_value(None, VOID)


def make_error(message: str) -> Dict:
  """Errors are values: they travel through the same channel as results"""
  return make_value(message, ERROR)


def sentinel() -> Dict:
  """Value of statements whose only effect is on the environment"""
  return make_number(0)


def is_error(value: Dict) -> bool:
  return value['type'] == ERROR


def is_number(value: Dict) -> bool:
  return value['type'] == NUM


def is_boolean(value: Dict) -> bool:
  return value['type'] == BOOL


def show_value(value: Dict) -> str:
  """Convert a runtime value to its display text"""
  if value['type'] == NUM:
    number = value['value']
    if math.isfinite(number) and number == int(number):
      return str(int(number))
    return str(number)
  elif value['type'] == BOOL:
    return "True" if value['value'] else "False"
  elif value['type'] == STRING:
    return value['value']
  elif value['type'] == VOID:
    return "<void>"
  elif value['type'] == ERROR:
    return value['value']
  return f"<{value['type']}>"


# ============================================================================
# BINDINGS
# ============================================================================

def make_variable(value: Dict, constant: bool = False) -> Dict:
  """Create a variable binding holding a runtime value"""
  return {
      'kind': VARIABLE,
      'value': value,
      'constant': constant
  }


def make_subroutine(params: List[str], body: Optional[Any] = None, ret: Optional[Any] = None) -> Dict:
  """Create a subroutine binding; body and return expression are tree nodes"""
  return {
      'kind': SUBROUTINE,
      'params': list(params),
      'body': body,
      'ret': ret
  }


def is_variable(binding: Optional[Dict]) -> bool:
  return binding is not None and binding['kind'] == VARIABLE


def is_subroutine(binding: Optional[Dict]) -> bool:
  return binding is not None and binding['kind'] == SUBROUTINE


def is_constant(binding: Optional[Dict]) -> bool:
  return is_variable(binding) and binding['constant']


# ============================================================================
# ENVIRONMENT OPERATIONS
# ============================================================================

def make_environment(bindings: Optional[Dict] = None) -> Dict:
  """Create a binding environment (name -> binding)"""
  return dict(bindings or {})


def env_bind(env: Dict, name: str, binding: Dict) -> Dict:
  """Return new environment with name bound; the input is left untouched"""
  return {**env, name: binding}


def env_lookup(env: Dict, name: str) -> Optional[Dict]:
  return env.get(name)


def env_without(env: Dict, names: List[str]) -> Dict:
  """Return new environment with the given names removed"""
  removed = set(names)
  return {name: binding for name, binding in env.items() if name not in removed}


def env_values(env: Dict) -> Dict[str, str]:
  """Display text of every binding, sorted by name, for reporting"""
  result = {}
  for name in sorted(env):
    binding = env[name]
    if is_variable(binding):
      result[name] = show_value(binding['value'])
    else:
      result[name] = f"<subroutine {name}({', '.join(binding['params'])})>"
  return result
