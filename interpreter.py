"""
AQA Interpreter - Pure Functional Style
Tree-walking evaluation that threads the binding environment by value
Errors are values returned through the result slot, never raised
"""

import sys
from typing import Any, Callable, Dict, List, Optional, Tuple

from syntax_tree import (
  ASTNode,
  SEQUENCE,
  ASSIGNMENT,
  SUBROUTINE,
  CALL,
  CONDITIONAL,
  LOOP,
  RELATION,
  BINARY_OPERATION,
  UNARY_OPERATION,
  OUTPUT,
  ARGUMENTS,
  PARAMETERS,
  BRACKET,
  VARIABLE,
  NUMBER,
  BOOLEAN,
  WHILE,
  REPEAT,
  IF_THEN,
  IF_THEN_ELSE,
  parameter_names,
  argument_expressions,
)
from values import (
  make_string,
  make_void,
  make_variable,
  make_subroutine,
  make_environment,
  sentinel,
  is_error,
  is_boolean,
  is_subroutine,
  is_constant,
  env_bind,
  env_lookup,
  env_without,
  show_value,
)
from stdlib import binary, unary, relation, parse_number, parse_boolean, aqa_output
from utilities import (
  runtime_error,
  malformed_error,
  arity_error,
  unresolved_error,
  kind_mismatch_error,
  missing_slots,
)


DEFAULT_MAX_CALL_DEPTH = 50

# Python frames reserved per subroutine call when sizing the recursion limit
FRAMES_PER_CALL = 60


# ============================================================================
# EXECUTION CONTEXT
# ============================================================================

def make_execution_context(output: Optional[Callable[[Dict], Any]] = None,
                           max_call_depth: int = DEFAULT_MAX_CALL_DEPTH,
                           call_depth: int = 0) -> Dict:
  """Create an execution context carrying the output sink and call depth"""
  return {
      'output': output or aqa_output,
      'max_call_depth': max_call_depth,
      'call_depth': call_depth
  }


def reserve_stack(max_call_depth: int) -> None:
  """Raise the interpreter recursion limit so max_call_depth nested calls fit"""
  needed = max_call_depth * FRAMES_PER_CALL + 1000
  if sys.getrecursionlimit() < needed:
    sys.setrecursionlimit(needed)


# ============================================================================
# EVALUATION FUNCTIONS
# ============================================================================

def eval_ast(ast_node: ASTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  """
  Evaluate a tree node and return (result_value, updated_environment).
  The input environment is never mutated; side effects show up only in
  the returned environment.
  """
  if context is None:
    context = make_execution_context()

  if debug:
    print(f"Evaluating: {ast_node.type}")

  node_type = ast_node.type

  if node_type == SEQUENCE:
    return eval_sequence(ast_node, env, debug, context)
  elif node_type == ASSIGNMENT:
    return eval_assignment(ast_node, env, debug, context)
  elif node_type == SUBROUTINE:
    return eval_subroutine_def(ast_node, env, debug, context)
  elif node_type == CALL:
    return eval_call(ast_node, env, debug, context)
  elif node_type == CONDITIONAL:
    return eval_conditional(ast_node, env, debug, context)
  elif node_type == LOOP:
    return eval_loop(ast_node, env, debug, context)
  elif node_type == RELATION:
    return eval_relation(ast_node, env, debug, context)
  elif node_type == BINARY_OPERATION:
    return eval_binary_operation(ast_node, env, debug, context)
  elif node_type == UNARY_OPERATION:
    return eval_unary_operation(ast_node, env, debug, context)
  elif node_type == OUTPUT:
    return eval_output(ast_node, env, debug, context)
  elif node_type == ARGUMENTS:
    return eval_arguments(ast_node, env, debug, context)
  elif node_type == PARAMETERS:
    return runtime_error("Parameter list evaluated outside a subroutine definition."), env
  elif node_type == BRACKET:
    return eval_bracket(ast_node, env, debug, context)
  elif node_type == VARIABLE:
    return eval_variable(ast_node, env, debug, context)
  elif node_type == NUMBER:
    return parse_number(ast_node.prop('significand')), env
  elif node_type == BOOLEAN:
    return parse_boolean(ast_node.prop('significand')), env
  else:
    # Unknown, and anything the tree producer could not classify
    if debug:
      print(f"Unknown node type: {node_type}")
    return runtime_error("Unknown instruction."), env


def eval_sequence(ast_node: ASTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  """Evaluate left then right; the first Error stops the sequence"""
  # Walk the right spine iteratively so long programs do not grow the stack
  node = ast_node
  while node.type == SEQUENCE:
    missing = missing_slots(node, children=('left', 'right'))
    if missing:
      return malformed_error(SEQUENCE, missing), env

    value, env = eval_ast(node.child('left'), env, debug, context)
    if is_error(value):
      return value, env
    node = node.child('right')

  return eval_ast(node, env, debug, context)


def eval_assignment(ast_node: ASTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  """Evaluate the right-hand side and bind it to the target name"""
  missing = missing_slots(ast_node, properties=('name', 'constant'), children=('argument',))
  if missing:
    return malformed_error(ASSIGNMENT, missing), env

  name = ast_node.prop('name')
  value, env = eval_ast(ast_node.child('argument'), env, debug, context)
  if is_error(value):
    return value, env

  current = env_lookup(env, name)
  if is_subroutine(current):
    return kind_mismatch_error(name, "variable", "subroutine"), env
  if is_constant(current):
    return runtime_error(f"Cannot reassign constant '{name}'."), env

  if debug:
    print(f"  {name} <- {show_value(value)}")

  return sentinel(), env_bind(env, name, make_variable(value, bool(ast_node.prop('constant'))))


def eval_subroutine_def(ast_node: ASTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  """Bind a subroutine: body, flattened parameter names and return expression"""
  missing = missing_slots(ast_node, properties=('name',))
  if missing:
    return malformed_error(SUBROUTINE, missing), env

  name = ast_node.prop('name')
  params = parameter_names(ast_node.child('params'))
  if params is None:
    return malformed_error(PARAMETERS, 'name'), env
  if len(set(params)) != len(params):
    return runtime_error(f"Subroutine '{name}' repeats a parameter name."), env
  if is_constant(env_lookup(env, name)):
    return runtime_error(f"Cannot reassign constant '{name}'."), env

  if debug:
    print(f"  Defined subroutine {name}({', '.join(params)})")

  subroutine = make_subroutine(params, ast_node.child('left'), ast_node.child('ret'))
  return sentinel(), env_bind(env, name, subroutine)


def restore_caller_env(caller_env: Dict, frame_env: Dict, params: List[str]) -> Dict:
  """
  Reconcile a finished call frame with the caller's environment.
  Parameters are dropped, then every caller name that is now missing is
  restored from the caller; all other effects of the body are kept.
  """
  result = env_without(frame_env, params)
  masked = set(caller_env) - set(result)
  for name in sorted(masked):
    result[name] = caller_env[name]
  return result


def eval_call(ast_node: ASTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  """
  Call a subroutine.

  Arguments are evaluated against the caller's environment and copied into
  a frame that is a full copy of the caller's environment with the formal
  parameters rebound. The body may read and change any caller name; on exit
  parameter masking is undone by restore_caller_env.
  """
  if context is None:
    context = make_execution_context()

  missing = missing_slots(ast_node, properties=('name',))
  if missing:
    return malformed_error(CALL, missing), env

  name = ast_node.prop('name')
  subroutine = env_lookup(env, name)
  if subroutine is None:
    return unresolved_error("Subroutine", name), env
  if not is_subroutine(subroutine):
    return kind_mismatch_error(name, "subroutine", "variable"), env

  expressions = argument_expressions(ast_node.child('argument'))
  if expressions is None:
    return malformed_error(ARGUMENTS, 'left'), env

  params = subroutine['params']
  if len(expressions) != len(params):
    return arity_error(name, len(params), len(expressions)), env

  depth = context['call_depth']
  if depth >= context['max_call_depth']:
    return runtime_error(f"Maximum call depth ({context['max_call_depth']}) exceeded calling '{name}'."), env

  # Built up front so the handler below makes no further calls
  stack_exhausted = runtime_error(f"Call to '{name}' at depth {depth + 1} nests too deeply to evaluate.")
  try:
    return invoke_subroutine(name, subroutine, expressions, env, debug, context)
  except RecursionError:
    return stack_exhausted, env


def invoke_subroutine(name: str, subroutine: Dict, expressions: List[ASTNode], env: Dict,
                      debug: bool, context: Dict) -> Tuple[Dict, Dict]:
  """Copy arguments in, run the body and return expression, reconcile the frame"""
  params = subroutine['params']
  depth = context['call_depth']

  # Copy in: each argument sees the caller's environment, effects discarded
  frame = make_environment(env)
  for param, expression in zip(params, expressions):
    value, _ = eval_ast(expression, env, debug, context)
    if is_error(value):
      return value, env
    frame = env_bind(frame, param, make_variable(value))

  if debug:
    print(f"  Call {name} (depth {depth + 1})")

  call_context = {**context, 'call_depth': depth + 1}
  frame_env = frame

  body = subroutine['body']
  if body is not None:
    value, frame_env = eval_ast(body, frame_env, debug, call_context)
    if is_error(value):
      return value, restore_caller_env(env, frame_env, params)

  ret = subroutine['ret']
  if ret is not None:
    result, frame_env = eval_ast(ret, frame_env, debug, call_context)
  else:
    result = make_void()

  if debug:
    print(f"  Return from {name}: {show_value(result)}")

  return result, restore_caller_env(env, frame_env, params)


def eval_condition(condition: ASTNode, env: Dict, statement: str, debug: bool, context: Dict) -> Tuple[Dict, Dict]:
  """Evaluate a condition; anything but a Bool becomes an Error"""
  value, env = eval_ast(condition, env, debug, context)
  if is_error(value):
    return value, env
  if not is_boolean(value):
    return runtime_error(f"Non-boolean condition in {statement} (got {value['type']})."), env
  return value, env


def eval_conditional(ast_node: ASTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  """Evaluate IF ... THEN ... [ELSE ...] ENDIF"""
  missing = missing_slots(ast_node, properties=('style',), children=('argument', 'left'))
  if missing:
    return malformed_error(CONDITIONAL, missing), env

  style = ast_node.prop('style')
  if style not in (IF_THEN, IF_THEN_ELSE):
    return runtime_error(f"Unknown conditional style '{style}'."), env
  if style == IF_THEN_ELSE and ast_node.child('right') is None:
    return malformed_error(CONDITIONAL, 'right'), env

  condition, env = eval_condition(ast_node.child('argument'), env, "IF", debug, context)
  if is_error(condition):
    return condition, env

  if condition['value']:
    return eval_ast(ast_node.child('left'), env, debug, context)
  if style == IF_THEN_ELSE:
    return eval_ast(ast_node.child('right'), env, debug, context)
  return sentinel(), env


def eval_loop(ast_node: ASTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  """
  Evaluate WHILE and REPEAT ... UNTIL loops.
  WHILE tests first and runs while the condition is true; REPEAT runs the
  body first and stops once the condition becomes true.
  """
  missing = missing_slots(ast_node, properties=('style',), children=('argument', 'left'))
  if missing:
    return malformed_error(LOOP, missing), env

  style = ast_node.prop('style')
  if style not in (WHILE, REPEAT):
    return runtime_error(f"Unknown loop style '{style}'."), env

  condition = ast_node.child('argument')
  body = ast_node.child('left')
  statement = "WHILE" if style == WHILE else "UNTIL"
  value = sentinel()
  iteration = 0

  while True:
    if style == WHILE:
      test, env = eval_condition(condition, env, statement, debug, context)
      if is_error(test):
        return test, env
      if not test['value']:
        return value, env

    iteration += 1
    if debug:
      print(f"  {style} iteration {iteration}")
    value, env = eval_ast(body, env, debug, context)
    if is_error(value):
      return value, env

    if style == REPEAT:
      test, env = eval_condition(condition, env, statement, debug, context)
      if is_error(test):
        return test, env
      if test['value']:
        return value, env


def eval_operands(ast_node: ASTNode, env: Dict, debug: bool, context: Dict) -> Tuple[Dict, Optional[Dict], Dict]:
  """Evaluate left then right; right is skipped once left is an Error"""
  left_val, env = eval_ast(ast_node.child('left'), env, debug, context)
  if is_error(left_val):
    return left_val, None, env
  right_val, env = eval_ast(ast_node.child('right'), env, debug, context)
  return left_val, right_val, env


def eval_relation(ast_node: ASTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  """Evaluate a numeric comparison"""
  missing = missing_slots(ast_node, properties=('relation',), children=('left', 'right'))
  if missing:
    return malformed_error(RELATION, missing), env

  left_val, right_val, env = eval_operands(ast_node, env, debug, context)
  if right_val is None:
    return left_val, env
  return relation(ast_node.prop('relation'), left_val, right_val), env


def eval_binary_operation(ast_node: ASTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  """Evaluate an arithmetic or logical binary operation"""
  missing = missing_slots(ast_node, properties=('operation',), children=('left', 'right'))
  if missing:
    return malformed_error(BINARY_OPERATION, missing), env

  left_val, right_val, env = eval_operands(ast_node, env, debug, context)
  if right_val is None:
    return left_val, env
  return binary(ast_node.prop('operation'), left_val, right_val), env


def eval_unary_operation(ast_node: ASTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  missing = missing_slots(ast_node, properties=('operation',), children=('argument',))
  if missing:
    return malformed_error(UNARY_OPERATION, missing), env

  value, env = eval_ast(ast_node.child('argument'), env, debug, context)
  return unary(ast_node.prop('operation'), value), env


def eval_output(ast_node: ASTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  """Emit a value through the context's output sink and pass it through"""
  if context is None:
    context = make_execution_context()

  missing = missing_slots(ast_node, children=('argument',))
  if missing:
    return malformed_error(OUTPUT, missing), env

  value, env = eval_ast(ast_node.child('argument'), env, debug, context)
  if is_error(value):
    return value, env

  context['output'](value)
  return value, env


def eval_arguments(ast_node: ASTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  """
  Evaluate an argument list for display. Both sides see the same input
  environment and their effects are discarded; Call does the real binding.
  """
  missing = missing_slots(ast_node, children=('left',))
  if missing:
    return malformed_error(ARGUMENTS, missing), env

  first, _ = eval_ast(ast_node.child('left'), env, debug, context)
  if is_error(first):
    return first, env

  rest = ast_node.child('right')
  if rest is None:
    return make_string(show_value(first)), env

  others, _ = eval_ast(rest, env, debug, context)
  if is_error(others):
    return others, env
  return make_string(f"{show_value(first)}, {show_value(others)}"), env


def eval_bracket(ast_node: ASTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  missing = missing_slots(ast_node, children=('argument',))
  if missing:
    return malformed_error(BRACKET, missing), env
  return eval_ast(ast_node.child('argument'), env, debug, context)


def eval_variable(ast_node: ASTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  """Read the current value of a variable"""
  missing = missing_slots(ast_node, properties=('name',))
  if missing:
    return malformed_error(VARIABLE, missing), env

  name = ast_node.prop('name')
  binding = env_lookup(env, name)
  if binding is None:
    return unresolved_error("Variable", name), env
  if is_subroutine(binding):
    return kind_mismatch_error(name, "variable", "subroutine"), env
  return binding['value'], env


# ============================================================================
# PROGRAM EVALUATION
# ============================================================================

def eval_guarded(ast_node: ASTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  """eval_ast for hosts: nesting that exhausts the Python stack becomes an Error value"""
  try:
    return eval_ast(ast_node, env, debug, context)
  except RecursionError:
    return runtime_error("Program nests too deeply to evaluate."), env


def eval_program(root: Optional[ASTNode], debug: bool = False, context: Optional[Dict] = None) -> Tuple[Dict, Dict]:
  """
  Evaluate a whole program from an empty environment.
  Returns (final_value, final_env); an empty program yields Void.
  """
  env = make_environment()
  if root is None:
    return make_void(), env
  return eval_guarded(root, env, debug, context)


# ============================================================================
# FACTORY FUNCTIONS (for main.py)
# ============================================================================

def create_interpreter(debug: bool = False, output: Optional[Callable[[Dict], Any]] = None,
                       max_call_depth: int = DEFAULT_MAX_CALL_DEPTH):
  """Factory function returning an interpreter"""
  reserve_stack(max_call_depth)

  def run(root):
    context = make_execution_context(output, max_call_depth)
    return eval_program(root, debug, context)

  def evaluate(ast_node, env):
    context = make_execution_context(output, max_call_depth)
    return eval_guarded(ast_node, env, debug, context)

  return type('Interpreter', (), {
      'debug': debug,
      'max_call_depth': max_call_depth,
      'run': lambda self, root: run(root),
      'evaluate': lambda self, ast_node, env: evaluate(ast_node, env)
  })()


def create_debug_interpreter(output: Optional[Callable[[Dict], Any]] = None):
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True, output=output)
