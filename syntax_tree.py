"""
AQA Syntax Tree
Immutable tree nodes produced by the parser and read by the interpreter,
plus node constructors, chain helpers and text rendering for diagnostics
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field


# Node types
SEQUENCE = "Sequence"
ASSIGNMENT = "Assignment"
SUBROUTINE = "Subroutine"
CALL = "Call"
CONDITIONAL = "Conditional"
LOOP = "Loop"
RELATION = "Relation"
BINARY_OPERATION = "BinaryOperation"
UNARY_OPERATION = "UnaryOperation"
OUTPUT = "Output"
ARGUMENTS = "Arguments"
PARAMETERS = "Parameters"
BRACKET = "Bracket"
VARIABLE = "Variable"
NUMBER = "Number"
BOOLEAN = "Boolean"
UNKNOWN = "Unknown"

NODE_TYPES = (
    SEQUENCE, ASSIGNMENT, SUBROUTINE, CALL, CONDITIONAL, LOOP, RELATION,
    BINARY_OPERATION, UNARY_OPERATION, OUTPUT, ARGUMENTS, PARAMETERS,
    BRACKET, VARIABLE, NUMBER, BOOLEAN, UNKNOWN,
)

# Style tags
WHILE = "While"
REPEAT = "Repeat"
IF_THEN = "if-then"
IF_THEN_ELSE = "if-then-else"

# Spelling of the true literal
TRUE_LITERAL = "True"
FALSE_LITERAL = "False"


@dataclass(frozen=True)
class ASTNode:
  """Syntax tree node: a type tag, scalar properties and named child slots"""
  type: str
  properties: Dict[str, Any] = field(default_factory=dict)
  children: Dict[str, 'ASTNode'] = field(default_factory=dict)

  def prop(self, key: str, default: Any = None) -> Any:
    return self.properties.get(key, default)

  def child(self, key: str) -> Optional['ASTNode']:
    return self.children.get(key)

  def __str__(self) -> str:
    return ast_to_string(self)


# ============================================================================
# CONSTRUCTORS
# ============================================================================

def make_node(node_type: str, properties: Optional[Dict[str, Any]] = None, **children: Optional[ASTNode]) -> ASTNode:
  """Create a node, dropping child slots that are None"""
  present = {slot: node for slot, node in children.items() if node is not None}
  return ASTNode(node_type, dict(properties or {}), present)


def make_sequence(left: ASTNode, right: ASTNode) -> ASTNode:
  return make_node(SEQUENCE, left=left, right=right)


def make_block(statements: List[ASTNode]) -> Optional[ASTNode]:
  """Fold a statement list into a right-nested Sequence chain"""
  if not statements:
    return None
  block = statements[-1]
  for statement in reversed(statements[:-1]):
    block = make_sequence(statement, block)
  return block


def make_assignment(name: str, argument: ASTNode, constant: bool = False) -> ASTNode:
  return make_node(ASSIGNMENT, {'name': name, 'constant': constant}, argument=argument)


def make_parameters(names: List[str]) -> Optional[ASTNode]:
  """Build a Parameters chain linked through the right slot"""
  chain = None
  for name in reversed(names):
    chain = make_node(PARAMETERS, {'name': name}, right=chain)
  return chain


def make_arguments(expressions: List[ASTNode]) -> Optional[ASTNode]:
  """Build an Arguments chain: left holds the expression, right the rest"""
  chain = None
  for expression in reversed(expressions):
    chain = make_node(ARGUMENTS, left=expression, right=chain)
  return chain


def make_subroutine_def(name: str, params: List[str], body: Optional[ASTNode] = None,
                        ret: Optional[ASTNode] = None) -> ASTNode:
  return make_node(SUBROUTINE, {'name': name}, params=make_parameters(params), left=body, ret=ret)


def make_call(name: str, arguments: Optional[List[ASTNode]] = None) -> ASTNode:
  return make_node(CALL, {'name': name}, argument=make_arguments(arguments or []))


def make_conditional(condition: ASTNode, then_branch: ASTNode, else_branch: Optional[ASTNode] = None) -> ASTNode:
  style = IF_THEN_ELSE if else_branch is not None else IF_THEN
  return make_node(CONDITIONAL, {'style': style}, argument=condition, left=then_branch, right=else_branch)


def make_loop(style: str, condition: ASTNode, body: ASTNode) -> ASTNode:
  return make_node(LOOP, {'style': style}, argument=condition, left=body)


def make_relation(relation: str, left: ASTNode, right: ASTNode) -> ASTNode:
  return make_node(RELATION, {'relation': relation}, left=left, right=right)


def make_binary(operation: str, left: ASTNode, right: ASTNode) -> ASTNode:
  return make_node(BINARY_OPERATION, {'operation': operation}, left=left, right=right)


def make_unary(operation: str, argument: ASTNode) -> ASTNode:
  return make_node(UNARY_OPERATION, {'operation': operation}, argument=argument)


def make_output(argument: ASTNode) -> ASTNode:
  return make_node(OUTPUT, argument=argument)


def make_bracket(argument: ASTNode) -> ASTNode:
  return make_node(BRACKET, argument=argument)


def make_variable_ref(name: str) -> ASTNode:
  return make_node(VARIABLE, {'name': name})


def make_number_literal(significand: str) -> ASTNode:
  return make_node(NUMBER, {'significand': significand})


def make_boolean_literal(significand: str) -> ASTNode:
  return make_node(BOOLEAN, {'significand': significand})


def make_unknown() -> ASTNode:
  return make_node(UNKNOWN)


# ============================================================================
# CHAIN HELPERS
# ============================================================================

def chain_nodes(chain: Optional[ASTNode]) -> List[ASTNode]:
  """Walk a Parameters/Arguments chain through its right slot"""
  nodes = []
  while chain is not None:
    nodes.append(chain)
    chain = chain.child('right')
  return nodes


def parameter_names(chain: Optional[ASTNode]) -> Optional[List[str]]:
  """Collect each link's name; None when a link has no name"""
  names = []
  for link in chain_nodes(chain):
    name = link.prop('name')
    if not name:
      return None
    names.append(name)
  return names


def argument_expressions(chain: Optional[ASTNode]) -> Optional[List[ASTNode]]:
  """Collect each link's expression; None when a link has no left slot"""
  expressions = []
  for link in chain_nodes(chain):
    expression = link.child('left')
    if expression is None:
      return None
    expressions.append(expression)
  return expressions


# ============================================================================
# RENDERING
# ============================================================================

def ast_to_string(node: ASTNode) -> str:
  """Compact one-line rendering of a tree"""
  left = node.child('left')
  right = node.child('right')
  argument = node.child('argument')

  sep = ", " if left and right else ""
  if argument and node.type not in (CONDITIONAL, LOOP):
    children_string = ast_to_string(argument)
  else:
    children_string = (ast_to_string(left) if left else "") + sep + (ast_to_string(right) if right else "")

  if node.type == NUMBER:
    return node.prop('significand') or "NaN"
  elif node.type == BOOLEAN:
    return node.prop('significand') or "NaB"
  elif node.type == ASSIGNMENT:
    name = node.prop('name') or "Unknown"
    if node.prop('constant'):
      return f"{name}{{{children_string}}}"
    return f"{name}: {children_string}"
  elif node.type == VARIABLE:
    return node.prop('name') or "Unknown"
  elif node.type == SEQUENCE:
    return f"[{children_string}]"
  elif node.type == BRACKET:
    return children_string
  elif node.type == RELATION:
    return f"{node.prop('relation') or 'Unknown'}({children_string})"
  elif node.type == CALL:
    return f"{node.prop('name') or 'Unknown'}({children_string})"
  elif node.type == SUBROUTINE:
    params = ", ".join(parameter_names(node.child('params')) or [])
    ret = node.child('ret')
    body = ast_to_string(left) if left else ""
    result = f"SUBROUTINE {node.prop('name') or 'Unknown'}({params}){{{body}}}"
    return result + (f" -> {ast_to_string(ret)}" if ret else "")
  elif node.type in (CONDITIONAL, LOOP):
    parts = [ast_to_string(child) for child in (argument, left, right) if child]
    return f"{node.prop('style') or node.type}({', '.join(parts)})"
  elif node.type in (OUTPUT, ARGUMENTS, PARAMETERS, UNKNOWN):
    label = node.prop('name') if node.type == PARAMETERS else node.type
    return f"{label}({children_string})"
  return f"{node.prop('operation') or 'NOP'}({children_string})"


def pretty_print_ast(node: ASTNode, indent: int = 0, slot: Optional[str] = None) -> str:
  """Indented multi-line rendering for debugging"""
  result = "  " * indent
  if slot:
    result += f"{slot}: "
  result += node.type
  if node.properties:
    props = ", ".join(f"{key}={value!r}" for key, value in node.properties.items())
    result += f"({props})"
  result += "\n"

  for child_slot in ('argument', 'params', 'left', 'right', 'ret'):
    child = node.child(child_slot)
    if child is not None:
      result += pretty_print_ast(child, indent + 1, child_slot)

  return result


def find_nodes_by_type(node: Optional[ASTNode], node_type: str) -> List[ASTNode]:
  """Find all nodes of a specific type in a tree"""
  result = []

  def search(current: ASTNode):
    if current.type == node_type:
      result.append(current)
    for child in current.children.values():
      search(child)

  if node is not None:
    search(node)
  return result
