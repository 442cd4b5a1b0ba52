"""
Syntax tree tests: constructors, chains and rendering
"""

import pytest
from dataclasses import FrozenInstanceError
from syntax_tree import (
  ASTNode, make_node, make_block, make_sequence, make_assignment, make_parameters,
  make_arguments, make_number_literal, make_variable_ref, make_unknown,
  chain_nodes, parameter_names, argument_expressions,
  ast_to_string, pretty_print_ast, find_nodes_by_type,
  SEQUENCE, PARAMETERS, ARGUMENTS, NUMBER, VARIABLE, ASSIGNMENT,
)


def num(text):
  return make_number_literal(text)


class TestNodes:
  """Test node construction"""

  def test_none_children_are_dropped(self):
    node = make_node(SEQUENCE, left=num('1'), right=None)
    assert node.children.keys() == {'left'}
    assert node.child('right') is None

  def test_nodes_are_immutable(self):
    node = num('1')
    with pytest.raises(FrozenInstanceError):
      node.type = VARIABLE

  def test_prop_default(self):
    assert num('1').prop('name', 'anon') == 'anon'

  def test_block_of_nothing(self):
    assert make_block([]) is None

  def test_block_of_one_is_the_statement(self):
    statement = make_assignment('x', num('1'))
    assert make_block([statement]) is statement

  def test_block_nests_to_the_right(self):
    a, b, c = num('1'), num('2'), num('3')
    assert make_block([a, b, c]) == make_sequence(a, make_sequence(b, c))


class TestChains:
  """Test Parameters and Arguments chains"""

  def test_parameter_chain(self):
    chain = make_parameters(['a', 'b', 'c'])
    assert chain.type == PARAMETERS
    assert len(chain_nodes(chain)) == 3
    assert parameter_names(chain) == ['a', 'b', 'c']

  def test_empty_chains(self):
    assert make_parameters([]) is None
    assert parameter_names(None) == []
    assert argument_expressions(None) == []

  def test_unnamed_link(self):
    chain = make_node(PARAMETERS, {'name': 'a'}, right=make_node(PARAMETERS))
    assert parameter_names(chain) is None

  def test_argument_chain(self):
    expressions = [num('1'), make_variable_ref('x')]
    chain = make_arguments(expressions)
    assert chain.type == ARGUMENTS
    assert argument_expressions(chain) == expressions

  def test_argument_link_without_expression(self):
    assert argument_expressions(make_node(ARGUMENTS)) is None


class TestRendering:
  """Test one-line and indented rendering"""

  @pytest.mark.parametrize("source,expected", [
      ("x <- 1 + 2", "x: ADD(1, 2)"),
      ("CONSTANT K <- 3", "K{3}"),
      ("a <- 1\nb <- 2", "[a: 1, b: 2]"),
      ("x <- (4)", "x: 4"),
      ("x <- a = b", "x: EQ(a, b)"),
      ("x <- -y", "x: SUB(y)"),
      ("OUTPUT True", "Output(True)"),
      ("f(1, 2)", "f(Arguments(1, Arguments(2)))"),
      ("IF c THEN\n  x <- 1\nENDIF", "if-then(c, x: 1)"),
      ("WHILE x < 3\n  x <- x + 1\nENDWHILE", "While(LT(x, 3), x: ADD(x, 1))"),
      ("SUBROUTINE f(a)\n  b <- a\nRETURN b\nENDSUBROUTINE", "SUBROUTINE f(a){b: a} -> b"),
  ])
  def test_ast_to_string(self, parser, source, expected):
    assert ast_to_string(parser.parse_string(source)) == expected

  def test_str_uses_compact_form(self):
    assert str(make_assignment('x', num('1'))) == "x: 1"

  def test_missing_significand(self):
    assert ast_to_string(make_node(NUMBER)) == "NaN"

  def test_unknown(self):
    assert ast_to_string(make_unknown()) == "Unknown()"

  def test_pretty_print(self):
    text = pretty_print_ast(make_assignment('x', num('1')))
    assert text == "Assignment(name='x', constant=False)\n  argument: Number(significand='1')\n"

  def test_find_nodes_by_type(self, parser):
    root = parser.parse_string("x <- 1\ny <- x + 2\nOUTPUT y")
    names = [node.prop('name') for node in find_nodes_by_type(root, VARIABLE)]
    assert names == ['x', 'y']
    assert len(find_nodes_by_type(root, ASSIGNMENT)) == 2
    assert find_nodes_by_type(None, ASSIGNMENT) == []
