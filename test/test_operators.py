"""
Operator semantics tests for the AQA standard library
"""

import pytest
from stdlib import binary, unary, relation, parse_number, parse_boolean, collect_output, aqa_output
from values import (
  make_number, make_boolean, make_void, make_error, make_string,
  is_error, show_value, NUM, BOOL,
)


def num(x):
  return make_number(x)


def boolean(x):
  return make_boolean(x)


class TestArithmetic:
  """Test ADD, SUB, MUL, DIV"""

  def test_add(self):
    assert binary('ADD', num(2), num(3)) == num(5)

  def test_sub(self):
    assert binary('SUB', num(2), num(3)) == num(-1)

  def test_mul(self):
    assert binary('MUL', num(4), num(2.5)) == num(10)

  def test_div_is_real_division(self):
    assert binary('DIV', num(7), num(2)) == num(3.5)

  def test_div_by_zero_is_error(self):
    result = binary('DIV', num(1), num(0))
    assert is_error(result)
    assert "Division by zero" in result['value']

  def test_arithmetic_on_booleans_is_error(self):
    result = binary('ADD', num(1), boolean(True))
    assert is_error(result)
    assert result['value'] == "ERROR! Cannot apply ADD to Num and Bool."

  def test_arithmetic_on_void_is_error(self):
    assert is_error(binary('MUL', make_void(), num(1)))


class TestLogical:
  """Test AND, OR and NOP"""

  @pytest.mark.parametrize("a,b,expected", [
      (True, True, True), (True, False, False),
      (False, True, False), (False, False, False),
  ])
  def test_and(self, a, b, expected):
    assert binary('AND', boolean(a), boolean(b)) == boolean(expected)

  @pytest.mark.parametrize("a,b,expected", [
      (True, True, True), (True, False, True),
      (False, True, True), (False, False, False),
  ])
  def test_or(self, a, b, expected):
    assert binary('OR', boolean(a), boolean(b)) == boolean(expected)

  def test_and_on_numbers_is_error(self):
    assert is_error(binary('AND', num(1), num(1)))

  def test_nop_keeps_left(self):
    assert binary('NOP', num(4), num(9)) == num(4)
    assert binary('NOP', boolean(False), boolean(True)) == boolean(False)

  def test_nop_mixed_types_is_error(self):
    assert is_error(binary('NOP', num(4), boolean(True)))

  def test_unknown_operation_is_error(self):
    result = binary('POW', num(2), num(3))
    assert result['value'] == "ERROR! Unknown binary operation 'POW'."


class TestErrorPropagation:
  """Errors reaching an operator come back unchanged, left first"""

  def test_left_error_wins(self):
    left = make_error("ERROR! left")
    right = make_error("ERROR! right")
    assert binary('ADD', left, right) is left
    assert relation('EQ', left, right) is left

  def test_right_error_propagates(self):
    right = make_error("ERROR! right")
    assert binary('ADD', num(1), right) is right
    assert relation('LT', num(1), right) is right

  def test_unary_error_propagates(self):
    err = make_error("ERROR! inner")
    assert unary('NOT', err) is err


class TestRelations:
  """Test numeric comparisons"""

  @pytest.mark.parametrize("rel,a,b,expected", [
      ('EQ', 1, 1, True), ('EQ', 1, 2, False),
      ('NEQ', 1, 2, True), ('NEQ', 2, 2, False),
      ('LT', 1, 2, True), ('LT', 2, 1, False),
      ('GT', 2, 1, True), ('GT', 1, 1, False),
      ('LEQ', 1, 1, True), ('LEQ', 2, 1, False),
      ('GEQ', 1, 1, True), ('GEQ', 0, 1, False),
  ])
  def test_relation(self, rel, a, b, expected):
    assert relation(rel, num(a), num(b)) == boolean(expected)

  def test_booleans_cannot_be_compared(self):
    result = relation('EQ', boolean(True), boolean(True))
    assert result['value'] == "ERROR! Cannot apply EQ to Bool and Bool."

  def test_unknown_relation_is_error(self):
    assert is_error(relation('APPROX', num(1), num(1)))


class TestUnary:
  """Test unary operators"""

  def test_negate(self):
    assert unary('SUB', num(3)) == num(-3)

  def test_plus_is_identity(self):
    assert unary('ADD', num(3)) == num(3)

  def test_not(self):
    assert unary('NOT', boolean(True)) == boolean(False)
    assert unary('NOT', boolean(False)) == boolean(True)

  def test_not_on_number_is_error(self):
    result = unary('NOT', num(1))
    assert result['value'] == "ERROR! NOT requires Bool, got Num."

  def test_negate_boolean_is_error(self):
    assert is_error(unary('SUB', boolean(True)))

  def test_nop_accepts_either(self):
    assert unary('NOP', num(1)) == num(1)
    assert unary('NOP', boolean(True)) == boolean(True)

  def test_unknown_unary_is_error(self):
    assert is_error(unary('SQRT', num(4)))


class TestLiterals:
  """Test literal decoding"""

  def test_integer_significand(self):
    assert parse_number("42") == num(42)

  def test_decimal_significand(self):
    assert parse_number("2.5") == num(2.5)

  def test_missing_significand_is_malformed(self):
    result = parse_number(None)
    assert result['value'] == "ERROR! Malformed Number node (missing 'significand')."

  def test_blank_significand_is_malformed_not_zero(self):
    assert is_error(parse_number(""))

  def test_unreadable_significand_is_error(self):
    result = parse_number("4x")
    assert is_error(result)
    assert "'4x'" in result['value']

  def test_only_digit_spellings_are_numbers(self):
    for significand in ("1_000", "nan", "inf", "1e3", "-2", " 4", ".5"):
      result = parse_number(significand)
      assert is_error(result), significand
      assert f"'{significand}'" in result['value']

  def test_boolean_true_spelling(self):
    assert parse_boolean("True") == boolean(True)

  def test_any_other_spelling_is_false(self):
    assert parse_boolean("False") == boolean(False)
    assert parse_boolean("true") == boolean(False)

  def test_missing_boolean_is_malformed(self):
    assert is_error(parse_boolean(None))


class TestDisplay:
  """Test value display and output sinks"""

  def test_integral_number_has_no_fraction(self):
    assert show_value(num(3)) == "3"
    assert show_value(num(-2)) == "-2"

  def test_fractional_number(self):
    assert show_value(num(0.5)) == "0.5"

  def test_boolean_display(self):
    assert show_value(boolean(True)) == "True"
    assert show_value(boolean(False)) == "False"

  def test_void_and_string_display(self):
    assert show_value(make_void()) == "<void>"
    assert show_value(make_string("1, 2")) == "1, 2"

  def test_value_tags(self):
    assert num(1)['type'] == NUM
    assert boolean(True)['type'] == BOOL

  def test_aqa_output_prints(self, capsys):
    value = num(7)
    assert aqa_output(value) is value
    assert capsys.readouterr().out == "7\n"

  def test_collect_output(self):
    buffer = []
    sink = collect_output(buffer)
    sink(num(1))
    sink(boolean(False))
    assert buffer == ["1", "False"]
