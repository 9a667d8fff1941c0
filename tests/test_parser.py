import pytest

from Engine.expression_ast import BinaryOp, Func, Number, Op, UnaryFunc, Variable
from Engine.parser import ParseError, parse

SAMPLE_POINTS = [-1.5, 0.3, 1.0, 2.7]


def x():
    return Variable('x')


@pytest.mark.parametrize("implicit, explicit", [
    ("2x", "2*x"),
    ("2(x+1)", "2*(x+1)"),
    ("x cos(x)", "x*cos(x)"),
    ("3x^2", "3*x^2"),
    ("(x+1)(x-1)", "(x+1)*(x-1)"),
])
def test_implicit_multiplication_matches_explicit(implicit, explicit):
    a = parse(implicit)
    b = parse(explicit)
    for point in SAMPLE_POINTS:
        assert a.evaluate(point) == pytest.approx(b.evaluate(point))


def test_implicit_multiplication_structure():
    assert parse("2x") == BinaryOp(Op.MUL, Number(2.0), x())
    assert parse("x cos(x)") == BinaryOp(Op.MUL, x(), UnaryFunc(Func.COS, x()))


def test_power_is_right_associative():
    assert parse("x^2^3") == BinaryOp(Op.POW, x(), BinaryOp(Op.POW, Number(2.0), Number(3.0)))


def test_subtraction_is_left_associative():
    assert parse("10 - 4 - 3").evaluate(0.0) == pytest.approx(3.0)
    assert parse("12 / 3 / 2").evaluate(0.0) == pytest.approx(2.0)


def test_precedence():
    assert parse("1 + 2 * 3 ^ 2").evaluate(0.0) == pytest.approx(19.0)


def test_unary_sign():
    assert parse("-x") == BinaryOp(Op.MUL, Number(-1.0), x())
    assert parse("+x") == x()
    assert parse("--x").evaluate(4.0) == pytest.approx(4.0)
    assert parse("2 * -x").evaluate(3.0) == pytest.approx(-6.0)


@pytest.mark.parametrize("name, func", [
    ("sin", Func.SIN), ("cos", Func.COS), ("tan", Func.TAN),
    ("exp", Func.EXP), ("ln", Func.LN), ("sqrt", Func.SQRT),
])
def test_function_table(name, func):
    assert parse(f"{name}(x)") == UnaryFunc(func, x())


def test_whitespace_is_ignored():
    assert parse("  sin ( x )  +  1 ") == parse("sin(x)+1")


def test_identifier_without_call_is_a_variable():
    assert parse("theta") == Variable('theta')
    assert parse("sinx") == Variable('sinx')


def test_decimal_numbers():
    assert parse("0.25") == Number(0.25)
    assert parse(".5x").evaluate(4.0) == pytest.approx(2.0)


def test_unknown_function():
    with pytest.raises(ParseError, match="Unknown function: foo"):
        parse("foo(x)")


def test_functions_are_case_sensitive():
    with pytest.raises(ParseError, match="Unknown function: Sin"):
        parse("Sin(x)")


def test_missing_closing_parenthesis():
    with pytest.raises(ParseError, match="closing parenthesis"):
        parse("(x+1")
    with pytest.raises(ParseError, match="closing parenthesis"):
        parse("sin(x")


def test_unexpected_trailing_characters():
    with pytest.raises(ParseError, match="position 5") as exc_info:
        parse("x + 1)")
    assert exc_info.value.position == 5


def test_unexpected_character():
    with pytest.raises(ParseError, match="Unexpected character at position 2: '\\$'"):
        parse("2 $ x")


def test_invalid_number():
    with pytest.raises(ParseError, match="Invalid number '1.2.3'"):
        parse("1.2.3")


def test_empty_expression():
    with pytest.raises(ParseError, match="Unexpected end of expression"):
        parse("")
    with pytest.raises(ParseError, match="Unexpected end of expression"):
        parse("x +")


def test_parse_error_is_a_value_error():
    with pytest.raises(ValueError):
        parse("(")
