import math

import pytest

from Engine.expression_ast import (
    BinaryOp, Func, Number, Op, Step, UnaryFunc, Variable, depends_on_variable, steps_to_dicts,
)
from Engine.parser import parse
from Engine.simplifier import simplify

SAMPLE_POINTS = [0.4, 1.0, 1.9, 3.2]


def x():
    return Variable('x')


def test_number_rendering():
    assert Number(2.0).to_string() == "2"
    assert Number(-3.0).to_string() == "-3"
    assert Number(0.5).to_string() == "0.5"
    assert Number(1e-7).to_string() == "0.0000001"


def test_binary_children_are_parenthesised():
    tree = BinaryOp(Op.ADD, Number(1.0), BinaryOp(Op.MUL, Number(2.0), x()))
    assert tree.to_string() == "1 + (2 * x)"
    assert BinaryOp(Op.POW, x(), Number(2.0)).to_string() == "x^2"
    assert UnaryFunc(Func.SQRT, BinaryOp(Op.ADD, x(), Number(1.0))).to_string() == "sqrt(x + 1)"


def test_leaf_children_are_not_parenthesised():
    tree = BinaryOp(Op.MUL, UnaryFunc(Func.SIN, x()), x())
    assert tree.to_string() == "sin(x) * x"


def test_clone_is_deep():
    tree = BinaryOp(Op.MUL, UnaryFunc(Func.SIN, x()), BinaryOp(Op.POW, x(), Number(2.0)))
    copy = tree.clone()
    assert copy == tree
    assert copy is not tree
    assert copy.left is not tree.left
    assert copy.left.arg is not tree.left.arg
    assert copy.right.left is not tree.right.left


def test_evaluate_binds_the_single_variable_regardless_of_name():
    assert Variable('t').evaluate(2.5) == 2.5
    assert BinaryOp(Op.ADD, Variable('t'), x()).evaluate(1.5) == 3.0


@pytest.mark.parametrize("text, point, expected", [
    ("x^2 + 1", 3.0, 10.0),
    ("sin(x)", math.pi / 2, 1.0),
    ("cos(x)", 0.0, 1.0),
    ("tan(x)", 0.0, 0.0),
    ("exp(x)", 1.0, math.e),
    ("ln(x)", math.e, 1.0),
    ("sqrt(x)", 16.0, 4.0),
])
def test_evaluate(text, point, expected):
    assert parse(text).evaluate(point) == pytest.approx(expected)


def test_division_by_zero_propagates_infinity():
    assert parse("1/x").evaluate(0.0) == math.inf
    assert parse("-1/x").evaluate(0.0) == -math.inf


def test_undefined_operations_propagate_nan():
    assert math.isnan(parse("x/x").evaluate(0.0))
    assert math.isnan(parse("ln(x)").evaluate(-1.0))
    assert math.isnan(parse("sqrt(x)").evaluate(-4.0))
    assert math.isnan(parse("x^0.5").evaluate(-8.0))


def test_overflow_propagates_infinity():
    assert parse("exp(x)").evaluate(1000.0) == math.inf
    assert parse("ln(x)").evaluate(0.0) == -math.inf


@pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
def test_non_finite_literals_reparse_as_constants(value):
    tree = BinaryOp(Op.ADD, Number(value), x())
    reparsed = parse(tree.to_string())
    assert not isinstance(reparsed.left, Variable)
    for point in SAMPLE_POINTS:
        assert reparsed.evaluate(point) == pytest.approx(tree.evaluate(point), nan_ok=True)


def test_folded_overflow_keeps_the_variable_separate():
    text = simplify(parse("2^2000 + x")).to_string()
    assert text == "(1 / 0) + x"
    assert parse(text).evaluate(1.0) == math.inf


@pytest.mark.parametrize("tree", [
    BinaryOp(Op.SUB, x(), Number(-3.0)),
    BinaryOp(Op.POW, x(), Number(-1.0)),
    BinaryOp(Op.MUL, Number(-1.0), UnaryFunc(Func.SIN, x())),
    BinaryOp(Op.DIV, BinaryOp(Op.ADD, x(), Number(1.0)), BinaryOp(Op.SUB, x(), Number(0.25))),
    BinaryOp(Op.POW, BinaryOp(Op.POW, x(), Number(2.0)), Number(3.0)),
    BinaryOp(Op.SUB, Number(10.0), BinaryOp(Op.SUB, x(), Number(4.0))),
    UnaryFunc(Func.LN, BinaryOp(Op.MUL, Number(1.0 / 3.0), UnaryFunc(Func.EXP, x()))),
])
def test_to_string_round_trips_through_parser(tree):
    reparsed = parse(tree.to_string())
    for point in SAMPLE_POINTS:
        assert reparsed.evaluate(point) == pytest.approx(tree.evaluate(point))


def test_depends_on_variable():
    assert depends_on_variable(parse("2 + sin(x)"))
    assert not depends_on_variable(parse("2 + sin(3)"))


def test_steps_to_dicts():
    steps = [Step("Initial expression", "x"), Step("Result", "1")]
    assert steps_to_dicts(steps) == [
        {"id": "step_0", "description": "Initial expression", "expression": "x"},
        {"id": "step_1", "description": "Result", "expression": "1"},
    ]
