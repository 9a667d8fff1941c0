import math

import pytest

from Engine.limits import LimitCalculator, LimitKind, calculate_limit, is_indeterminate
from Engine.parser import parse


def test_sin_x_over_x():
    value, steps = calculate_limit(parse("sin(x)/x"), 0.0, LimitKind.FINITE)
    assert value == pytest.approx(1.0)
    descriptions = [step.description for step in steps]
    assert "Indeterminate form detected" in descriptions
    assert "Applying L'Hôpital's rule (iteration 1)" in descriptions


def test_removable_discontinuity():
    value, _ = calculate_limit(parse("(x^2-4)/(x-2)"), 2.0, LimitKind.FINITE)
    assert value == pytest.approx(4.0)


def test_reciprocal_at_infinity():
    value, steps = calculate_limit(parse("1/x"), 0.0, LimitKind.POSITIVE_INFINITY)
    assert value == pytest.approx(0.0, abs=1e-5)
    assert steps[1].description == "Approaching infinity"


def test_reciprocal_at_negative_infinity():
    value, steps = calculate_limit(parse("1/x"), 0.0, LimitKind.NEGATIVE_INFINITY)
    assert value == pytest.approx(0.0, abs=1e-5)
    assert steps[1].description == "Approaching negative infinity"


def test_rational_function_at_infinity():
    value, _ = calculate_limit(parse("(2x + 1)/(x + 3)"), 0.0, LimitKind.POSITIVE_INFINITY)
    assert value == pytest.approx(2.0, abs=1e-4)


def test_direct_substitution():
    value, steps = calculate_limit(parse("x^2 + 1"), 3.0)
    assert value == pytest.approx(10.0)
    assert steps[-1].description == "Result"
    assert steps[-1].expression == "10.000000"


def test_direct_substitution_reports_signed_infinity():
    value, steps = calculate_limit(parse("1/x"), 0.0)
    assert value == math.inf
    assert steps[-1].expression == "+∞"


def test_repeated_lhopital():
    value, steps = calculate_limit(parse("(1 - cos(x))/x^2"), 0.0)
    assert value == pytest.approx(0.5)
    assert "Still indeterminate form" in [step.description for step in steps]


def test_four_iterations_still_converge():
    value, _ = calculate_limit(parse("x^4/x^4"), 0.0)
    assert value == pytest.approx(1.0)


def test_exhausted_iterations_give_nan():
    value, steps = calculate_limit(parse("x^5/x^5"), 0.0)
    assert math.isnan(value)
    assert steps[-1].description == "Maximum L'Hôpital iterations reached"
    iterations = [step for step in steps if step.description.startswith("Applying L'Hôpital's rule (iteration")]
    assert len(iterations) == 4


def test_lhopital_with_vanishing_denominator_gives_signed_infinity():
    value, _ = calculate_limit(parse("x/x^2"), 0.0)
    assert value == math.inf
    value, _ = calculate_limit(parse("-x/x^2"), 0.0)
    assert value == -math.inf


def test_exponential_quotient():
    value, _ = calculate_limit(parse("(exp(x) - 1)/x"), 0.0)
    assert value == pytest.approx(1.0)


def test_non_quotient_nan_is_not_resolved():
    value, steps = calculate_limit(parse("ln(x) - ln(x)"), -1.0)
    assert math.isnan(value)
    assert not any("L'Hôpital" in step.description for step in steps)


def test_trace_starts_with_limit_expression():
    _, steps = calculate_limit(parse("sin(x)/x"), 0.0)
    assert steps[0].description == "Evaluating limit"
    assert steps[0].expression == "lim [x → 0.00] (sin(x) / x)"


def test_trace_reset_between_calls():
    calculator = LimitCalculator()
    calculator.calculate_limit(parse("x^5/x^5"), 0.0)
    _, steps = calculator.calculate_limit(parse("x + 1"), 1.0)
    assert len(steps) == 3
    assert calculator.get_steps() == steps


@pytest.mark.parametrize("numerator, denominator, expected", [
    (0.0, 0.0, True),
    (1e-12, -1e-11, True),
    (math.inf, -math.inf, True),
    (math.nan, 1.0, True),
    (1.0, math.nan, True),
    (1.0, 0.0, False),
    (0.0, 2.0, False),
    (math.inf, 3.0, False),
])
def test_is_indeterminate(numerator, denominator, expected):
    assert is_indeterminate(numerator, denominator) is expected
