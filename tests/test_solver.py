import pytest

from Engine.limits import LimitKind
from Engine.parser import ParseError
from Engine.solver import (
    compute_definite_integral,
    compute_derivative,
    compute_integral,
    compute_limit,
    compute_simplification,
)

RESULT_KEYS = {"result", "result_latex", "steps", "execution_time_ms", "peak_memory_bytes"}


def test_compute_derivative():
    data = compute_derivative("x^2", "x")
    assert set(data) == RESULT_KEYS
    assert data["result"] == "2 * x"
    assert data["result_latex"] == "2x"
    assert data["steps"][0] == {"id": "step_0", "description": "Initial expression", "expression": "d/dx(x^2)"}
    assert data["execution_time_ms"] >= 0
    assert data["peak_memory_bytes"] >= 0


def test_compute_integral_is_simplified():
    data = compute_integral("3")
    assert data["result"] == "3 * x"


def test_compute_definite_integral():
    data = compute_definite_integral("x^2", 0.0, 3.0)
    assert data["result"] == pytest.approx(9.0)
    assert data["result_latex"] == "9.000000"


def test_compute_limit():
    data = compute_limit("sin(x)/x", 0.0, LimitKind.FINITE)
    assert data["result"] == pytest.approx(1.0)


def test_non_finite_limits_are_json_safe():
    assert compute_limit("x^5/x^5", 0.0)["result"] == "nan"
    assert compute_limit("1/x", 0.0)["result"] == "inf"
    assert compute_limit("-1/x", 0.0)["result"] == "-inf"


def test_compute_simplification():
    data = compute_simplification("0 + x * 1")
    assert data["result"] == "x"
    assert len(data["steps"]) == 2


def test_parse_errors_propagate():
    with pytest.raises(ParseError, match="Unknown function"):
        compute_derivative("foo(x)")
