import math
import time
import tracemalloc
import logging
from contextlib import contextmanager

from Engine.differentiator import Differentiator
from Engine.expression_ast import steps_to_dicts
from Engine.integrator import Integrator
from Engine.latex_exporter import number_to_latex, to_latex
from Engine.limits import LimitCalculator, LimitKind
from Engine.parser import parse
from Engine.simplifier import Simplifier, simplify

# --- Logger Setup ---
logger = logging.getLogger(__name__)


@contextmanager
def _measure(metrics):
    tracemalloc.start()
    start_time = time.perf_counter()
    try:
        yield
    finally:
        end_time = time.perf_counter()
        _, peak_memory = tracemalloc.get_traced_memory()
        tracemalloc.stop()
        metrics["execution_time_ms"] = (end_time - start_time) * 1000
        metrics["peak_memory_bytes"] = peak_memory


def _number_result(value):
    # JSON has no inf/nan, so they travel as strings
    if math.isnan(value):
        return "nan"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return value


# --- Main Compute Functions ---
def compute_derivative(expression_str, variable_str='x'):
    metrics = {}
    with _measure(metrics):
        # 1. Parse
        expression_ast = parse(expression_str)

        # 2. Differentiate with step tracking
        derivative_ast, steps = Differentiator(variable_str).differentiate(expression_ast)

        # 3. Simplify the result before displaying
        simplified_ast = simplify(derivative_ast)

    logger.debug(f"d/d{variable_str}({expression_str}) = {simplified_ast}")
    return {
        "result": simplified_ast.to_string(),
        "result_latex": to_latex(simplified_ast),
        "steps": steps_to_dicts(steps),
        **metrics,
    }


def compute_integral(expression_str, variable_str='x'):
    metrics = {}
    with _measure(metrics):
        expression_ast = parse(expression_str)
        integral_ast, steps = Integrator(variable_str).integrate(expression_ast)
        simplified_ast = simplify(integral_ast)

    return {
        "result": simplified_ast.to_string(),
        "result_latex": to_latex(simplified_ast),
        "steps": steps_to_dicts(steps),
        **metrics,
    }


def compute_definite_integral(expression_str, lower_bound, upper_bound, variable_str='x'):
    metrics = {}
    with _measure(metrics):
        expression_ast = parse(expression_str)
        value, steps = Integrator(variable_str).evaluate_definite(expression_ast, lower_bound, upper_bound)

    return {
        "result": _number_result(value),
        "result_latex": number_to_latex(value),
        "steps": steps_to_dicts(steps),
        **metrics,
    }


def compute_limit(expression_str, point=0.0, kind=LimitKind.FINITE, variable_str='x'):
    metrics = {}
    with _measure(metrics):
        expression_ast = parse(expression_str)
        value, steps = LimitCalculator(variable_str).calculate_limit(expression_ast, point, kind)

    return {
        "result": _number_result(value),
        "result_latex": number_to_latex(value),
        "steps": steps_to_dicts(steps),
        **metrics,
    }


def compute_simplification(expression_str):
    metrics = {}
    with _measure(metrics):
        expression_ast = parse(expression_str)
        simplified_ast, steps = Simplifier().simplify(expression_ast)

    return {
        "result": simplified_ast.to_string(),
        "result_latex": to_latex(simplified_ast),
        "steps": steps_to_dicts(steps),
        **metrics,
    }

