import logging
import math
from enum import Enum

from Engine.differentiator import Differentiator
from Engine.expression_ast import BinaryOp, Op, Step

# --- Logger Setup ---
logger = logging.getLogger(__name__)

# Stand-in for infinity when probing x -> +/-inf
INFINITY_PROBE = 1e6
# Magnitude below which a value counts as zero
ZERO_TOLERANCE = 1e-10
# L'Hopital is retried while depth <= MAX_LHOPITAL_DEPTH
MAX_LHOPITAL_DEPTH = 3


class LimitKind(Enum):
    FINITE = 'finite'
    POSITIVE_INFINITY = '+inf'
    NEGATIVE_INFINITY = '-inf'


def probe_value(point, kind):
    if kind is LimitKind.POSITIVE_INFINITY:
        return INFINITY_PROBE
    if kind is LimitKind.NEGATIVE_INFINITY:
        return -INFINITY_PROBE
    return point


def is_indeterminate(numerator, denominator):
    """True for 0/0, inf/inf, or when either side is NaN."""
    if math.isnan(numerator) or math.isnan(denominator):
        return True
    if abs(numerator) < ZERO_TOLERANCE and abs(denominator) < ZERO_TOLERANCE:
        return True
    return math.isinf(numerator) and math.isinf(denominator)


def _is_division(node):
    return isinstance(node, BinaryOp) and node.op is Op.DIV


def _format_result(value):
    if math.isnan(value):
        return "undefined"
    if math.isinf(value):
        return "+∞" if value > 0 else "-∞"
    return f"{value:.6f}"


class LimitCalculator:
    """Numeric limit evaluation with L'Hôpital's rule on indeterminate quotients.

    Direct substitution is tried first (x -> +/-inf is probed at +/-1e6). A NaN
    on a quotient whose numerator and denominator are both ~0 or both infinite
    hands over to L'Hôpital's rule, retried on successive derivatives up to
    MAX_LHOPITAL_DEPTH before giving up with NaN.
    """

    def __init__(self, variable='x'):
        self.variable = variable
        self.steps = []

    def get_steps(self):
        return list(self.steps)

    def _add_step(self, description, expression):
        self.steps.append(Step(description, expression))

    def describe_approach(self, point, kind):
        if kind is LimitKind.POSITIVE_INFINITY:
            return f"{self.variable} → +∞"
        if kind is LimitKind.NEGATIVE_INFINITY:
            return f"{self.variable} → -∞"
        return f"{self.variable} → {point:.2f}"

    def calculate_limit(self, root, point=0.0, kind=LimitKind.FINITE):
        """Return (limit, steps). NaN means the limit could not be determined."""
        self.steps = []
        self._add_step("Evaluating limit", f"lim [{self.describe_approach(point, kind)}] ({root.to_string()})")

        probe = probe_value(point, kind)
        if kind is LimitKind.FINITE:
            self._add_step("Direct substitution", f"Substitute {self.variable} = {point:.6f}")
        elif kind is LimitKind.POSITIVE_INFINITY:
            self._add_step("Approaching infinity", f"Evaluate as {self.variable} → +∞")
        else:
            self._add_step("Approaching negative infinity", f"Evaluate as {self.variable} → -∞")

        direct = root.evaluate(probe)

        if math.isnan(direct):
            self._add_step("Result", "Indeterminate form (NaN)")
            if _is_division(root):
                numerator = root.left.evaluate(probe)
                denominator = root.right.evaluate(probe)
                if is_indeterminate(numerator, denominator):
                    self._add_step("Indeterminate form detected", "0/0 or ∞/∞ - applying L'Hôpital's rule")
                    return self._apply_lhopital(root, point, kind, 0), self.get_steps()
            return math.nan, self.get_steps()

        self._add_step("Result", _format_result(direct))
        return direct, self.get_steps()

    def _apply_lhopital(self, node, point, kind, depth):
        if depth > MAX_LHOPITAL_DEPTH:
            logger.warning(f"L'Hôpital's rule gave up after {depth} iterations on {node}")
            self._add_step("Maximum L'Hôpital iterations reached",
                           "Limit may not exist or requires advanced techniques")
            return math.nan

        probe = probe_value(point, kind)
        if not _is_division(node):
            return node.evaluate(probe)

        self._add_step(f"Applying L'Hôpital's rule (iteration {depth + 1})",
                       "Differentiate numerator and denominator separately")
        logger.debug(f"L'Hôpital iteration {depth + 1} on {node}")

        # Fresh differentiator per side; only the derivative trees are kept
        num_derivative, _ = Differentiator(self.variable).differentiate(node.left)
        den_derivative, _ = Differentiator(self.variable).differentiate(node.right)
        self._add_step("After differentiation",
                       f"({num_derivative.to_string()}) / ({den_derivative.to_string()})")

        num_value = num_derivative.evaluate(probe)
        den_value = den_derivative.evaluate(probe)

        if is_indeterminate(num_value, den_value):
            self._add_step("Still indeterminate form", "Applying L'Hôpital's rule again")
            quotient = BinaryOp(Op.DIV, num_derivative, den_derivative)
            return self._apply_lhopital(quotient, point, kind, depth + 1)

        if abs(den_value) < ZERO_TOLERANCE:
            if num_value > 0:
                result = math.inf
            elif num_value < 0:
                result = -math.inf
            else:
                result = math.nan
        else:
            result = num_value / den_value

        self._add_step("L'Hôpital result", f"{num_value:.4f} / {den_value:.4f} = {_format_result(result)}")
        return result


def calculate_limit(root, point=0.0, kind=LimitKind.FINITE, variable='x'):
    """Evaluate the limit of root and return (limit, steps)."""
    return LimitCalculator(variable).calculate_limit(root, point, kind)
