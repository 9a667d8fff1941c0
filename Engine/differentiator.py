import logging

from Engine.expression_ast import (
    BinaryOp, Func, Number, Op, Step, UnaryFunc, Variable, depends_on_variable,
)

# --- Logger Setup ---
logger = logging.getLogger(__name__)


def _mul(left, right):
    return BinaryOp(Op.MUL, left, right)


def _div(left, right):
    return BinaryOp(Op.DIV, left, right)


# --- Derivative Computation with Step-by-Step Logging ---
class Differentiator:
    """Rule-based symbolic differentiation.

    Each rule records its step before recursing into the operands, so the
    trace reads in the same pre-order as the recursion. The source tree is
    only read; the derivative is a freshly built tree that clones any operand
    it reuses. The result is not simplified.
    """

    def __init__(self, variable='x'):
        self.variable = variable
        self.steps = []

    def get_steps(self):
        return list(self.steps)

    def _add_step(self, description, expression):
        self.steps.append(Step(description, expression))

    def _d(self, text):
        return f"d/d{self.variable}({text})"

    def differentiate(self, root):
        """Return (derivative, steps) for root."""
        self.steps = []
        self._add_step("Initial expression", self._d(root.to_string()))

        result = self._differentiate(root)
        logger.debug(f"Differentiated {root} in {len(self.steps) - 1} steps")

        self._add_step("Final derivative", f"f'({self.variable}) = {result.to_string()}")
        return result, self.get_steps()

    def _differentiate(self, node):
        # Base cases: constants or the variable itself
        if isinstance(node, Number):
            self._add_step("Constant Rule: d/dx(c) = 0", f"{self._d(node.to_string())} = 0")
            return Number(0.0)

        if isinstance(node, Variable):
            self._add_step("Power Rule: d/dx(x) = 1", f"{self._d(node.to_string())} = 1")
            return Number(1.0)

        if isinstance(node, BinaryOp):
            return self._differentiate_binary(node)

        if isinstance(node, UnaryFunc):
            return self._apply_chain_rule(node)

        raise TypeError(f"Cannot differentiate node of type {type(node).__name__}")

    def _differentiate_binary(self, node):
        op = node.op
        f, g = node.left, node.right

        if op in (Op.ADD, Op.SUB):
            if op is Op.ADD:
                self._add_step("Sum Rule: d/dx(f + g) = f' + g'", self._d(node.to_string()))
            else:
                self._add_step("Difference Rule: d/dx(f - g) = f' - g'", self._d(node.to_string()))
            df = self._differentiate(f)
            dg = self._differentiate(g)
            return BinaryOp(op, df, dg)

        if op is Op.MUL:
            self._add_step("Product Rule: d/dx(f * g) = f' * g + f * g'", self._d(node.to_string()))
            df = self._differentiate(f)
            dg = self._differentiate(g)
            return BinaryOp(Op.ADD, _mul(df, g.clone()), _mul(f.clone(), dg))

        if op is Op.DIV:
            self._add_step("Quotient Rule: d/dx(f / g) = (f' * g - f * g') / g^2", self._d(node.to_string()))
            df = self._differentiate(f)
            dg = self._differentiate(g)
            numerator = BinaryOp(Op.SUB, _mul(df, g.clone()), _mul(f.clone(), dg))
            denominator = BinaryOp(Op.POW, g.clone(), Number(2.0))
            return _div(numerator, denominator)

        if op is Op.POW:
            return self._differentiate_power(node)

        raise ValueError(f"Differentiation rule for operator '{op}' not implemented")

    def _differentiate_power(self, node):
        base, exponent = node.left, node.right

        if isinstance(exponent, Number):
            n = exponent.value
            self._add_step("Power Rule: d/dx(u^n) = n * u^(n-1) * u'", self._d(node.to_string()))
            du = self._differentiate(base)
            power = BinaryOp(Op.POW, base.clone(), Number(n - 1.0))
            return _mul(_mul(Number(n), power), du)

        if not depends_on_variable(exponent):
            # Constant but non-literal exponent, e.g. x^(1/2)
            self._add_step("Power Rule: d/dx(u^c) = c * u^(c-1) * u'", self._d(node.to_string()))
            du = self._differentiate(base)
            reduced = BinaryOp(Op.SUB, exponent.clone(), Number(1.0))
            power = BinaryOp(Op.POW, base.clone(), reduced)
            return _mul(_mul(exponent.clone(), power), du)

        # f^g = exp(g * ln f)  =>  f^g * (g' * ln f + g * f' / f)
        self._add_step(
            "Exponential Rule: d/dx(f^g) = f^g * (g' * ln(f) + g * f' / f)",
            self._d(node.to_string()),
        )
        df = self._differentiate(base)
        dg = self._differentiate(exponent)
        log_term = _mul(dg, UnaryFunc(Func.LN, base.clone()))
        ratio_term = _div(_mul(exponent.clone(), df), base.clone())
        return _mul(node.clone(), BinaryOp(Op.ADD, log_term, ratio_term))

    def _apply_chain_rule(self, node):
        func = node.func
        u = node.arg
        u_str = u.to_string()

        if func is Func.SIN:
            self._add_step("Chain Rule: d/dx(sin(u)) = cos(u) * u'",
                           f"{self._d(f'sin({u_str})')} = cos({u_str}) * {self._d(u_str)}")
            du = self._differentiate(u)
            return _mul(UnaryFunc(Func.COS, u.clone()), du)

        if func is Func.COS:
            self._add_step("Chain Rule: d/dx(cos(u)) = -sin(u) * u'",
                           f"{self._d(f'cos({u_str})')} = -sin({u_str}) * {self._d(u_str)}")
            du = self._differentiate(u)
            neg_sin = _mul(Number(-1.0), UnaryFunc(Func.SIN, u.clone()))
            return _mul(neg_sin, du)

        if func is Func.TAN:
            self._add_step("Chain Rule: d/dx(tan(u)) = sec^2(u) * u'",
                           f"{self._d(f'tan({u_str})')} = (1 / cos({u_str})^2) * {self._d(u_str)}")
            du = self._differentiate(u)
            cos_squared = BinaryOp(Op.POW, UnaryFunc(Func.COS, u.clone()), Number(2.0))
            return _mul(_div(Number(1.0), cos_squared), du)

        if func is Func.LN:
            self._add_step("Chain Rule: d/dx(ln(u)) = (1/u) * u'",
                           f"{self._d(f'ln({u_str})')} = (1 / ({u_str})) * {self._d(u_str)}")
            du = self._differentiate(u)
            return _mul(_div(Number(1.0), u.clone()), du)

        if func is Func.EXP:
            self._add_step("Chain Rule: d/dx(exp(u)) = exp(u) * u'",
                           f"{self._d(f'exp({u_str})')} = exp({u_str}) * {self._d(u_str)}")
            du = self._differentiate(u)
            return _mul(UnaryFunc(Func.EXP, u.clone()), du)

        if func is Func.SQRT:
            self._add_step("Chain Rule: d/dx(sqrt(u)) = (1/(2 sqrt(u))) * u'",
                           f"{self._d(f'sqrt({u_str})')} = (1 / (2 * sqrt({u_str}))) * {self._d(u_str)}")
            du = self._differentiate(u)
            two_sqrt = _mul(Number(2.0), UnaryFunc(Func.SQRT, u.clone()))
            return _mul(_div(Number(1.0), two_sqrt), du)

        raise ValueError(f"Differentiation rule for function '{func.value}' not implemented")


def differentiate(root, variable='x'):
    """Differentiate root and return (derivative, steps)."""
    return Differentiator(variable).differentiate(root)
