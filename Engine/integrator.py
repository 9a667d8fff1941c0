import logging

from Engine.expression_ast import (
    BinaryOp, Func, Number, Op, Step, UnaryFunc, Variable, format_number,
)

# --- Logger Setup ---
logger = logging.getLogger(__name__)


class Integrator:
    """Antiderivatives from a fixed rule table.

    There is no chain rule, substitution or integration by parts: a shape
    outside the table is recorded as unsupported and returned unchanged, so
    the result is only an antiderivative when no such step appears.
    """

    def __init__(self, variable='x'):
        self.variable = variable
        self.steps = []

    def get_steps(self):
        return list(self.steps)

    def _add_step(self, description, expression):
        self.steps.append(Step(description, expression))

    def _var(self):
        return Variable(self.variable)

    def integrate(self, root):
        """Return (antiderivative, steps) for root. The constant of integration is implied."""
        self.steps = []
        self._add_step("Initial expression", f"∫ {root.to_string()} d{self.variable}")

        result = self._integrate(root)

        self._add_step("Final integral (+ C for indefinite)",
                       f"∫ f({self.variable}) d{self.variable} = {result.to_string()} + C")
        return result, self.get_steps()

    def _unsupported(self, node, description):
        logger.info(f"No integration rule for {node}: {description}")
        self._add_step(description, f"∫ {node.to_string()} d{self.variable} (not integrated)")
        return node.clone()

    def _integrate(self, node):
        dx = f"d{self.variable}"

        if isinstance(node, Number):
            c = node.to_string()
            self._add_step("Constant Rule: ∫ c dx = c·x", f"∫ {c} {dx} = {c}·{self.variable}")
            return BinaryOp(Op.MUL, Number(node.value), self._var())

        if isinstance(node, Variable):
            self._add_step("Power Rule: ∫ x dx = x²/2", f"∫ {node.name} {dx} = {node.name}^2 / 2")
            x_squared = BinaryOp(Op.POW, Variable(node.name), Number(2.0))
            return BinaryOp(Op.DIV, x_squared, Number(2.0))

        if isinstance(node, BinaryOp):
            return self._integrate_binary(node)

        if isinstance(node, UnaryFunc):
            return self._integrate_function(node)

        raise TypeError(f"Cannot integrate node of type {type(node).__name__}")

    def _integrate_binary(self, node):
        op = node.op
        dx = f"d{self.variable}"

        if op in (Op.ADD, Op.SUB):
            if op is Op.ADD:
                self._add_step("Sum Rule: ∫ (f + g) dx = ∫ f dx + ∫ g dx", f"∫ ({node.to_string()}) {dx}")
            else:
                self._add_step("Difference Rule: ∫ (f - g) dx = ∫ f dx - ∫ g dx", f"∫ ({node.to_string()}) {dx}")
            left = self._integrate(node.left)
            right = self._integrate(node.right)
            return BinaryOp(op, left, right)

        if op is Op.MUL:
            if isinstance(node.left, Number):
                constant, other = node.left, node.right
            elif isinstance(node.right, Number):
                constant, other = node.right, node.left
            else:
                return self._unsupported(node, "Product integration (no general rule for f·g)")

            c = constant.to_string()
            self._add_step("Constant Multiple Rule: ∫ c·f(x) dx = c·∫ f(x) dx",
                           f"∫ {c}·{other.to_string()} {dx} = {c}·∫ {other.to_string()} {dx}")
            integral = self._integrate(other)
            return BinaryOp(Op.MUL, Number(constant.value), integral)

        if op is Op.POW and isinstance(node.left, Variable) and isinstance(node.right, Number):
            name = node.left.name
            n = node.right.value
            if n == -1.0:
                # Absolute value is not tracked: the result is only valid for x > 0
                self._add_step("Special case: ∫ x⁻¹ dx = ln|x|", f"∫ {name}^-1 {dx} = ln|{name}|")
                return UnaryFunc(Func.LN, Variable(name))

            n_plus_one = format_number(n + 1.0)
            self._add_step("Power Rule: ∫ xⁿ dx = xⁿ⁺¹/(n+1)",
                           f"∫ {name}^{format_number(n)} {dx} = {name}^{n_plus_one} / {n_plus_one}")
            new_power = BinaryOp(Op.POW, Variable(name), Number(n + 1.0))
            return BinaryOp(Op.DIV, new_power, Number(n + 1.0))

        if op is Op.POW:
            return self._unsupported(node, "Power integration (only x^n with constant n is supported)")

        return self._unsupported(node, "Quotient integration (not implemented)")

    def _integrate_function(self, node):
        dx = f"d{self.variable}"

        # Only bare-variable arguments: sin(2x) is not handled
        if not isinstance(node.arg, Variable):
            return self._unsupported(node, "Advanced integration (argument is not the bare variable)")

        name = node.arg.name
        if node.func is Func.SIN:
            self._add_step("Trig Rule: ∫ sin(x) dx = -cos(x)", f"∫ sin({name}) {dx} = -cos({name})")
            return BinaryOp(Op.MUL, Number(-1.0), UnaryFunc(Func.COS, Variable(name)))

        if node.func is Func.COS:
            self._add_step("Trig Rule: ∫ cos(x) dx = sin(x)", f"∫ cos({name}) {dx} = sin({name})")
            return UnaryFunc(Func.SIN, Variable(name))

        if node.func is Func.EXP:
            self._add_step("Exponential Rule: ∫ exp(x) dx = exp(x)", f"∫ exp({name}) {dx} = exp({name})")
            return UnaryFunc(Func.EXP, Variable(name))

        return self._unsupported(node, "Advanced integration (not implemented)")

    def evaluate_definite(self, root, a, b):
        """Return (F(b) - F(a), steps) using the unsimplified antiderivative F."""
        indefinite, _ = self.integrate(root)

        f_b = indefinite.evaluate(b)
        f_a = indefinite.evaluate(a)
        value = f_b - f_a

        self._add_step(
            "Fundamental Theorem: ∫[a,b] f(x) dx = F(b) - F(a)",
            f"F({b:.6f}) - F({a:.6f}) = {f_b:.6f} - {f_a:.6f} = {value:.6f}",
        )
        return value, self.get_steps()


def integrate(root, variable='x'):
    """Integrate root and return (antiderivative, steps)."""
    return Integrator(variable).integrate(root)


def evaluate_definite(root, a, b, variable='x'):
    """Evaluate the definite integral of root over [a, b] and return (value, steps)."""
    return Integrator(variable).evaluate_definite(root, a, b)
