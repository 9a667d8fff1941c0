import logging

from Engine.expression_ast import BinaryOp, Number, Op, Step, UnaryFunc, apply_op, is_number

# --- Logger Setup ---
logger = logging.getLogger(__name__)


# --- Expression Simplifier ---
class Simplifier:
    """Post-order algebraic simplifier.

    run() consumes its input: the returned tree may reuse subtrees of the
    argument, so callers must not keep using the tree they passed in.
    Children are simplified first, then the parent is rewritten by the first
    matching identity, otherwise constant-folded when both operands are
    literals. Function calls are never folded.
    """

    def __init__(self):
        self.steps = []

    def get_steps(self):
        return list(self.steps)

    def run(self, node):
        if isinstance(node, BinaryOp):
            left = self.run(node.left)
            right = self.run(node.right)
            return self._rewrite(node.op, left, right)

        if isinstance(node, UnaryFunc):
            return UnaryFunc(node.func, self.run(node.arg))

        return node

    def _rewrite(self, op, left, right):
        both_numeric = is_number(left) and is_number(right)

        if op is Op.ADD:
            if is_number(left, 0.0):
                return right
            if is_number(right, 0.0):
                return left

        elif op is Op.SUB:
            if is_number(right, 0.0):
                return left
            if is_number(left, 0.0):
                # 0 - x -> -1 * x, rewritten again so a literal x folds immediately
                return self._rewrite(Op.MUL, Number(-1.0), right)

        elif op is Op.MUL:
            if is_number(left, 0.0) or is_number(right, 0.0):
                return Number(0.0)
            if is_number(left, 1.0):
                return right
            if is_number(right, 1.0):
                return left

        elif op is Op.DIV:
            if is_number(left, 0.0):
                return Number(0.0)
            if is_number(right, 1.0):
                return left
            if both_numeric and right.value == 0.0:
                # Leave x/0 in place so evaluate() yields inf/nan
                return BinaryOp(op, left, right)

        elif op is Op.POW:
            if is_number(right, 0.0):
                return Number(1.0)
            if is_number(right, 1.0):
                return left
            if is_number(left, 0.0):
                return Number(0.0)
            if is_number(left, 1.0):
                return Number(1.0)

        if both_numeric:
            folded = float(apply_op(op, left.value, right.value))
            logger.debug(f"Folded {left.value} {op.value} {right.value} -> {folded}")
            return Number(folded)

        return BinaryOp(op, left, right)

    def simplify(self, node):
        """Top-level entry point: clears the trace and returns (simplified, steps)."""
        self.steps = [Step("Initial expression", node.to_string())]
        result = self.run(node)
        self.steps.append(Step("Simplified expression", result.to_string()))
        return result, self.get_steps()


def simplify(node):
    """Simplify a tree, taking ownership of it, and return the simplified tree."""
    return Simplifier().run(node)
