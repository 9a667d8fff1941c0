from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Union

import numpy as np

# --- Operators and Functions ---
class Op(Enum):
    ADD = '+'
    SUB = '-'
    MUL = '*'
    DIV = '/'
    POW = '^'


class Func(Enum):
    SIN = 'sin'
    COS = 'cos'
    TAN = 'tan'
    EXP = 'exp'
    LN = 'ln'
    SQRT = 'sqrt'


# Function names recognised by the parser, mapped to their node tag.
SUPPORTED_FUNCTIONS = {func.value: func for func in Func}

_NUMPY_FUNCS = {
    Func.SIN: np.sin,
    Func.COS: np.cos,
    Func.TAN: np.tan,
    Func.EXP: np.exp,
    Func.LN: np.log,
    Func.SQRT: np.sqrt,
}


def apply_op(op, left, right):
    """Apply a binary operator in float64 arithmetic (IEEE semantics, no exceptions)."""
    left = np.float64(left)
    right = np.float64(right)
    with np.errstate(all='ignore'):
        if op is Op.ADD:
            return left + right
        if op is Op.SUB:
            return left - right
        if op is Op.MUL:
            return left * right
        if op is Op.DIV:
            return np.divide(left, right)
        if op is Op.POW:
            return np.power(left, right)
    raise ValueError(f"Unknown operator: {op}")


def format_number(value: float) -> str:
    # Non-finite values print as divisions by zero so the text re-parses
    if np.isnan(value):
        return "(0 / 0)"
    if np.isinf(value):
        return "(1 / 0)" if value > 0 else "(-1 / 0)"
    return np.format_float_positional(value, trim='-')


# --- Step Trace ---
class Step(NamedTuple):
    description: str
    expression: str


def steps_to_dicts(steps):
    return [
        {"id": f"step_{i}", "description": step.description, "expression": step.expression}
        for i, step in enumerate(steps)
    ]


# --- Expression Tree Nodes ---
# Every node owns its children exclusively. Rewrite passes that need a subtree
# twice call clone() rather than sharing the node.
@dataclass
class Number:
    value: float

    def clone(self) -> 'Number':
        return Number(self.value)

    def to_string(self) -> str:
        return format_number(self.value)

    def evaluate(self, x: float) -> float:
        return float(self.value)

    def _eval(self, x):
        return np.float64(self.value)

    def __str__(self):
        return self.to_string()


@dataclass
class Variable:
    name: str

    def clone(self) -> 'Variable':
        return Variable(self.name)

    def to_string(self) -> str:
        return self.name

    def evaluate(self, x: float) -> float:
        # Single bound variable: the stored name is not consulted.
        return float(x)

    def _eval(self, x):
        return x

    def __str__(self):
        return self.to_string()


@dataclass
class BinaryOp:
    op: Op
    left: 'Node'
    right: 'Node'

    def clone(self) -> 'BinaryOp':
        return BinaryOp(self.op, self.left.clone(), self.right.clone())

    def to_string(self) -> str:
        op_str = '^' if self.op is Op.POW else f" {self.op.value} "
        left_str = self.left.to_string()
        right_str = self.right.to_string()
        if isinstance(self.left, BinaryOp):
            left_str = f"({left_str})"
        if isinstance(self.right, BinaryOp):
            right_str = f"({right_str})"
        return f"{left_str}{op_str}{right_str}"

    def evaluate(self, x: float) -> float:
        with np.errstate(all='ignore'):
            return float(self._eval(np.float64(x)))

    def _eval(self, x):
        return apply_op(self.op, self.left._eval(x), self.right._eval(x))

    def __str__(self):
        return self.to_string()


@dataclass
class UnaryFunc:
    func: Func
    arg: 'Node'

    def clone(self) -> 'UnaryFunc':
        return UnaryFunc(self.func, self.arg.clone())

    def to_string(self) -> str:
        return f"{self.func.value}({self.arg.to_string()})"

    def evaluate(self, x: float) -> float:
        with np.errstate(all='ignore'):
            return float(self._eval(np.float64(x)))

    def _eval(self, x):
        return _NUMPY_FUNCS[self.func](self.arg._eval(x))

    def __str__(self):
        return self.to_string()


Node = Union[Number, Variable, BinaryOp, UnaryFunc]


# --- Helpers ---
def is_number(node, value=None) -> bool:
    if not isinstance(node, Number):
        return False
    return value is None or node.value == value


def depends_on_variable(node) -> bool:
    if isinstance(node, Variable):
        return True
    if isinstance(node, BinaryOp):
        return depends_on_variable(node.left) or depends_on_variable(node.right)
    if isinstance(node, UnaryFunc):
        return depends_on_variable(node.arg)
    return False
