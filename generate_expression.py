import random
from sympy import symbols, S, I, nan, oo, zoo, Symbol, sin, cos, tan, exp, log, sqrt, Add, Mul, Pow, Rational, latex

from Engine.expression_ast import BinaryOp, Func, Number, Op, UnaryFunc, Variable

# sympy function class -> engine function tag
_SYMPY_FUNCTIONS = {
    sin: Func.SIN,
    cos: Func.COS,
    tan: Func.TAN,
    exp: Func.EXP,
    log: Func.LN,
}


def _fold(op, nodes):
    result = nodes[0]
    for node in nodes[1:]:
        result = BinaryOp(op, result, node)
    return result


def from_sympy(expr):
    """Convert a sympy expression in one variable into an engine tree."""
    if isinstance(expr, Symbol):
        return Variable(expr.name)

    if expr.is_Rational and not expr.is_Integer:
        return BinaryOp(Op.DIV, Number(float(expr.p)), Number(float(expr.q)))

    if expr.is_Number or expr.is_NumberSymbol:
        return Number(float(expr))

    if isinstance(expr, Add):
        return _fold(Op.ADD, [from_sympy(arg) for arg in expr.args])

    if isinstance(expr, Mul):
        return _fold(Op.MUL, [from_sympy(arg) for arg in expr.args])

    if isinstance(expr, Pow):
        base, exponent = expr.args
        if exponent == Rational(1, 2):
            return UnaryFunc(Func.SQRT, from_sympy(base))
        return BinaryOp(Op.POW, from_sympy(base), from_sympy(exponent))

    if expr.func in _SYMPY_FUNCTIONS:
        return UnaryFunc(_SYMPY_FUNCTIONS[expr.func], from_sympy(expr.args[0]))

    raise ValueError(f"Cannot convert sympy expression '{expr}' to an engine expression")


def generate_random_expression(variable='x', num_terms=3, max_depth=2):

    x = symbols(variable) if isinstance(variable, str) else variable

    operators = ["add", "mul", "pow"]
    functions = [sin, cos, tan, exp, log, sqrt]

    def create_leaf():
        if random.random() < 0.7:
            return x  # variable
        else:
            return S(random.randint(1, 10))  # constant

    # Exponents stay small positive integers, so there is no x^x or x^sin(x)
    def safe_exponent():
        return S(random.randint(1, 5))

    def create_node(current_depth):
        if current_depth >= max_depth or random.random() < 0.4:
            return create_leaf()

        choice = random.choice(operators + ["func"])

        # function node
        if choice == "func":
            func = random.choice(functions)
            return func(create_node(current_depth + 1))

        # operator node
        left = create_node(current_depth + 1)
        right = create_node(current_depth + 1)

        if choice == "add":
            return left + right

        elif choice == "mul":
            return left * right

        return Pow(left, safe_exponent())

    # sqrt of a negative constant turns into I, which has no engine form
    while True:
        terms = [create_node(0) for _ in range(num_terms)]
        expr = Add(*terms)
        if not expr.has(I, zoo, nan, oo, -oo):
            break

    # The sympy expression, its engine text, and its LaTeX representation
    return expr, from_sympy(expr).to_string(), latex(expr)


if __name__ == '__main__':
    expr, expr_str, expr_latex = generate_random_expression('x', num_terms=2, max_depth=3)
    print(f"Generated Expression: {expr}")
    print(f"Generated Expression String: {expr_str}")
    print(f"Generated Expression LaTeX: {expr_latex}")
