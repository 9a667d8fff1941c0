import logging
import math
import os
import shutil
import subprocess

from Engine.expression_ast import BinaryOp, Func, Number, Op, UnaryFunc, Variable, format_number
from Engine.limits import LimitKind

# --- Logger Setup ---
logger = logging.getLogger(__name__)

PRECEDENCE = {Op.ADD: 1, Op.SUB: 1, Op.MUL: 2, Op.DIV: 2, Op.POW: 3}

_LATEX_SPECIALS = {
    '&': r'\&',
    '%': r'\%',
    '$': r'\$',
    '#': r'\#',
    '_': r'\_',
    '{': r'\{',
    '}': r'\}',
    '~': r'\textasciitilde{}',
    '^': r'\textasciicircum{}',
    '\\': r'\textbackslash{}',
}

# Step text symbols pdflatex cannot typeset from raw UTF-8
_UNICODE_MACROS = {
    '∫': r'\ensuremath{\int}',
    '→': r'\ensuremath{\to}',
    '∞': r'\ensuremath{\infty}',
    '·': r'\ensuremath{\cdot}',
    '²': r'\textsuperscript{2}',
    '¹': r'\textsuperscript{1}',
    '⁻': r'\textsuperscript{-}',
    '⁺': r'\textsuperscript{+}',
    'ⁿ': r'\textsuperscript{n}',
}


def escape_latex(text):
    return ''.join(_LATEX_SPECIALS.get(ch) or _UNICODE_MACROS.get(ch, ch) for ch in text)


# --- Expression Rendering ---
def to_latex(node):
    if isinstance(node, Number):
        if math.isnan(node.value):
            return "\\text{undefined}"
        if math.isinf(node.value):
            return "\\infty" if node.value > 0 else "-\\infty"
        return format_number(node.value)
    if isinstance(node, Variable):
        return node.name
    if isinstance(node, UnaryFunc):
        arg = to_latex(node.arg)
        if node.func is Func.EXP:
            return f"e^{{{arg}}}"
        if node.func is Func.SQRT:
            return f"\\sqrt{{{arg}}}"
        return f"\\{node.func.value}\\left({arg}\\right)"

    op = node.op

    def format_child(child, is_left_child):
        child_latex = to_latex(child)
        if not isinstance(child, BinaryOp):
            return child_latex

        op_prec = PRECEDENCE[op]
        child_prec = PRECEDENCE[child.op]
        if child_prec < op_prec:
            return f"({child_latex})"
        if child_prec == op_prec:
            if op is Op.POW and is_left_child:
                return f"({child_latex})"  # Power is right-associative
            if op is not Op.POW and not is_left_child:
                return f"({child_latex})"  # Left-associativity rule
        return child_latex

    if op is Op.DIV:
        return f"\\frac{{{to_latex(node.left)}}}{{{to_latex(node.right)}}}"
    if op is Op.POW:
        return f"{{{format_child(node.left, True)}}}^{{{to_latex(node.right)}}}"

    left_latex = format_child(node.left, True)
    right_latex = format_child(node.right, False)

    if op is Op.ADD:
        return f"{left_latex} + {right_latex}"
    if op is Op.SUB:
        return f"{left_latex} - {right_latex}"

    # Multiplication
    if isinstance(node.left, Number) and not isinstance(node.right, Number):
        # -x for -1 * x, implicit 4x otherwise
        if node.left.value == -1.0:
            return f"-{right_latex}"
        return f"{left_latex}{right_latex}"
    return f"{left_latex} \\cdot {right_latex}"


def limit_to_latex(point, kind, variable='x'):
    if kind is LimitKind.POSITIVE_INFINITY:
        return f"{variable} \\to +\\infty"
    if kind is LimitKind.NEGATIVE_INFINITY:
        return f"{variable} \\to -\\infty"
    return f"{variable} \\to {point:.2f}"


def number_to_latex(value):
    if math.isnan(value):
        return "\\text{undefined}"
    if math.isinf(value):
        return "+\\infty" if value > 0 else "-\\infty"
    return f"{value:.6f}"


# --- Document Assembly ---
def generate_latex_document(title, content):
    return (
        "\\documentclass[12pt,a4paper]{article}\n"
        "\\usepackage[utf8]{inputenc}\n"
        "\\usepackage{amsmath}\n"
        "\\usepackage{amssymb}\n"
        "\\usepackage{geometry}\n"
        "\\geometry{margin=1in}\n"
        "\\usepackage{enumitem}\n"
        "\n"
        f"\\title{{{escape_latex(title)}}}\n"
        "\\author{Calculus Engine}\n"
        "\\date{\\today}\n"
        "\n"
        "\\begin{document}\n"
        "\\maketitle\n"
        "\n"
        f"{content}\n"
        "\\end{document}\n"
    )


def _render_steps(steps):
    lines = ["\\textbf{Solution:}", "", "\\begin{enumerate}"]
    for step in steps:
        lines.append(f"\\item {escape_latex(step.description)}")
        lines.append(f"\\[ \\text{{{escape_latex(step.expression)}}} \\]")
        lines.append("")
    lines.append("\\end{enumerate}")
    lines.append("")
    return "\n".join(lines)


def _write(filename, document):
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filename, 'w', encoding='utf-8') as f:
        f.write(document)
    logger.info(f"Wrote LaTeX document to {filename}")
    return filename


def export_differentiation(expression, steps, result, filename, variable='x'):
    expr_latex = escape_latex(expression)
    content = "\n".join([
        "\\section*{Differentiation}",
        "",
        "\\textbf{Problem:} Find the derivative of:",
        f"\\[ f({variable}) = \\text{{{expr_latex}}} \\]",
        "",
        _render_steps(steps),
        "\\textbf{Final Answer:}",
        f"\\[ \\frac{{d}}{{d{variable}}}\\left[\\text{{{expr_latex}}}\\right] = {to_latex(result)} \\]",
    ])
    return _write(filename, generate_latex_document("Differentiation Solution", content))


def export_indefinite_integration(expression, steps, result, filename, variable='x'):
    expr_latex = escape_latex(expression)
    content = "\n".join([
        "\\section*{Indefinite Integration}",
        "",
        "\\textbf{Problem:} Find the indefinite integral:",
        f"\\[ \\int \\text{{{expr_latex}}} \\, d{variable} \\]",
        "",
        _render_steps(steps),
        "\\textbf{Final Answer:}",
        f"\\[ \\int \\text{{{expr_latex}}} \\, d{variable} = {to_latex(result)} + C \\]",
    ])
    return _write(filename, generate_latex_document("Integration Solution", content))


def export_definite_integration(expression, steps, result, lower_bound, upper_bound, filename, variable='x'):
    expr_latex = escape_latex(expression)
    integral = f"\\int_{{{lower_bound:.2f}}}^{{{upper_bound:.2f}}} \\text{{{expr_latex}}} \\, d{variable}"
    content = "\n".join([
        "\\section*{Definite Integration}",
        "",
        "\\textbf{Problem:} Evaluate the definite integral:",
        f"\\[ {integral} \\]",
        "",
        _render_steps(steps),
        "\\textbf{Final Answer:}",
        f"\\[ {integral} = {number_to_latex(result)} \\]",
    ])
    return _write(filename, generate_latex_document("Definite Integration Solution", content))


def export_limit(expression, steps, result, point, kind, filename, variable='x'):
    expr_latex = escape_latex(expression)
    limit = f"\\lim_{{{limit_to_latex(point, kind, variable)}}} \\text{{{expr_latex}}}"
    content = "\n".join([
        "\\section*{Limit Calculation}",
        "",
        "\\textbf{Problem:} Find the limit:",
        f"\\[ {limit} \\]",
        "",
        _render_steps(steps),
        "\\textbf{Final Answer:}",
        f"\\[ {limit} = {number_to_latex(result)} \\]",
    ])
    return _write(filename, generate_latex_document("Limit Calculation Solution", content))


# --- PDF Compilation (best effort) ---
def compile_to_pdf(tex_filename, command='pdflatex', timeout=60):
    """Run pdflatex on tex_filename. Failures are logged and reported as False."""
    if shutil.which(command) is None:
        logger.warning(f"'{command}' not found on PATH; skipping PDF compilation")
        return False

    directory = os.path.dirname(os.path.abspath(tex_filename))
    args = [command, '-interaction=nonstopmode', '-output-directory', directory, tex_filename]
    try:
        # Run twice so references resolve
        for _ in range(2):
            completed = subprocess.run(args, capture_output=True, timeout=timeout, check=False)
            if completed.returncode != 0:
                logger.warning(f"{command} exited with status {completed.returncode} for {tex_filename}")
                return False
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"PDF compilation failed for {tex_filename}: {e}")
        return False
    return True
