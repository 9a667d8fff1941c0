import logging
import json
import os
import uuid
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from typing import Literal, Optional

from config import Config
from Engine.differentiator import Differentiator
from Engine.integrator import Integrator
from Engine.latex_exporter import (
    compile_to_pdf,
    export_definite_integration,
    export_differentiation,
    export_indefinite_integration,
    export_limit,
)
from Engine.limits import LimitCalculator, LimitKind
from Engine.parser import ParseError, parse
from Engine.simplifier import simplify
from Engine.solver import (
    compute_definite_integral,
    compute_derivative,
    compute_integral,
    compute_limit,
    compute_simplification,
)

# Random practice expression generator
from generate_expression import generate_random_expression

# -------------------------------------------------------------------
# Setup
# -------------------------------------------------------------------
logging.basicConfig(level=Config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------------------------------------------------------
# Symbol Normalization (π → 3.14159..., √ → sqrt, ** → ^)
# -------------------------------------------------------------------
def normalize_expression(expr: str):
    if not expr:
        return expr
    expr = expr.replace("π", "3.14159265358979")
    expr = expr.replace("√", "sqrt")
    expr = expr.replace("**", "^")
    return expr


def validate_variable(variable: str):
    if not variable or not variable.isalpha():
        raise HTTPException(status_code=400, detail=f"Invalid variable '{variable}'. Use letters only.")

# -------------------------------------------------------------------
# Render Health Endpoints
# -------------------------------------------------------------------
@app.get("/ping")
async def ping():
    logger.info("🔔 Uptime ping received")
    return {"status": "ok", "message": "Backend is alive"}

@app.get("/uptime")
async def uptime():
    logger.info("🟢 UptimeRobot pinged this server.")
    return {"status": "alive"}

# -------------------------------------------------------------------
# Pydantic Models
# -------------------------------------------------------------------
class ExpressionInput(BaseModel):
    expression: str
    variable: str = Config.DEFAULT_VARIABLE


class DefiniteIntegralInput(ExpressionInput):
    lower_bound: float
    upper_bound: float


class LimitInput(ExpressionInput):
    point: float = 0.0
    kind: LimitKind = LimitKind.FINITE


class ExportInput(ExpressionInput):
    mode: Literal['derivative', 'integral', 'definite_integral', 'limit']
    lower_bound: Optional[float] = None
    upper_bound: Optional[float] = None
    point: float = 0.0
    kind: LimitKind = LimitKind.FINITE
    compile_pdf: bool = False


class GenerationInput(BaseModel):
    num_terms: Optional[int] = 3
    max_depth: Optional[int] = 2
    variable: Optional[str] = Config.DEFAULT_VARIABLE

# -------------------------------------------------------------------
# Request Runner
# -------------------------------------------------------------------
def run_compute(label, compute_func, *args):
    try:
        return compute_func(*args)
    except ParseError as e:
        logger.info(f"{label}: rejected expression: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected {label} error", exc_info=True)
        raise HTTPException(status_code=500, detail=f"{label} failed: {str(e)}")

# -------------------------------------------------------------------
# Streaming Benchmark Engine
# -------------------------------------------------------------------
STREAM_MODES = {
    'derivative': compute_derivative,
    'integral': compute_integral,
    'simplify': lambda expression, variable: compute_simplification(expression),
}


def sse(payload):
    return f"data: {json.dumps(payload)}\n\n"


async def benchmark_generator(mode: str, expression: str, variable: str):

    compute_func = STREAM_MODES.get(mode)
    if compute_func is None:
        yield sse({'type': 'error', 'detail': f"Unknown mode '{mode}'."})
        return

    total_runs = Config.BENCHMARK_WARMUP_RUNS + Config.BENCHMARK_RUNS
    times = []
    memories = []
    result_data = None

    try:
        for run_index in range(total_runs):
            try:
                result_data = compute_func(expression, variable)
            except ParseError as e:
                yield sse({'type': 'error', 'detail': str(e)})
                return

            if run_index >= Config.BENCHMARK_WARMUP_RUNS:
                times.append(result_data['execution_time_ms'])
                memories.append(result_data['peak_memory_bytes'])

        for step in result_data['steps']:
            yield sse({'type': 'step', 'step': step})

        yield sse({
            'type': 'complete',
            'result': result_data['result'],
            'result_latex': result_data['result_latex'],
            'avgTime': sum(times) / len(times) if times else None,
            'avgMemory': sum(memories) / len(memories) if memories else None,
        })

    except Exception as e:
        logger.error("Unexpected benchmark error", exc_info=True)
        yield sse({'type': 'error', 'detail': f"Unexpected server error: {str(e)}"})

# -------------------------------------------------------------------
# API Endpoints
# -------------------------------------------------------------------
@app.get("/solve_stream")
async def solve_stream(expression: str, mode: str = 'derivative', variable: str = Config.DEFAULT_VARIABLE):
    validate_variable(variable)
    expression = normalize_expression(expression)

    logger.debug(f"Solve request (normalized): {mode} {expression}")
    return StreamingResponse(
        benchmark_generator(mode, expression, variable),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        }
    )

@app.post("/derivative")
async def derivative_endpoint(input_data: ExpressionInput):
    validate_variable(input_data.variable)
    expression = normalize_expression(input_data.expression)
    return run_compute("Differentiation", compute_derivative, expression, input_data.variable)

@app.post("/integral")
async def integral_endpoint(input_data: ExpressionInput):
    validate_variable(input_data.variable)
    expression = normalize_expression(input_data.expression)
    return run_compute("Integration", compute_integral, expression, input_data.variable)

@app.post("/definite_integral")
async def definite_integral_endpoint(input_data: DefiniteIntegralInput):
    validate_variable(input_data.variable)
    expression = normalize_expression(input_data.expression)
    return run_compute(
        "Definite integration", compute_definite_integral,
        expression, input_data.lower_bound, input_data.upper_bound, input_data.variable,
    )

@app.post("/limit")
async def limit_endpoint(input_data: LimitInput):
    validate_variable(input_data.variable)
    expression = normalize_expression(input_data.expression)
    return run_compute(
        "Limit", compute_limit,
        expression, input_data.point, input_data.kind, input_data.variable,
    )

@app.post("/simplify")
async def simplify_endpoint(input_data: ExpressionInput):
    expression = normalize_expression(input_data.expression)
    return run_compute("Simplification", compute_simplification, expression)


def write_export(input_data: ExportInput, expression: str, filename: str):
    tree = parse(expression)
    variable = input_data.variable

    if input_data.mode == 'derivative':
        derivative, steps = Differentiator(variable).differentiate(tree)
        return export_differentiation(expression, steps, simplify(derivative), filename, variable)

    if input_data.mode == 'integral':
        integral, steps = Integrator(variable).integrate(tree)
        return export_indefinite_integration(expression, steps, simplify(integral), filename, variable)

    if input_data.mode == 'definite_integral':
        if input_data.lower_bound is None or input_data.upper_bound is None:
            raise HTTPException(status_code=400, detail="Definite integration needs lower_bound and upper_bound.")
        value, steps = Integrator(variable).evaluate_definite(tree, input_data.lower_bound, input_data.upper_bound)
        return export_definite_integration(
            expression, steps, value, input_data.lower_bound, input_data.upper_bound, filename, variable,
        )

    value, steps = LimitCalculator(variable).calculate_limit(tree, input_data.point, input_data.kind)
    return export_limit(expression, steps, value, input_data.point, input_data.kind, filename, variable)

@app.post("/export")
async def export_endpoint(input_data: ExportInput):
    validate_variable(input_data.variable)
    expression = normalize_expression(input_data.expression)
    filename = os.path.join(Config.EXPORT_DIR, f"{input_data.mode}_{uuid.uuid4().hex[:12]}.tex")

    try:
        tex_path = write_export(input_data, expression, filename)
    except ParseError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OSError as e:
        logger.error("Export write error", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Export failed: {str(e)}")

    response = {"tex_path": tex_path, "pdf_path": None}
    if input_data.compile_pdf:
        # Compilation is best effort: the .tex file stands on its own
        if compile_to_pdf(tex_path, Config.PDFLATEX_COMMAND, Config.PDFLATEX_TIMEOUT):
            response["pdf_path"] = os.path.splitext(tex_path)[0] + ".pdf"
    return response

@app.post("/generate")
async def generate_expression_endpoint(input_data: GenerationInput):
    validate_variable(input_data.variable)
    try:
        expr_sym, expr_str, expr_latex = generate_random_expression(
            variable=input_data.variable,
            num_terms=input_data.num_terms,
            max_depth=input_data.max_depth
        )

        return {
            "expression_string": expr_str,
            "expression_latex": expr_latex
        }

    except Exception as e:
        logger.error("Generation error", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Generation failed: {str(e)}"
        )
