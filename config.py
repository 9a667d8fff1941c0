import os


class Config:
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG').upper()

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://localhost:4000'
        ).split(',')
        if origin.strip()
    ]

    DEFAULT_VARIABLE = os.environ.get('DEFAULT_VARIABLE', 'x')

    # LaTeX export
    EXPORT_DIR = os.environ.get('EXPORT_DIR') or \
        os.path.join(os.path.abspath(os.path.dirname(__file__)), 'exports')
    PDFLATEX_COMMAND = os.environ.get('PDFLATEX_COMMAND', 'pdflatex')
    PDFLATEX_TIMEOUT = int(os.environ.get('PDFLATEX_TIMEOUT', 60))

    # /solve_stream timing runs
    BENCHMARK_RUNS = int(os.environ.get('BENCHMARK_RUNS', 20))
    BENCHMARK_WARMUP_RUNS = int(os.environ.get('BENCHMARK_WARMUP_RUNS', 5))
