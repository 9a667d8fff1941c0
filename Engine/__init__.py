from Engine.differentiator import differentiate
from Engine.integrator import evaluate_definite, integrate
from Engine.limits import LimitKind, calculate_limit
from Engine.parser import ParseError, parse
from Engine.simplifier import simplify
