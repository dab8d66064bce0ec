"""
Expression Language
Sandboxed evaluation of visibility/enablement conditions and templates
"""

from .evaluator import (
    ExpressionContext,
    ExpressionEvaluator,
    FAIL_OPEN_DEFAULTS,
    Interpreter,
)
from .functions import FormulaRegistry, truthy
from .parser import parse

__all__ = [
    "ExpressionContext",
    "ExpressionEvaluator",
    "FAIL_OPEN_DEFAULTS",
    "FormulaRegistry",
    "Interpreter",
    "parse",
    "truthy",
]
