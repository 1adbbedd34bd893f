"""gridcalc.calc - Formula evaluation and dependency propagation."""

from gridcalc.calc._evaluator import (
    CircularReferenceError,
    EvaluationError,
    FormulaError,
    FormulaSyntaxError,
    SheetEvaluator,
    evaluate_expression,
    evaluate_formula,
    resolve_numeric,
)
from gridcalc.calc._graph import DependencyGraph
from gridcalc.calc._parser import is_cell_reference, parse_references, tokenize
from gridcalc.calc._protocol import CIRCULAR, ERROR, CellDelta, EditResult, Evaluation

__all__ = [
    "CIRCULAR",
    "CellDelta",
    "CircularReferenceError",
    "DependencyGraph",
    "ERROR",
    "EditResult",
    "Evaluation",
    "EvaluationError",
    "FormulaError",
    "FormulaSyntaxError",
    "SheetEvaluator",
    "evaluate_expression",
    "evaluate_formula",
    "is_cell_reference",
    "parse_references",
    "resolve_numeric",
    "tokenize",
]
