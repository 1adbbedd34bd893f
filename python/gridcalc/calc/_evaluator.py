"""SheetEvaluator: formula evaluation and dependency propagation.

Formulas are plain infix arithmetic over ``+ - * / ( )``, decimal literals
and cell references.  References are resolved to numbers (anything that is
not a number reads as ``0``), then the token stream is evaluated by a small
recursive descent parser.  Failures never escape: they become the
``#ERROR!`` or ``#CIRCULAR!`` display of the offending cell.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import TYPE_CHECKING

from gridcalc._cell import Cell, CellKind, classify, format_number, parse_decimal
from gridcalc._utils import a1_to_rowcol
from gridcalc.calc._graph import DependencyGraph
from gridcalc.calc._parser import (
    OPERATORS,
    formula_body,
    is_cell_reference,
    is_formula,
    parse_references,
    tokenize,
)
from gridcalc.calc._protocol import CIRCULAR, ERROR, CellDelta, EditResult, Evaluation

if TYPE_CHECKING:
    from gridcalc._sheet import Sheet

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class FormulaError(Exception):
    """Base for all formula errors. ``code`` is the cell display string."""

    code: str = ERROR


class FormulaSyntaxError(FormulaError):
    code = ERROR


class EvaluationError(FormulaError):
    """Arithmetic failure: division by zero or a non-finite result."""

    code = ERROR


class CircularReferenceError(FormulaError):
    code = CIRCULAR


# ---------------------------------------------------------------------------
# Reference resolution
# ---------------------------------------------------------------------------


def resolve_numeric(cell_ref: str, sheet: Mapping[str, Cell]) -> float:
    """Numeric value of a referenced cell; absent, text and error cells read as 0."""
    cell = sheet.get(cell_ref)
    if cell is None:
        return 0.0
    if cell.kind is CellKind.NUMBER:
        text: str | None = cell.raw_value
    elif cell.kind is CellKind.FORMULA:
        text = cell.display_value
    else:
        return 0.0
    if text is None:
        return 0.0
    value = parse_decimal(text)
    return 0.0 if value is None else value


def _substitute(token: str, sheet: Mapping[str, Cell]) -> str:
    if is_cell_reference(token):
        return repr(resolve_numeric(token, sheet))
    return token


# ---------------------------------------------------------------------------
# Arithmetic (recursive descent)
# ---------------------------------------------------------------------------


class _ExpressionParser:
    """Evaluates a token stream.

    Grammar::

        expression := term (('+' | '-') term)*
        term       := unary (('*' | '/') unary)*
        unary      := ('+' | '-') unary | primary
        primary    := NUMBER | '(' expression ')'
    """

    def __init__(self, tokens: list[str]) -> None:
        self._tokens = tokens
        self._pos = 0

    def parse(self) -> float:
        if not self._tokens:
            raise FormulaSyntaxError("Empty expression")
        value = self._expression()
        if self._pos != len(self._tokens):
            raise FormulaSyntaxError(f"Unexpected token {self._tokens[self._pos]!r}")
        return value

    def _peek(self) -> str | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _advance(self) -> str:
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def _expression(self) -> float:
        value = self._term()
        while self._peek() in ("+", "-"):
            op = self._advance()
            right = self._term()
            value = value + right if op == "+" else value - right
        return value

    def _term(self) -> float:
        value = self._unary()
        while self._peek() in ("*", "/"):
            op = self._advance()
            right = self._unary()
            if op == "*":
                value = value * right
            elif right == 0:
                raise EvaluationError("Division by zero")
            else:
                value = value / right
        return value

    def _unary(self) -> float:
        token = self._peek()
        if token in ("+", "-"):
            self._advance()
            operand = self._unary()
            return -operand if token == "-" else operand
        return self._primary()

    def _primary(self) -> float:
        token = self._peek()
        if token is None:
            raise FormulaSyntaxError("Unexpected end of expression")
        if token == "(":
            self._advance()
            value = self._expression()
            if self._peek() != ")":
                raise FormulaSyntaxError("Unmatched '('")
            self._advance()
            return value
        if token == ")" or token in OPERATORS:
            raise FormulaSyntaxError(f"Unexpected token {token!r}")
        self._advance()
        value = parse_decimal(token)
        if value is None:
            raise FormulaSyntaxError(f"Invalid operand {token!r}")
        return value


def evaluate_expression(tokens: list[str]) -> float:
    """Evaluate substituted tokens; raises FormulaError on any failure."""
    value = _ExpressionParser(tokens).parse()
    if not math.isfinite(value):
        raise EvaluationError(f"Non-finite result: {value}")
    return value


# ---------------------------------------------------------------------------
# Formula evaluation
# ---------------------------------------------------------------------------


def _check_circular(cell_ref: str, body: str, graph: DependencyGraph) -> None:
    for ref in parse_references(body):
        if ref == cell_ref or graph.has_cycle(cell_ref, ref):
            raise CircularReferenceError(f"{cell_ref} reaches itself through {ref}")


def evaluate_formula(
    formula: str,
    sheet: Mapping[str, Cell],
    cell_ref: str,
    graph: DependencyGraph | None = None,
) -> Evaluation:
    """Evaluate *formula* as the content of *cell_ref*.

    Text without a leading ``=`` is returned unchanged.  Circular references
    are checked before any arithmetic.  *graph* defaults to one built from
    *sheet*.
    """
    if not is_formula(formula):
        return Evaluation(formula)

    body = formula_body(formula)
    if graph is None:
        graph = DependencyGraph.from_sheet(sheet)

    try:
        _check_circular(cell_ref, body, graph)
        tokens = [_substitute(token, sheet) for token in tokenize(body)]
        value = evaluate_expression(tokens)
    except FormulaError as e:
        logger.debug("Cannot evaluate %r in %s: %s", formula, cell_ref, e)
        return Evaluation(e.code, is_error=True)
    except (ArithmeticError, RecursionError) as e:
        logger.debug("Cannot evaluate %r in %s: %s", formula, cell_ref, e)
        return Evaluation(ERROR, is_error=True)

    return Evaluation(value)


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


class SheetEvaluator:
    """Writes cells into a Sheet and keeps every formula cell current.

    Usage::

        sheet = Sheet()
        evaluator = SheetEvaluator(sheet)
        evaluator.apply_edit("A1", "5")
        result = evaluator.apply_edit("B1", "=A1*2")
        sheet["B1"].display_value  # "10"

    Each edit is processed to completion (evaluation plus full transitive
    propagation) before returning.
    """

    def __init__(self, sheet: Sheet) -> None:
        self._sheet = sheet
        self._graph = DependencyGraph.from_sheet(sheet)

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    def apply_edit(self, cell_ref: str, raw: str) -> EditResult:
        """Store *raw* as the content of *cell_ref* and update its dependents.

        Raises InvalidIdentifierError for a malformed *cell_ref*; formula
        failures are stored on the cell, never raised.
        """
        a1_to_rowcol(cell_ref)
        cell = _new_cell(raw)
        if cell.kind is CellKind.FORMULA:
            self._evaluate_cell(cell_ref, cell)
            self._graph.add_formula(cell_ref, raw)
        else:
            self._graph.remove_formula(cell_ref)

        self._sheet._cells[cell_ref] = cell  # noqa: SLF001
        return self._propagate(cell_ref)

    def remove(self, cell_ref: str) -> EditResult:
        """Drop *cell_ref* from the sheet (back to absent) and update dependents."""
        a1_to_rowcol(cell_ref)
        self._sheet._cells.pop(cell_ref, None)  # noqa: SLF001
        self._graph.remove_formula(cell_ref)
        return self._propagate(cell_ref)

    def load(self, values: Mapping[str, str]) -> dict[str, str]:
        """Write many raw values at once, then evaluate every formula once."""
        for cell_ref in values:
            a1_to_rowcol(cell_ref)
        for cell_ref, raw in values.items():
            cell = _new_cell(raw)
            if cell.kind is CellKind.FORMULA:
                self._graph.add_formula(cell_ref, raw)
            else:
                self._graph.remove_formula(cell_ref)
            self._sheet._cells[cell_ref] = cell  # noqa: SLF001
        return self.calculate()

    def calculate(self) -> dict[str, str]:
        """Evaluate all formula cells in dependency order.

        Returns a dict of cell_ref -> display value for formula cells.
        """
        results: dict[str, str] = {}
        for cell_ref in self._graph.evaluation_order(set(self._graph.formulas)):
            cell = self._sheet.get(cell_ref)
            if cell is None:
                continue
            self._evaluate_cell(cell_ref, cell)
            results[cell_ref] = cell.display_value or ""
        return results

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _evaluate_cell(self, cell_ref: str, cell: Cell) -> None:
        outcome = evaluate_formula(cell.formula or "", self._sheet, cell_ref, self._graph)
        if outcome.is_error:
            cell.display_value = str(outcome.result)
            cell.kind = CellKind.ERROR
        else:
            cell.display_value = format_number(outcome.result)  # type: ignore[arg-type]
            cell.kind = CellKind.FORMULA

    def _propagate(self, cell_ref: str) -> EditResult:
        affected = self._graph.affected_cells({cell_ref})
        deltas: list[CellDelta] = []
        for ref in affected:
            cell = self._sheet.get(ref)
            if cell is None:
                continue
            old_value = cell.display_value
            self._evaluate_cell(ref, cell)
            if cell.display_value != old_value:
                deltas.append(CellDelta(
                    cell_ref=ref,
                    old_value=old_value,
                    new_value=cell.display_value,
                    formula=cell.formula,
                ))

        max_depth = self._graph.max_depth({cell_ref}) if affected else 0
        if affected:
            logger.debug(
                "Edit to %s recomputed %d cell(s), %d changed",
                cell_ref, len(affected), len(deltas),
            )

        return EditResult(
            cell_ref=cell_ref,
            deltas=tuple(deltas),
            recomputed_cells=len(affected),
            max_chain_depth=max_depth,
        )


def _new_cell(raw: str) -> Cell:
    """Build a cell from raw input; formula cells still need evaluating."""
    kind = classify(raw)
    if kind is CellKind.FORMULA:
        return Cell(raw_value=formula_body(raw), kind=kind, formula=raw)
    return Cell(raw_value=raw, kind=kind)
