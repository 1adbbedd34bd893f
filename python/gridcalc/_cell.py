"""Cell record, type classification and display formatting."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum

FORMULA_MARKER = "="

# Plain decimal literal: 42, -3.5, .5, 1e3 (no hex, no inf/nan, no underscores)
_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


class CellKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    FORMULA = "formula"
    ERROR = "error"


@dataclass
class Cell:
    """One stored cell.

    ``raw_value`` is the text as entered, minus the leading ``=`` for
    formulas; ``formula`` keeps the full text including the marker.
    ``display_value`` holds the evaluated result (or error token) for
    formula and error cells.
    """

    raw_value: str
    kind: CellKind = CellKind.TEXT
    formula: str | None = None
    display_value: str | None = None

    @property
    def has_formula(self) -> bool:
        return bool(self.formula) and self.formula.startswith(FORMULA_MARKER)


def parse_decimal(text: str) -> float | None:
    """Parse *text* as a finite decimal number, or return None."""
    stripped = text.strip()
    if not _DECIMAL_RE.match(stripped):
        return None
    value = float(stripped)
    if not math.isfinite(value):
        return None
    return value


def format_number(value: float) -> str:
    """Stringify a numeric result: ``11.0`` -> ``"11"``, ``0.5`` -> ``"0.5"``."""
    if float(value).is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(float(value))


def classify(raw: str) -> CellKind:
    """Classify raw input as formula, number or text."""
    if raw.startswith(FORMULA_MARKER):
        return CellKind.FORMULA
    if parse_decimal(raw) is not None:
        return CellKind.NUMBER
    return CellKind.TEXT


def display_text(cell: Cell | None) -> str:
    """Text the grid should show for *cell* (empty for an absent cell)."""
    if cell is None:
        return ""
    if cell.kind is CellKind.NUMBER:
        value = parse_decimal(cell.raw_value)
        return "" if value is None else format_number(value)
    if cell.kind in (CellKind.FORMULA, CellKind.ERROR):
        return cell.display_value or ""
    return cell.raw_value
