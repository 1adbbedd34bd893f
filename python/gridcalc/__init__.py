"""gridcalc - in-memory spreadsheet engine with automatic recalculation.

Usage::

    from gridcalc import Sheet

    sheet = Sheet()
    sheet["A1"] = "5"
    sheet["B1"] = "3"
    sheet["C1"] = "=A1+B1*2"
    print(sheet.display("C1"))   # 11

    sheet["A1"] = "10"           # C1 is recomputed immediately
    print(sheet.display("C1"))   # 16
"""

from gridcalc._cell import Cell, CellKind, classify, display_text
from gridcalc._sheet import Sheet
from gridcalc._utils import (
    MAX_COLS,
    MAX_ROWS,
    InvalidIdentifierError,
    a1_to_rowcol,
    cells_in_range,
    offset_cell,
    rowcol_to_a1,
)
from gridcalc.calc import CIRCULAR, ERROR, EditResult

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CIRCULAR",
    "Cell",
    "CellKind",
    "ERROR",
    "EditResult",
    "InvalidIdentifierError",
    "MAX_COLS",
    "MAX_ROWS",
    "Sheet",
    "a1_to_rowcol",
    "apply_edit",
    "cells_in_range",
    "classify",
    "display_text",
    "offset_cell",
    "rowcol_to_a1",
]


def apply_edit(cell_ref: str, raw: str, sheet: Sheet) -> Sheet:
    """Write *raw* into *cell_ref* of *sheet*, propagate, and return the sheet.

    The sheet is updated in place; the return value is the same object.
    """
    sheet.set_value(cell_ref, raw)
    return sheet
