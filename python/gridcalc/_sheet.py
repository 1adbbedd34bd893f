"""Sheet: sparse, explicitly owned mapping of cell identifier -> Cell."""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from gridcalc._cell import Cell, display_text
from gridcalc._utils import MAX_COLS, MAX_ROWS, offset_cell
from gridcalc.calc._evaluator import SheetEvaluator
from gridcalc.calc._protocol import EditResult


class Sheet(Mapping[str, Cell]):
    """A grid of cells keyed by identifier (``"A1"``).

    Only cells that were written are stored; an absent key reads as empty.
    ``max_rows`` / ``max_cols`` bound navigation, not storage.
    """

    __slots__ = ("_cells", "_evaluator", "_max_rows", "_max_cols")

    def __init__(self, max_rows: int = MAX_ROWS, max_cols: int = MAX_COLS) -> None:
        if max_rows < 1 or max_cols < 1:
            raise ValueError("max_rows and max_cols must be >= 1")
        self._cells: dict[str, Cell] = {}
        self._max_rows = max_rows
        self._max_cols = max_cols
        self._evaluator = SheetEvaluator(self)

    @property
    def max_rows(self) -> int:
        return self._max_rows

    @property
    def max_cols(self) -> int:
        return self._max_cols

    @property
    def evaluator(self) -> SheetEvaluator:
        return self._evaluator

    # ------------------------------------------------------------------
    # Mapping protocol
    # ------------------------------------------------------------------

    def __getitem__(self, key: str) -> Cell:
        return self._cells[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __setitem__(self, key: str, raw: str) -> None:
        """``sheet['A1'] = '=B1+1'`` -- shorthand for ``set_value``."""
        self.set_value(key, raw)

    def __delitem__(self, key: str) -> None:
        self.clear(key)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def set_value(self, cell_ref: str, raw: str) -> EditResult:
        """Write raw input to a cell and recompute everything that depends on it."""
        return self._evaluator.apply_edit(cell_ref, raw)

    def clear(self, cell_ref: str) -> EditResult:
        """Remove a cell entirely; dependents then read it as 0."""
        return self._evaluator.remove(cell_ref)

    def load(self, values: Mapping[str, str]) -> dict[str, str]:
        """Bulk-write raw values and recalculate once."""
        return self._evaluator.load(values)

    def recalculate(self) -> dict[str, str]:
        return self._evaluator.calculate()

    # ------------------------------------------------------------------
    # Presentation helpers
    # ------------------------------------------------------------------

    def display(self, cell_ref: str) -> str:
        """Text to show for *cell_ref* (empty when absent)."""
        return display_text(self._cells.get(cell_ref))

    def offset(self, cell_ref: str, d_row: int, d_col: int) -> str:
        """Identifier *d_row* rows and *d_col* columns away, clamped to the grid."""
        return offset_cell(cell_ref, d_row, d_col, self._max_rows, self._max_cols)

    def __repr__(self) -> str:
        return f"<Sheet cells={len(self._cells)} formulas={len(self._evaluator.graph.formulas)}>"
