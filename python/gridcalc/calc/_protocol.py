"""Evaluation and edit result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass

ERROR = "#ERROR!"
CIRCULAR = "#CIRCULAR!"


@dataclass(frozen=True)
class Evaluation:
    """Outcome of evaluating one formula.

    ``result`` is a float on success, an error token when ``is_error`` is
    set, or the input text unchanged for non-formula input.
    """

    result: float | str
    is_error: bool = False


@dataclass(frozen=True)
class CellDelta:
    """A single cell's display change from an edit or recalculation."""

    cell_ref: str
    old_value: str | None
    new_value: str | None
    formula: str | None = None  # the formula that produced new_value


@dataclass(frozen=True)
class EditResult:
    """Result of writing one cell and propagating to its dependents."""

    cell_ref: str
    deltas: tuple[CellDelta, ...]  # dependents whose display changed
    recomputed_cells: int = 0  # dependents re-evaluated
    max_chain_depth: int = 0  # longest dependency chain from the edited cell

    @property
    def propagated_cells(self) -> int:
        return len(self.deltas)
