"""Dependency graph for formula cells with evaluation ordering."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from gridcalc.calc._parser import parse_references

if TYPE_CHECKING:
    from collections.abc import Iterable

    from gridcalc._sheet import Sheet


class DependencyGraph:
    """Tracks formula cell dependencies for propagation and cycle checks.

    Every cell that still carries formula text is a node, including cells
    whose last evaluation failed.
    """

    __slots__ = ("dependencies", "dependents", "formulas")

    def __init__(self) -> None:
        # cell -> set of cells it reads from
        self.dependencies: dict[str, set[str]] = {}
        # cell -> set of cells that read from it (reverse edges)
        self.dependents: dict[str, set[str]] = {}
        # cell -> formula string
        self.formulas: dict[str, str] = {}

    def add_formula(self, cell_ref: str, formula: str) -> None:
        """Register (or replace) a formula cell and its dependencies."""
        self.remove_formula(cell_ref)
        self.formulas[cell_ref] = formula
        refs = parse_references(formula)

        self.dependencies[cell_ref] = set(refs)

        for ref in refs:
            if ref not in self.dependents:
                self.dependents[ref] = set()
            self.dependents[ref].add(cell_ref)

    def remove_formula(self, cell_ref: str) -> None:
        """Forget a cell's formula and its outgoing edges (no-op if absent)."""
        self.formulas.pop(cell_ref, None)
        for ref in self.dependencies.pop(cell_ref, set()):
            readers = self.dependents.get(ref)
            if readers is None:
                continue
            readers.discard(cell_ref)
            if not readers:
                del self.dependents[ref]

    def has_cycle(self, origin: str, probe: str) -> bool:
        """True when following references from *probe* leads back to *origin*.

        Depth-first over formula cells; each cell is expanded at most once.
        """
        if probe == origin:
            return True
        visited: set[str] = set()
        stack: list[str] = [probe]
        while stack:
            cell = stack.pop()
            if cell in visited:
                continue
            visited.add(cell)
            # Non-formula cells have no entry and end the path
            for ref in self.dependencies.get(cell, ()):
                if ref == origin:
                    return True
                if ref not in visited:
                    stack.append(ref)
        return False

    def affected_cells(self, changed_cells: Iterable[str]) -> list[str]:
        """Find all formula cells affected by changes, in evaluation order.

        BFS over the reverse edges with a visited guard, then ordered so
        every cell comes after the affected cells it reads from.  Cells on
        a cycle cannot be ordered and come last.
        """
        changed = set(changed_cells)
        affected: set[str] = set()
        queue: deque[str] = deque(sorted(changed))
        visited: set[str] = set(changed)

        while queue:
            cell = queue.popleft()
            for dep in sorted(self.dependents.get(cell, ())):
                if dep not in visited:
                    visited.add(dep)
                    queue.append(dep)
                    if dep in self.formulas:
                        affected.add(dep)

        return self.evaluation_order(affected)

    def evaluation_order(self, cells: set[str]) -> list[str]:
        """Order *cells* with Kahn's algorithm, restricted to *cells*.

        Unlike a strict topological sort this never fails: when the queue
        stalls, the pending cells that sit on a cycle are released first,
        then whatever reads from them.
        """
        if not cells:
            return []

        in_degree: dict[str, int] = {
            cell: len(self.dependencies.get(cell, set()) & cells) for cell in cells
        }
        queue: deque[str] = deque(sorted(c for c in cells if in_degree[c] == 0))

        order: list[str] = []
        while len(order) < len(cells):
            if not queue:
                # Cycle members evaluate to #CIRCULAR! in any order
                pending = cells.difference(order)
                stuck = sorted(c for c in pending if self.on_cycle(c)) or sorted(pending)
                for cell in stuck:
                    in_degree[cell] = 0
                queue.extend(stuck)
            cell = queue.popleft()
            order.append(cell)
            for dep in sorted(self.dependents.get(cell, ())):
                if dep in cells and in_degree[dep] > 0:
                    in_degree[dep] -= 1
                    if in_degree[dep] == 0:
                        queue.append(dep)

        return order

    def on_cycle(self, cell_ref: str) -> bool:
        """True when *cell_ref* can reach itself through formula references."""
        return any(self.has_cycle(cell_ref, ref) for ref in self.dependencies.get(cell_ref, ()))

    def max_depth(self, roots: set[str]) -> int:
        """Longest dependency chain from root cells through formula cells."""
        if not roots:
            return 0

        depth: dict[str, int] = {r: 0 for r in roots}
        max_d = 0
        for cell in self.affected_cells(roots):
            known = [depth[d] for d in self.dependencies.get(cell, ()) if d in depth]
            depth[cell] = max(known, default=0) + 1
            max_d = max(max_d, depth[cell])

        return max_d

    @classmethod
    def from_sheet(cls, sheet: Sheet) -> DependencyGraph:
        """Build a dependency graph by scanning a sheet for formula cells."""
        graph = cls()
        for cell_ref, cell in sheet.items():
            if cell.has_formula:
                graph.add_formula(cell_ref, cell.formula)
        return graph
