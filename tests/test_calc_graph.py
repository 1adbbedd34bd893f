"""Tests for gridcalc.calc dependency graph, cycle checks and ordering."""

from __future__ import annotations

from gridcalc._cell import Cell, CellKind
from gridcalc.calc._graph import DependencyGraph


def _graph(**formulas: str) -> DependencyGraph:
    g = DependencyGraph()
    for cell_ref, formula in formulas.items():
        g.add_formula(cell_ref, formula)
    return g


class TestAddFormula:
    def test_simple_dependency(self) -> None:
        g = _graph(B1="=A1+1")
        assert g.dependencies["B1"] == {"A1"}
        assert g.dependents["A1"] == {"B1"}

    def test_replacing_formula_drops_old_edges(self) -> None:
        g = _graph(B1="=A1+1")
        g.add_formula("B1", "=C1*2")
        assert "A1" not in g.dependents
        assert g.dependents["C1"] == {"B1"}
        assert g.formulas["B1"] == "=C1*2"

    def test_reference_index_is_token_based(self) -> None:
        """A formula reading A10 is not a dependent of A1."""
        g = _graph(B1="=A10+1")
        assert "A1" not in g.dependents
        assert g.dependents["A10"] == {"B1"}


class TestRemoveFormula:
    def test_remove(self) -> None:
        g = _graph(B1="=A1+1", C1="=A1*2")
        g.remove_formula("B1")
        assert "B1" not in g.formulas
        assert "B1" not in g.dependencies
        assert g.dependents["A1"] == {"C1"}

    def test_remove_last_reader_drops_entry(self) -> None:
        g = _graph(B1="=A1+1")
        g.remove_formula("B1")
        assert g.dependents == {}

    def test_remove_unknown_is_noop(self) -> None:
        g = _graph(B1="=A1+1")
        g.remove_formula("Z9")
        assert g.formulas == {"B1": "=A1+1"}


class TestHasCycle:
    def test_direct(self) -> None:
        g = _graph(A1="=B1")
        assert g.has_cycle("B1", "A1")

    def test_transitive(self) -> None:
        g = _graph(A1="=B1", B1="=C1")
        assert g.has_cycle("C1", "A1")

    def test_no_path(self) -> None:
        g = _graph(A1="=B1", B1="=C1")
        assert not g.has_cycle("D1", "A1")

    def test_probe_without_formula(self) -> None:
        g = _graph(A1="=B1")
        assert not g.has_cycle("A1", "Z1")

    def test_diamond_is_not_a_cycle(self) -> None:
        g = _graph(B1="=A1", C1="=A1", D1="=B1+C1")
        assert not g.has_cycle("E1", "D1")

    def test_existing_cycle_elsewhere_terminates(self) -> None:
        g = _graph(A1="=B1", B1="=A1")
        assert not g.has_cycle("C1", "A1")

    def test_on_cycle(self) -> None:
        g = _graph(A1="=B1", B1="=A1", C1="=A1", D1="=D1")
        assert g.on_cycle("A1")
        assert g.on_cycle("B1")
        assert g.on_cycle("D1")
        assert not g.on_cycle("C1")


class TestAffectedCells:
    def test_single_change(self) -> None:
        """Changing A1 affects B1 which affects C1."""
        g = _graph(B1="=A1+1", C1="=B1*2")
        assert g.affected_cells({"A1"}) == ["B1", "C1"]

    def test_diamond_propagation(self) -> None:
        g = _graph(B1="=A1+1", C1="=A1*2", D1="=B1+C1")
        affected = g.affected_cells({"A1"})
        assert len(affected) == 3
        assert affected[-1] == "D1"

    def test_unrelated_cells_not_affected(self) -> None:
        g = _graph(B1="=A1+1", D1="=C1*2")
        affected = g.affected_cells({"A1"})
        assert affected == ["B1"]

    def test_change_non_existent_cell(self) -> None:
        g = _graph(B1="=A1+1")
        assert g.affected_cells({"Z99"}) == []

    def test_changed_cell_not_reported(self) -> None:
        g = _graph(A1="=A1+1")
        assert g.affected_cells({"A1"}) == []

    def test_cycle_terminates(self) -> None:
        g = _graph(A1="=B1+Z1", B1="=A1")
        assert sorted(g.affected_cells({"Z1"})) == ["A1", "B1"]


class TestEvaluationOrder:
    def test_empty(self) -> None:
        assert DependencyGraph().evaluation_order(set()) == []

    def test_reverse_declaration_order(self) -> None:
        g = _graph(C1="=B1*2", B1="=A1+1")
        assert g.evaluation_order({"B1", "C1"}) == ["B1", "C1"]

    def test_cycle_members_before_their_readers(self) -> None:
        g = _graph(A1="=B1", B1="=A1", C1="=B1")
        assert g.evaluation_order({"A1", "B1", "C1"}) == ["A1", "B1", "C1"]

    def test_reader_of_cycle_sorted_first_still_last(self) -> None:
        g = _graph(X1="=Y1", Y1="=X1", A9="=Y1")
        order = g.evaluation_order({"A9", "X1", "Y1"})
        assert order[-1] == "A9"
        assert sorted(order) == ["A9", "X1", "Y1"]


class TestMaxDepth:
    def test_linear_chain_depth(self) -> None:
        g = _graph(B1="=A1+1", C1="=B1*2", D1="=C1+3")
        assert g.max_depth({"A1"}) == 3

    def test_diamond_depth(self) -> None:
        g = _graph(B1="=A1+1", C1="=A1*2", D1="=B1+C1")
        assert g.max_depth({"A1"}) == 2

    def test_empty_roots(self) -> None:
        assert DependencyGraph().max_depth(set()) == 0

    def test_no_dependents(self) -> None:
        g = _graph(B1="=A1+1")
        assert g.max_depth({"A1"}) == 1
        assert g.max_depth({"C1"}) == 0

    def test_cycle_is_bounded(self) -> None:
        g = _graph(A1="=B1+Z1", B1="=A1")
        assert g.max_depth({"Z1"}) == 2


class TestFromSheet:
    def test_scans_formula_and_error_cells(self) -> None:
        sheet = {
            "A1": Cell("5", CellKind.NUMBER),
            "B1": Cell("A1*2", CellKind.FORMULA, formula="=A1*2", display_value="10"),
            "C1": Cell("C1", CellKind.ERROR, formula="=C1", display_value="#CIRCULAR!"),
            "D1": Cell("hello"),
        }
        g = DependencyGraph.from_sheet(sheet)
        assert set(g.formulas) == {"B1", "C1"}
        assert g.dependents["A1"] == {"B1"}
