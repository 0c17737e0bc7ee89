"""Tests for gridcalc.calc reference index and evaluation order."""

from __future__ import annotations

import pytest

from gridcalc import Grid
from gridcalc._errors import CyclicReference
from gridcalc._utils import Coordinate
from gridcalc.calc._graph import DependencyGraph
from gridcalc.calc._parser import parse_value

A0 = Coordinate(0, 0)
B0 = Coordinate(0, 1)
C0 = Coordinate(0, 2)
D0 = Coordinate(0, 3)
A1 = Coordinate(1, 0)


def _graph(formulas: dict[Coordinate, str]) -> DependencyGraph:
    g = DependencyGraph()
    for coordinate, text in formulas.items():
        g.add_formula(coordinate, parse_value(text))
    return g


class TestAddFormula:
    def test_simple_reference(self) -> None:
        g = _graph({B0: "ADD([A0],1)"})
        assert g.references[B0] == (A0,)
        assert g.referrers[A0] == {B0}

    def test_references_keep_operand_order(self) -> None:
        g = _graph({D0: "ADD([C0],ADD([A0],[C0]))"})
        assert g.references[D0] == (C0, A0)

    def test_bare_reference(self) -> None:
        g = _graph({B0: "[A0]"})
        assert g.references[B0] == (A0,)
        assert B0 in g
        assert A0 not in g

    def test_replacing_a_formula_drops_old_edges(self) -> None:
        g = _graph({C0: "ADD([A0],[B0])"})
        g.add_formula(C0, parse_value("[B0]"))
        assert g.references[C0] == (B0,)
        assert A0 not in g.referrers
        assert g.referrers[B0] == {C0}

    def test_discard(self) -> None:
        g = _graph({B0: "[A0]", C0: "[A0]"})
        g.discard(B0)
        assert B0 not in g
        assert g.referrers[A0] == {C0}
        g.discard(A0)
        assert len(g) == 1


class TestEvaluationOrder:
    def test_empty(self) -> None:
        assert DependencyGraph().evaluation_order() == []

    def test_linear_chain(self) -> None:
        g = _graph({C0: "ADD([B0],1)", B0: "ADD([A0],1)"})
        assert g.evaluation_order() == [B0, C0]

    def test_dependencies_come_first(self) -> None:
        g = _graph({A0: "[A1]", A1: "[B0]", B0: "ADD(1,1)"})
        assert g.evaluation_order() == [B0, A1, A0]

    def test_diamond(self) -> None:
        g = _graph({
            B0: "ADD([A0],1)",
            C0: "ADD([A0],2)",
            D0: "ADD([B0],[C0])",
        })
        order = g.evaluation_order()
        assert order.index(B0) < order.index(D0)
        assert order.index(C0) < order.index(D0)
        assert len(order) == 3

    def test_subset_pulls_in_dependencies(self) -> None:
        g = _graph({B0: "ADD([A0],1)", C0: "[B0]", D0: "ADD(1,2)"})
        assert g.evaluation_order([C0]) == [B0, C0]

    def test_cycle_reports_chain(self) -> None:
        g = _graph({A0: "ADD([B0],1)", B0: "ADD([A0],1)"})
        with pytest.raises(CyclicReference, match="A0 -> B0 -> A0") as exc_info:
            g.evaluation_order()
        assert exc_info.value.chain == (A0, B0, A0)

    def test_self_reference(self) -> None:
        g = _graph({A0: "ADD([A0],1)"})
        with pytest.raises(CyclicReference) as exc_info:
            g.evaluation_order()
        assert exc_info.value.chain == (A0, A0)

    def test_long_chain(self) -> None:
        g = DependencyGraph()
        for i in range(1, 3000):
            g.add_formula(Coordinate(i, 0), parse_value(f"ADD([A{i - 1}],1)"))
        order = g.evaluation_order([Coordinate(2999, 0)])
        assert order[0] == A1
        assert order[-1] == Coordinate(2999, 0)


class TestDownstream:
    def test_transitive(self) -> None:
        g = _graph({B0: "ADD([A0],1)", C0: "ADD([B0],1)", D0: "[B0]"})
        assert g.downstream([A0]) == [B0, C0, D0]

    def test_excludes_upstream_formulas(self) -> None:
        g = _graph({B0: "ADD(1,1)", C0: "ADD([A0],[B0])"})
        assert g.downstream([A0]) == [C0]

    def test_unrelated(self) -> None:
        g = _graph({B0: "ADD([A0],1)"})
        assert g.downstream([C0]) == []


class TestFromGrid:
    def test_only_non_simple_cells_are_nodes(self) -> None:
        grid = Grid.from_text([["1", "ADD([A0],1)", "text", "[B0]"]])
        g = DependencyGraph.from_grid(grid)
        assert list(g) == [B0, D0]
        assert g.referrers[B0] == {D0}
