"""Tests for mermaid_sonar.analysis.graph: adjacency, components, chains."""

from __future__ import annotations

from mermaid_sonar.analysis.graph import (
    build_adjacency,
    build_undirected_adjacency,
    find_components,
    longest_chain,
    max_branch_width,
)
from mermaid_sonar.diagram import Edge


def _edges(*pairs: tuple[str, str]) -> list[Edge]:
    return [Edge(source=src, target=dst) for src, dst in pairs]


# ---------------------------------------------------------------------------
# Adjacency
# ---------------------------------------------------------------------------


class TestAdjacency:
    def test_forward(self) -> None:
        adj = build_adjacency(["A", "B", "C"], _edges(("A", "B"), ("A", "C")))
        assert adj == {"A": ["B", "C"], "B": [], "C": []}

    def test_reverse(self) -> None:
        adj = build_adjacency(["A", "B"], _edges(("A", "B")), reverse=True)
        assert adj == {"A": [], "B": ["A"]}

    def test_bidirectional_edge_followed_both_ways(self) -> None:
        edges = [Edge(source="A", target="B", bidirectional=True)]
        assert build_adjacency(["A", "B"], edges) == {"A": ["B"], "B": ["A"]}
        assert build_adjacency(["A", "B"], edges, reverse=True) == {"A": ["B"], "B": ["A"]}

    def test_dangling_edges_skipped(self) -> None:
        adj = build_adjacency(["A"], _edges(("A", "Z"), ("Y", "A")))
        assert adj == {"A": []}

    def test_undirected_ignores_multiplicity(self) -> None:
        adj = build_undirected_adjacency(["A", "B"], _edges(("A", "B"), ("B", "A"), ("A", "B")))
        assert adj == {"A": {"B"}, "B": {"A"}}


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


class TestFindComponents:
    def test_no_edges_gives_singletons(self) -> None:
        assert find_components(["A", "B", "C"], []) == [("A",), ("B",), ("C",)]

    def test_two_components_in_declaration_order(self) -> None:
        components = find_components(["A", "B", "C", "D"], _edges(("D", "C"), ("B", "A")))
        assert components == [("A", "B"), ("C", "D")]

    def test_direction_ignored(self) -> None:
        components = find_components(["A", "B", "C"], _edges(("A", "B"), ("C", "B")))
        assert components == [("A", "B", "C")]

    def test_self_loop(self) -> None:
        assert find_components(["A"], _edges(("A", "A"))) == [("A",)]

    def test_empty(self) -> None:
        assert find_components([], []) == []

    def test_dangling_edge_does_not_join(self) -> None:
        assert find_components(["A", "B"], _edges(("A", "X"), ("X", "B"))) == [("A",), ("B",)]


# ---------------------------------------------------------------------------
# Longest chain
# ---------------------------------------------------------------------------


class TestLongestChain:
    def test_simple_path(self) -> None:
        ids = ["A", "B", "C", "D"]
        adj = build_adjacency(ids, _edges(("A", "B"), ("B", "C")))
        assert longest_chain(ids, adj) == ("A", "B", "C")

    def test_picks_longest_branch(self) -> None:
        ids = ["A", "B", "C", "D", "E"]
        adj = build_adjacency(ids, _edges(("A", "B"), ("A", "C"), ("C", "D"), ("D", "E")))
        assert longest_chain(ids, adj) == ("A", "C", "D", "E")

    def test_cycle_terminates(self) -> None:
        ids = ["A", "B", "C"]
        adj = build_adjacency(ids, _edges(("A", "B"), ("B", "C"), ("C", "A")))
        assert longest_chain(ids, adj) == ("A", "B", "C")

    def test_self_loop_terminates(self) -> None:
        adj = build_adjacency(["A"], _edges(("A", "A")))
        assert longest_chain(["A"], adj) == ("A",)

    def test_cycle_result_depends_on_order(self) -> None:
        """On cyclic graphs the chain is a heuristic, not an exact longest path."""
        ids = ["B", "A", "C"]
        adj = build_adjacency(ids, _edges(("A", "B"), ("B", "C"), ("C", "A")))
        chain = longest_chain(ids, adj)
        assert len(chain) == 3
        assert chain[0] == "B"

    def test_reversed_direction(self) -> None:
        ids = ["A", "B", "C"]
        adj = build_adjacency(ids, _edges(("A", "B"), ("B", "C")), reverse=True)
        assert longest_chain(ids, adj) == ("C", "B", "A")

    def test_empty(self) -> None:
        assert longest_chain([], {}) == ()

    def test_long_chain_is_iterative(self) -> None:
        ids = [f"N{i}" for i in range(5000)]
        pairs = [(ids[i], ids[i + 1]) for i in range(len(ids) - 1)]
        adj = build_adjacency(ids, _edges(*pairs))
        assert len(longest_chain(ids, adj)) == 5000


class TestMaxBranchWidth:
    def test_distinct_successors(self) -> None:
        adj = build_adjacency(
            ["A", "B", "C"], _edges(("A", "B"), ("A", "C"), ("A", "B"))
        )
        assert max_branch_width(adj) == 2

    def test_empty(self) -> None:
        assert max_branch_width({}) == 0
