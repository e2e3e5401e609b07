"""Graph algorithms over diagram nodes and edges: adjacency, components, chains."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from mermaid_sonar.diagram import Edge

# ---------------------------------------------------------------------------
# Adjacency
# ---------------------------------------------------------------------------


def build_adjacency(
    node_ids: Sequence[str],
    edges: Iterable[Edge],
    *,
    reverse: bool = False,
) -> dict[str, list[str]]:
    """Build a directed adjacency list restricted to declared nodes.

    Edges whose endpoints are not both in *node_ids* are skipped.  Edge order
    is preserved; parallel edges appear once per edge.  With *reverse* every
    edge is followed from target to source.
    """
    known = set(node_ids)
    adj: dict[str, list[str]] = {node_id: [] for node_id in node_ids}
    for edge in edges:
        if edge.source not in known or edge.target not in known:
            continue
        src, dst = (edge.target, edge.source) if reverse else (edge.source, edge.target)
        adj[src].append(dst)
        if edge.bidirectional:
            adj[dst].append(src)
    return adj


def build_undirected_adjacency(
    node_ids: Sequence[str], edges: Iterable[Edge]
) -> dict[str, set[str]]:
    """Undirected neighbour sets; direction and multiplicity are ignored."""
    known = set(node_ids)
    adj: dict[str, set[str]] = {node_id: set() for node_id in node_ids}
    for edge in edges:
        if edge.source not in known or edge.target not in known:
            continue
        adj[edge.source].add(edge.target)
        adj[edge.target].add(edge.source)
    return adj


# ---------------------------------------------------------------------------
# Connected components
# ---------------------------------------------------------------------------


def find_components(node_ids: Sequence[str], edges: Iterable[Edge]) -> list[tuple[str, ...]]:
    """Partition *node_ids* into connected components using iterative BFS.

    Nodes without edges form singleton components.  Components are ordered by
    their first node in declaration order, and members keep declaration order,
    so the result is deterministic for identical input.
    """
    adj = build_undirected_adjacency(node_ids, edges)
    position = {node_id: idx for idx, node_id in enumerate(node_ids)}
    seen: set[str] = set()
    components: list[tuple[str, ...]] = []

    for start in node_ids:
        if start in seen:
            continue
        seen.add(start)
        members = [start]
        queue: deque[str] = deque([start])
        while queue:
            current = queue.popleft()
            for neighbor in adj[current]:
                if neighbor not in seen:
                    seen.add(neighbor)
                    members.append(neighbor)
                    queue.append(neighbor)
        members.sort(key=position.__getitem__)
        components.append(tuple(members))

    return components


# ---------------------------------------------------------------------------
# Longest chain
# ---------------------------------------------------------------------------


def longest_chain(node_ids: Sequence[str], adjacency: dict[str, list[str]]) -> tuple[str, ...]:
    """Return the longest directed path found by a memoized DFS.

    Nodes on the current DFS path are marked in-progress; an edge back into
    one of them closes a cycle and is skipped, so traversal always terminates
    in O(N + E).  On acyclic graphs the result is exact.  On cyclic graphs it
    is a heuristic: memoized lengths depend on which back edges were skipped,
    which in turn depends on node and edge order.
    """
    best: dict[str, int] = {}  # finished nodes -> chain length starting there
    successor: dict[str, str | None] = {}
    in_progress: set[str] = set()

    for start in node_ids:
        if start in best:
            continue
        current: dict[str, int] = {start: 1}
        successor[start] = None
        in_progress.add(start)
        stack = [(start, iter(adjacency.get(start, ())))]

        while stack:
            node, children = stack[-1]
            descended = False
            for child in children:
                if child in in_progress:
                    continue
                if child not in best:
                    current[child] = 1
                    successor[child] = None
                    in_progress.add(child)
                    stack.append((child, iter(adjacency.get(child, ()))))
                    descended = True
                    break
                if best[child] + 1 > current[node]:
                    current[node] = best[child] + 1
                    successor[node] = child
            if descended:
                continue

            stack.pop()
            in_progress.discard(node)
            best[node] = current.pop(node)
            if stack:
                parent = stack[-1][0]
                if best[node] + 1 > current[parent]:
                    current[parent] = best[node] + 1
                    successor[parent] = node

    if not best:
        return ()

    head = max(node_ids, key=lambda node_id: best[node_id])
    path: list[str] = []
    step: str | None = head
    while step is not None:
        path.append(step)
        step = successor[step]
    return tuple(path)


# ---------------------------------------------------------------------------
# Branching
# ---------------------------------------------------------------------------


def max_branch_width(adjacency: dict[str, list[str]]) -> int:
    """Largest number of distinct successors of any single node."""
    return max((len(set(children)) for children in adjacency.values()), default=0)
