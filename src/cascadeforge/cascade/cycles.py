"""
Cycle detection on the nuclide reaction graph.

The graph has one node per nuclide and a directed edge from every input
of a pathway to every output. A nuclide lies on a cycle when its strongly
connected component has more than one member, or when it has a self-loop
(e.g. a two-to-two reaction regenerating one of its inputs).

Strongly connected components are computed with
:func:`scipy.sparse.csgraph.connected_components`.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

import numpy as np
from scipy import sparse
from scipy.sparse.csgraph import connected_components

from cascadeforge.cascade.pathways import Pathway

logger = logging.getLogger(__name__)


@dataclass
class ReactionGraph:
    """Directed nuclide graph as an adjacency mapping."""
    adjacency: Dict[str, Set[str]] = field(default_factory=dict)

    @property
    def nodes(self) -> List[str]:
        return list(self.adjacency)

    def add_edge(self, source: str, target: str) -> None:
        self.adjacency.setdefault(source, set()).add(target)
        self.adjacency.setdefault(target, set())

    def successors(self, node: str) -> Set[str]:
        return self.adjacency.get(node, set())

    def to_sparse(self) -> sparse.csr_matrix:
        """Boolean adjacency matrix in node order."""
        index = {node: i for i, node in enumerate(self.adjacency)}
        rows, cols = [], []
        for source, targets in self.adjacency.items():
            for target in targets:
                rows.append(index[source])
                cols.append(index[target])
        n = len(index)
        data = np.ones(len(rows), dtype=np.int8)
        return sparse.csr_matrix((data, (rows, cols)), shape=(n, n))


@dataclass
class CycleDetectionResult:
    """
    Nuclides on cycles and the cyclic components they form.

    Attributes
    ----------
    cycle_nuclides : set of str
        Every nuclide lying on at least one directed cycle
    components : list of list of str
        Cyclic strongly connected components, each sorted, largest first
    cycle_count : int
        Number of cyclic components
    """
    cycle_nuclides: Set[str] = field(default_factory=set)
    components: List[List[str]] = field(default_factory=list)
    cycle_count: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "cycleNuclides": sorted(self.cycle_nuclides),
            "components": self.components,
            "cycleCount": self.cycle_count,
        }


def build_reaction_graph(pathways: Iterable[Pathway]) -> ReactionGraph:
    """Edges from every pathway input to every pathway output."""
    graph = ReactionGraph()
    for pathway in pathways:
        for source in pathway.inputs:
            for target in pathway.outputs:
                graph.add_edge(source, target)
    return graph


def detect_cycles(pathways: Iterable[Pathway]) -> CycleDetectionResult:
    """
    Find every nuclide that can regenerate itself through some pathway chain.

    Examples
    --------
    >>> result = detect_cycles(aggregate_pathways(cascade.reactions))
    >>> "He-4" in result.cycle_nuclides
    True
    """
    graph = build_reaction_graph(pathways)
    nodes = graph.nodes
    if not nodes:
        return CycleDetectionResult()

    matrix = graph.to_sparse()
    n_components, labels = connected_components(matrix, directed=True, connection="strong")

    members: Dict[int, List[str]] = {}
    for node, label in zip(nodes, labels):
        members.setdefault(int(label), []).append(node)

    result = CycleDetectionResult()
    for label in range(n_components):
        component = members.get(label, [])
        cyclic = len(component) > 1 or (
            len(component) == 1 and component[0] in graph.successors(component[0])
        )
        if cyclic:
            result.cycle_nuclides.update(component)
            result.components.append(sorted(component))

    result.components.sort(key=lambda c: (-len(c), c))
    result.cycle_count = len(result.components)
    logger.debug(
        f"Cycle detection: {len(nodes)} nuclides, {result.cycle_count} cyclic component(s)"
    )
    return result


def is_in_cycle(graph: ReactionGraph, nuclide: str) -> bool:
    """Whether ``nuclide`` is reachable from itself by a non-empty path."""
    queue = deque(graph.successors(nuclide))
    seen: Set[str] = set()
    while queue:
        node = queue.popleft()
        if node == nuclide:
            return True
        if node in seen:
            continue
        seen.add(node)
        queue.extend(graph.successors(node) - seen)
    return False


def find_simple_cycles(
    graph: ReactionGraph,
    start: str,
    max_depth: int = 10,
    limit: Optional[int] = None,
) -> List[List[str]]:
    """
    Enumerate simple cycles through ``start`` by depth-first search.

    Each cycle is reported as a node path beginning and ending at
    ``start``. Paths longer than ``max_depth`` edges are not explored.
    """
    cycles: List[List[str]] = []
    path = [start]
    on_path = {start}

    def visit(node: str) -> bool:
        for successor in sorted(graph.successors(node)):
            if successor == start:
                cycles.append(path + [start])
                if limit is not None and len(cycles) >= limit:
                    return True
            elif successor not in on_path and len(path) < max_depth:
                path.append(successor)
                on_path.add(successor)
                done = visit(successor)
                on_path.discard(path.pop())
                if done:
                    return True
        return False

    visit(start)
    return cycles
