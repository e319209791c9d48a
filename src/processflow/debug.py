"""
Debug utilities for processflow.

Tools for understanding and troubleshooting a layout result.

Key Components:
- BoxTreeInspector: Geometric sanity checks over a box tree
- diff_flow_graphs: Compare two FlowGraph results node by node

Usage:
    >>> from processflow.debug import diff_flow_graphs
    >>> before = generator.generate(processes)
    >>> after = generator.generate(processes, collapsed={"b"})
    >>> print(diff_flow_graphs(before, after))
"""

from typing import Dict, List, Tuple

from .boxes import BoxTree
from .models import FlowGraph


class BoxTreeInspector:
    """
    Utilities for inspecting box tree state.

    Provides checks that every box sits inside its parent and that no two
    siblings overlap, plus an indented outline for printing.
    """

    def __init__(self, tree: BoxTree, tolerance: float = 1e-6):
        """
        Initialize the inspector.

        Args:
            tree: The box tree to inspect
            tolerance: Slack allowed in containment comparisons
        """
        self._tree = tree
        self._tolerance = tolerance

    def outline(self) -> str:
        return "\n".join(self._tree.describe())

    def find_containment_violations(self) -> List[Tuple[str, str]]:
        """
        Find boxes that stick out of their parent.

        The root is skipped as a parent, since the canvas grows freely.

        Returns:
            List of (parent_id, child_id) pairs
        """
        violations = []
        for box in self._tree.walk():
            parent = self._tree.parent(box.id)
            if parent is None or parent.id == self._tree.root_id:
                continue
            if not parent.bounds.contains(box.bounds, self._tolerance):
                violations.append((parent.id, box.id))
        return violations

    def find_sibling_overlaps(self) -> List[Tuple[str, str]]:
        """
        Find pairs of siblings whose boxes overlap.

        Returns:
            List of (first_id, second_id) pairs, in child order
        """
        overlaps = []
        containers = [self._tree.root] + self._tree.groups()
        for container in containers:
            children = self._tree.children(container.id)
            for i, first in enumerate(children):
                for second in children[i + 1:]:
                    if first.bounds.intersects(second.bounds):
                        overlaps.append((first.id, second.id))
        return overlaps

    def is_consistent(self) -> bool:
        return not self.find_containment_violations() and not self.find_sibling_overlaps()


def diff_flow_graphs(expected: FlowGraph, actual: FlowGraph) -> str:
    """
    Generate a readable diff between two layout results.

    Compares node presence, absolute positions, group sizes and edge ids.

    Args:
        expected: The reference result
        actual: The result to compare against it

    Returns:
        A formatted string listing every difference
    """
    output: List[str] = ["=" * 60, "FLOW GRAPH DIFF", "=" * 60]

    exp_pos = expected.absolute_positions()
    act_pos = actual.absolute_positions()
    exp_nodes = {n.id: n for n in expected.nodes}
    act_nodes = {n.id: n for n in actual.nodes}

    differences: List[str] = []

    for node_id in sorted(set(exp_nodes) - set(act_nodes)):
        differences.append(f"- node {node_id}")
    for node_id in sorted(set(act_nodes) - set(exp_nodes)):
        differences.append(f"+ node {node_id}")

    for node_id in sorted(set(exp_nodes) & set(act_nodes)):
        if exp_pos[node_id] != act_pos[node_id]:
            differences.append(
                f"~ node {node_id} moved {exp_pos[node_id]} -> {act_pos[node_id]}"
            )
        exp_size = (exp_nodes[node_id].width, exp_nodes[node_id].height)
        act_size = (act_nodes[node_id].width, act_nodes[node_id].height)
        if exp_size != act_size:
            differences.append(f"~ node {node_id} resized {exp_size} -> {act_size}")

    exp_edges: Dict[str, str] = {e.id: e.style for e in expected.edges}
    act_edges: Dict[str, str] = {e.id: e.style for e in actual.edges}
    for edge_id in sorted(set(exp_edges) - set(act_edges)):
        differences.append(f"- edge {edge_id}")
    for edge_id in sorted(set(act_edges) - set(exp_edges)):
        differences.append(f"+ edge {edge_id}")

    if not differences:
        output.append("No differences found.")
    else:
        output.append(f"Found {len(differences)} difference(s)")
        output.append("")
        output.extend(differences)

    return "\n".join(output)
