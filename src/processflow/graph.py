"""
Dependency graph module for process graphs.

Provides the upstream/downstream relation as a networkx graph together with
cycle detection, level (depth) computation and status statistics.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import networkx as nx

from .models import Process, ProcessStatus


class CycleDetectedError(Exception):
    """Raised when upstream references form a cycle."""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        super().__init__(
            "Cycle detected in process dependencies: " + " -> ".join(cycle)
        )


class DependencyGraph:
    """
    Directed graph of upstream -> downstream process relations.

    Upstream names that do not belong to a known process are kept as plain
    nodes so levels and cycles can still be computed around them.
    """

    def __init__(self, processes: Iterable[Process]):
        self.processes: Dict[str, Process] = {}
        self.graph: nx.DiGraph = nx.DiGraph()

        for process in processes:
            self.processes[process.name] = process
            self.graph.add_node(process.name)

        for process in self.processes.values():
            for upstream in process.upstream_processes:
                self.graph.add_edge(upstream, process.name)

    def get_predecessors(self, name: str) -> List[str]:
        """Upstream names of a process, in declaration order."""
        process = self.processes.get(name)
        if process is None:
            return []
        return list(process.upstream_processes)

    def get_successors(self, name: str) -> List[str]:
        """Names of the processes that depend on ``name``."""
        if name not in self.graph:
            return []
        return list(self.graph.successors(name))

    def has_cycle(self) -> bool:
        """Check if the upstream relation contains a cycle."""
        return not nx.is_directed_acyclic_graph(self.graph)

    def find_cycle(self) -> Optional[List[str]]:
        """
        Return one cycle as a closed list of names, or None.

        The first name is repeated at the end, e.g. ``["a", "b", "a"]``.
        """
        try:
            cycle_edges = nx.find_cycle(self.graph)
        except nx.NetworkXNoCycle:
            return None
        path = [source for source, _ in cycle_edges]
        path.append(cycle_edges[0][0])
        return path

    def find_feedback_edges(self) -> List[Tuple[str, str]]:
        """
        Find edges that need to be reversed to make the graph acyclic.
        Uses DFS to find back edges.
        """
        visited = set()
        rec_stack = set()
        feedback_edges = []

        def dfs(node):
            visited.add(node)
            rec_stack.add(node)

            for neighbor in self.graph.successors(node):
                if neighbor not in visited:
                    dfs(neighbor)
                elif neighbor in rec_stack:
                    feedback_edges.append((node, neighbor))

            rec_stack.remove(node)

        for node in self.graph.nodes():
            if node not in visited:
                dfs(node)

        return feedback_edges

    def calculate_levels(self) -> Dict[str, int]:
        """
        Compute the longest-path depth of every process.

        Processes without upstreams (and unknown upstream names) sit on level
        0; every other process sits one level below its deepest upstream.
        Uses an explicit stack so deep chains do not hit the recursion limit.

        Returns:
            Mapping of process name to level.

        Raises:
            CycleDetectedError: If the upstream relation contains a cycle.
        """
        levels: Dict[str, int] = {}
        in_progress: Dict[str, int] = {}

        for start in self.processes:
            if start in levels:
                continue

            stack: List[Tuple[str, int]] = [(start, 0)]
            path: List[str] = []

            while stack:
                name, next_index = stack[-1]
                if next_index == 0:
                    in_progress[name] = len(path)
                    path.append(name)

                upstreams = self.get_predecessors(name)
                if next_index < len(upstreams):
                    stack[-1] = (name, next_index + 1)
                    upstream = upstreams[next_index]
                    if upstream in levels:
                        continue
                    if upstream in in_progress:
                        cycle = path[in_progress[upstream]:] + [upstream]
                        raise CycleDetectedError(cycle)
                    stack.append((upstream, 0))
                    continue

                stack.pop()
                path.pop()
                del in_progress[name]
                levels[name] = max(
                    (levels[u] + 1 for u in upstreams), default=0
                )

        return {name: levels[name] for name in self.processes}


@dataclass
class ProcessStats:
    """Process counts per status."""

    total: int = 0
    counts: Dict[ProcessStatus, int] = field(default_factory=dict)

    def count(self, status: ProcessStatus) -> int:
        return self.counts.get(status, 0)

    def as_dict(self) -> Dict[str, int]:
        """Flat mapping with lowercase status keys plus ``total``."""
        result = {"total": self.total}
        for status in ProcessStatus:
            result[status.value.lower()] = self.count(status)
        return result


def process_stats(processes: Iterable[Process]) -> ProcessStats:
    """
    Count processes per status.

    Args:
        processes: Process records

    Returns:
        ProcessStats with a total and one count per status
    """
    counter: Counter = Counter()
    total = 0
    for process in processes:
        counter[process.status] += 1
        total += 1
    return ProcessStats(total=total, counts=dict(counter))
