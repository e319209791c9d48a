"""
Edge classification for grouped process graphs.

For every upstream -> downstream relation this module resolves the effective
endpoints (substituting collapsed groups), drops edges that collapse into a
self-loop, and decides at which nesting level the edge is laid out: the
innermost group that contains both original endpoints, or the root.
"""

import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Dict, Iterable, List, Optional, Tuple

from .groups import GroupHierarchy
from .models import Process, ProcessStatus, dominant_status, group_node_id

logger = logging.getLogger(__name__)


@dataclass
class ClassifiedEdge:
    """
    An upstream -> downstream relation after classification.

    Attributes:
        id: ``"<effective source>-><effective target>"``.
        source: Original upstream process name.
        target: Original downstream process name.
        effective_source: Node id the edge starts at after collapsing.
        effective_target: Node id the edge ends at after collapsing.
        level: Id of the group the edge is laid out in, None for the root.
        source_chain: Groups enclosing the source, outermost first.
        target_chain: Groups enclosing the target, outermost first.
        source_status: Status of the upstream (NOTSTARTED if unknown).
        target_status: Status of the downstream process.

    When collapsing folds several relations into one id, the statuses are
    those of highest STATUS_PRECEDENCE among the folded relations.
        dangling: True if the upstream is not a known process.
    """

    id: str
    source: str
    target: str
    effective_source: str
    effective_target: str
    level: Optional[str]
    source_chain: Tuple[str, ...] = ()
    target_chain: Tuple[str, ...] = ()
    source_status: ProcessStatus = ProcessStatus.NOTSTARTED
    target_status: ProcessStatus = ProcessStatus.NOTSTARTED
    dangling: bool = False

    @property
    def level_depth(self) -> int:
        return len(self.level.split(".")) if self.level else 0

    @property
    def exit_groups(self) -> List[str]:
        """Groups the edge leaves: they contain the source but not the target."""
        return [g for g in self.source_chain if g not in self.target_chain]

    @property
    def entry_groups(self) -> List[str]:
        """Groups the edge enters: they contain the target but not the source."""
        return [g for g in self.target_chain if g not in self.source_chain]

    @property
    def container_ids(self) -> List[str]:
        """Node ids of every group containing either endpoint."""
        ids = {group_node_id(g) for g in self.source_chain}
        ids.update(group_node_id(g) for g in self.target_chain)
        return sorted(ids)

    def local_endpoints(self, depth: Optional[int] = None) -> Tuple[str, str]:
        """
        The direct children of a nesting level that stand in for the endpoints.

        Args:
            depth: Nesting depth of the level (0 for the root). Defaults to
                the edge's own level.
        """
        if depth is None:
            depth = self.level_depth
        return (
            self._stand_in(self.source_chain, self.effective_source, depth),
            self._stand_in(self.target_chain, self.effective_target, depth),
        )

    @staticmethod
    def _stand_in(chain: Tuple[str, ...], effective: str, depth: int) -> str:
        if len(chain) > depth:
            return group_node_id(chain[depth])
        return effective


@dataclass
class EdgeClassification:
    """
    Result of classifying every relation of a process list.

    Attributes:
        edges: Retained edges with unique ids, in input order.
        hidden: Per collapsed group node id, the internal edges dropped.
        dangling: ``(upstream, process)`` pairs whose upstream is unknown.
    """

    edges: List[ClassifiedEdge] = field(default_factory=list)
    hidden: Dict[str, int] = field(default_factory=dict)
    dangling: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def laid_out(self) -> List[ClassifiedEdge]:
        """Edges between known nodes, which take part in geometry passes."""
        return [edge for edge in self.edges if not edge.dangling]

    def edges_at_level(self, level: Optional[str]) -> List[ClassifiedEdge]:
        return [edge for edge in self.laid_out if edge.level == level]


class EdgeClassifier:
    """
    Classifies upstream relations against a group hierarchy.

    Attributes:
        hierarchy: The group hierarchy of the process list.
        collapsed: Ids of the groups rendered as single boxes.
    """

    def __init__(
        self, hierarchy: GroupHierarchy, collapsed: AbstractSet[str] = frozenset()
    ):
        self.hierarchy = hierarchy
        self.collapsed = frozenset(collapsed)

    def effective_endpoint(self, name: str, chain: Iterable[str]) -> str:
        """
        The node id an endpoint is drawn at.

        The outermost collapsed ancestor wins, since every group inside it
        is hidden as well.
        """
        collapsed_id = self.hierarchy.outermost_collapsed(list(chain), self.collapsed)
        if collapsed_id is not None:
            return group_node_id(collapsed_id)
        return name

    def common_level(
        self, source_chain: Iterable[str], target_chain: Iterable[str]
    ) -> Optional[str]:
        """Innermost group id enclosing both chains, or None for the root."""
        level = None
        for source_group, target_group in zip(source_chain, target_chain):
            if source_group != target_group:
                break
            level = source_group
        return level

    def classify(self, processes: List[Process]) -> EdgeClassification:
        """
        Classify every ``(upstream, process)`` pair.

        Args:
            processes: Process records.

        Returns:
            EdgeClassification with retained edges, hidden counts and
            dangling references.
        """
        status_by_name = {p.name: p.status for p in processes}
        result = EdgeClassification()
        seen: Dict[str, ClassifiedEdge] = {}

        for process in processes:
            target_chain = tuple(self.hierarchy.chain_for_name(process.name))
            effective_target = self.effective_endpoint(process.name, target_chain)

            for upstream in process.upstream_processes:
                dangling = upstream not in status_by_name
                if dangling:
                    result.dangling.append((upstream, process.name))
                    logger.warning(
                        "Process '%s' references unknown upstream '%s'",
                        process.name,
                        upstream,
                    )

                source_chain = tuple(self.hierarchy.chain_for_name(upstream))
                effective_source = self.effective_endpoint(upstream, source_chain)

                if effective_source == effective_target:
                    if effective_source != upstream:
                        result.hidden[effective_source] = (
                            result.hidden.get(effective_source, 0) + 1
                        )
                    continue

                source_status = status_by_name.get(upstream, ProcessStatus.NOTSTARTED)
                edge_id = f"{effective_source}->{effective_target}"
                merged = seen.get(edge_id)
                if merged is not None:
                    merged.source_status = dominant_status(
                        merged.source_status, source_status
                    )
                    merged.target_status = dominant_status(
                        merged.target_status, process.status
                    )
                    continue

                seen[edge_id] = ClassifiedEdge(
                    id=edge_id,
                    source=upstream,
                    target=process.name,
                    effective_source=effective_source,
                    effective_target=effective_target,
                    level=self.common_level(source_chain, target_chain),
                    source_chain=source_chain,
                    target_chain=target_chain,
                    source_status=source_status,
                    target_status=process.status,
                    dangling=dangling,
                )
                result.edges.append(seen[edge_id])

        return result
