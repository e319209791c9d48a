"""
Vertical margins and confluence points.

Two passes over the final box tree:

- MarginAdjuster keeps a vertical gap of two clearance margins between a
  group's top and the lowest source above it whose edges enter the group.
  When the gap is too small, the group and every sibling at or below its top
  move down, and the enclosing containers grow to match.
- ConfluenceCalculator derives the shared Y at which several outgoing edges
  of one node branch apart, and the shared Y at which several incoming edges
  of one node join. These are rendering hints, not box positions.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from .boxes import BoxTree
from .config import LayoutConfig
from .edges import ClassifiedEdge, EdgeClassification
from .models import ConfluencePoint, group_node_id

logger = logging.getLogger(__name__)


class MarginAdjuster:
    """Enforces vertical clearance above groups entered from outside."""

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or LayoutConfig()

    def enforce(self, tree: BoxTree, classification: EdgeClassification) -> int:
        """
        Push groups down until entering edges have room to turn.

        Groups are handled deepest first, so growth of an inner group is
        already reflected when its parent is checked.

        Returns:
            Number of groups that were moved.
        """
        entering: Dict[str, List[ClassifiedEdge]] = defaultdict(list)
        for edge in classification.laid_out:
            for group_id in edge.entry_groups:
                entering[group_node_id(group_id)].append(edge)

        groups = [box for box in tree.groups() if not box.collapsed]
        groups.sort(key=lambda b: (-tree.depth(b.id), b.id))

        moved = 0
        for group in groups:
            sources = []
            for edge in entering.get(group.id, []):
                source = tree.get(edge.effective_source)
                if source is not None and source.center_y < group.y:
                    sources.append(source)
            if not sources:
                continue

            required_top = max(s.y2 for s in sources) + 2 * self.config.edge_clearance
            shortfall = required_top - group.y
            if shortfall <= 0:
                continue

            logger.debug("Pushing %s down by %g", group.id, shortfall)
            self.push_down(tree, group.id, shortfall)
            moved += 1

        return moved

    def push_down(self, tree: BoxTree, box_id: str, delta: float) -> None:
        """Move a box and every sibling at or below its top down by ``delta``."""
        box = tree.get(box_id)
        parent = tree.parent(box_id)
        original_top = box.y
        for sibling in tree.children(parent.id):
            if sibling.y >= original_top - 1e-9:
                tree.shift(sibling.id, 0, delta)
        self._grow_container(tree, parent.id)

    def _grow_container(self, tree: BoxTree, box_id: str) -> None:
        """Grow a container to fit its children, cascading upward."""
        box = tree.get(box_id)
        original_bottom = box.y2
        _, grow_h = tree.grow_to_fit(box_id)
        if grow_h <= 0 or box.parent_id is None:
            return

        for sibling in tree.children(box.parent_id):
            if sibling.id != box_id and sibling.y >= original_bottom - 1e-9:
                tree.shift(sibling.id, 0, grow_h)
        self._grow_container(tree, box.parent_id)


class ConfluenceCalculator:
    """Computes branch and join Y hints for shared endpoints."""

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or LayoutConfig()

    def calculate(
        self, tree: BoxTree, classification: EdgeClassification
    ) -> Dict[str, ConfluencePoint]:
        by_source: Dict[str, List[ClassifiedEdge]] = defaultdict(list)
        by_target: Dict[str, List[ClassifiedEdge]] = defaultdict(list)

        for edge in classification.laid_out:
            if edge.effective_source in tree and edge.effective_target in tree:
                by_source[edge.effective_source].append(edge)
                by_target[edge.effective_target].append(edge)

        margin = self.config.edge_clearance
        points: Dict[str, ConfluencePoint] = {}

        for source_id, edges in by_source.items():
            if len(edges) > 1:
                source = tree.get(source_id)
                points[source_id] = ConfluencePoint(
                    node_id=source_id, branch_y=source.y2 + margin
                )

        for target_id, edges in by_target.items():
            if len(edges) <= 1:
                continue
            target = tree.get(target_id)
            exit_y = max(self.effective_exit_y(tree, edge) for edge in edges)
            join_y = max(target.y - margin, exit_y + self.config.confluence_gap)
            join_y = min(join_y, target.y)

            point = points.setdefault(target_id, ConfluencePoint(node_id=target_id))
            point.join_y = join_y

        return points

    def effective_exit_y(self, tree: BoxTree, edge: ClassifiedEdge) -> float:
        """Y at which an edge has cleared every group it must leave."""
        source = tree.get(edge.effective_source)
        exit_y = source.y2
        for group_id in edge.exit_groups:
            group = tree.get(group_node_id(group_id))
            if group is not None and group.id != source.id:
                exit_y = max(exit_y, group.y2)
        return exit_y
