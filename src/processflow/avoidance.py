"""
Avoidance-space analysis for routed edges.

After a composition pass, every edge is checked against the group boxes that
lie between its endpoints. An edge whose straight corridor crosses a group
that contains neither endpoint has to detour around it, and the detour
always deflects to the right. When that detour would leave the innermost
group containing both endpoints, the group needs extra right padding and the
composition is run again.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .boxes import Box, BoxTree
from .config import LayoutConfig
from .edges import ClassifiedEdge, EdgeClassification
from .models import BoxBounds, group_node_id


@dataclass
class AvoidanceRequirement:
    """
    One edge that needs a wider container.

    Attributes:
        edge_id: Id of the obstructed edge.
        group_id: Id of the group that must widen.
        amount: Extra right padding needed.
        obstacles: Node ids of the groups in the way.
    """

    edge_id: str
    group_id: str
    amount: float
    obstacles: List[str] = field(default_factory=list)


class AvoidanceAnalyzer:
    """
    Detects edges whose detour would violate a group boundary.

    Attributes:
        config: Geometric constants; ``edge_clearance`` is the margin kept
            around corridors, obstacles and boundaries.
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or LayoutConfig()

    def analyze(
        self, tree: BoxTree, classification: EdgeClassification
    ) -> Dict[str, float]:
        """
        Compute the extra right padding every group needs.

        Returns:
            Mapping of group id to the largest extra padding required by any
            of its edges. Empty when no group needs widening.
        """
        required: Dict[str, float] = {}
        for requirement in self.requirements(tree, classification):
            current = required.get(requirement.group_id, 0.0)
            required[requirement.group_id] = max(current, requirement.amount)
        return required

    def requirements(
        self, tree: BoxTree, classification: EdgeClassification
    ) -> List[AvoidanceRequirement]:
        """Every edge whose right-hand detour leaves its container."""
        group_boxes = [box for box in tree.groups()]
        result: List[AvoidanceRequirement] = []

        for edge in classification.laid_out:
            requirement = self._check_edge(tree, edge, group_boxes)
            if requirement is not None:
                result.append(requirement)

        return result

    def corridor(self, source: BoxBounds, target: BoxBounds) -> Optional[BoxBounds]:
        """
        The rectangle a straight connection between two boxes sweeps.

        For boxes stacked vertically this is the gap between them, as wide
        as the span of their centers plus clearance. For boxes side by side
        it is the horizontal gap over their shared vertical range. Returns
        None when the boxes touch or overlap.
        """
        clearance = self.config.edge_clearance

        if target.y >= source.y2 or source.y >= target.y2:
            upper, lower = (source, target) if target.y >= source.y2 else (target, source)
            left = min(upper.center_x, lower.center_x) - clearance
            right = max(upper.center_x, lower.center_x) + clearance
            height = lower.y - upper.y2
            if height <= 0:
                return None
            return BoxBounds(left, upper.y2, right - left, height)

        first, second = (source, target) if source.x <= target.x else (target, source)
        top = max(first.y, second.y)
        bottom = min(first.y2, second.y2)
        width = second.x - first.x2
        if width <= 0 or bottom <= top:
            return None
        return BoxBounds(first.x2, top, width, bottom - top)

    def _check_edge(
        self, tree: BoxTree, edge: ClassifiedEdge, group_boxes: List[Box]
    ) -> Optional[AvoidanceRequirement]:
        source = tree.get(edge.effective_source)
        target = tree.get(edge.effective_target)
        if source is None or target is None:
            return None

        corridor = self.corridor(source.bounds, target.bounds)
        if corridor is None:
            return None

        excluded = set(edge.container_ids)
        excluded.update((source.id, target.id))
        obstacles = [
            box
            for box in group_boxes
            if box.id not in excluded and corridor.intersects(box.bounds)
        ]
        if not obstacles or edge.level is None:
            return None

        container = tree.get(group_node_id(edge.level))
        if container is None or container.collapsed:
            return None

        clearance = self.config.edge_clearance
        deflection_x = max(box.x2 for box in obstacles) + clearance
        limit = container.x2 - clearance
        amount = deflection_x - limit
        if amount <= 0:
            return None

        return AvoidanceRequirement(
            edge_id=edge.id,
            group_id=edge.level,
            amount=amount,
            obstacles=[box.id for box in obstacles],
        )
