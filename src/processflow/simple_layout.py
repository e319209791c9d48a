"""
Synchronous fallback layout.

Places processes by dependency level without a layout engine. Ungrouped
processes form left-aligned rows, one row per level. Top-level groups follow
to the right, side by side. Inside a group the nested groups form one row at
the top and the group's own processes follow below, one centered row per
level the group actually uses.
"""

import logging
from typing import AbstractSet, Dict, List, Optional, Tuple

from .boxes import BoxTree
from .config import LayoutConfig
from .graph import DependencyGraph
from .groups import GroupHierarchy
from .layout import LayoutNode, Padding
from .models import ROOT_BOX_ID, Group, Process
from .positioning import NodeSizer

logger = logging.getLogger(__name__)


class SimpleLayout:
    """
    Level-based layout that needs no layout engine.

    Attributes:
        sizer: Box and padding sizes.
        config: Geometric constants.
    """

    def __init__(
        self, sizer: Optional[NodeSizer] = None, config: Optional[LayoutConfig] = None
    ):
        self.config = config or LayoutConfig()
        self.sizer = sizer or NodeSizer(self.config)

    def layout(
        self,
        processes: List[Process],
        hierarchy: GroupHierarchy,
        collapsed: AbstractSet[str] = frozenset(),
    ) -> BoxTree:
        """
        Lay out processes and groups by level.

        Raises:
            CycleDetectedError: If the upstream relation contains a cycle.
        """
        levels = DependencyGraph(processes).calculate_levels()
        process_map = {p.name: p for p in processes}
        spacing = self.config.node_spacing
        row_step = self.config.node_height + self.config.group_layer_spacing

        root_padding = self.sizer.root_padding()
        root = LayoutNode(id=ROOT_BOX_ID)
        paddings: Dict[str, Padding] = {}

        rows: Dict[int, List[str]] = {}
        for process in processes:
            if process.group_id is None:
                rows.setdefault(levels[process.name], []).append(process.name)

        rows_width = 0.0
        for level, names in sorted(rows.items()):
            x = root_padding.left
            for name in names:
                width, height = self.sizer.process_size(process_map[name])
                root.children.append(
                    LayoutNode(
                        id=name,
                        width=width,
                        height=height,
                        x=x,
                        y=root_padding.top + level * row_step,
                        layer=level,
                    )
                )
                x += width + spacing
            rows_width = max(rows_width, x - spacing - root_padding.left)

        current_x = root_padding.left
        if rows:
            current_x += rows_width + spacing

        for group_id in hierarchy.top_level_ids():
            node = self._layout_group(
                hierarchy.groups[group_id],
                hierarchy,
                levels,
                process_map,
                collapsed,
                paddings,
            )
            node.x = current_x
            node.y = root_padding.top
            root.children.append(node)
            current_x += node.width + spacing

        content_right = max((c.x + c.width for c in root.children), default=0)
        content_bottom = max((c.y + c.height for c in root.children), default=0)
        root.width = content_right + root_padding.right
        root.height = content_bottom + root_padding.bottom

        group_flags = {
            group.node_id: group.id in collapsed
            for group in hierarchy
            if not hierarchy.is_hidden(group.id, collapsed)
        }
        logger.debug("Simple layout placed %d top-level boxes", len(root.children))
        return BoxTree.from_layout(root, group_flags, root_padding, paddings)

    def _layout_group(
        self,
        group: Group,
        hierarchy: GroupHierarchy,
        levels: Dict[str, int],
        process_map: Dict[str, Process],
        collapsed: AbstractSet[str],
        paddings: Dict[str, Padding],
    ) -> LayoutNode:
        if group.id in collapsed:
            width, height = self.sizer.collapsed_group_size(group)
            return LayoutNode(id=group.node_id, width=width, height=height)

        spacing = self.config.node_spacing
        layer_gap = self.config.group_layer_spacing
        padding = self.sizer.group_padding()
        paddings[group.node_id] = padding
        node = LayoutNode(id=group.node_id)

        children_width = 0.0
        children_height = 0.0
        child_x = padding.left
        for child_id in sorted(group.child_group_ids):
            child = self._layout_group(
                hierarchy.groups[child_id],
                hierarchy,
                levels,
                process_map,
                collapsed,
                paddings,
            )
            child.x = child_x
            child.y = padding.top
            node.children.append(child)
            child_x += child.width + spacing
            children_width = child_x - spacing - padding.left
            children_height = max(children_height, child.height)

        rows: Dict[int, List[Tuple[str, float, float]]] = {}
        for name in sorted(group.direct_process_names):
            width, height = self.sizer.process_size(process_map[name])
            rows.setdefault(levels[name], []).append((name, width, height))

        row_widths = [
            sum(w for _, w, _ in row) + spacing * (len(row) - 1)
            for _, row in sorted(rows.items())
        ]
        processes_width = max(row_widths, default=0)
        processes_height = 0.0
        if rows:
            processes_height = (
                len(rows) * self.config.node_height + (len(rows) - 1) * layer_gap
            )

        gap = layer_gap if children_height > 0 and rows else 0
        content_width = max(children_width, processes_width)
        content_height = children_height + gap + processes_height

        node.width = max(
            content_width + padding.horizontal, self.config.min_group_width
        )
        node.height = max(
            content_height + padding.vertical, self.config.min_group_height
        )

        inner_width = node.width - padding.horizontal
        row_top = padding.top + children_height + gap
        for row_idx, ((level, row), row_width) in enumerate(
            zip(sorted(rows.items()), row_widths)
        ):
            x = padding.left + (inner_width - row_width) / 2
            y = row_top + row_idx * (self.config.node_height + layer_gap)
            for name, width, height in row:
                node.children.append(
                    LayoutNode(
                        id=name, width=width, height=height, x=x, y=y, layer=level
                    )
                )
                x += width + spacing

        return node
