"""
Bottom-up composition of grouped process graphs.

Every expanded group is laid out on its own, innermost first, with its
nested groups treated as opaque boxes of their already-known size. The root
is then laid out the same way over ungrouped processes and top-level groups.
Finally the per-level layouts are stitched into one nested tree and
materialized into absolute boxes.
"""

import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Dict, List, Optional, Tuple

from .boxes import BoxTree
from .config import LayoutConfig
from .edges import EdgeClassification
from .groups import GroupHierarchy
from .layout import (
    LayoutEdge,
    LayoutEngine,
    LayoutError,
    LayoutNode,
    LayoutOptions,
    NetworkXLayout,
    Padding,
)
from .models import ROOT_BOX_ID, Group, Process
from .positioning import NodeSizer

logger = logging.getLogger(__name__)


@dataclass
class Composition:
    """
    Result of one composition pass.

    Attributes:
        tree: Absolute box tree.
        group_sizes: Width/height of every expanded group, by group id.
        paddings: Content padding of every expanded group, by node id.
    """

    tree: BoxTree
    group_sizes: Dict[str, Tuple[float, float]] = field(default_factory=dict)
    paddings: Dict[str, Padding] = field(default_factory=dict)


class Composer:
    """
    Composes the layout bottom-up through the group hierarchy.

    Attributes:
        engine: Layout engine used for every level.
        sizer: Box and padding sizes.
        config: Geometric constants.
        direction: Layer direction handed to the engine.
    """

    def __init__(
        self,
        engine: Optional[LayoutEngine] = None,
        sizer: Optional[NodeSizer] = None,
        config: Optional[LayoutConfig] = None,
        direction: str = "DOWN",
    ):
        self.config = config or LayoutConfig()
        self.engine = engine or NetworkXLayout()
        self.sizer = sizer or NodeSizer(self.config)
        self.direction = direction

    def compose(
        self,
        processes: List[Process],
        hierarchy: GroupHierarchy,
        classification: EdgeClassification,
        collapsed: AbstractSet[str] = frozenset(),
        extra_padding: Optional[Dict[str, float]] = None,
    ) -> Composition:
        """
        Run one full composition pass.

        Args:
            processes: Process records.
            hierarchy: Group hierarchy of the records.
            classification: Classified edges.
            collapsed: Ids of collapsed groups.
            extra_padding: Extra right padding per group id.

        Returns:
            Composition with the absolute box tree.

        Raises:
            LayoutError: If the engine fails on any level.
        """
        extra_padding = extra_padding or {}
        process_map = {p.name: p for p in processes}
        local_layouts: Dict[str, LayoutNode] = {}
        composition = Composition(tree=BoxTree())

        for group in hierarchy.ordered_by_depth(deepest_first=True):
            if group.id in collapsed or hierarchy.is_hidden(group.id, collapsed):
                continue

            padding = self.sizer.group_padding(extra_padding.get(group.id, 0))
            graph = LayoutNode(
                id=group.node_id,
                children=self._child_nodes(
                    sorted(group.child_group_ids),
                    sorted(group.direct_process_names),
                    hierarchy,
                    process_map,
                    collapsed,
                    composition.group_sizes,
                ),
                edges=self._level_edges(classification, group.id),
                options=self.group_options(padding),
            )
            result = self._run_engine(graph)
            local_layouts[group.node_id] = result
            composition.group_sizes[group.id] = (result.width, result.height)
            composition.paddings[group.node_id] = padding
            logger.debug(
                "Composed group %s: %gx%g", group.id, result.width, result.height
            )

        root_padding = self.sizer.root_padding()
        root_graph = LayoutNode(
            id=ROOT_BOX_ID,
            children=self._child_nodes(
                hierarchy.top_level_ids(),
                sorted(p.name for p in processes if p.group_id is None),
                hierarchy,
                process_map,
                collapsed,
                composition.group_sizes,
            ),
            edges=self._level_edges(classification, None),
            options=self.root_options(root_padding),
        )
        root_result = self._run_engine(root_graph)

        self._stitch(root_result, local_layouts)
        group_ids = {
            group.node_id: group.id in collapsed
            for group in hierarchy
            if not hierarchy.is_hidden(group.id, collapsed)
        }
        composition.tree = BoxTree.from_layout(
            root_result, group_ids, root_padding, composition.paddings
        )
        return composition

    def group_options(self, padding: Padding) -> LayoutOptions:
        return LayoutOptions(
            algorithm="layered",
            direction=self.direction,
            node_spacing=self.config.group_node_spacing,
            layer_spacing=self.config.group_layer_spacing,
            padding=padding,
            min_width=self.config.min_group_width,
            min_height=self.config.min_group_height,
        )

    def root_options(self, padding: Padding) -> LayoutOptions:
        return LayoutOptions(
            algorithm="layered",
            direction=self.direction,
            node_spacing=self.config.node_spacing,
            layer_spacing=self.config.layer_spacing,
            padding=padding,
        )

    def _child_nodes(
        self,
        group_ids: List[str],
        process_names: List[str],
        hierarchy: GroupHierarchy,
        process_map: Dict[str, Process],
        collapsed: AbstractSet[str],
        group_sizes: Dict[str, Tuple[float, float]],
    ) -> List[LayoutNode]:
        """Opaque child boxes: nested groups first, then processes."""
        children: List[LayoutNode] = []

        for group_id in group_ids:
            group: Group = hierarchy.groups[group_id]
            if group_id in collapsed:
                width, height = self.sizer.collapsed_group_size(group)
            else:
                width, height = group_sizes[group_id]
            children.append(LayoutNode(id=group.node_id, width=width, height=height))

        for name in process_names:
            width, height = self.sizer.process_size(process_map[name])
            children.append(LayoutNode(id=name, width=width, height=height))

        return children

    def _level_edges(
        self, classification: EdgeClassification, level: Optional[str]
    ) -> List[LayoutEdge]:
        edges = []
        for edge in classification.edges_at_level(level):
            source, target = edge.local_endpoints()
            edges.append(LayoutEdge(id=edge.id, source=source, target=target))
        return edges

    def _run_engine(self, graph: LayoutNode) -> LayoutNode:
        try:
            result = self.engine.layout(graph)
        except LayoutError:
            raise
        except Exception as exc:
            raise LayoutError(f"Layout engine failed on '{graph.id}': {exc}") from exc
        if result is None:
            raise LayoutError(f"Layout engine returned nothing for '{graph.id}'")
        return result

    def _stitch(self, node: LayoutNode, local_layouts: Dict[str, LayoutNode]) -> None:
        """Replace opaque group boxes with their own laid-out children."""
        for child in node.children:
            local = local_layouts.get(child.id)
            if local is not None:
                child.children = local.children
                child.edges = local.edges
                self._stitch(child, local_layouts)
