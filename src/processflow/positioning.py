"""
Position calculation for process graph layout.

This module handles the geometric calculations that sit around the layout
engine:
- Box dimension calculations for processes, collapsed groups and paddings
- The centering pass that re-centers each horizontal layer of siblings
- Port position calculations where edges cross group boundaries

The classes here never change a box's width or height; the centering pass
only moves boxes horizontally.
"""

from typing import Dict, List, Optional, Tuple

from .boxes import Box, BoxTree
from .config import LayoutConfig
from .edges import ClassifiedEdge, EdgeClassification
from .layout import Padding
from .models import Group, GroupPorts, Port, Process, group_node_id


class NodeSizer:
    """
    Calculates box sizes and paddings.

    Attributes:
        config: Geometric constants.
        policy: ``"label"`` to size process boxes by label length with a
            floor, ``"fixed"`` for a constant width.
    """

    def __init__(self, config: Optional[LayoutConfig] = None, policy: str = "label"):
        self.config = config or LayoutConfig()
        self.policy = policy

    def label_width(self, label: str) -> float:
        """Width needed for a label, floored at the minimum node width."""
        text_width = len(label) * self.config.char_width
        return max(self.config.min_node_width, text_width + self.config.label_padding)

    def process_size(self, process: Process) -> Tuple[float, float]:
        if self.policy == "fixed":
            return self.config.min_node_width, self.config.node_height
        return self.label_width(process.short_name), self.config.node_height

    def collapsed_group_size(self, group: Group) -> Tuple[float, float]:
        return self.label_width(group.label), self.config.collapsed_group_height

    def group_padding(self, extra_right: float = 0) -> Padding:
        """Padding of an expanded group, with an optional wider right side."""
        pad = self.config.group_padding
        return Padding(
            top=self.config.group_header + pad,
            left=pad,
            bottom=pad,
            right=pad + extra_right,
        )

    def root_padding(self) -> Padding:
        pad = self.config.root_padding
        return Padding(top=pad, left=pad, bottom=pad, right=pad)


class CenteringPass:
    """
    Re-centers each layer of siblings inside its container.

    Containers are processed bottom-up (deepest groups first, root last).
    Within the root, every layer after the first is pulled toward the
    centroid of its upstream sources; everywhere else layers are centered
    on the container's content area.
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or LayoutConfig()

    def apply(self, tree: BoxTree, classification: EdgeClassification) -> None:
        """Center every container of the tree in place."""
        for container in tree.containers():
            self._center_container(tree, container, classification)

    def cluster_layers(self, boxes: List[Box]) -> List[List[Box]]:
        """
        Group boxes into horizontal layers.

        A box joins the current layer when its vertical range overlaps the
        layer's range within the configured tolerance.
        """
        tolerance = self.config.layer_tolerance
        layers: List[List[Box]] = []
        band_bottom = None

        for box in sorted(boxes, key=lambda b: (b.y, b.x)):
            if layers and box.y < band_bottom + tolerance:
                layers[-1].append(box)
                band_bottom = max(band_bottom, box.y2)
            else:
                layers.append([box])
                band_bottom = box.y2

        for layer in layers:
            layer.sort(key=lambda b: b.x)
        return layers

    def _center_container(
        self, tree: BoxTree, container: Box, classification: EdgeClassification
    ) -> None:
        children = tree.children(container.id)
        if not children:
            return

        area = tree.content_area(container.id)
        is_root = container.id == tree.root_id
        layers = self.cluster_layers(children)

        for layer_idx, layer in enumerate(layers):
            left = min(b.x for b in layer)
            right = max(b.x2 for b in layer)
            width = right - left

            target_center = area.center_x
            if is_root and layer_idx > 0:
                centroid = self._upstream_centroid(tree, layer, classification)
                if centroid is not None:
                    target_center = centroid

            new_left = target_center - width / 2
            if width >= area.width:
                new_left = area.x
            else:
                new_left = min(max(new_left, area.x), area.x2 - width)

            dx = new_left - left
            if abs(dx) < 1e-9:
                continue
            for box in layer:
                tree.shift(box.id, dx, 0)

    def _upstream_centroid(
        self, tree: BoxTree, layer: List[Box], classification: EdgeClassification
    ) -> Optional[float]:
        """Mean absolute center x of the sources feeding a root-level layer."""
        members = {box.id for box in layer}
        centers: List[float] = []

        for edge in classification.laid_out:
            source_stand_in, target_stand_in = edge.local_endpoints(0)
            if target_stand_in not in members or source_stand_in == target_stand_in:
                continue
            source = tree.get(edge.effective_source)
            if source is not None:
                centers.append(source.center_x)

        if not centers:
            return None
        return sum(centers) / len(centers)


class PortCalculator:
    """
    Calculates entry and exit ports of expanded groups.

    Entry ports sit on the top side of a group for edges arriving from
    outside; exit ports sit on the bottom side for edges leaving it. Ports
    on one side are spread evenly, ordered by the x of the far endpoint.
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or LayoutConfig()

    def calculate(
        self, tree: BoxTree, classification: EdgeClassification
    ) -> Dict[str, GroupPorts]:
        entering: Dict[str, List[Tuple[float, ClassifiedEdge]]] = {}
        leaving: Dict[str, List[Tuple[float, ClassifiedEdge]]] = {}

        for edge in classification.laid_out:
            source = tree.get(edge.effective_source)
            target = tree.get(edge.effective_target)
            if source is None or target is None:
                continue
            for group_id in edge.entry_groups:
                entering.setdefault(group_node_id(group_id), []).append(
                    (source.center_x, edge)
                )
            for group_id in edge.exit_groups:
                leaving.setdefault(group_node_id(group_id), []).append(
                    (target.center_x, edge)
                )

        ports: Dict[str, GroupPorts] = {}
        for box in tree.groups():
            if box.collapsed:
                continue
            group_ports = GroupPorts(group_id=box.id)
            incoming = sorted(entering.get(box.id, []), key=lambda t: (t[0], t[1].id))
            outgoing = sorted(leaving.get(box.id, []), key=lambda t: (t[0], t[1].id))
            for idx, (_, edge) in enumerate(incoming):
                x = self.calculate_port_x(box.x, box.width, idx, len(incoming))
                group_ports.entries.append(Port(edge.id, "top", x, box.y))
            for idx, (_, edge) in enumerate(outgoing):
                x = self.calculate_port_x(box.x, box.width, idx, len(outgoing))
                group_ports.exits.append(Port(edge.id, "bottom", x, box.y2))
            ports[box.id] = group_ports

        return ports

    def calculate_port_x(
        self, box_x: float, box_width: float, port_idx: int, port_count: int
    ) -> float:
        """
        Calculate x position for a port on a box side.

        Args:
            box_x: X position of the box.
            box_width: Width of the box.
            port_idx: Index of this port (0-based).
            port_count: Total number of ports.

        Returns:
            X coordinate for the port.
        """
        if port_count == 1:
            # Single port: center of box
            return box_x + box_width / 2
        # Multiple ports: distribute evenly, away from the corners
        inset = min(self.config.edge_clearance, box_width / 4)
        usable_width = box_width - 2 * inset
        spacing = usable_width / (port_count + 1)
        return box_x + inset + spacing * (port_idx + 1)
