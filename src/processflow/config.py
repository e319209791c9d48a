"""
Layout configuration for process graphs.

All geometric constants used by the layout pipeline live on LayoutConfig so a
caller can tune spacing without touching the passes themselves. Values are in
pixels of the rendering surface.

Classes:
    LayoutConfig: Geometric constants for sizing, spacing and margins.
"""

from dataclasses import dataclass, fields

ALGORITHMS = ("layered", "simple")
DIRECTIONS = ("DOWN", "RIGHT")
SIZING_POLICIES = ("label", "fixed")


@dataclass
class LayoutConfig:
    """
    Geometric constants for the layout pipeline.

    Attributes:
        min_node_width: Minimum (and, for fixed sizing, exact) process box width.
        node_height: Height of every process box.
        char_width: Estimated label character width used for label sizing.
        label_padding: Extra width added around a label.
        group_padding: Padding inside a group on the left, right and bottom.
        group_header: Extra top padding reserved for the group title.
        root_padding: Padding around the whole diagram.
        min_group_width: Minimum width of an expanded group box.
        min_group_height: Minimum height of an expanded group box.
        collapsed_group_height: Height of a collapsed group box.
        node_spacing: Horizontal spacing between root-level boxes.
        layer_spacing: Vertical spacing between root-level layers.
        group_node_spacing: Horizontal spacing between boxes inside a group.
        group_layer_spacing: Vertical spacing between layers inside a group.
        edge_clearance: Clearance margin kept between edges and boxes.
        confluence_gap: Gap between the last group exit and a join point.
        layer_tolerance: Vertical slack when clustering boxes into layers.
    """

    min_node_width: float = 180
    node_height: float = 80
    char_width: float = 8
    label_padding: float = 70
    group_padding: float = 40
    group_header: float = 40
    root_padding: float = 20
    min_group_width: float = 250
    min_group_height: float = 160
    collapsed_group_height: float = 80
    node_spacing: float = 50
    layer_spacing: float = 80
    group_node_spacing: float = 40
    group_layer_spacing: float = 60
    edge_clearance: float = 25
    confluence_gap: float = 10
    layer_tolerance: float = 10

    def validate(self) -> None:
        """
        Check that every value is usable.

        Raises:
            ValueError: If a size is not positive or a spacing is negative.
        """
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ValueError(f"{f.name} must be a number, got {value!r}")
            if value < 0:
                raise ValueError(f"{f.name} must not be negative, got {value}")

        for name in ("min_node_width", "node_height", "char_width"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
