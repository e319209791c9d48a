"""
Data models for process graph layout.

This module contains the dataclasses shared by every stage of the pipeline:
the process records supplied by the caller, the synthesized groups, absolute
bounding boxes, and the node/edge model handed to the rendering side.

Classes:
    ProcessStatus: The six run states a process can be in.
    Process: One named, dependency-linked process record.
    Group: A container derived from shared dotted-name prefixes.
    BoxBounds: An absolute axis-aligned rectangle.
    Port: A point where an edge crosses a group boundary.
    GroupPorts: Entry and exit ports of one group.
    ConfluencePoint: Shared branch/join Y hints for one node.
    FlowNode: One emitted node (process or group).
    FlowEdge: One emitted edge.
    FlowGraph: The complete layout result.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

GROUP_PREFIX = "group-"
ROOT_GROUP = "root"
ROOT_BOX_ID = "__root__"


class ProcessStatus(str, Enum):
    """Run state of a process."""

    NOTSTARTED = "NOTSTARTED"
    SKIPPED = "SKIPPED"
    INPROGRESS = "INPROGRESS"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    ROLLBACKED = "ROLLBACKED"


STATUS_COLORS: Dict[ProcessStatus, str] = {
    ProcessStatus.SUCCESS: "#10b981",
    ProcessStatus.SKIPPED: "#64748b",
    ProcessStatus.FAILED: "#ef4444",
    ProcessStatus.INPROGRESS: "#3b82f6",
    ProcessStatus.NOTSTARTED: "#f59e0b",
    ProcessStatus.ROLLBACKED: "#8b5cf6",
}


# Most urgent first; decides the status shown by an edge that stands for
# several relations merged by collapsing.
STATUS_PRECEDENCE: Tuple[ProcessStatus, ...] = (
    ProcessStatus.INPROGRESS,
    ProcessStatus.FAILED,
    ProcessStatus.ROLLBACKED,
    ProcessStatus.NOTSTARTED,
    ProcessStatus.SKIPPED,
    ProcessStatus.SUCCESS,
)


def dominant_status(first: ProcessStatus, second: ProcessStatus) -> ProcessStatus:
    """Return whichever of two statuses comes first in STATUS_PRECEDENCE."""
    if STATUS_PRECEDENCE.index(second) < STATUS_PRECEDENCE.index(first):
        return second
    return first


def group_node_id(group_id: str) -> str:
    """Return the node id used for a group box."""
    return f"{GROUP_PREFIX}{group_id}"


def extract_group(name: str) -> str:
    """Return the group id a process name belongs to, or "root"."""
    parts = name.split(".")
    if len(parts) > 1:
        return ".".join(parts[:-1])
    return ROOT_GROUP


@dataclass(frozen=True)
class Process:
    """
    A process record supplied by the caller.

    Group membership is derived from the dot segments of the name; a process
    named ``a.b.c`` lives in group ``a.b``, which is nested in group ``a``.

    Attributes:
        name: Unique dot-segmented identifier.
        kind: Free-form process kind.
        status: Current run status.
        upstream_processes: Names of the processes this one depends on.
        last_run_error_message: Error text of the last failed run, if any.
    """

    name: str
    kind: str = ""
    status: ProcessStatus = ProcessStatus.NOTSTARTED
    upstream_processes: Tuple[str, ...] = ()
    last_run_error_message: Optional[str] = None

    @property
    def segments(self) -> List[str]:
        return self.name.split(".")

    @property
    def short_name(self) -> str:
        return self.segments[-1]

    @property
    def group_id(self) -> Optional[str]:
        """Id of the immediate group, or None for ungrouped processes."""
        parts = self.segments
        if len(parts) > 1:
            return ".".join(parts[:-1])
        return None


@dataclass
class Group:
    """
    A group synthesized from dotted process names.

    Attributes:
        id: Dot-joined path, e.g. ``"a.b"``.
        path: Path segments, e.g. ``["a", "b"]``.
        parent_id: Id of the enclosing group, None for top-level groups.
        child_group_ids: Ids of the directly nested groups.
        direct_process_names: Names of processes whose immediate group is this one.
    """

    id: str
    path: List[str]
    parent_id: Optional[str] = None
    child_group_ids: Set[str] = field(default_factory=set)
    direct_process_names: Set[str] = field(default_factory=set)

    @property
    def node_id(self) -> str:
        return group_node_id(self.id)

    @property
    def label(self) -> str:
        return self.path[-1]

    @property
    def depth(self) -> int:
        return len(self.path)


@dataclass
class BoxBounds:
    """Absolute bounding box of a laid-out box."""

    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    def intersects(self, other: "BoxBounds") -> bool:
        """True if the interiors of the two rectangles overlap."""
        return (
            self.x < other.x2
            and self.x2 > other.x
            and self.y < other.y2
            and self.y2 > other.y
        )

    def contains(self, other: "BoxBounds", tolerance: float = 1e-6) -> bool:
        """True if ``other`` lies completely inside this rectangle."""
        return (
            other.x >= self.x - tolerance
            and other.y >= self.y - tolerance
            and other.x2 <= self.x2 + tolerance
            and other.y2 <= self.y2 + tolerance
        )

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class Port:
    """
    A point where an edge crosses a group boundary.

    Attributes:
        edge_id: Id of the crossing edge.
        side: ``"top"`` for entry ports, ``"bottom"`` for exit ports.
        x: Absolute x coordinate.
        y: Absolute y coordinate.
    """

    edge_id: str
    side: str
    x: float
    y: float


@dataclass
class GroupPorts:
    """Entry and exit ports of one expanded group."""

    group_id: str
    entries: List[Port] = field(default_factory=list)
    exits: List[Port] = field(default_factory=list)


@dataclass
class ConfluencePoint:
    """
    Shared coordinates at which edges sharing an endpoint converge.

    Attributes:
        node_id: The node the edges share.
        branch_y: Y at which multiple outgoing edges diverge.
        join_y: Y at which multiple incoming edges converge.
    """

    node_id: str
    branch_y: Optional[float] = None
    join_y: Optional[float] = None


@dataclass
class FlowNode:
    """
    A node handed to the rendering side.

    Position is relative to the parent group, or to the diagram origin for
    top-level nodes. Width and height are set for groups only.
    """

    id: str
    type: str
    position: Tuple[float, float]
    data: Dict[str, Any] = field(default_factory=dict)
    parent_id: Optional[str] = None
    width: Optional[float] = None
    height: Optional[float] = None

    @property
    def is_group(self) -> bool:
        return self.type == "group"

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "position": {"x": self.position[0], "y": self.position[1]},
            "data": dict(self.data),
        }
        if self.parent_id is not None:
            result["parentId"] = self.parent_id
        if self.width is not None and self.height is not None:
            result["style"] = f"width: {self.width}px; height: {self.height}px;"
            result["width"] = self.width
            result["height"] = self.height
        return result


@dataclass
class FlowEdge:
    """An edge handed to the rendering side."""

    id: str
    source: str
    target: str
    animated: bool = False
    style: str = ""
    type: str = "smoothstep"
    source_status: ProcessStatus = ProcessStatus.NOTSTARTED
    target_status: ProcessStatus = ProcessStatus.NOTSTARTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.type,
            "animated": self.animated,
            "style": self.style,
        }


@dataclass
class FlowGraph:
    """
    Complete result of one layout invocation.

    Attributes:
        nodes: Visible nodes, every parent before its children.
        edges: Retained edges with unique ids.
        group_boxes: Absolute bounds of every visible group, by node id.
        process_boxes: Absolute bounds of every visible process, by node id.
        group_ports: Entry/exit ports of every expanded group, by node id.
        confluence: Branch/join hints, by node id.
        hidden_edges: Internal edges dropped per collapsed group node id.
        has_cycles: Whether the upstream relation contains a cycle.
        layout_passes: Number of composition passes that were run.
    """

    nodes: List[FlowNode] = field(default_factory=list)
    edges: List[FlowEdge] = field(default_factory=list)
    group_boxes: Dict[str, BoxBounds] = field(default_factory=dict)
    process_boxes: Dict[str, BoxBounds] = field(default_factory=dict)
    group_ports: Dict[str, GroupPorts] = field(default_factory=dict)
    confluence: Dict[str, ConfluencePoint] = field(default_factory=dict)
    hidden_edges: Dict[str, int] = field(default_factory=dict)
    has_cycles: bool = False
    layout_passes: int = 0

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Optional[FlowEdge]:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def absolute_positions(self) -> Dict[str, Tuple[float, float]]:
        """Resolve every node's absolute position by summing parent offsets."""
        positions: Dict[str, Tuple[float, float]] = {}
        for node in self.nodes:
            x, y = node.position
            if node.parent_id is not None and node.parent_id in positions:
                px, py = positions[node.parent_id]
                x, y = x + px, y + py
            positions[node.id] = (x, y)
        return positions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "groupBoxes": {k: v.to_dict() for k, v in self.group_boxes.items()},
            "processBoxes": {k: v.to_dict() for k, v in self.process_boxes.items()},
            "groupPorts": {
                k: {
                    "entries": [vars(p) for p in v.entries],
                    "exits": [vars(p) for p in v.exits],
                }
                for k, v in self.group_ports.items()
            },
            "confluence": {
                k: {"branchY": v.branch_y, "joinY": v.join_y}
                for k, v in self.confluence.items()
            },
            "hiddenEdges": dict(self.hidden_edges),
            "hasCycles": self.has_cycles,
            "layoutPasses": self.layout_passes,
        }
