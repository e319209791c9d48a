"""
Box tree for laid-out process graphs.

The box tree is an arena of boxes keyed by id with explicit parent pointers
and ordered child lists. Coordinates are absolute; parent-relative positions
are derived on demand. Moving a box walks its descendants explicitly, so a
shift always cascades through the whole subtree.

Classes:
    Box: One laid-out box (root, group or process).
    BoxTree: The arena with traversal and shifting helpers.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .layout import LayoutNode, Padding
from .models import ROOT_BOX_ID, BoxBounds

ROOT_KIND = "root"
GROUP_KIND = "group"
PROCESS_KIND = "process"


@dataclass
class Box:
    """
    A laid-out box with absolute coordinates.

    Attributes:
        id: Node id (process name, ``group-`` id, or the root id).
        kind: ``"root"``, ``"group"`` or ``"process"``.
        x: Absolute left edge.
        y: Absolute top edge.
        width: Box width.
        height: Box height.
        parent_id: Id of the enclosing box, None for the root.
        children: Ids of the direct children, in layout order.
        collapsed: True for a collapsed group rendered as one box.
        padding: Content padding, for the root and expanded groups.
    """

    id: str
    kind: str
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    parent_id: Optional[str] = None
    children: List[str] = field(default_factory=list)
    collapsed: bool = False
    padding: Padding = field(default_factory=Padding)

    @property
    def bounds(self) -> BoxBounds:
        return BoxBounds(self.x, self.y, self.width, self.height)

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

    @property
    def is_group(self) -> bool:
        return self.kind == GROUP_KIND

    @property
    def is_container(self) -> bool:
        """True for boxes whose children are laid out inside them."""
        return self.kind == ROOT_KIND or (self.is_group and not self.collapsed)


class BoxTree:
    """
    Arena of boxes addressed by id.

    Attributes:
        boxes: Mapping of id to Box.
        root_id: Id of the virtual root box.
    """

    def __init__(self, root: Optional[Box] = None):
        if root is None:
            root = Box(id=ROOT_BOX_ID, kind=ROOT_KIND)
        self.boxes: Dict[str, Box] = {root.id: root}
        self.root_id = root.id

    @classmethod
    def from_layout(
        cls,
        root_layout: LayoutNode,
        group_ids: Dict[str, bool],
        root_padding: Optional[Padding] = None,
        paddings: Optional[Dict[str, Padding]] = None,
    ) -> "BoxTree":
        """
        Materialize a fully nested layout tree into absolute boxes.

        Args:
            root_layout: Laid-out root compound; children of expanded groups
                are nested under the group node.
            group_ids: Node ids of every group, mapped to its collapsed flag.
            root_padding: Content padding of the root.
            paddings: Content padding per expanded group node id.
        """
        paddings = paddings or {}
        tree = cls(
            Box(
                id=ROOT_BOX_ID,
                kind=ROOT_KIND,
                width=root_layout.width,
                height=root_layout.height,
                padding=root_padding or Padding(),
            )
        )

        stack: List[Tuple[LayoutNode, str, float, float]] = [
            (child, ROOT_BOX_ID, 0.0, 0.0) for child in reversed(root_layout.children)
        ]
        while stack:
            node, parent_id, origin_x, origin_y = stack.pop()
            is_group = node.id in group_ids
            collapsed = group_ids.get(node.id, False)
            box = Box(
                id=node.id,
                kind=GROUP_KIND if is_group else PROCESS_KIND,
                x=origin_x + node.x,
                y=origin_y + node.y,
                width=node.width,
                height=node.height,
                collapsed=collapsed,
                padding=paddings.get(node.id, Padding()),
            )
            tree.add(box, parent_id)
            if is_group and not collapsed:
                for child in reversed(node.children):
                    stack.append((child, node.id, box.x, box.y))

        return tree

    def add(self, box: Box, parent_id: Optional[str] = None) -> Box:
        """Register a box under a parent (the root by default)."""
        if box.id in self.boxes:
            raise ValueError(f"Duplicate box id '{box.id}'")
        parent_id = parent_id or self.root_id
        box.parent_id = parent_id
        self.boxes[box.id] = box
        self.boxes[parent_id].children.append(box.id)
        return box

    def __contains__(self, box_id: str) -> bool:
        return box_id in self.boxes

    def __len__(self) -> int:
        return len(self.boxes)

    def __iter__(self) -> Iterator[Box]:
        return self.walk()

    @property
    def root(self) -> Box:
        return self.boxes[self.root_id]

    def get(self, box_id: str) -> Optional[Box]:
        return self.boxes.get(box_id)

    def parent(self, box_id: str) -> Optional[Box]:
        parent_id = self.boxes[box_id].parent_id
        return self.boxes[parent_id] if parent_id is not None else None

    def children(self, box_id: str) -> List[Box]:
        return [self.boxes[c] for c in self.boxes[box_id].children]

    def ancestors(self, box_id: str) -> List[str]:
        """Ids from the direct parent up to the root."""
        chain = []
        current = self.boxes[box_id].parent_id
        while current is not None:
            chain.append(current)
            current = self.boxes[current].parent_id
        return chain

    def depth(self, box_id: str) -> int:
        return len(self.ancestors(box_id))

    def descendants(self, box_id: str) -> List[str]:
        """Ids of every box below ``box_id``, parents before children."""
        result: List[str] = []
        stack = list(reversed(self.boxes[box_id].children))
        while stack:
            current = stack.pop()
            result.append(current)
            stack.extend(reversed(self.boxes[current].children))
        return result

    def walk(self) -> Iterator[Box]:
        """Depth-first pre-order over every box except the root."""
        for box_id in self.descendants(self.root_id):
            yield self.boxes[box_id]

    def groups(self) -> List[Box]:
        return [box for box in self.walk() if box.is_group]

    def containers(self) -> List[Box]:
        """Root and expanded groups, deepest first."""
        result = [box for box in self.walk() if box.is_container]
        result.sort(key=lambda b: -self.depth(b.id))
        result.append(self.root)
        return result

    def shift(self, box_id: str, dx: float, dy: float) -> None:
        """Move a box and its whole subtree."""
        if dx == 0 and dy == 0:
            return
        for current in [box_id] + self.descendants(box_id):
            box = self.boxes[current]
            box.x += dx
            box.y += dy

    def relative_position(self, box_id: str) -> Tuple[float, float]:
        box = self.boxes[box_id]
        parent = self.parent(box_id)
        if parent is None:
            return box.x, box.y
        return box.x - parent.x, box.y - parent.y

    def content_area(self, box_id: str) -> BoxBounds:
        """The part of a container inside its padding."""
        box = self.boxes[box_id]
        pad = box.padding
        return BoxBounds(
            box.x + pad.left,
            box.y + pad.top,
            max(box.width - pad.horizontal, 0),
            max(box.height - pad.vertical, 0),
        )

    def grow_to_fit(self, box_id: str) -> Tuple[float, float]:
        """
        Grow a container so its children plus padding fit inside it.

        Only the right and bottom edges move. Returns the (width, height)
        growth, which is zero when the box already fits.
        """
        box = self.boxes[box_id]
        children = self.children(box_id)
        if not children:
            return 0.0, 0.0
        needed_right = max(c.x2 for c in children) + box.padding.right
        needed_bottom = max(c.y2 for c in children) + box.padding.bottom
        grow_w = max(needed_right - box.x2, 0.0)
        grow_h = max(needed_bottom - box.y2, 0.0)
        box.width += grow_w
        box.height += grow_h
        return grow_w, grow_h

    def describe(self) -> List[str]:
        """Indented outline of the tree, one line per box."""
        lines = [f"{self.root_id} {self.root.width:g}x{self.root.height:g}"]
        for box in self.walk():
            indent = "  " * self.depth(box.id)
            flag = " [collapsed]" if box.collapsed else ""
            lines.append(
                f"{indent}{box.id} ({box.kind}{flag}) "
                f"@({box.x:g},{box.y:g}) {box.width:g}x{box.height:g}"
            )
        return lines
