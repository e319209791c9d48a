"""
Layout module using networkx for hierarchical graph layout.

This is the Layout Engine collaborator: given a tree of sized leaf boxes and
compound boxes with edges, it resolves parent-relative coordinates for every
child and a width/height for every compound box.

Uses networkx for:
- Graph representation
- Cycle detection
- Topological sorting / layer assignment
- Node ordering within layers
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Set, Tuple

import networkx as nx


class LayoutError(Exception):
    """Raised when a graph cannot be laid out."""

    pass


@dataclass
class Padding:
    """Padding inside a compound box, per side."""

    top: float = 0
    left: float = 0
    bottom: float = 0
    right: float = 0

    @property
    def horizontal(self) -> float:
        return self.left + self.right

    @property
    def vertical(self) -> float:
        return self.top + self.bottom


@dataclass
class LayoutOptions:
    """
    Layout policy for one compound box.

    Attributes:
        algorithm: Layout algorithm name.
        direction: ``"DOWN"`` (layers stacked vertically) or ``"RIGHT"``.
        node_spacing: Space between boxes within a layer.
        layer_spacing: Space between consecutive layers.
        padding: Space between the compound border and its content.
        min_width: Smallest width the compound box may have.
        min_height: Smallest height the compound box may have.
    """

    algorithm: str = "layered"
    direction: str = "DOWN"
    node_spacing: float = 50
    layer_spacing: float = 80
    padding: Padding = field(default_factory=Padding)
    min_width: float = 0
    min_height: float = 0


@dataclass
class LayoutEdge:
    """An edge between two boxes of the layout tree."""

    id: str
    source: str
    target: str


@dataclass
class LayoutNode:
    """
    A box in the layout tree.

    Leaf boxes carry a fixed width/height. Compound boxes carry options,
    children and edges; their width/height is resolved by the engine.
    Coordinates are relative to the parent box.
    """

    id: str
    width: float = 0
    height: float = 0
    x: float = 0
    y: float = 0
    children: List["LayoutNode"] = field(default_factory=list)
    edges: List[LayoutEdge] = field(default_factory=list)
    options: Optional[LayoutOptions] = None
    layer: int = 0

    @property
    def is_compound(self) -> bool:
        return self.options is not None or bool(self.children)

    def find(self, node_id: str) -> Optional["LayoutNode"]:
        """Depth-first search for a descendant (or self) by id."""
        if self.id == node_id:
            return self
        for child in self.children:
            found = child.find(node_id)
            if found is not None:
                return found
        return None


class LayoutEngine(Protocol):
    """Anything that can resolve coordinates for a layout tree."""

    def layout(self, graph: LayoutNode) -> LayoutNode:
        """Resolve x/y of every child and width/height of every compound."""
        ...


class NetworkXLayout:
    """
    Layered graph layout using networkx.

    For DAGs: longest-path layer assignment over a topological sort.
    For cyclic graphs: identifies back edges, breaks cycles, then layouts.
    Nested compound children are laid out first so their size is known.
    """

    SUPPORTED_ALGORITHMS = ("layered",)
    SUPPORTED_DIRECTIONS = ("DOWN", "RIGHT")

    def __init__(self, ordering_passes: int = 4):
        self.ordering_passes = ordering_passes

    def layout(self, graph: LayoutNode) -> LayoutNode:
        """
        Compute layout for the given tree, in place.

        Args:
            graph: Root compound box

        Returns:
            The same tree annotated with coordinates and sizes

        Raises:
            LayoutError: On invalid options or edges to unknown boxes
        """
        self._layout_compound(graph)
        return graph

    def _layout_compound(self, node: LayoutNode) -> None:
        options = node.options or LayoutOptions()
        self._validate(node.id, options)

        for child in node.children:
            if child.is_compound:
                self._layout_compound(child)

        order: Dict[str, int] = {}
        owner: Dict[str, str] = {}
        for index, child in enumerate(node.children):
            if child.id in order:
                raise LayoutError(f"Duplicate box id '{child.id}' in '{node.id}'")
            order[child.id] = index
            for descendant_id in self._subtree_ids(child):
                owner[descendant_id] = child.id

        connections: List[Tuple[str, str]] = []
        for edge in node.edges:
            source = owner.get(edge.source)
            target = owner.get(edge.target)
            if source is None or target is None:
                raise LayoutError(
                    f"Edge '{edge.id}' in '{node.id}' references an unknown box"
                )
            if source != target:
                connections.append((source, target))

        graph = nx.DiGraph()
        graph.add_nodes_from(child.id for child in node.children)
        graph.add_edges_from(connections)

        back_edges = self._find_back_edges(graph, order)
        working_graph = graph.copy()
        working_graph.remove_edges_from(back_edges)

        layers = self._assign_layers(working_graph, order)
        layers = self._order_layers(layers, working_graph)

        self._place(node, layers, options)

    def _validate(self, node_id: str, options: LayoutOptions) -> None:
        if options.algorithm not in self.SUPPORTED_ALGORITHMS:
            raise LayoutError(
                f"Unsupported algorithm '{options.algorithm}' for '{node_id}'"
            )
        if options.direction not in self.SUPPORTED_DIRECTIONS:
            raise LayoutError(
                f"Unsupported direction '{options.direction}' for '{node_id}'"
            )
        if options.node_spacing < 0 or options.layer_spacing < 0:
            raise LayoutError(f"Negative spacing for '{node_id}'")

    def _subtree_ids(self, node: LayoutNode) -> List[str]:
        ids = [node.id]
        for child in node.children:
            ids.extend(self._subtree_ids(child))
        return ids

    def _find_back_edges(
        self, graph: nx.DiGraph, order: Dict[str, int]
    ) -> Set[Tuple[str, str]]:
        """
        Identify back edges that must be ignored to obtain a DAG.
        Uses DFS in model order so the choice is reproducible.
        """
        back_edges: Set[Tuple[str, str]] = set()
        if nx.is_directed_acyclic_graph(graph):
            return back_edges

        visited = set()
        rec_stack = set()

        def dfs(node):
            visited.add(node)
            rec_stack.add(node)

            for successor in sorted(graph.successors(node), key=order.get):
                if successor not in visited:
                    dfs(successor)
                elif successor in rec_stack:
                    back_edges.add((node, successor))

            rec_stack.remove(node)

        roots = [n for n in graph.nodes() if graph.in_degree(n) == 0]
        for root in roots:
            if root not in visited:
                dfs(root)

        for node in graph.nodes():
            if node not in visited:
                dfs(node)

        return back_edges

    def _assign_layers(
        self, graph: nx.DiGraph, order: Dict[str, int]
    ) -> List[List[str]]:
        """
        Assign nodes to layers using the longest path method.
        """
        node_layer: Dict[str, int] = {}

        try:
            topo_order = list(
                nx.lexicographical_topological_sort(graph, key=order.get)
            )
        except nx.NetworkXUnfeasible:
            topo_order = sorted(graph.nodes(), key=order.get)

        for node in topo_order:
            predecessors = list(graph.predecessors(node))
            if not predecessors:
                node_layer[node] = 0
            else:
                node_layer[node] = (
                    max(node_layer.get(p, 0) for p in predecessors) + 1
                )

        if not node_layer:
            return []

        max_layer = max(node_layer.values())
        layers: List[List[str]] = [[] for _ in range(max_layer + 1)]

        for node in sorted(node_layer, key=order.get):
            layers[node_layer[node]].append(node)

        return layers

    def _order_layers(
        self, layers: List[List[str]], graph: nx.DiGraph
    ) -> List[List[str]]:
        """
        Order nodes within each layer to minimize edge crossings.
        Uses barycenter heuristic.
        """
        if len(layers) <= 1:
            return layers

        for _ in range(self.ordering_passes):
            for i in range(1, len(layers)):
                layers[i] = self._order_layer_by_barycenter(
                    layers[i], layers[i - 1], graph, use_predecessors=True
                )

            for i in range(len(layers) - 2, -1, -1):
                layers[i] = self._order_layer_by_barycenter(
                    layers[i], layers[i + 1], graph, use_predecessors=False
                )

        return layers

    def _order_layer_by_barycenter(
        self,
        layer: List[str],
        ref_layer: List[str],
        graph: nx.DiGraph,
        use_predecessors: bool,
    ) -> List[str]:
        """
        Order nodes by barycenter (average position of connected nodes).
        """
        ref_positions = {node: i for i, node in enumerate(ref_layer)}
        current = {node: i for i, node in enumerate(layer)}

        def barycenter(node: str) -> Tuple[float, int]:
            if use_predecessors:
                neighbors = graph.predecessors(node)
            else:
                neighbors = graph.successors(node)

            positions = [ref_positions[n] for n in neighbors if n in ref_positions]

            if not positions:
                # Keep original order for nodes with no connections to ref layer
                return float(current[node]), current[node]

            return sum(positions) / len(positions), current[node]

        return sorted(layer, key=barycenter)

    def _place(
        self, node: LayoutNode, layers: List[List[str]], options: LayoutOptions
    ) -> None:
        """
        Resolve child coordinates and the compound size.

        Layers are stacked along the major axis (y for DOWN, x for RIGHT);
        boxes in a layer are packed along the minor axis and each layer is
        centered on the widest one.
        """
        children = {child.id: child for child in node.children}
        vertical = options.direction == "DOWN"

        def extent(child: LayoutNode) -> Tuple[float, float]:
            # (minor, major)
            if vertical:
                return child.width, child.height
            return child.height, child.width

        layer_thickness: List[float] = []
        layer_lengths: List[float] = []
        for layer in layers:
            minors = [extent(children[n])[0] for n in layer]
            majors = [extent(children[n])[1] for n in layer]
            layer_thickness.append(max(majors) if majors else 0)
            length = sum(minors) + options.node_spacing * max(len(layer) - 1, 0)
            layer_lengths.append(length)

        content_minor = max(layer_lengths) if layer_lengths else 0
        content_major = sum(layer_thickness) + options.layer_spacing * max(
            len(layers) - 1, 0
        )

        pad = options.padding
        minor_offset = pad.left if vertical else pad.top
        major_offset = pad.top if vertical else pad.left

        major_position = major_offset
        for layer_idx, layer in enumerate(layers):
            thickness = layer_thickness[layer_idx]
            minor_position = (
                minor_offset + (content_minor - layer_lengths[layer_idx]) / 2
            )
            for child_id in layer:
                child = children[child_id]
                minor, major = extent(child)
                offset = major_position + (thickness - major) / 2
                if vertical:
                    child.x, child.y = minor_position, offset
                else:
                    child.x, child.y = offset, minor_position
                child.layer = layer_idx
                minor_position += minor + options.node_spacing
            major_position += thickness + options.layer_spacing

        if vertical:
            width, height = content_minor, content_major
        else:
            width, height = content_major, content_minor

        node.width = max(width + pad.horizontal, options.min_width)
        node.height = max(height + pad.vertical, options.min_height)
