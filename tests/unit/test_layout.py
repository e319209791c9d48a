"""
Unit tests for the layout engine.

Tests cover layer assignment, cycle breaking, placement arithmetic, compound
boxes and the LayoutError conditions.
"""

import pytest

from processflow.layout import (
    LayoutEdge,
    LayoutError,
    LayoutNode,
    LayoutOptions,
    NetworkXLayout,
    Padding,
)


def _leaf(node_id, width=100, height=40):
    return LayoutNode(id=node_id, width=width, height=height)


def _graph(children, edges, **options):
    return LayoutNode(
        id="root",
        children=children,
        edges=[LayoutEdge(f"{s}->{t}", s, t) for s, t in edges],
        options=LayoutOptions(**options),
    )


class TestLayerAssignment:
    """Tests for longest-path layering."""

    def test_chain_layers(self):
        graph = _graph([_leaf("a"), _leaf("b"), _leaf("c")], [("a", "b"), ("b", "c")])
        NetworkXLayout().layout(graph)
        assert [graph.find(n).layer for n in "abc"] == [0, 1, 2]

    def test_longest_path(self):
        """Test that a node sits below its deepest predecessor."""
        graph = _graph(
            [_leaf("a"), _leaf("b"), _leaf("c")],
            [("a", "b"), ("b", "c"), ("a", "c")],
        )
        NetworkXLayout().layout(graph)
        assert graph.find("c").layer == 2

    def test_cycle_is_broken(self):
        """Test that a cycle is laid out instead of failing."""
        graph = _graph(
            [_leaf("a"), _leaf("b"), _leaf("c")],
            [("a", "b"), ("b", "c"), ("c", "a")],
        )
        NetworkXLayout().layout(graph)
        assert sorted(graph.find(n).layer for n in "abc") == [0, 1, 2]

    def test_self_edge_is_ignored(self):
        graph = _graph([_leaf("a")], [("a", "a")])
        NetworkXLayout().layout(graph)
        assert graph.find("a").layer == 0


class TestPlacement:
    """Tests for coordinate and size resolution."""

    def test_vertical_stack(self):
        """Test stacking with layer spacing and padding."""
        graph = _graph(
            [_leaf("a"), _leaf("b")],
            [("a", "b")],
            layer_spacing=30,
            padding=Padding(top=10, left=5, bottom=10, right=5),
        )
        NetworkXLayout().layout(graph)
        a, b = graph.find("a"), graph.find("b")
        assert (a.x, a.y) == (5, 10)
        assert (b.x, b.y) == (5, 80)
        assert graph.width == 110
        assert graph.height == 130

    def test_layer_centered_on_widest(self):
        """Test that a narrow layer is centered on the widest one."""
        graph = _graph(
            [_leaf("a"), _leaf("b"), _leaf("c")],
            [("a", "b"), ("a", "c")],
            node_spacing=20,
        )
        NetworkXLayout().layout(graph)
        assert graph.find("a").x == 60
        assert graph.find("b").x == 0
        assert graph.find("c").x == 120
        assert graph.width == 220

    def test_boxes_centered_in_layer_thickness(self):
        graph = _graph([_leaf("a", height=40), _leaf("b", height=80)], [], node_spacing=10)
        NetworkXLayout().layout(graph)
        assert graph.find("a").y == 20
        assert graph.find("b").y == 0

    def test_minimum_size(self):
        graph = _graph([_leaf("a")], [], min_width=250, min_height=160)
        NetworkXLayout().layout(graph)
        assert (graph.width, graph.height) == (250, 160)

    def test_direction_right(self):
        """Test that RIGHT stacks layers along x."""
        graph = _graph(
            [_leaf("a"), _leaf("b")], [("a", "b")], direction="RIGHT", layer_spacing=30
        )
        NetworkXLayout().layout(graph)
        assert graph.find("a").x == 0
        assert graph.find("b").x == 130
        assert graph.find("b").y == 0
        assert graph.width == 230
        assert graph.height == 40

    def test_empty_compound(self):
        graph = _graph([], [], padding=Padding(1, 2, 3, 4))
        NetworkXLayout().layout(graph)
        assert (graph.width, graph.height) == (6, 4)


class TestCompounds:
    """Tests for nested compound boxes."""

    def test_nested_compound_is_sized_first(self):
        inner = LayoutNode(
            id="inner",
            children=[_leaf("x"), _leaf("y")],
            edges=[LayoutEdge("x->y", "x", "y")],
            options=LayoutOptions(layer_spacing=20),
        )
        graph = _graph([_leaf("a"), inner], [])
        graph.edges = [LayoutEdge("a->x", "a", "x")]
        NetworkXLayout().layout(graph)
        assert inner.height == 100
        assert inner.layer == 1
        assert graph.find("y").y == 60

    def test_edge_into_nested_box_is_lifted(self):
        """Test that an edge to a nested id layers the enclosing child."""
        inner = LayoutNode(id="inner", children=[_leaf("x")], options=LayoutOptions())
        graph = _graph([inner, _leaf("a")], [])
        graph.edges = [LayoutEdge("x->a", "x", "a")]
        NetworkXLayout().layout(graph)
        assert graph.find("a").layer == 1


class TestLayoutErrors:
    """Tests for LayoutError conditions."""

    def test_unknown_endpoint(self):
        graph = _graph([_leaf("a")], [("a", "ghost")])
        with pytest.raises(LayoutError, match="unknown box"):
            NetworkXLayout().layout(graph)

    def test_unknown_algorithm(self):
        graph = _graph([_leaf("a")], [], algorithm="force")
        with pytest.raises(LayoutError, match="algorithm"):
            NetworkXLayout().layout(graph)

    def test_unknown_direction(self):
        graph = _graph([_leaf("a")], [], direction="UP")
        with pytest.raises(LayoutError, match="direction"):
            NetworkXLayout().layout(graph)

    def test_negative_spacing(self):
        graph = _graph([_leaf("a")], [], node_spacing=-1)
        with pytest.raises(LayoutError, match="Negative"):
            NetworkXLayout().layout(graph)

    def test_duplicate_ids(self):
        graph = _graph([_leaf("a"), _leaf("a")], [])
        with pytest.raises(LayoutError, match="Duplicate"):
            NetworkXLayout().layout(graph)
