"""Tests for the debug utilities."""

from processflow.boxes import GROUP_KIND, PROCESS_KIND, Box, BoxTree
from processflow.debug import BoxTreeInspector, diff_flow_graphs
from processflow.generator import ProcessGraphGenerator


class TestBoxTreeInspector:
    """Tests for geometric sanity checks."""

    def test_consistent_tree(self):
        tree = BoxTree()
        tree.add(Box("group-g", GROUP_KIND, 0, 0, 200, 200))
        tree.add(Box("g.p", PROCESS_KIND, 10, 10, 50, 50), "group-g")
        inspector = BoxTreeInspector(tree)
        assert inspector.is_consistent()
        assert "group-g" in inspector.outline()

    def test_containment_violation(self):
        tree = BoxTree()
        tree.add(Box("group-g", GROUP_KIND, 0, 0, 100, 100))
        tree.add(Box("g.p", PROCESS_KIND, 80, 10, 50, 50), "group-g")
        assert BoxTreeInspector(tree).find_containment_violations() == [("group-g", "g.p")]

    def test_sibling_overlap(self):
        tree = BoxTree()
        tree.add(Box("a", PROCESS_KIND, 0, 0, 100, 100))
        tree.add(Box("b", PROCESS_KIND, 50, 50, 100, 100))
        tree.add(Box("c", PROCESS_KIND, 300, 0, 100, 100))
        assert BoxTreeInspector(tree).find_sibling_overlaps() == [("a", "b")]


class TestDiffFlowGraphs:
    """Tests for comparing two results."""

    def test_identical(self, simple_processes):
        generator = ProcessGraphGenerator()
        first = generator.generate(simple_processes)
        second = generator.generate(simple_processes)
        assert "No differences found." in diff_flow_graphs(first, second)

    def test_collapse_differences(self, simple_processes):
        generator = ProcessGraphGenerator()
        expanded = generator.generate(simple_processes)
        collapsed = generator.generate(simple_processes, collapsed={"b"})
        diff = diff_flow_graphs(expanded, collapsed)
        assert "- node b.c" in diff
        assert "- edge b.c->b.d" in diff
        assert "+ edge a->group-b" in diff
        assert "~ node group-b resized" in diff
