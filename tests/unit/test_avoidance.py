"""Unit tests for avoidance-space analysis."""

from processflow.avoidance import AvoidanceAnalyzer
from processflow.composer import Composer
from processflow.config import LayoutConfig
from processflow.edges import EdgeClassifier
from processflow.groups import GroupHierarchy
from processflow.models import BoxBounds
from processflow.parser import Parser


def _analyze(records, extra_padding=None, config=None):
    config = config or LayoutConfig()
    processes = Parser().parse(records)
    hierarchy = GroupHierarchy.from_processes(processes)
    classification = EdgeClassifier(hierarchy).classify(processes)
    composition = Composer(config=config).compose(
        processes, hierarchy, classification, frozenset(), extra_padding
    )
    analyzer = AvoidanceAnalyzer(config)
    return analyzer, composition.tree, classification


class TestCorridor:
    """Tests for the swept corridor between two boxes."""

    def test_vertical_corridor(self):
        analyzer = AvoidanceAnalyzer(LayoutConfig(edge_clearance=25))
        corridor = analyzer.corridor(BoxBounds(0, 0, 100, 50), BoxBounds(0, 150, 100, 50))
        assert (corridor.x, corridor.y, corridor.width, corridor.height) == (25, 50, 50, 100)

    def test_corridor_spans_both_centers(self):
        analyzer = AvoidanceAnalyzer(LayoutConfig(edge_clearance=10))
        corridor = analyzer.corridor(BoxBounds(0, 0, 100, 50), BoxBounds(200, 100, 100, 50))
        assert (corridor.x, corridor.x2) == (40, 260)

    def test_upward_edge(self):
        """Test that a target above the source sweeps the same gap."""
        analyzer = AvoidanceAnalyzer(LayoutConfig(edge_clearance=25))
        corridor = analyzer.corridor(BoxBounds(0, 150, 100, 50), BoxBounds(0, 0, 100, 50))
        assert (corridor.y, corridor.height) == (50, 100)

    def test_side_by_side(self):
        analyzer = AvoidanceAnalyzer(LayoutConfig())
        corridor = analyzer.corridor(BoxBounds(0, 0, 100, 50), BoxBounds(150, 10, 100, 50))
        assert (corridor.x, corridor.y, corridor.width, corridor.height) == (100, 10, 50, 40)

    def test_overlapping_boxes(self):
        analyzer = AvoidanceAnalyzer(LayoutConfig())
        assert analyzer.corridor(BoxBounds(0, 0, 100, 50), BoxBounds(50, 10, 100, 50)) is None


class TestAnalyze:
    """Tests for padding requirements after a composition pass."""

    def test_obstructed_edge_requires_padding(self, obstructed_processes):
        """Test that the detour around g.h would leave g by 10 units."""
        analyzer, tree, classification = _analyze(obstructed_processes)
        requirements = analyzer.requirements(tree, classification)
        assert len(requirements) == 1
        requirement = requirements[0]
        assert requirement.edge_id == "g.p->g.q"
        assert requirement.group_id == "g"
        assert requirement.amount == 10
        assert requirement.obstacles == ["group-g.h"]
        assert analyzer.analyze(tree, classification) == {"g": 10}

    def test_widened_group_has_no_requirement(self, obstructed_processes):
        analyzer, tree, classification = _analyze(
            obstructed_processes, extra_padding={"g": 10}
        )
        assert analyzer.analyze(tree, classification) == {}

    def test_smaller_clearance_fits(self, obstructed_processes):
        analyzer, tree, classification = _analyze(
            obstructed_processes, config=LayoutConfig(edge_clearance=15)
        )
        assert analyzer.analyze(tree, classification) == {}

    def test_unobstructed_graph(self, simple_processes):
        analyzer, tree, classification = _analyze(simple_processes)
        assert analyzer.analyze(tree, classification) == {}

    def test_root_level_edges_never_widen(self):
        """Test that obstructions at the root do not request padding."""
        records = [
            {"name": "a"},
            {"name": "m.x", "upstream_processes": ["a"]},
            {"name": "z", "upstream_processes": ["m.x", "a"]},
        ]
        analyzer, tree, classification = _analyze(records)
        assert analyzer.analyze(tree, classification) == {}
