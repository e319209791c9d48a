"""Unit tests for margin enforcement and confluence points."""

from processflow.boxes import GROUP_KIND, PROCESS_KIND, Box, BoxTree
from processflow.composer import Composer
from processflow.config import LayoutConfig
from processflow.confluence import ConfluenceCalculator, MarginAdjuster
from processflow.edges import EdgeClassifier
from processflow.groups import GroupHierarchy
from processflow.layout import Padding
from processflow.models import Process
from processflow.parser import Parser


def _classify(processes):
    return EdgeClassifier(GroupHierarchy.from_processes(processes)).classify(processes)


class TestMarginAdjuster:
    """Tests for vertical clearance above entered groups."""

    def test_group_and_lower_siblings_move_down(self):
        processes = [Process("a"), Process("g.p", upstream_processes=("a",)), Process("z")]
        tree = BoxTree()
        tree.root.width, tree.root.height = 300, 480
        tree.add(Box("a", PROCESS_KIND, 0, 0, 180, 80))
        tree.add(Box("group-g", GROUP_KIND, 0, 100, 260, 200, padding=Padding(80, 40, 40, 40)))
        tree.add(Box("g.p", PROCESS_KIND, 40, 180, 180, 80), "group-g")
        tree.add(Box("z", PROCESS_KIND, 0, 400, 180, 80))

        moved = MarginAdjuster(LayoutConfig(edge_clearance=25)).enforce(
            tree, _classify(processes)
        )

        assert moved == 1
        assert tree.get("a").y == 0
        assert tree.get("group-g").y == 130
        assert tree.get("g.p").y == 210
        assert tree.get("z").y == 430
        assert tree.root.height == 510

    def test_growth_cascades_to_parent(self):
        """Test that an inner push grows its parent and moves the parent's siblings."""
        processes = [Process("o.p0"), Process("o.i.x", upstream_processes=("o.p0",))]
        tree = BoxTree()
        tree.root.width, tree.root.height = 500, 600
        tree.add(Box("group-o", GROUP_KIND, 0, 0, 400, 400, padding=Padding(80, 40, 40, 40)))
        tree.add(Box("o.p0", PROCESS_KIND, 40, 80, 180, 80), "group-o")
        tree.add(
            Box("group-o.i", GROUP_KIND, 40, 180, 260, 160, padding=Padding(80, 40, 40, 40)),
            "group-o",
        )
        tree.add(Box("o.i.x", PROCESS_KIND, 80, 260, 180, 80), "group-o.i")
        tree.add(Box("z", PROCESS_KIND, 0, 450, 180, 80))

        MarginAdjuster(LayoutConfig(edge_clearance=25)).enforce(tree, _classify(processes))

        assert tree.get("group-o.i").y == 210
        assert tree.get("o.i.x").y == 290
        assert tree.get("group-o").height == 410
        assert tree.get("z").y == 460
        assert tree.get("o.p0").y == 80

    def test_enough_room_is_left_alone(self, simple_processes):
        processes = Parser().parse(simple_processes)
        hierarchy = GroupHierarchy.from_processes(processes)
        classification = EdgeClassifier(hierarchy).classify(processes)
        tree = Composer().compose(processes, hierarchy, classification).tree
        before = tree.describe()
        assert MarginAdjuster().enforce(tree, classification) == 0
        assert tree.describe() == before


class TestConfluenceCalculator:
    """Tests for branch and join hints."""

    def test_branch_and_join(self, obstructed_processes):
        processes = Parser().parse(obstructed_processes)
        hierarchy = GroupHierarchy.from_processes(processes)
        classification = EdgeClassifier(hierarchy).classify(processes)
        tree = Composer().compose(processes, hierarchy, classification).tree

        points = ConfluenceCalculator(LayoutConfig()).calculate(tree, classification)

        # g.p bottom is 180; g.h bottom is 440 and g.q top is 500
        assert points["g.p"].branch_y == 205
        assert points["g.p"].join_y is None
        assert points["g.q"].join_y == 475
        assert points["g.q"].branch_y is None

    def test_join_stays_above_target(self):
        """Test that the join point is clamped to the target's top."""
        processes = [
            Process("x.s"),
            Process("y"),
            Process("t", upstream_processes=("x.s", "y")),
        ]
        tree = BoxTree()
        tree.add(Box("group-x", GROUP_KIND, 0, 0, 260, 300))
        tree.add(Box("x.s", PROCESS_KIND, 40, 80, 180, 80), "group-x")
        tree.add(Box("y", PROCESS_KIND, 300, 0, 180, 80))
        tree.add(Box("t", PROCESS_KIND, 150, 305, 180, 80))

        points = ConfluenceCalculator(LayoutConfig()).calculate(tree, _classify(processes))
        assert points["t"].join_y == 305

    def test_single_edges_have_no_points(self, simple_processes):
        processes = Parser().parse(simple_processes)
        hierarchy = GroupHierarchy.from_processes(processes)
        classification = EdgeClassifier(hierarchy).classify(processes)
        tree = Composer().compose(processes, hierarchy, classification).tree
        assert ConfluenceCalculator().calculate(tree, classification) == {}
