"""
Main process graph generator module.

Combines parsing, grouping, edge classification, layout composition and the
geometric adjustment passes to produce a FlowGraph ready for rendering.
"""

import logging
from typing import AbstractSet, Dict, Iterable, Optional, Tuple

from .assembler import FlowAssembler
from .avoidance import AvoidanceAnalyzer
from .boxes import BoxTree
from .composer import Composer
from .config import ALGORITHMS, DIRECTIONS, SIZING_POLICIES, LayoutConfig
from .confluence import ConfluenceCalculator, MarginAdjuster
from .edges import EdgeClassification, EdgeClassifier
from .export import FlowGraphExporter
from .graph import DependencyGraph
from .groups import GroupHierarchy
from .layout import LayoutEngine, NetworkXLayout
from .models import GROUP_PREFIX, FlowGraph
from .parser import Parser, ProcessRecord
from .positioning import CenteringPass, NodeSizer, PortCalculator
from .simple_layout import SimpleLayout
from .tracer import LayoutTrace

logger = logging.getLogger(__name__)


class ProcessGraphGenerator:
    """
    Generate hierarchical layouts for grouped process graphs.

    Example:
        >>> generator = ProcessGraphGenerator()
        >>> graph = generator.generate([
        ...     {"name": "a", "status": "SUCCESS", "upstream_processes": []},
        ...     {"name": "b.c", "status": "INPROGRESS", "upstream_processes": ["a"]},
        ... ])
        >>> [node.id for node in graph.nodes]
        ['group-b', 'b.c', 'a']
    """

    def __init__(
        self,
        algorithm: str = "layered",
        direction: str = "DOWN",
        centering: bool = True,
        sizing: str = "label",
        max_layout_passes: int = 2,
        layout_engine: Optional[LayoutEngine] = None,
        config: Optional[LayoutConfig] = None,
        font: Optional[str] = None,
    ):
        """
        Initialize the process graph generator.

        Args:
            algorithm: "layered" to compose through the layout engine, or
                "simple" for the level-based fallback
            direction: Layer direction handed to the engine, "DOWN" or "RIGHT"
            centering: Whether to re-center layers after layout
            sizing: "label" to size process boxes by label, "fixed" for a
                constant width
            max_layout_passes: Upper bound on composition passes; 2 allows
                one retry after avoidance analysis
            layout_engine: Engine used for every nesting level
                (defaults to NetworkXLayout)
            config: Geometric constants
            font: Font name for PNG output
        """
        self.algorithm = algorithm
        self.direction = direction.upper()
        self.centering = centering
        self.sizing = sizing
        self.max_layout_passes = max_layout_passes
        self.config = config or LayoutConfig()
        self.font = font

        if self.algorithm not in ALGORITHMS:
            raise ValueError(f"algorithm must be one of {', '.join(ALGORITHMS)}")
        if self.direction not in DIRECTIONS:
            raise ValueError("direction must be 'DOWN' (top-down) or 'RIGHT'")
        if self.sizing not in SIZING_POLICIES:
            raise ValueError(f"sizing must be one of {', '.join(SIZING_POLICIES)}")
        if not isinstance(max_layout_passes, int) or max_layout_passes < 1:
            raise ValueError("max_layout_passes must be a positive integer")
        self.config.validate()

        self.parser = Parser()
        self.layout_engine = layout_engine or NetworkXLayout()
        self.sizer = NodeSizer(self.config, self.sizing)
        self.composer = Composer(
            self.layout_engine, self.sizer, self.config, self.direction
        )
        self.simple_layout = SimpleLayout(self.sizer, self.config)
        self.avoidance = AvoidanceAnalyzer(self.config)
        self.margins = MarginAdjuster(self.config)
        self.confluence = ConfluenceCalculator(self.config)
        self.centering_pass = CenteringPass(self.config)
        self.ports = PortCalculator(self.config)
        self.assembler = FlowAssembler()
        self.exporter = FlowGraphExporter(default_font=font)

        self._trace: Optional[LayoutTrace] = None

    def generate(
        self,
        processes: Iterable[ProcessRecord],
        collapsed: Optional[Iterable[str]] = None,
        debug: bool = False,
    ) -> FlowGraph:
        """
        Lay out a list of processes.

        Args:
            processes: Process records or mappings in their JSON shape
            collapsed: Ids of the groups to render as single boxes; the
                ``group-`` node prefix is accepted and unknown ids are ignored
            debug: Record a LayoutTrace, available through get_trace()

        Returns:
            The laid-out FlowGraph

        Raises:
            ParseError: If the input records are malformed
            CycleDetectedError: If the simple algorithm meets a cycle
            LayoutError: If the layout engine fails
        """
        trace = LayoutTrace(algorithm=self.algorithm) if debug else None
        self._trace = trace

        records = self.parser.parse(processes)
        if trace:
            trace.process_count = len(records)
            trace.add_stage("parse", {"processes": [p.name for p in records]})

        hierarchy = GroupHierarchy.from_processes(records)
        collapsed_ids = self._normalize_collapsed(collapsed, hierarchy)
        if trace:
            trace.collapsed = sorted(collapsed_ids)
            trace.add_stage(
                "hierarchy",
                {
                    "groups": sorted(g.id for g in hierarchy),
                    "collapsed": sorted(collapsed_ids),
                },
            )

        has_cycles = DependencyGraph(records).has_cycle()

        classification = EdgeClassifier(hierarchy, collapsed_ids).classify(records)
        if trace:
            trace.add_stage(
                "classify",
                {
                    "edges": [e.id for e in classification.edges],
                    "hidden": dict(classification.hidden),
                    "dangling": list(classification.dangling),
                },
            )

        if self.algorithm == "simple":
            tree = self.simple_layout.layout(records, hierarchy, collapsed_ids)
            passes = 1
            if trace:
                trace.add_stage("compose_pass_1", {"algorithm": "simple"}, tree)
        else:
            if has_cycles:
                logger.warning(
                    "Process dependencies contain a cycle; "
                    "back edges are reversed for layering"
                )
            tree, passes = self._compose(
                records, hierarchy, classification, collapsed_ids, trace
            )

        top_down = self.direction == "DOWN"
        if top_down:
            moved = self.margins.enforce(tree, classification)
            if trace:
                trace.add_stage("margins", {"moved_groups": moved}, tree)

        confluence = {}
        if top_down:
            confluence = self.confluence.calculate(tree, classification)
            if trace:
                trace.add_stage(
                    "confluence",
                    {
                        k: (v.branch_y, v.join_y)
                        for k, v in sorted(confluence.items())
                    },
                )

        if self.centering and top_down:
            self.centering_pass.apply(tree, classification)
            if trace:
                trace.add_stage("centering", {}, tree)

        group_ports = self.ports.calculate(tree, classification)
        if trace:
            trace.add_stage(
                "ports",
                {
                    k: (len(v.entries), len(v.exits))
                    for k, v in sorted(group_ports.items())
                },
            )

        graph = self.assembler.assemble(tree, records, hierarchy, classification)
        graph.group_ports = group_ports
        graph.confluence = confluence
        graph.has_cycles = has_cycles
        graph.layout_passes = passes
        if trace:
            trace.add_stage(
                "assemble", {"nodes": len(graph.nodes), "edges": len(graph.edges)}
            )

        return graph

    def get_trace(self) -> Optional[LayoutTrace]:
        """
        Get the trace from the last debug generation.

        Returns:
            The LayoutTrace if generate() was called with debug=True,
            otherwise None.
        """
        return self._trace

    def save_json(
        self,
        processes: Iterable[ProcessRecord],
        filename: str,
        collapsed: Optional[Iterable[str]] = None,
    ) -> FlowGraph:
        """Generate a layout and save it as JSON."""
        graph = self.generate(processes, collapsed)
        self.exporter.save_json(graph, filename)
        return graph

    def save_png(
        self,
        processes: Iterable[ProcessRecord],
        filename: str,
        collapsed: Optional[Iterable[str]] = None,
        font_size: int = 12,
        scale: int = 1,
    ) -> FlowGraph:
        """Generate a layout and save a PNG preview of it."""
        graph = self.generate(processes, collapsed)
        self.exporter.save_png(graph, filename, font_size=font_size, scale=scale)
        return graph

    def _compose(
        self,
        records,
        hierarchy: GroupHierarchy,
        classification: EdgeClassification,
        collapsed: AbstractSet[str],
        trace: Optional[LayoutTrace],
    ) -> Tuple[BoxTree, int]:
        """Run composition passes until no group needs widening."""
        extra_padding: Dict[str, float] = {}
        passes = 0

        while True:
            passes += 1
            composition = self.composer.compose(
                records, hierarchy, classification, collapsed, extra_padding
            )
            if trace:
                trace.add_stage(
                    f"compose_pass_{passes}",
                    {"extra_padding": dict(extra_padding)},
                    composition.tree,
                )

            if passes >= self.max_layout_passes:
                break

            required = self.avoidance.analyze(composition.tree, classification)
            if trace:
                trace.add_stage(f"avoidance_pass_{passes}", {"required": required})
            if not required:
                break

            for group_id, amount in required.items():
                extra_padding[group_id] = extra_padding.get(group_id, 0.0) + amount
            logger.debug(
                "Widening %d group(s) and composing again: %s",
                len(required),
                ", ".join(sorted(required)),
            )

        return composition.tree, passes

    def _normalize_collapsed(
        self, collapsed: Optional[Iterable[str]], hierarchy: GroupHierarchy
    ) -> AbstractSet[str]:
        if not collapsed:
            return frozenset()
        result = set()
        for group_id in collapsed:
            if group_id.startswith(GROUP_PREFIX):
                group_id = group_id[len(GROUP_PREFIX):]
            if group_id in hierarchy:
                result.add(group_id)
            else:
                logger.debug("Ignoring unknown collapsed group '%s'", group_id)
        return frozenset(result)


def generate_flow_graph(
    processes: Iterable[ProcessRecord],
    collapsed: Optional[Iterable[str]] = None,
    **options,
) -> FlowGraph:
    """
    Lay out processes with a one-off generator.

    Args:
        processes: Process records or mappings
        collapsed: Ids of the groups to render collapsed
        **options: Keyword arguments for ProcessGraphGenerator
    """
    return ProcessGraphGenerator(**options).generate(processes, collapsed)
