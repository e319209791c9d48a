"""
processflow - Hierarchical layout for grouped process graphs

A Python library that lays out process dependency graphs whose dotted names
form nested groups, producing a node/edge model ready for a flow renderer.

Example:
    >>> from processflow import ProcessGraphGenerator
    >>> generator = ProcessGraphGenerator()
    >>> graph = generator.generate([
    ...     {"name": "a", "status": "SUCCESS"},
    ...     {"name": "b.c", "upstream_processes": ["a"]},
    ...     {"name": "b.d", "upstream_processes": ["b.c"]},
    ... ])
    >>> graph.get_edge("a->b.c").target
    'b.c'

Collapsing Example:
    >>> graph = generator.generate(processes, collapsed={"b"})
    >>> graph.get_edge("a->group-b") is not None
    True

Debug Mode Example:
    >>> graph = generator.generate(processes, debug=True)
    >>> trace = generator.get_trace()
    >>> print(trace.summary())
"""

from .boxes import Box, BoxTree
from .config import LayoutConfig
from .debug import BoxTreeInspector, diff_flow_graphs
from .export import FlowGraphExporter
from .generator import ProcessGraphGenerator, generate_flow_graph
from .graph import (
    CycleDetectedError,
    DependencyGraph,
    ProcessStats,
    process_stats,
)
from .groups import GroupHierarchy, build_group_hierarchy
from .layout import (
    LayoutEdge,
    LayoutEngine,
    LayoutError,
    LayoutNode,
    LayoutOptions,
    NetworkXLayout,
    Padding,
)
from .models import (
    STATUS_COLORS,
    BoxBounds,
    ConfluencePoint,
    FlowEdge,
    FlowGraph,
    FlowNode,
    Group,
    GroupPorts,
    Port,
    Process,
    ProcessStatus,
    extract_group,
)
from .parser import ParseError, Parser, parse_processes
from .tracer import LayoutTrace, PipelineStage

__version__ = "0.3.0"

__all__ = [
    # Main API
    "ProcessGraphGenerator",
    "generate_flow_graph",
    "LayoutConfig",
    # Models
    "Process",
    "ProcessStatus",
    "STATUS_COLORS",
    "Group",
    "BoxBounds",
    "Port",
    "GroupPorts",
    "ConfluencePoint",
    "FlowNode",
    "FlowEdge",
    "FlowGraph",
    "extract_group",
    # Parser
    "Parser",
    "ParseError",
    "parse_processes",
    # Graph
    "DependencyGraph",
    "CycleDetectedError",
    "ProcessStats",
    "process_stats",
    "GroupHierarchy",
    "build_group_hierarchy",
    # Layout engine
    "LayoutEngine",
    "NetworkXLayout",
    "LayoutNode",
    "LayoutEdge",
    "LayoutOptions",
    "LayoutError",
    "Padding",
    "Box",
    "BoxTree",
    # Export
    "FlowGraphExporter",
    # Debug/Tracing (for development and debugging)
    "LayoutTrace",
    "PipelineStage",
    "BoxTreeInspector",
    "diff_flow_graphs",
]
