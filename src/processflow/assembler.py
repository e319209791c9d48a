"""
Output assembly.

Turns the final box tree and the classified edges into the node and edge
records handed to the rendering side.
"""

from typing import Dict, List, Optional

from .boxes import BoxTree
from .edges import EdgeClassification
from .groups import GroupHierarchy
from .models import (
    ROOT_GROUP,
    STATUS_COLORS,
    BoxBounds,
    FlowEdge,
    FlowGraph,
    FlowNode,
    Process,
    ProcessStatus,
)


def edge_style(source_status: ProcessStatus, target_status: ProcessStatus) -> str:
    """Stroke style of an edge, colored by the status of its target."""
    color = STATUS_COLORS.get(target_status, STATUS_COLORS[ProcessStatus.NOTSTARTED])
    return f"stroke: {color}; stroke-width: 2px; opacity: 0.6;"


class FlowAssembler:
    """Builds a FlowGraph from a laid-out box tree."""

    def assemble(
        self,
        tree: BoxTree,
        processes: List[Process],
        hierarchy: GroupHierarchy,
        classification: EdgeClassification,
    ) -> FlowGraph:
        graph = FlowGraph(hidden_edges=dict(classification.hidden))
        graph.nodes = self.build_nodes(tree, processes, hierarchy, classification)
        graph.edges = self.build_edges(classification)
        for box in tree.walk():
            bounds = BoxBounds(box.x, box.y, box.width, box.height)
            if box.is_group:
                graph.group_boxes[box.id] = bounds
            else:
                graph.process_boxes[box.id] = bounds
        return graph

    def build_nodes(
        self,
        tree: BoxTree,
        processes: List[Process],
        hierarchy: GroupHierarchy,
        classification: EdgeClassification,
    ) -> List[FlowNode]:
        """One node per visible box, parents before children."""
        process_map = {p.name: p for p in processes}
        nodes: List[FlowNode] = []

        for box in tree.walk():
            parent_id: Optional[str] = box.parent_id
            if parent_id == tree.root_id:
                parent_id = None
            position = tree.relative_position(box.id)

            if box.is_group:
                group = hierarchy.by_node_id(box.id)
                nodes.append(
                    FlowNode(
                        id=box.id,
                        type="group",
                        position=position,
                        data={
                            "label": group.label,
                            "fullPath": group.id,
                            "collapsed": box.collapsed,
                            "hiddenEdges": classification.hidden.get(box.id, 0),
                        },
                        parent_id=parent_id,
                        width=box.width,
                        height=box.height,
                    )
                )
                continue

            process = process_map[box.id]
            nodes.append(
                FlowNode(
                    id=box.id,
                    type="process",
                    position=position,
                    data={
                        "label": process.name,
                        "shortLabel": process.short_name,
                        "status": process.status.value,
                        "errorMessage": process.last_run_error_message,
                        "group": process.group_id or ROOT_GROUP,
                        "kind": process.kind,
                    },
                    parent_id=parent_id,
                )
            )

        return nodes

    def build_edges(self, classification: EdgeClassification) -> List[FlowEdge]:
        edges: Dict[str, FlowEdge] = {}
        for edge in classification.edges:
            if edge.id in edges:
                continue
            edges[edge.id] = FlowEdge(
                id=edge.id,
                source=edge.effective_source,
                target=edge.effective_target,
                animated=edge.target_status == ProcessStatus.INPROGRESS,
                style=edge_style(edge.source_status, edge.target_status),
                source_status=edge.source_status,
                target_status=edge.target_status,
            )
        return list(edges.values())
