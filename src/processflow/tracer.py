"""
Debug tracing infrastructure for processflow.

When debug mode is enabled, the generator records a snapshot after every
stage of the layout pipeline: the data that stage produced and a text
outline of the box tree as it stood at that point.

This is primarily useful for:
1. Understanding why a box ended up where it did
2. Seeing how the avoidance loop widened groups between passes
3. Writing targeted tests against intermediate states

Usage:
    >>> generator = ProcessGraphGenerator()
    >>> graph = generator.generate(processes, debug=True)
    >>> trace = generator.get_trace()
    >>> print(trace.summary())
    >>> trace.dump_to_file("layout_trace.txt")
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PipelineStage:
    """
    Snapshot of state at a pipeline stage.

    The layout pipeline has these stages:
    1. parse - Normalize input records
    2. hierarchy - Synthesize groups from dotted names
    3. classify - Resolve effective endpoints and nesting levels
    4. compose_pass_N - Result of composition pass N
    5. avoidance_pass_N - Extra padding requested after pass N
    6. margins - After vertical margin enforcement
    7. confluence - Branch and join hints
    8. centering - After re-centering layers
    9. ports - Entry and exit ports of groups
    10. assemble - Final node and edge counts

    Attributes:
        name: Name of this pipeline stage
        data: Dictionary of relevant data at this stage
        tree_snapshot: Optional outline of the box tree at this point
    """

    name: str
    data: Dict[str, Any]
    tree_snapshot: Optional[List[str]] = None

    def __str__(self) -> str:
        lines = [f"=== Stage: {self.name} ==="]
        for key, value in self.data.items():
            str_val = str(value)
            if len(str_val) > 100:
                str_val = str_val[:100] + "..."
            lines.append(f"  {key}: {str_val}")
        if self.tree_snapshot:
            lines.append("  Box tree:")
            for row in self.tree_snapshot:
                lines.append(f"    {row}")
        return "\n".join(lines)


@dataclass
class LayoutTrace:
    """
    Complete trace of one layout invocation.

    Attributes:
        stages: List of pipeline stages with their data
        process_count: Number of input processes
        collapsed: Ids of the collapsed groups
        algorithm: Layout algorithm that was used
    """

    stages: List[PipelineStage] = field(default_factory=list)
    process_count: int = 0
    collapsed: List[str] = field(default_factory=list)
    algorithm: str = "layered"

    def add_stage(
        self,
        name: str,
        data: Dict[str, Any],
        tree: Optional[Any] = None,
    ) -> None:
        """
        Add a pipeline stage snapshot.

        Args:
            name: Name of the stage (e.g., "centering")
            data: Dictionary of relevant data at this stage
            tree: Optional BoxTree to snapshot
        """
        snapshot = tree.describe() if tree is not None else None
        self.stages.append(PipelineStage(name, dict(data), snapshot))

    def get_stage(self, name: str) -> Optional[PipelineStage]:
        """Get a specific pipeline stage by name."""
        for stage in self.stages:
            if stage.name == name:
                return stage
        return None

    def get_tree_at_stage(self, name: str) -> Optional[List[str]]:
        stage = self.get_stage(name)
        if stage and stage.tree_snapshot:
            return stage.tree_snapshot
        return None

    def summary(self) -> str:
        lines = [
            "=" * 60,
            "LAYOUT TRACE SUMMARY",
            "=" * 60,
            "",
            f"Algorithm: {self.algorithm}",
            f"Processes: {self.process_count}",
            f"Collapsed: {', '.join(self.collapsed) or '-'}",
            "",
            f"Pipeline stages: {len(self.stages)}",
        ]
        for stage in self.stages:
            has_tree = "+" if stage.tree_snapshot else "-"
            lines.append(f"  [{has_tree}] {stage.name}")
        return "\n".join(lines)

    def dump(self) -> str:
        """Complete human-readable dump of every stage."""
        lines = [self.summary(), "", "=" * 60, "DETAILED TRACE", "=" * 60, ""]
        for stage in self.stages:
            lines.append(str(stage))
            lines.append("")
        return "\n".join(lines)

    def dump_to_file(self, filename: str) -> None:
        """Write the complete trace dump to a file."""
        with open(filename, "w", encoding="utf-8") as f:
            f.write(self.dump())

    def dump_tree_evolution(self) -> str:
        """Show the box tree outline after each stage that recorded one."""
        lines = [
            "=" * 60,
            "BOX TREE EVOLUTION",
            "=" * 60,
        ]
        for stage in self.stages:
            if stage.tree_snapshot:
                lines.append("")
                lines.append(f"--- After: {stage.name} ---")
                lines.extend(stage.tree_snapshot)
        return "\n".join(lines)
