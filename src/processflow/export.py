"""
File export functionality for layout results.

This module handles exporting a FlowGraph to files:
- JSON (.json) - The node/edge model as consumed by a rendering front end
- PNG images - A rasterized preview of boxes, groups and edges

The PNG preview is a debugging aid: groups are drawn as outlines with their
label in the header band, processes as boxes outlined in their status color,
and edges as orthogonal polylines through the confluence hints.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from .models import STATUS_COLORS, FlowGraph, ProcessStatus


class FlowGraphExporter:
    """
    Exports layout results to various file formats.

    Attributes:
        default_font: Default font name for PNG export.
    """

    def __init__(self, default_font: Optional[str] = None):
        """
        Initialize the exporter.

        Args:
            default_font: Default font name for PNG export (e.g., "DejaVu Sans").
        """
        self.default_font = default_font

    def save_json(self, graph: FlowGraph, filename: str, indent: int = 2) -> None:
        """
        Save a layout result as JSON.

        Args:
            graph: The layout result to save.
            filename: Output filename (should end in .json).
            indent: JSON indentation.
        """
        output_path = Path(filename)
        output_path.write_text(
            json.dumps(graph.to_dict(), indent=indent), encoding="utf-8"
        )

    def save_png(
        self,
        graph: FlowGraph,
        filename: str,
        font_size: int = 12,
        bg_color: str = "#FFFFFF",
        padding: int = 20,
        font: Optional[str] = None,
        scale: int = 1,
    ) -> None:
        """
        Save a layout result as a PNG preview.

        Args:
            graph: The layout result to render.
            filename: Output filename (should end in .png).
            font_size: Font size in points.
            bg_color: Background color as hex string.
            padding: Padding around the diagram in pixels.
            font: Font name to use (overrides default_font if provided).
            scale: Resolution multiplier.
        """
        img = self.render_image(graph, font_size, bg_color, padding, font, scale)
        img.save(Path(filename), "PNG")

    def render_image(
        self,
        graph: FlowGraph,
        font_size: int = 12,
        bg_color: str = "#FFFFFF",
        padding: int = 20,
        font: Optional[str] = None,
        scale: int = 1,
    ) -> Image.Image:
        """Render a layout result into a Pillow image."""
        rects: Dict[str, Tuple[float, float, float, float]] = {}
        for node_id, bounds in list(graph.group_boxes.items()) + list(
            graph.process_boxes.items()
        ):
            rects[node_id] = (bounds.x, bounds.y, bounds.width, bounds.height)

        max_x = max((x + w for x, _, w, _ in rects.values()), default=0)
        max_y = max((y + h for _, y, _, h in rects.values()), default=0)
        width = int((max_x + padding * 2) * scale) or 1
        height = int((max_y + padding * 2) * scale) or 1

        img = Image.new("RGB", (max(width, 100), max(height, 100)), bg_color)
        draw = ImageDraw.Draw(img)
        loaded_font = self._load_font(font_size * scale, font or self.default_font)

        def to_px(x: float, y: float) -> Tuple[int, int]:
            return int((x + padding) * scale), int((y + padding) * scale)

        for node in graph.nodes:
            if not node.is_group:
                continue
            x, y, w, h = rects[node.id]
            outline = "#94a3b8" if not node.data.get("collapsed") else "#475569"
            draw.rectangle(
                [to_px(x, y), to_px(x + w, y + h)], outline=outline, width=scale
            )
            draw.text(
                to_px(x + 10, y + 10),
                str(node.data.get("label", "")),
                font=loaded_font,
                fill="#334155",
            )

        for edge in graph.edges:
            if edge.source not in rects or edge.target not in rects:
                continue
            points = self._edge_path(graph, rects, edge.source, edge.target)
            color = STATUS_COLORS.get(
                edge.target_status, STATUS_COLORS[ProcessStatus.NOTSTARTED]
            )
            draw.line([to_px(px, py) for px, py in points], fill=color, width=2 * scale)

        for node in graph.nodes:
            if node.is_group:
                continue
            x, y, w, h = rects[node.id]
            status = ProcessStatus(node.data.get("status", ProcessStatus.NOTSTARTED))
            draw.rectangle(
                [to_px(x, y), to_px(x + w, y + h)],
                fill="#FFFFFF",
                outline=STATUS_COLORS[status],
                width=2 * scale,
            )
            draw.text(
                to_px(x + 10, y + h / 2 - font_size / 2),
                str(node.data.get("shortLabel", node.id)),
                font=loaded_font,
                fill="#0f172a",
            )

        return img

    def _edge_path(
        self,
        graph: FlowGraph,
        rects: Dict[str, Tuple[float, float, float, float]],
        source: str,
        target: str,
    ) -> List[Tuple[float, float]]:
        """Orthogonal path from the source's bottom to the target's top."""
        sx, sy, sw, sh = rects[source]
        tx, ty, tw, _ = rects[target]
        start = (sx + sw / 2, sy + sh)
        end = (tx + tw / 2, ty)

        mid_y = (start[1] + end[1]) / 2
        source_point = graph.confluence.get(source)
        target_point = graph.confluence.get(target)
        if target_point is not None and target_point.join_y is not None:
            mid_y = target_point.join_y
        elif source_point is not None and source_point.branch_y is not None:
            mid_y = source_point.branch_y

        return [start, (start[0], mid_y), (end[0], mid_y), end]

    def _load_font(
        self, font_size: int, font_name: Optional[str] = None
    ) -> ImageFont.ImageFont:
        """
        Load a font for PNG rendering.

        Tries the following in order:
        1. User-specified font name if provided
        2. Common system sans-serif fonts
        3. Pillow's default font
        """
        fonts_to_try = []
        if font_name:
            fonts_to_try.append(font_name)

        fonts_to_try.extend(
            [
                # Linux
                "DejaVuSans",
                "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
                # macOS
                "Helvetica",
                "/System/Library/Fonts/Helvetica.ttc",
                # Windows
                "Arial",
                "C:/Windows/Fonts/arial.ttf",
            ]
        )

        for font in fonts_to_try:
            try:
                return ImageFont.truetype(font, font_size)
            except OSError:
                continue

        return ImageFont.load_default(size=font_size)
