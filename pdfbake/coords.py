"""
Viewport -> document coordinate mapping.

Viewport space has its origin at the top-left with y growing downward.
Document space has its origin at the bottom-left with y growing upward.
Both share the horizontal axis.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from pdfbake.svg_path import PathSegment


class DocPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class DocBox(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float  # bottom-left corner
    y: float
    width: float
    height: float


def to_document_point(page_height: float, x: float, y: float) -> DocPoint:
    return DocPoint(x=float(x), y=float(page_height) - float(y))


def to_document_box(page_height: float, x: float, y: float, width: float, height: float) -> DocBox:
    # Viewport boxes hang from their top-left corner, document boxes sit on their bottom-left.
    return DocBox(
        x=float(x),
        y=float(page_height) - float(y) - float(height),
        width=float(width),
        height=float(height),
    )


def map_path_segments(origin: DocPoint, segments: list[PathSegment]) -> list[PathSegment]:
    """Place path-local (y-down) segments at a document-space origin."""
    mapped: list[PathSegment] = []
    for seg in segments:
        pts = seg.points
        flipped: list[float] = []
        for i in range(0, len(pts), 2):
            flipped.append(origin.x + pts[i])
            flipped.append(origin.y - pts[i + 1])
        mapped.append(PathSegment(op=seg.op, points=tuple(flipped)))
    return mapped
