"""Base protocols for the document capability surface."""

from __future__ import annotations

from typing import Any, Callable, Protocol

from pdfbake.annotation_types import ImageFormat
from pdfbake.colors import Color
from pdfbake.svg_path import PathSegment


class PageSurface(Protocol):
    """
    Drawing primitives of one page. All coordinates are document space
    (origin bottom-left, y up); later draws stack on top of earlier ones.
    """

    def get_size(self) -> tuple[float, float]: ...

    def draw_text(self, text: str, *, x: float, y: float, size: float, font: Any, color: Color) -> None: ...

    def draw_filled_rect(
        self, *, x: float, y: float, width: float, height: float, color: Color, opacity: float
    ) -> None: ...

    def draw_image(self, image: Any, *, x: float, y: float, width: float, height: float) -> None: ...

    def draw_stroked_path(
        self, segments: list[PathSegment], *, x: float, y: float, color: Color, stroke_width: float
    ) -> None: ...


class DocumentSurface(Protocol):
    @property
    def page_count(self) -> int: ...

    def get_page(self, index: int) -> PageSurface: ...

    def embed_standard_font(self, name: str) -> Any: ...

    def embed_raster_image(self, data: bytes, fmt: ImageFormat) -> Any: ...

    def remove_page(self, index: int) -> None: ...

    def serialize(self) -> bytes: ...

    def close(self) -> None: ...


DocumentLoader = Callable[[bytes], DocumentSurface]
