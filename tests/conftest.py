from __future__ import annotations

import base64
import io
from dataclasses import dataclass, field
from typing import Any

import pypdfium2 as pdfium
import pytest
from PIL import Image

LETTER = (612.0, 792.0)


def make_pdf(sizes: list[tuple[float, float]], fills: list[tuple[int, int, int]] | None = None) -> bytes:
    """Build a PDF with one page per size, each optionally flooded with a solid color."""
    pdf = pdfium.PdfDocument.new()
    for i, (w, h) in enumerate(sizes):
        page = pdf.new_page(w, h)
        if fills:
            r, g, b = fills[i]
            rect = pdfium.raw.FPDFPageObj_CreateNewRect(0, 0, w, h)
            pdfium.raw.FPDFPageObj_SetFillColor(rect, r, g, b, 255)
            pdfium.raw.FPDFPath_SetDrawMode(rect, pdfium.raw.FPDF_FILLMODE_WINDING, False)
            pdfium.raw.FPDFPage_InsertObject(page.raw, rect)
            page.gen_content()
        page.close()
    buf = io.BytesIO()
    pdf.save(buf)
    pdf.close()
    return buf.getvalue()


def render_page(data: bytes, index: int = 0) -> Image.Image:
    pdf = pdfium.PdfDocument(data)
    try:
        page = pdf[index]
        bitmap = page.render(scale=1)
        img = bitmap.to_pil().convert("RGB")
        bitmap.close()
        page.close()
        return img
    finally:
        pdf.close()


def page_sizes(data: bytes) -> list[tuple[float, float]]:
    pdf = pdfium.PdfDocument(data)
    try:
        sizes = []
        for i in range(len(pdf)):
            page = pdf[i]
            sizes.append(tuple(round(v, 2) for v in page.get_size()))
            page.close()
        return sizes
    finally:
        pdf.close()


def pixel_at(img: Image.Image, x: float, y_doc: float) -> tuple[int, int, int]:
    """Sample a rendered page (scale 1) at a document-space point."""
    return img.getpixel((int(x), int(img.height - y_doc)))


def data_url(fmt: str, color: tuple[int, int, int] = (255, 0, 0), size: tuple[int, int] = (4, 4)) -> str:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt.upper())
    mime = "png" if fmt.lower() == "png" else "jpeg"
    return f"data:image/{mime};base64," + base64.b64encode(buf.getvalue()).decode("ascii")


# ---------------------------------------------------------------------------
# In-memory recording surface
# ---------------------------------------------------------------------------


@dataclass
class FakePage:
    index: int
    size: tuple[float, float]
    ops: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    journal: list[tuple[int, str]] = field(default_factory=list)  # shared across pages

    def _record(self, op: str, args: dict[str, Any]) -> None:
        self.ops.append((op, args))
        self.journal.append((self.index, op))

    def get_size(self) -> tuple[float, float]:
        return self.size

    def draw_text(self, text, *, x, y, size, font, color):
        self._record("text", dict(text=text, x=x, y=y, size=size, font=font, color=color))

    def draw_filled_rect(self, *, x, y, width, height, color, opacity):
        self._record("rect", dict(x=x, y=y, width=width, height=height, color=color, opacity=opacity))

    def draw_image(self, image, *, x, y, width, height):
        self._record("image", dict(image=image, x=x, y=y, width=width, height=height))

    def draw_stroked_path(self, segments, *, x, y, color, stroke_width):
        self._record("path", dict(segments=segments, x=x, y=y, color=color, stroke_width=stroke_width))


class FakeDocument:
    def __init__(self, sizes: list[tuple[float, float]], *, fail_save: bool = False, fail_images: bool = False):
        self.journal: list[tuple[int, str]] = []  # draw order across all pages
        self.pages = [FakePage(i, s, journal=self.journal) for i, s in enumerate(sizes)]
        self.fonts: list[str] = []
        self.removed: list[int] = []
        self.closed = False
        self.fail_save = fail_save
        self.fail_images = fail_images

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def get_page(self, index: int) -> FakePage:
        return self.pages[index]

    def embed_standard_font(self, name: str):
        self.fonts.append(name)
        return f"font:{name}"

    def embed_raster_image(self, data: bytes, fmt: str):
        if self.fail_images:
            raise ValueError("corrupt image")
        return ("image", fmt, len(data))

    def remove_page(self, index: int) -> None:
        self.removed.append(index)
        del self.pages[index]

    def serialize(self) -> bytes:
        if self.fail_save:
            raise MemoryError("out of memory")
        return b"%PDF-fake " + ",".join(str(p.index) for p in self.pages).encode()

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def letter_pdf() -> bytes:
    return make_pdf([LETTER])


@pytest.fixture
def three_page_pdf() -> bytes:
    return make_pdf(
        [(600.0, 800.0), LETTER, (500.0, 700.0)],
        fills=[(200, 30, 30), (30, 200, 30), (30, 30, 200)],
    )
