"""PDFium-backed document surface (pypdfium2)."""

from __future__ import annotations

import ctypes
import io
from typing import Any

import pypdfium2 as pdfium
from PIL import Image

from pdfbake.annotation_types import ImageFormat
from pdfbake.colors import Color
from pdfbake.coords import DocPoint, map_path_segments
from pdfbake.svg_path import PathSegment

_PIL_FORMATS: dict[str, str] = {"png": "PNG", "jpeg": "JPEG"}


def _to_widestring(text: str) -> ctypes.Array:
    """NUL-terminated UTF-16LE buffer for FPDF_WIDESTRING arguments."""
    encoded = (text + "\x00").encode("utf-16-le")
    return (ctypes.c_ushort * (len(encoded) // 2)).from_buffer_copy(encoded)


class PdfiumPage:
    """One page of a PdfiumDocument. New page objects are appended, so they draw on top."""

    def __init__(self, page: pdfium.PdfPage):
        self._page = page
        self.dirty = False

    def get_size(self) -> tuple[float, float]:
        w, h = self._page.get_size()
        return float(w), float(h)

    def _insert(self, obj: Any) -> None:
        pdfium.raw.FPDFPage_InsertObject(self._page.raw, obj)
        self.dirty = True

    def draw_text(self, text: str, *, x: float, y: float, size: float, font: Any, color: Color) -> None:
        obj = pdfium.raw.FPDFPageObj_CreateTextObj(self._page.pdf.raw, font, ctypes.c_float(size))
        if not obj:
            raise RuntimeError("FPDFPageObj_CreateTextObj failed")
        if not pdfium.raw.FPDFText_SetText(obj, _to_widestring(text)):
            pdfium.raw.FPDFPageObj_Destroy(obj)
            raise RuntimeError("FPDFText_SetText failed")
        r, g, b = color.to_rgb255()
        pdfium.raw.FPDFPageObj_SetFillColor(obj, r, g, b, 255)
        pdfium.raw.FPDFPageObj_Transform(obj, 1.0, 0.0, 0.0, 1.0, x, y)
        self._insert(obj)

    def draw_filled_rect(
        self, *, x: float, y: float, width: float, height: float, color: Color, opacity: float
    ) -> None:
        obj = pdfium.raw.FPDFPageObj_CreateNewRect(x, y, width, height)
        if not obj:
            raise RuntimeError("FPDFPageObj_CreateNewRect failed")
        r, g, b = color.to_rgb255()
        pdfium.raw.FPDFPageObj_SetFillColor(obj, r, g, b, int(round(opacity * 255)))
        pdfium.raw.FPDFPath_SetDrawMode(obj, pdfium.raw.FPDF_FILLMODE_WINDING, False)
        self._insert(obj)

    def draw_image(self, image: pdfium.PdfImage, *, x: float, y: float, width: float, height: float) -> None:
        # Image objects are drawn into the unit square; the matrix stretches and places it.
        try:
            image.set_matrix(pdfium.PdfMatrix().scale(width, height).translate(x, y))
            self._page.insert_obj(image)
        except Exception:
            image.close()  # not on the page yet, so still ours to free
            raise
        self.dirty = True

    def draw_stroked_path(
        self, segments: list[PathSegment], *, x: float, y: float, color: Color, stroke_width: float
    ) -> None:
        placed = map_path_segments(DocPoint(x=x, y=y), segments)
        first, rest = placed[0], placed[1:]
        if first.op != "M":
            raise ValueError("path must begin with a moveto")

        obj = pdfium.raw.FPDFPageObj_CreateNewPath(*first.points)
        if not obj:
            raise RuntimeError("FPDFPageObj_CreateNewPath failed")
        try:
            for seg in rest:
                if seg.op == "M":
                    ok = pdfium.raw.FPDFPath_MoveTo(obj, *seg.points)
                elif seg.op == "L":
                    ok = pdfium.raw.FPDFPath_LineTo(obj, *seg.points)
                elif seg.op == "C":
                    ok = pdfium.raw.FPDFPath_BezierTo(obj, *seg.points)
                else:
                    ok = pdfium.raw.FPDFPath_Close(obj)
                if not ok:
                    raise RuntimeError(f"FPDFPath segment {seg.op} failed")

            r, g, b = color.to_rgb255()
            if not (
                pdfium.raw.FPDFPageObj_SetStrokeColor(obj, r, g, b, 255)
                and pdfium.raw.FPDFPageObj_SetStrokeWidth(obj, stroke_width)
                and pdfium.raw.FPDFPath_SetDrawMode(obj, pdfium.raw.FPDF_FILLMODE_NONE, True)
            ):
                raise RuntimeError("cannot set path stroke style")
        except Exception:
            pdfium.raw.FPDFPageObj_Destroy(obj)
            raise
        self._insert(obj)

    def close(self) -> None:
        if self.dirty:
            self._page.gen_content()
            self.dirty = False
        self._page.close()


class PdfiumDocument:
    """
    Single-use wrapper around a pypdfium2 document.

    Pages are opened lazily and cached; their content streams are regenerated
    before any page removal and before saving.
    """

    def __init__(self, pdf: pdfium.PdfDocument):
        self._pdf = pdf
        self._pages: dict[int, PdfiumPage] = {}
        self._fonts: list[Any] = []

    @property
    def page_count(self) -> int:
        return len(self._pdf)

    def get_page(self, index: int) -> PdfiumPage:
        if index not in self._pages:
            self._pages[index] = PdfiumPage(self._pdf[index])
        return self._pages[index]

    def embed_standard_font(self, name: str) -> Any:
        font = pdfium.raw.FPDFText_LoadStandardFont(self._pdf.raw, name.encode("utf-8"))
        if not font:
            raise RuntimeError(f"cannot load standard font {name!r}")
        self._fonts.append(font)
        return font

    def embed_raster_image(self, data: bytes, fmt: ImageFormat) -> pdfium.PdfImage:
        expected = _PIL_FORMATS[fmt]
        with Image.open(io.BytesIO(data)) as im:
            if im.format != expected:
                raise ValueError(f"image payload is {im.format or 'unknown'}, expected {expected}")
            im.load()

            image = pdfium.PdfImage.new(self._pdf)
            try:
                if fmt == "jpeg":
                    image.load_jpeg(io.BytesIO(data), inline=True)
                else:
                    mode = "RGBA" if ("A" in im.getbands() or "transparency" in im.info) else "RGB"
                    bitmap = pdfium.PdfBitmap.from_pil(im.convert(mode))
                    try:
                        image.set_bitmap(bitmap)
                    finally:
                        bitmap.close()
            except Exception:
                image.close()
                raise
        return image

    def _flush_pages(self) -> None:
        for page in self._pages.values():
            page.close()
        self._pages.clear()

    def remove_page(self, index: int) -> None:
        self._flush_pages()
        self._pdf.del_page(index)

    def serialize(self) -> bytes:
        self._flush_pages()
        buf = io.BytesIO()
        self._pdf.save(buf)
        return buf.getvalue()

    def close(self) -> None:
        self._flush_pages()
        for font in self._fonts:
            pdfium.raw.FPDFFont_Close(font)
        self._fonts.clear()
        self._pdf.close()


def load_pdfium_document(data: bytes) -> PdfiumDocument:
    return PdfiumDocument(pdfium.PdfDocument(data))
