"""
Annotation mutation engine.

Takes a source PDF, an ordered list of annotation records and a set of
zero-based page indices to delete, and bakes everything into a new PDF.
Only loading and saving can fail the whole call; every per-annotation or
per-deletion problem is isolated and reported as an outcome instead.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Literal

from pdfbake.annotation_types import (
    ImageAnnotation,
    PathAnnotation,
    RectAnnotation,
    Rejected,
    TextAnnotation,
    validate_annotation,
)
from pdfbake.colors import BLACK, YELLOW, parse_color
from pdfbake.config import EngineConfig
from pdfbake.coords import to_document_box, to_document_point
from pdfbake.deletion import plan_deletions
from pdfbake.errors import DocumentLoadError, DocumentSaveError
from pdfbake.providers.base import DocumentLoader, DocumentSurface, PageSurface
from pdfbake.providers.pdfium import load_pdfium_document

OutcomeStatus = Literal["applied", "skipped", "failed"]

# PDFium may not be entered from two threads at once, not even for different documents.
_ENGINE_LOCK = threading.Lock()


@dataclass(frozen=True)
class AnnotationOutcome:
    """What happened to one input record."""

    index: int  # position in the caller's list
    annotation_id: str | None
    kind: str | None
    status: OutcomeStatus
    reason: str | None = None


@dataclass(frozen=True)
class DeletionOutcome:
    index: int  # zero-based page index as requested
    status: OutcomeStatus
    reason: str | None = None


@dataclass
class BakeResult:
    data: bytes
    page_count: int
    annotations: list[AnnotationOutcome] = field(default_factory=list)
    deletions: list[DeletionOutcome] = field(default_factory=list)

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.annotations if o.status == status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_count": self.page_count,
            "size_bytes": len(self.data),
            "annotations": [asdict(o) for o in self.annotations],
            "deletions": [asdict(o) for o in self.deletions],
        }


@dataclass
class MutationEngine:
    """Applies annotation lists to documents through a capability surface."""

    config: EngineConfig = field(default_factory=EngineConfig)
    loader: DocumentLoader = load_pdfium_document
    log_fn: Callable[[str], None] | None = None

    def _log(self, msg: str) -> None:
        if self.log_fn:
            self.log_fn(msg)

    def apply(
        self,
        source: bytes,
        annotations: Sequence[Any],
        deleted_page_indices: Iterable[int] = (),
    ) -> BakeResult:
        """
        Bake `annotations` into a copy of `source` and drop deleted pages.

        Annotations are drawn strictly in list order, so later ones stack on
        top. `source` is never modified; the result holds a fresh buffer.

        Raises:
            DocumentLoadError: the source cannot be opened or prepared
            DocumentSaveError: the mutated document cannot be serialized
        """
        records = list(annotations)
        deletions = frozenset(int(i) for i in deleted_page_indices)

        with _ENGINE_LOCK:
            try:
                doc = self.loader(bytes(source))
            except Exception as e:
                raise DocumentLoadError(f"cannot load source document: {e}") from e
            try:
                return self._run(doc, records, deletions)
            finally:
                doc.close()

    async def apply_async(
        self,
        source: bytes,
        annotations: Sequence[Any],
        deleted_page_indices: Iterable[int] = (),
    ) -> BakeResult:
        """Same as apply(), awaited on a worker thread."""
        return await asyncio.to_thread(self.apply, source, list(annotations), tuple(deleted_page_indices))

    def _run(self, doc: DocumentSurface, records: list[Any], deletions: frozenset[int]) -> BakeResult:
        try:
            font = doc.embed_standard_font(self.config.font_name)
        except Exception as e:
            raise DocumentLoadError(f"cannot embed font {self.config.font_name!r}: {e}") from e

        outcomes = [self._apply_one(doc, font, i, record, deletions) for i, record in enumerate(records)]
        deletion_outcomes = self._delete_pages(doc, deletions)

        try:
            data = doc.serialize()
        except Exception as e:
            raise DocumentSaveError(f"cannot serialize document: {e}") from e

        result = BakeResult(
            data=data,
            page_count=doc.page_count,
            annotations=outcomes,
            deletions=deletion_outcomes,
        )
        self._log(
            f"baked annotations={len(outcomes)} applied={result.count('applied')} "
            f"skipped={result.count('skipped')} failed={result.count('failed')} "
            f"removed_pages={sum(1 for d in deletion_outcomes if d.status == 'applied')} "
            f"pages={result.page_count}"
        )
        return result

    def _apply_one(
        self,
        doc: DocumentSurface,
        font: Any,
        index: int,
        record: Any,
        deletions: frozenset[int],
    ) -> AnnotationOutcome:
        ann = validate_annotation(record)
        if isinstance(ann, Rejected):
            self._log(f"annotation #{index} ({ann.annotation_id}) rejected: {ann.reason}")
            return AnnotationOutcome(index, ann.annotation_id, ann.kind, "skipped", f"invalid: {ann.reason}")

        page_count = doc.page_count
        if ann.page > page_count:
            reason = f"page {ann.page} out of range (document has {page_count} pages)"
            self._log(f"annotation {ann.id} skipped: {reason}")
            return AnnotationOutcome(index, ann.id, ann.type, "skipped", reason)
        if ann.page - 1 in deletions:
            reason = f"page {ann.page} is scheduled for deletion"
            self._log(f"annotation {ann.id} skipped: {reason}")
            return AnnotationOutcome(index, ann.id, ann.type, "skipped", reason)

        draw = {
            "text": self._draw_text,
            "rect": self._draw_rect,
            "image": self._draw_image,
            "path": self._draw_path,
        }[ann.type]
        try:
            page = doc.get_page(ann.page - 1)
            _, page_height = page.get_size()
            draw(doc, page, font, ann, page_height)
        except Exception as e:
            self._log(f"annotation {ann.id} ({ann.type}) on page {ann.page} failed: {e}")
            return AnnotationOutcome(index, ann.id, ann.type, "failed", str(e) or type(e).__name__)
        return AnnotationOutcome(index, ann.id, ann.type, "applied")

    def _draw_text(
        self, doc: DocumentSurface, page: PageSurface, font: Any, ann: TextAnnotation, page_height: float
    ) -> None:
        pt = to_document_point(page_height, ann.x, ann.y)
        page.draw_text(
            ann.text,
            x=pt.x,
            y=pt.y,
            size=ann.font_size,
            font=font,
            color=parse_color(ann.color, BLACK),
        )

    def _draw_rect(
        self, doc: DocumentSurface, page: PageSurface, font: Any, ann: RectAnnotation, page_height: float
    ) -> None:
        box = to_document_box(page_height, ann.x, ann.y, ann.width, ann.height)
        page.draw_filled_rect(
            x=box.x,
            y=box.y,
            width=box.width,
            height=box.height,
            color=parse_color(ann.color, YELLOW),
            opacity=self.config.rect_opacity,
        )

    def _draw_image(
        self, doc: DocumentSurface, page: PageSurface, font: Any, ann: ImageAnnotation, page_height: float
    ) -> None:
        image = doc.embed_raster_image(ann.payload, ann.format)
        box = to_document_box(page_height, ann.x, ann.y, ann.width, ann.height)
        page.draw_image(image, x=box.x, y=box.y, width=box.width, height=box.height)

    def _draw_path(
        self, doc: DocumentSurface, page: PageSurface, font: Any, ann: PathAnnotation, page_height: float
    ) -> None:
        origin = to_document_point(page_height, ann.x, ann.y)
        page.draw_stroked_path(
            ann.segments,
            x=origin.x,
            y=origin.y,
            color=parse_color(ann.color, BLACK),
            stroke_width=ann.stroke_width,
        )

    def _delete_pages(self, doc: DocumentSurface, deletions: frozenset[int]) -> list[DeletionOutcome]:
        outcomes: list[DeletionOutcome] = []
        for idx in plan_deletions(deletions):
            page_count = doc.page_count
            if idx < 0 or idx >= page_count:
                reason = f"page index {idx} out of range (document has {page_count} pages)"
                self._log(f"deletion skipped: {reason}")
                outcomes.append(DeletionOutcome(idx, "skipped", reason))
                continue
            try:
                doc.remove_page(idx)
            except Exception as e:
                self._log(f"deletion of page index {idx} failed: {e}")
                outcomes.append(DeletionOutcome(idx, "failed", str(e) or type(e).__name__))
                continue
            outcomes.append(DeletionOutcome(idx, "applied"))
        return outcomes


def modify_pdf(
    source: bytes,
    annotations: Sequence[Any],
    deleted_page_indices: Iterable[int] = (),
    *,
    log_fn: Callable[[str], None] | None = None,
) -> bytes:
    """Bake annotations into `source` and return the new PDF bytes."""
    return MutationEngine(log_fn=log_fn).apply(source, annotations, deleted_page_indices).data


async def modify_pdf_async(
    source: bytes,
    annotations: Sequence[Any],
    deleted_page_indices: Iterable[int] = (),
    *,
    log_fn: Callable[[str], None] | None = None,
) -> bytes:
    result = await MutationEngine(log_fn=log_fn).apply_async(source, annotations, deleted_page_indices)
    return result.data
