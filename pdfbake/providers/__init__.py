"""Document capability surfaces."""

from pdfbake.providers.base import DocumentLoader, DocumentSurface, PageSurface
from pdfbake.providers.pdfium import PdfiumDocument, PdfiumPage, load_pdfium_document

__all__ = ["DocumentLoader", "DocumentSurface", "PageSurface", "PdfiumDocument", "PdfiumPage", "load_pdfium_document"]
