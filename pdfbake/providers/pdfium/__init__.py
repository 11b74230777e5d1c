"""PDFium (pypdfium2) implementation of the capability surface."""

from pdfbake.providers.pdfium.document import PdfiumDocument, PdfiumPage, load_pdfium_document

__all__ = ["PdfiumDocument", "PdfiumPage", "load_pdfium_document"]
