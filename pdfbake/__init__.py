"""
pdfbake - bake annotation overlays into PDF documents.

This package takes a source PDF, an ordered list of annotations (text,
rectangles, images, freehand paths) authored in viewport coordinates, and
an optional set of pages to delete, and produces a new PDF with the
overlays drawn permanently into the page content (PDFium via pypdfium2).

Modules:
    annotation_types: Annotation schema and validation
    cli: Command-line interface
    colors: Hex color parsing
    config: Engine configuration
    coords: Viewport to document coordinate mapping
    deletion: Page deletion planning
    engine: The mutation engine
    errors: Fatal error kinds
    session: Collaborative session messages and state
    svg_path: SVG path data parsing
"""

from pdfbake import (
    annotation_types,
    colors,
    config,
    coords,
    deletion,
    engine,
    errors,
    session,
    svg_path,
)
from pdfbake.engine import BakeResult, MutationEngine, modify_pdf, modify_pdf_async
from pdfbake.errors import BakeError, DocumentLoadError, DocumentSaveError

__version__ = "0.1.0"

__all__ = [
    "annotation_types",
    "colors",
    "config",
    "coords",
    "deletion",
    "engine",
    "errors",
    "session",
    "svg_path",
    "BakeError",
    "BakeResult",
    "DocumentLoadError",
    "DocumentSaveError",
    "MutationEngine",
    "modify_pdf",
    "modify_pdf_async",
]
