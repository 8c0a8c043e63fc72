"""PDF Rendering Stage - Convert PDF pages to PNG images.

First stage of the visual OCR path. Uses PyMuPDF (fitz) for fast,
high-quality rendering straight from in-memory bytes. Memory is bounded by
capping the number of rendered pages.
"""

import hashlib
import logging
from typing import Generator, Optional

import fitz  # PyMuPDF

from docverify.config import settings
from docverify.errors import ImageProcessingError, UnsupportedDocument
from docverify.models import RasterPage

logger = logging.getLogger(__name__)


def compute_content_hash(content: bytes) -> str:
    """Compute SHA-256 hash of document bytes for log correlation."""
    return hashlib.sha256(content).hexdigest()


def open_pdf(content: bytes) -> fitz.Document:
    """Open PDF bytes, raising UnsupportedDocument when they are not a paged document."""
    try:
        pdf_doc = fitz.open(stream=content, filetype="pdf")
    except Exception as exc:
        raise UnsupportedDocument(
            "Document could not be opened as PDF",
            details={"reason": str(exc)},
        ) from exc

    if pdf_doc.page_count < 1:
        pdf_doc.close()
        raise UnsupportedDocument("Document has no pages")
    return pdf_doc


class PageRasterizer:
    """Renders PDF pages to PNG images.

    ``scale`` is a zoom factor relative to the PDF's 72 DPI base
    (2.0 renders at 144 DPI).
    """

    def __init__(
        self,
        scale: float = None,
        max_pages: int = None,
    ):
        """Initialize rasterizer.

        Args:
            scale: Zoom factor (default from settings for printed text)
            max_pages: Maximum pages to render (default from settings)
        """
        self.scale = scale or settings.printed_scale
        self.max_pages = max_pages or settings.max_pdf_pages

    def page_count(self, content: bytes) -> int:
        """Return the true page count of a PDF."""
        pdf_doc = open_pdf(content)
        try:
            return pdf_doc.page_count
        finally:
            pdf_doc.close()

    def render(
        self,
        content: bytes,
        max_pages: Optional[int] = None,
        scale: Optional[float] = None,
    ) -> list[RasterPage]:
        """Render up to ``max_pages`` pages in page order.

        Args:
            content: PDF bytes
            max_pages: Page limit, clamped to the document's page count
            scale: Zoom factor override

        Returns:
            List of RasterPage objects, 1-indexed
        """
        return list(self.iter_pages(content, max_pages=max_pages, scale=scale))

    def iter_pages(
        self,
        content: bytes,
        max_pages: Optional[int] = None,
        scale: Optional[float] = None,
    ) -> Generator[RasterPage, None, None]:
        """Yield rendered pages one at a time for memory efficiency."""
        limit = max_pages or self.max_pages
        zoom = scale or self.scale
        matrix = fitz.Matrix(zoom, zoom)

        pdf_doc = open_pdf(content)
        try:
            pages = min(pdf_doc.page_count, limit)
            logger.debug(
                "Rendering %d of %d pages at scale %.1f (doc %s)",
                pages,
                pdf_doc.page_count,
                zoom,
                compute_content_hash(content)[:12],
            )
            for page_num in range(pages):
                try:
                    page = self._render_page(pdf_doc, page_num, matrix)
                except ImageProcessingError as e:
                    logger.warning("Skipping page %d: %s", page_num + 1, e)
                    continue
                yield page
        finally:
            pdf_doc.close()

    def _render_page(self, pdf_doc: fitz.Document, page_num: int, matrix: fitz.Matrix) -> RasterPage:
        try:
            pixmap = pdf_doc[page_num].get_pixmap(matrix=matrix, alpha=False)
            image_bytes = pixmap.tobytes("png")
        except (RuntimeError, ValueError) as exc:
            raise ImageProcessingError(
                "Page could not be rendered",
                details={"page": page_num + 1, "reason": str(exc)},
            ) from exc

        return RasterPage(
            page_number=page_num + 1,  # 1-indexed
            width=max(1, pixmap.width),
            height=max(1, pixmap.height),
            image_bytes=image_bytes,
        )
