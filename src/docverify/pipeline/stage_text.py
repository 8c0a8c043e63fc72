"""Text Layer Stage - Read text that already exists in a PDF.

Two independent readers: the embedded text layer via PyMuPDF, and
pdfplumber's character-level extraction, which recovers text from some
PDFs whose embedded layer reads back empty or garbled.
"""

import logging
from io import BytesIO

import pdfplumber

from docverify.config import settings
from docverify.pipeline.stage_render import open_pdf

logger = logging.getLogger(__name__)


class TextLayerReader:
    """Reads text layers from the first ``max_pages`` pages of a PDF."""

    def __init__(self, max_pages: int = None):
        self.max_pages = max_pages or settings.max_pdf_pages

    def embedded_text(self, content: bytes) -> str:
        """Concatenate the PyMuPDF text layer of each page."""
        pdf_doc = open_pdf(content)
        try:
            pages = min(pdf_doc.page_count, self.max_pages)
            texts = [pdf_doc[i].get_text() or "" for i in range(pages)]
        finally:
            pdf_doc.close()
        return "\n".join(texts).strip()

    def structured_text(self, content: bytes) -> str:
        """Concatenate pdfplumber's page-by-page extraction."""
        texts = []
        with pdfplumber.open(BytesIO(content)) as pdf:
            for page in pdf.pages[: self.max_pages]:
                texts.append(page.extract_text() or "")
        return "\n".join(texts).strip()
