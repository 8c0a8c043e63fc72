"""Pytest configuration and fixtures."""

import io
from typing import Optional, Sequence

import fitz
import pytest
from PIL import Image

from docverify.models import PDF_MIME, SourceDocument
from docverify.rules import load_rules

LOREM = (
    "Potwierdzenie przelewu. Odbiorca: Urzad Miasta Krakowa. "
    "Tytul: oplata skarbowa za zezwolenie na pobyt czasowy. "
)


class FakeReasoningService:
    """In-memory ReasoningService that records every call."""

    def __init__(
        self,
        recognize_replies: Optional[Sequence[str]] = None,
        analyze_reply: str = "{}",
    ):
        self.recognize_replies = list(recognize_replies or [])
        self.analyze_reply = analyze_reply
        self.recognize_calls: list[dict] = []
        self.analyze_calls: list[dict] = []

    def recognize_text(self, images, directive, instruction, max_tokens=None):
        self.recognize_calls.append(
            {"images": list(images), "directive": directive, "instruction": instruction}
        )
        if self.recognize_replies:
            return self.recognize_replies.pop(0)
        return "Recognized text from the scanned page."

    def analyze(self, system, parts, images=(), model=None):
        self.analyze_calls.append(
            {"system": system, "parts": list(parts), "images": list(images), "model": model}
        )
        return self.analyze_reply


def build_pdf(page_texts: Sequence[str]) -> bytes:
    """Build an in-memory PDF with one page per text."""
    doc = fitz.open()
    for text in page_texts:
        page = doc.new_page(width=595, height=842)
        if text:
            page.insert_textbox(fitz.Rect(40, 40, 555, 800), text, fontsize=9)
    content = doc.tobytes()
    doc.close()
    return content


def build_image(width: int = 200, height: int = 100, color=(255, 255, 255), fmt: str = "PNG") -> bytes:
    """Build an in-memory image."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def fake_service():
    """Reasoning service returning canned replies."""
    return FakeReasoningService()


@pytest.fixture
def text_pdf():
    """PDF with a text layer well above the vision threshold."""
    return SourceDocument(
        content=build_pdf([LOREM * 15]),
        mime_type=PDF_MIME,
        filename="payment.pdf",
    )


@pytest.fixture
def scan_pdf():
    """Two-page PDF with no text layer."""
    return SourceDocument(
        content=build_pdf(["", ""]),
        mime_type=PDF_MIME,
        filename="scan.pdf",
    )


@pytest.fixture
def photo():
    """Single JPEG photo upload."""
    return SourceDocument(
        content=build_image(300, 200, fmt="JPEG"),
        mime_type="image/jpeg",
        filename="photo.jpg",
    )


@pytest.fixture
def rules():
    """Packaged default rule set."""
    return load_rules()
