"""Request-level facade.

Each public function handles one request end to end and never raises a
``DocVerifyError``: failures come back as ``{"ok": False, "error": ...}``.
Transport layers (HTTP handlers, the CLI) call these functions only.
"""

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, BinaryIO, Iterator, Optional, Sequence

from docverify.analysis import (
    DocumentAnalysisClient,
    PostValidator,
    canonical_doc_type,
    estimate_ocr_quality,
)
from docverify.clients import OpenAIReasoningService, ReasoningService
from docverify.config import MIB, settings
from docverify.errors import DocVerifyError, ExtractionFailed, InvalidUpload, ReasoningServiceError
from docverify.models import (
    AnalysisContext,
    ExtractedText,
    ExtractionProvenance,
    ExtractionSource,
    OCRMode,
    RuleSet,
    SourceDocument,
)
from docverify.pipeline import TextExtractionPipeline
from docverify.rules import load_rules
from docverify.translation import Translator

logger = logging.getLogger(__name__)

PREVIEW_EXCERPT_CHARS = 1200
DEBUG_TEXT_HEAD_CHARS = 2000
SPOOL_CHUNK_BYTES = 1 * MIB


@contextmanager
def temporary_bytes(content: bytes = b"", suffix: str = "") -> Iterator[Path]:
    """Write bytes to a temporary file and delete it on every exit path."""
    fd, name = tempfile.mkstemp(prefix="docverify-", suffix=suffix)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(content)
        yield path
    finally:
        path.unlink(missing_ok=True)


def spool_upload(
    stream: BinaryIO,
    filename: str,
    mime_type: str,
    max_bytes: int = None,
) -> SourceDocument:
    """Spool an upload stream through local disk into a SourceDocument.

    Raises:
        InvalidUpload: If the stream is larger than ``max_bytes``.
    """
    limit = max_bytes or settings.max_upload_bytes
    with temporary_bytes(suffix=Path(filename).suffix) as path:
        with path.open("wb") as handle:
            shutil.copyfileobj(stream, handle, SPOOL_CHUNK_BYTES)
        if path.stat().st_size > limit:
            raise InvalidUpload(f"{filename} exceeds {limit // MIB} MB")
        content = path.read_bytes()
    return SourceDocument(content=content, mime_type=mime_type, filename=filename)


def validate_uploads(documents: Sequence[SourceDocument]) -> None:
    """Enforce file count, total size and type mix.

    Raises:
        InvalidUpload: On any violation.
    """
    if not documents:
        raise InvalidUpload("Attach 1 PDF or up to 20 images")
    if len(documents) > settings.max_files:
        raise InvalidUpload(f"Max {settings.max_files} files")

    total = sum(d.size_bytes for d in documents)
    if total > settings.max_upload_bytes:
        raise InvalidUpload(f"Total size exceeds {settings.max_upload_bytes // MIB}MB")

    for document in documents:
        if not (document.is_pdf or document.is_image):
            raise InvalidUpload(f"Unsupported file type: {document.mime_type}")

    pdfs = sum(1 for d in documents if d.is_pdf)
    if pdfs and pdfs != len(documents):
        raise InvalidUpload("Upload either PDF or images, not both")
    if pdfs > 1:
        raise InvalidUpload("Only one PDF allowed")


def default_service() -> ReasoningService:
    """Reasoning service built from settings.

    Raises:
        ReasoningServiceError: If no API key is configured.
    """
    if not settings.has_api_key:
        raise ReasoningServiceError("OPENAI_API_KEY not set")
    return OpenAIReasoningService()


def _failure(error: DocVerifyError) -> dict[str, Any]:
    logger.warning("Request failed: %s (%s)", error.message, error.error_code)
    return error.to_dict()


def verify_documents(
    documents: Sequence[SourceDocument],
    doc_type: str,
    context: Optional[AnalysisContext] = None,
    mode: OCRMode = OCRMode.PRINTED,
    service: Optional[ReasoningService] = None,
    rules: Optional[RuleSet] = None,
    debug: bool = False,
    debug_full: bool = False,
    today: Optional[date] = None,
) -> dict[str, Any]:
    """Extract, analyze and post-validate one upload set.

    Returns:
        ``{"ok": True, "result": {...}}`` plus ``"debug"`` when requested, or
        ``{"ok": False, "error": ...}``.
    """
    context = context or AnalysisContext()
    try:
        validate_uploads(documents)
        service = service or default_service()
        rules = rules or load_rules()
        doc_type = canonical_doc_type(doc_type) or "unknown"

        pipeline = TextExtractionPipeline(service)
        try:
            extracted = pipeline.extract(documents, mode)
        except ExtractionFailed as e:
            # the composite alone may still be enough for the analysis call
            logger.warning("No text extracted, analyzing images only")
            extracted = ExtractedText(provenance=ExtractionProvenance.model_validate(e.details))
        extracted.composite_image = pipeline.build_composite(documents)

        analysis = DocumentAnalysisClient(service, rules)
        result = analysis.analyze(extracted, doc_type, context)
        if not result.ocr_quality:
            result.ocr_quality = estimate_ocr_quality(extracted.text)

        PostValidator(rules, today=today).run(result, doc_type, context)
    except DocVerifyError as e:
        return _failure(e)

    response: dict[str, Any] = {"ok": True, "result": result.to_response()}
    if debug:
        diagnostics: dict[str, Any] = extracted.provenance.model_dump(mode="json")
        diagnostics["handwriting"] = mode == OCRMode.HANDWRITING
        diagnostics["ocr_text_len"] = extracted.char_count
        diagnostics["composite_bytes"] = len(extracted.composite_image or b"")
        diagnostics["rules_used"] = rules.rules_for(doc_type).checklist()
        diagnostics["user_name"] = context.user_name
        if debug_full:
            diagnostics["ocr_text_head"] = extracted.text[:DEBUG_TEXT_HEAD_CHARS]
        response["debug"] = diagnostics
    return response


def preview_text(
    documents: Sequence[SourceDocument],
    mode: OCRMode = OCRMode.PRINTED,
    service: Optional[ReasoningService] = None,
) -> dict[str, Any]:
    """Text extraction only, with a short excerpt."""
    try:
        validate_uploads(documents)
        pipeline = TextExtractionPipeline(service or default_service())
        extracted = pipeline.extract(documents, mode)
    except DocVerifyError as e:
        return _failure(e)

    is_pdf = any(d.is_pdf for d in documents)
    if extracted.provenance.source == ExtractionSource.VISION:
        preview_mode = "pdf-vision" if is_pdf else "image-vision"
    else:
        preview_mode = "pdf-text"

    return {
        "ok": True,
        "mode": preview_mode,
        "chars": extracted.char_count,
        "excerpt": extracted.text[:PREVIEW_EXCERPT_CHARS],
    }


def translate(
    document: Optional[SourceDocument] = None,
    text: str = "",
    source: str = "auto",
    target: str = "ru",
    service: Optional[ReasoningService] = None,
) -> dict[str, Any]:
    """Translate a document and/or plain text."""
    try:
        if document is not None and document.size_bytes > settings.max_upload_bytes:
            raise InvalidUpload(f"File exceeds {settings.max_upload_bytes // MIB} MB")
        translator = Translator(service or default_service())
        translated = translator.translate(document, text=text, source=source, target=target)
    except DocVerifyError as e:
        return _failure(e)
    return {"ok": True, "text": translated}
