"""Text extraction orchestrator.

Runs the extraction state machine over one request's uploads:

    TRY_EMBEDDED_TEXT -> TRY_STRUCTURED_TEXT -> NEEDS_VISUAL_OCR -> DONE

The cheap text-layer readers run first; vision OCR is only paid for when the
text layer is shorter than ``min_text_chars``. Image uploads start directly
at NEEDS_VISUAL_OCR.
"""

import logging
from typing import Optional, Sequence

from docverify.clients.base import ReasoningService
from docverify.config import settings
from docverify.errors import (
    CompositionError,
    ExtractionFailed,
    ImageProcessingError,
    UnsupportedDocument,
)
from docverify.models import (
    ExtractedText,
    ExtractionProvenance,
    ExtractionSource,
    ExtractionState,
    OCRMode,
    SourceDocument,
)
from docverify.pipeline.stage_batch import BatchPlanner
from docverify.pipeline.stage_composite import ImageCompositor
from docverify.pipeline.stage_preprocess import ImagePreprocessor
from docverify.pipeline.stage_recognize import RecognitionClient
from docverify.pipeline.stage_render import PageRasterizer
from docverify.pipeline.stage_text import TextLayerReader
from docverify.pipeline.stage_tile import Tiler

logger = logging.getLogger(__name__)


def page_break(page_number: int) -> str:
    """Marker inserted between recognized pages."""
    return f"\n\n--- page {page_number} ---\n\n"


class TextExtractionPipeline:
    """Produces the best available text for a set of uploads."""

    def __init__(
        self,
        service: ReasoningService,
        rasterizer: Optional[PageRasterizer] = None,
        reader: Optional[TextLayerReader] = None,
        preprocessor: Optional[ImagePreprocessor] = None,
        tiler: Optional[Tiler] = None,
        planner: Optional[BatchPlanner] = None,
        compositor: Optional[ImageCompositor] = None,
        min_text_chars: int = None,
    ):
        self.service = service
        self.rasterizer = rasterizer or PageRasterizer()
        self.reader = reader or TextLayerReader()
        self.preprocessor = preprocessor or ImagePreprocessor()
        self.tiler = tiler or Tiler()
        self.planner = planner or BatchPlanner()
        self.compositor = compositor or ImageCompositor()
        self.recognizer = RecognitionClient(service)
        self.min_text_chars = min_text_chars or settings.min_text_chars

    def extract(
        self,
        documents: Sequence[SourceDocument],
        mode: OCRMode = OCRMode.PRINTED,
    ) -> ExtractedText:
        """Run the state machine and return the extracted text.

        Args:
            documents: One PDF, or one or more images.
            mode: PRINTED or HANDWRITING; controls render scale, preprocessing
                and tiling on the vision path.

        Raises:
            ExtractionFailed: If every strategy produced empty text.
            UnsupportedDocument: If a PDF can neither be read nor rendered.
        """
        if not documents:
            raise ExtractionFailed("No documents to extract")

        provenance = ExtractionProvenance(mode=mode)
        pdf = next((d for d in documents if d.is_pdf), None)

        layer_text = ""
        ocr_text = ""
        state = ExtractionState.TRY_EMBEDDED_TEXT if pdf else ExtractionState.NEEDS_VISUAL_OCR

        while state != ExtractionState.DONE:
            logger.info("Extraction state: %s", state.value)

            if state == ExtractionState.TRY_EMBEDDED_TEXT:
                embedded = self._read_embedded(pdf.content)
                provenance.embedded_length = len(embedded)
                layer_text = embedded
                state = ExtractionState.TRY_STRUCTURED_TEXT

            elif state == ExtractionState.TRY_STRUCTURED_TEXT:
                structured = self._read_structured(pdf.content)
                provenance.structured_length = len(structured)
                if len(structured) > len(layer_text):
                    layer_text = structured
                    provenance.source = ExtractionSource.STRUCTURED
                elif layer_text:
                    provenance.source = ExtractionSource.EMBEDDED

                if len(layer_text) >= self.min_text_chars:
                    state = ExtractionState.DONE
                else:
                    state = ExtractionState.NEEDS_VISUAL_OCR

            elif state == ExtractionState.NEEDS_VISUAL_OCR:
                if pdf is not None:
                    ocr_text = self._recognize_pdf(pdf, mode, provenance, layer_text)
                else:
                    ocr_text = self._recognize_images(documents, mode, provenance)
                if ocr_text:
                    provenance.source = ExtractionSource.VISION
                state = ExtractionState.DONE

        provenance.chars_recognized = len(ocr_text)
        text = "\n\n".join(part for part in (layer_text, ocr_text) if part).strip()

        logger.info(
            "Extraction finished: source=%s chars=%d pages=%d skipped=%d "
            "tiles=%d batches=%d",
            provenance.source.value,
            len(text),
            provenance.pages_rendered,
            provenance.pages_skipped,
            provenance.tiles_produced,
            provenance.batches_sent,
        )

        if not text:
            raise ExtractionFailed(details=provenance.model_dump(mode="json"))

        return ExtractedText(text=text, provenance=provenance)

    def build_composite(self, documents: Sequence[SourceDocument]) -> Optional[bytes]:
        """Build a JPEG stack of the first pages for visual checks.

        Returns None when no composite can be produced.
        """
        payloads: list[bytes] = []
        try:
            for document in documents:
                if document.is_pdf:
                    pages = self.rasterizer.render(
                        document.content,
                        max_pages=settings.max_render_pages,
                        scale=settings.printed_scale,
                    )
                    payloads.extend(page.image_bytes for page in pages)
                else:
                    payloads.append(
                        self.preprocessor.process(document.content, OCRMode.VISUAL)
                    )
            return self.compositor.compose(payloads[: settings.max_render_pages])
        except (CompositionError, UnsupportedDocument, ImageProcessingError) as e:
            logger.warning("Composite image not built: %s", e)
            return None

    def _read_embedded(self, content: bytes) -> str:
        try:
            return self.reader.embedded_text(content)
        except Exception as e:
            logger.warning("Embedded text read failed: %s", e)
            return ""

    def _read_structured(self, content: bytes) -> str:
        try:
            return self.reader.structured_text(content)
        except Exception as e:
            logger.warning("Structured text read failed: %s", e)
            return ""

    def _recognize_pdf(
        self,
        pdf: SourceDocument,
        mode: OCRMode,
        provenance: ExtractionProvenance,
        fallback_text: str,
    ) -> str:
        scale = settings.handwriting_scale if mode == OCRMode.HANDWRITING else settings.printed_scale
        try:
            pages = self.rasterizer.render(pdf.content, scale=scale)
        except UnsupportedDocument:
            if fallback_text:
                logger.warning("PDF could not be rendered, keeping text layer only")
                return ""
            raise

        expected = min(self.rasterizer.page_count(pdf.content), self.rasterizer.max_pages)
        provenance.pages_rendered = len(pages)
        provenance.pages_skipped += max(0, expected - len(pages))
        return self._recognize_pages(
            [(page.page_number, page.image_bytes) for page in pages],
            mode,
            provenance,
        )

    def _recognize_images(
        self,
        documents: Sequence[SourceDocument],
        mode: OCRMode,
        provenance: ExtractionProvenance,
    ) -> str:
        images = [d for d in documents if d.is_image][: settings.max_pdf_pages]
        provenance.pages_rendered = len(images)
        return self._recognize_pages(
            [(i + 1, d.content) for i, d in enumerate(images)],
            mode,
            provenance,
        )

    def _recognize_pages(
        self,
        pages: Sequence[tuple[int, bytes]],
        mode: OCRMode,
        provenance: ExtractionProvenance,
    ) -> str:
        parts: list[str] = []
        for page_number, image_bytes in pages:
            try:
                payloads = self._prepare_page(image_bytes, mode)
            except ImageProcessingError as e:
                provenance.pages_skipped += 1
                logger.warning("Skipping page %d: %s", page_number, e)
                continue

            if mode == OCRMode.HANDWRITING:
                provenance.tiles_produced += len(payloads)

            batches = self.planner.plan(payloads)
            provenance.batches_sent += len(batches)
            page_text = self.recognizer.recognize_all(batches, mode)
            if not page_text:
                continue

            if parts:
                parts.append(page_break(page_number))
            parts.append(page_text)

        return "".join(parts).strip()

    def _prepare_page(self, image_bytes: bytes, mode: OCRMode) -> list[bytes]:
        processed = self.preprocessor.process(image_bytes, mode)
        if mode == OCRMode.HANDWRITING:
            return [tile.image_bytes for tile in self.tiler.tile(processed)]
        return [processed]
