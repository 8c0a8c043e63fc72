"""Pipeline stages for document text extraction.

Deterministic Stages (No LLM):
1. stage_render - PDF pages to PNG
2. stage_text - Embedded and structured text layers
3. stage_orient - EXIF / OSD orientation correction
4. stage_preprocess - Mode-specific re-encoding
5. stage_tile - 2x2 overlapping tiles for handwriting
6. stage_composite - Vertical page stack for visual checks
7. stage_batch - Transport-budget batch planning

Reasoning Stage:
8. stage_recognize - Vision OCR with refusal retry

The orchestrator chains them into the extraction state machine.
"""

from .orchestrator import TextExtractionPipeline, page_break
from .stage_batch import BatchPlanner, estimate_transport_bytes
from .stage_composite import ImageCompositor
from .stage_orient import OrientationCorrector, correct_orientation
from .stage_preprocess import ImagePreprocessor
from .stage_recognize import RecognitionClient, is_refusal_or_implausible
from .stage_render import PageRasterizer, open_pdf
from .stage_text import TextLayerReader
from .stage_tile import Tiler, tile_bounds

__all__ = [
    # Orchestration
    "TextExtractionPipeline",
    "page_break",
    # Render
    "PageRasterizer",
    "open_pdf",
    # Text layers
    "TextLayerReader",
    # Orientation
    "OrientationCorrector",
    "correct_orientation",
    # Preprocessing
    "ImagePreprocessor",
    # Tiling
    "Tiler",
    "tile_bounds",
    # Composite
    "ImageCompositor",
    # Batching
    "BatchPlanner",
    "estimate_transport_bytes",
    # Recognition
    "RecognitionClient",
    "is_refusal_or_implausible",
]
