"""Preprocessing Stage - Normalize raster images for recognition.

Two recognition profiles trade payload size against fidelity:

- printed: upright, width-capped, lossy JPEG. Printed text survives
  compression well, so payload size wins.
- handwriting: upright, greyscale, contrast stretch, gamma, binarization,
  sharpening, lossless PNG. Thin pen strokes do not survive JPEG artifacts.

A third ``visual`` profile produces the lightly normalized JPEG that goes
into the composite image for signature/stamp checks.
"""

import io
import logging
from typing import Optional

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from docverify.config import settings
from docverify.errors import ImageProcessingError
from docverify.models import OCRMode
from docverify.pipeline.stage_orient import OrientationCorrector

logger = logging.getLogger(__name__)

PRINTED_JPEG_QUALITY = 92
VISUAL_JPEG_QUALITY = 85
HANDWRITING_GAMMA = 1.2
HANDWRITING_THRESHOLD = 180

SHARPEN_KERNEL = np.array(
    [[0, -1, 0], [-1, 5, -1], [0, -1, 0]],
    dtype=np.float32,
)


def load_image(image_bytes: bytes) -> Image.Image:
    """Decode image bytes, raising ImageProcessingError on failure."""
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
        return image
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageProcessingError(
            "Image could not be decoded",
            details={"reason": str(exc)},
        ) from exc


def encode_jpeg(image: Image.Image, quality: int) -> bytes:
    """Encode a PIL image as JPEG."""
    buffer = io.BytesIO()
    try:
        image.convert("RGB").save(buffer, format="JPEG", quality=quality)
    except (OSError, ValueError) as exc:
        raise ImageProcessingError("JPEG encoding failed", details={"reason": str(exc)}) from exc
    return buffer.getvalue()


def encode_png(image: np.ndarray) -> bytes:
    """Encode a numpy image as PNG."""
    ok, encoded = cv2.imencode(".png", image)
    if not ok:
        raise ImageProcessingError("PNG encoding failed")
    return encoded.tobytes()


def gamma_lut(gamma: float) -> np.ndarray:
    """Lookup table applying a fixed gamma curve to 8-bit values."""
    inv = 1.0 / gamma
    table = np.array([((i / 255.0) ** inv) * 255 for i in range(256)])
    return np.clip(table, 0, 255).astype(np.uint8)


def enhance_handwriting(gray: np.ndarray) -> np.ndarray:
    """Apply contrast stretch, gamma, binarization and sharpening.

    Args:
        gray: Greyscale image.

    Returns:
        Binarized, sharpened image.
    """
    # Contrast normalization to the full 0-255 range
    normalized = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX)

    # Fixed gamma
    corrected = cv2.LUT(normalized, gamma_lut(HANDWRITING_GAMMA))

    # Soft binarization: pixels >= threshold become white
    _, binary = cv2.threshold(
        corrected,
        HANDWRITING_THRESHOLD - 1,
        255,
        cv2.THRESH_BINARY,
    )

    return cv2.filter2D(binary, -1, SHARPEN_KERNEL)


class ImagePreprocessor:
    """Re-encodes raster images for recognition or visual review."""

    def __init__(
        self,
        max_width: int = None,
        detect_orientation: Optional[bool] = None,
    ):
        """Initialize preprocessor.

        Args:
            max_width: Width cap for printed mode (default from settings).
            detect_orientation: Run Tesseract OSD in addition to EXIF rotation.
        """
        self.max_width = max_width or settings.printed_max_width
        if detect_orientation is None:
            detect_orientation = settings.detect_orientation
        self.orienter = OrientationCorrector(use_osd=detect_orientation)

    def process(self, image_bytes: bytes, mode: OCRMode = OCRMode.PRINTED) -> bytes:
        """Return re-encoded image bytes for the given mode.

        Raises:
            ImageProcessingError: If the image cannot be decoded or encoded.
        """
        image = self.orienter.correct(load_image(image_bytes))

        if mode == OCRMode.HANDWRITING:
            return self._process_handwriting(image)
        if mode == OCRMode.VISUAL:
            return encode_jpeg(image, VISUAL_JPEG_QUALITY)
        return self._process_printed(image)

    def _process_printed(self, image: Image.Image) -> bytes:
        """Downscale to the width cap (never enlarge) and encode as JPEG."""
        width, height = image.size
        if width > self.max_width:
            new_height = max(1, round(height * self.max_width / width))
            image = image.resize((self.max_width, new_height), Image.LANCZOS)
        return encode_jpeg(image, PRINTED_JPEG_QUALITY)

    def _process_handwriting(self, image: Image.Image) -> bytes:
        """Greyscale, enhance and keep a lossless encoding."""
        gray = np.asarray(image.convert("L"))
        return encode_png(enhance_handwriting(gray))
