"""Orientation Stage - Detect and correct page rotation.

Camera uploads carry their rotation in EXIF metadata, which is applied
first. Scans without metadata can optionally be checked with Tesseract OSD
(Orientation and Script Detection), which reports the clockwise rotation
needed to make the text upright.
"""

import logging

import cv2
import numpy as np
import pytesseract
from PIL import Image, ImageOps

from docverify.models import Orientation

logger = logging.getLogger(__name__)


def _degrees_to_orientation(degrees: int) -> Orientation:
    """Convert degrees to Orientation enum.

    Args:
        degrees: Rotation in degrees (0, 90, 180, 270)

    Returns:
        Corresponding Orientation enum value
    """
    # Normalize to 0-360 range
    degrees = degrees % 360

    if degrees < 45 or degrees >= 315:
        return Orientation.DEG_0
    elif 45 <= degrees < 135:
        return Orientation.DEG_90
    elif 135 <= degrees < 225:
        return Orientation.DEG_180
    else:
        return Orientation.DEG_270


def tesseract_osd(image: Image.Image) -> tuple[Orientation, float]:
    """Detect orientation using Tesseract OSD.

    Args:
        image: PIL image.

    Returns:
        Tuple of (rotation_to_apply, confidence). Falls back to no rotation
        when Tesseract is missing or cannot find enough text.
    """
    try:
        osd = pytesseract.image_to_osd(
            image,
            config="-c min_characters_to_try=5",
            output_type=pytesseract.Output.DICT,
        )
    except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, RuntimeError) as exc:
        logger.debug("Tesseract OSD unavailable: %s", exc)
        return Orientation.DEG_0, 0.0

    orientation = _degrees_to_orientation(int(osd.get("rotate", 0)))
    confidence = float(osd.get("orientation_conf", 0.0))
    return orientation, confidence


def correct_orientation(
    image: np.ndarray,
    orientation: Orientation,
) -> np.ndarray:
    """Rotate an image clockwise by the given orientation.

    Args:
        image: Image as numpy array.
        orientation: Clockwise rotation to apply.

    Returns:
        Corrected image.
    """
    if orientation == Orientation.DEG_0:
        return image
    elif orientation == Orientation.DEG_90:
        return cv2.rotate(image, cv2.ROTATE_90_CLOCKWISE)
    elif orientation == Orientation.DEG_180:
        return cv2.rotate(image, cv2.ROTATE_180)
    elif orientation == Orientation.DEG_270:
        return cv2.rotate(image, cv2.ROTATE_90_COUNTERCLOCKWISE)
    return image


class OrientationCorrector:
    """Applies EXIF rotation and, optionally, OSD-based rotation."""

    def __init__(
        self,
        use_osd: bool = False,
        confidence_threshold: float = 2.0,
    ):
        """Initialize orientation corrector.

        Args:
            use_osd: Run Tesseract OSD after EXIF transposition.
            confidence_threshold: Minimum OSD confidence to accept a rotation.
                Tesseract reports unbounded confidences; 2.0 is its own
                rule-of-thumb minimum.
        """
        self.use_osd = use_osd
        self.confidence_threshold = confidence_threshold

    def correct(self, image: Image.Image) -> Image.Image:
        """Return an upright copy of the image."""
        upright = ImageOps.exif_transpose(image)

        if not self.use_osd:
            return upright

        orientation, confidence = tesseract_osd(upright)
        if orientation == Orientation.DEG_0 or confidence < self.confidence_threshold:
            return upright

        logger.debug("Rotating image by %d degrees (osd conf %.2f)", orientation.value, confidence)
        rgb = np.asarray(upright.convert("RGB"))
        rotated = correct_orientation(rgb, orientation)
        return Image.fromarray(rotated)
