"""Composite Stage - Stack page images into one tall image.

Lets a single reasoning call see multi-page context (signatures, stamps,
layout) without one call per page.
"""

import logging
from typing import Sequence

from PIL import Image

from docverify.errors import CompositionError
from docverify.pipeline.stage_preprocess import encode_jpeg, load_image

logger = logging.getLogger(__name__)

COMPOSITE_JPEG_QUALITY = 90
BACKGROUND = (255, 255, 255)


class ImageCompositor:
    """Vertically stacks images, left-aligned on a white background."""

    def __init__(self, quality: int = COMPOSITE_JPEG_QUALITY):
        self.quality = quality

    def compose_images(self, images: Sequence[Image.Image]) -> Image.Image:
        """Stack decoded images.

        Width is the maximum input width, height the sum of input heights.

        Raises:
            CompositionError: If no images are given.
        """
        if not images:
            raise CompositionError("No images to merge")

        width = max(img.width for img in images)
        height = sum(img.height for img in images)
        canvas = Image.new("RGB", (width, height), BACKGROUND)

        y = 0
        for img in images:
            canvas.paste(img.convert("RGB"), (0, y))
            y += img.height

        return canvas

    def compose(self, payloads: Sequence[bytes]) -> bytes:
        """Stack encoded images and return a JPEG composite."""
        if not payloads:
            raise CompositionError("No images to merge")

        composite = self.compose_images([load_image(p) for p in payloads])
        logger.debug(
            "Composed %d images into %dx%d",
            len(payloads),
            composite.width,
            composite.height,
        )
        return encode_jpeg(composite, self.quality)
