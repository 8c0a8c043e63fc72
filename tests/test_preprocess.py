"""Tests for image preprocessing and orientation."""

import io

import numpy as np
import pytest
from conftest import build_image
from PIL import Image

from docverify.errors import ImageProcessingError
from docverify.models import OCRMode, Orientation
from docverify.pipeline.stage_orient import OrientationCorrector, correct_orientation
from docverify.pipeline.stage_preprocess import (
    ImagePreprocessor,
    enhance_handwriting,
    load_image,
)


def _open(payload: bytes) -> Image.Image:
    return Image.open(io.BytesIO(payload))


class TestLoadImage:
    """Tests for image decoding."""

    def test_invalid_bytes(self):
        """Undecodable bytes raise ImageProcessingError."""
        with pytest.raises(ImageProcessingError):
            load_image(b"not an image")

    def test_valid_png(self):
        image = load_image(build_image(10, 20))
        assert image.size == (10, 20)


class TestImagePreprocessor:
    """Tests for mode-specific preprocessing."""

    @pytest.fixture
    def preprocessor(self):
        return ImagePreprocessor(max_width=400, detect_orientation=False)

    def test_printed_downscales_wide_images(self, preprocessor):
        """Printed mode caps width and keeps the aspect ratio."""
        out = _open(preprocessor.process(build_image(800, 200), OCRMode.PRINTED))

        assert out.format == "JPEG"
        assert out.size == (400, 100)

    def test_printed_never_enlarges(self, preprocessor):
        """Narrow images keep their size."""
        out = _open(preprocessor.process(build_image(300, 200), OCRMode.PRINTED))
        assert out.size == (300, 200)

    def test_handwriting_is_binary_png(self, preprocessor):
        """Handwriting mode produces a lossless greyscale image."""
        out = _open(preprocessor.process(build_image(120, 80, color=(90, 90, 90)), OCRMode.HANDWRITING))

        assert out.format == "PNG"
        assert out.mode == "L"
        assert out.size == (120, 80)

    def test_visual_is_jpeg_full_size(self, preprocessor):
        out = _open(preprocessor.process(build_image(900, 300), OCRMode.VISUAL))

        assert out.format == "JPEG"
        assert out.size == (900, 300)

    def test_corrupt_input(self, preprocessor):
        with pytest.raises(ImageProcessingError):
            preprocessor.process(b"\x00\x01\x02", OCRMode.PRINTED)


class TestEnhanceHandwriting:
    """Tests for the handwriting enhancement chain."""

    def test_output_is_two_level(self):
        """Binarization and sharpening leave only black and white pixels."""
        gray = np.tile(np.arange(256, dtype=np.uint8), (16, 1))
        out = enhance_handwriting(gray)

        assert out.shape == gray.shape
        assert set(np.unique(out)).issubset({0, 255})


class TestOrientation:
    """Tests for orientation correction."""

    def test_rotate_90_swaps_dimensions(self):
        image = np.zeros((10, 20, 3), dtype=np.uint8)
        rotated = correct_orientation(image, Orientation.DEG_90)
        assert rotated.shape[:2] == (20, 10)

    def test_zero_rotation_is_identity(self):
        image = np.zeros((10, 20, 3), dtype=np.uint8)
        assert correct_orientation(image, Orientation.DEG_0) is image

    def test_exif_only_keeps_plain_image(self):
        """Without EXIF rotation or OSD the image is unchanged."""
        image = Image.new("RGB", (30, 10))
        out = OrientationCorrector(use_osd=False).correct(image)
        assert out.size == (30, 10)
