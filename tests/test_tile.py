"""Tests for handwriting tiling."""

import io

import pytest
from conftest import build_image
from PIL import Image

from docverify.pipeline.stage_tile import Tiler, tile_bounds


class TestTileBounds:
    """Tests for quadrant geometry."""

    def test_four_tiles_inside_image(self):
        for left, top, w, h in tile_bounds(1000, 800):
            assert left >= 0 and top >= 0
            assert left + w <= 1000
            assert top + h <= 800

    def test_overlap_past_midline(self):
        """Each tile extends 10% of the dimension across the seam."""
        (tl, tr, bl, br) = tile_bounds(1000, 800)

        assert tl == (0, 0, 600, 480)
        assert tr == (400, 0, 600, 480)
        assert bl == (0, 320, 600, 480)
        assert br == (400, 320, 600, 480)

    def test_tiles_cover_image(self):
        (tl, tr, bl, br) = tile_bounds(101, 57)
        assert tr[0] + tr[2] == 101
        assert bl[1] + bl[3] == 57
        assert tl[0] == 0 and tl[1] == 0

    def test_degenerate_image(self):
        """A 1x1 image still yields four in-bounds tiles."""
        bounds = tile_bounds(1, 1)
        assert len(bounds) == 4
        for left, top, w, h in bounds:
            assert w >= 1 and h >= 1
            assert left + w <= 1 and top + h <= 1


class TestTiler:
    """Tests for tile image production."""

    def test_tile_count_and_order(self):
        tiles = Tiler().tile(build_image(400, 300))

        assert [t.index for t in tiles] == [0, 1, 2, 3]
        assert tiles[1].left > 0 and tiles[1].top == 0
        assert tiles[3].right == 400 and tiles[3].bottom == 300

    @pytest.mark.parametrize("size", [(400, 300), (37, 91)])
    def test_tile_images_match_bounds(self, size):
        for tile in Tiler().tile(build_image(*size)):
            image = Image.open(io.BytesIO(tile.image_bytes))
            assert image.format == "PNG"
            assert image.size == (tile.width, tile.height)
