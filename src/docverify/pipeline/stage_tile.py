"""Tiling Stage - Split handwriting scans into overlapping quadrants.

Vision models downscale inputs to a fixed effective resolution. Splitting a
high-resolution handwriting page into a 2x2 grid keeps each quadrant close
to that resolution; the overlap keeps strokes that straddle a seam whole in
at least one tile.
"""

import io

from PIL import Image

from docverify.errors import ImageProcessingError
from docverify.models import ImageTile
from docverify.pipeline.stage_preprocess import load_image

OVERLAP_FRACTION = 0.10


def tile_bounds(
    width: int,
    height: int,
    overlap: float = OVERLAP_FRACTION,
) -> list[tuple[int, int, int, int]]:
    """Compute (left, top, width, height) for the four quadrants.

    Order is top-left, top-right, bottom-left, bottom-right. All bounds stay
    within the image.
    """
    width = max(1, width)
    height = max(1, height)
    ox = int(width * overlap)
    oy = int(height * overlap)
    half_w = width // 2
    half_h = height // 2

    right_left = max(0, half_w - ox)
    bottom_top = max(0, half_h - oy)
    left_width = min(width, max(1, half_w + ox))
    top_height = min(height, max(1, half_h + oy))

    return [
        (0, 0, left_width, top_height),
        (right_left, 0, width - right_left, top_height),
        (0, bottom_top, left_width, height - bottom_top),
        (right_left, bottom_top, width - right_left, height - bottom_top),
    ]


class Tiler:
    """Produces exactly four overlapping tiles per image."""

    def __init__(self, overlap: float = OVERLAP_FRACTION):
        self.overlap = overlap

    def tile(self, image_bytes: bytes) -> list[ImageTile]:
        """Split an image into a 2x2 grid of overlapping tiles.

        Tiles keep the PNG encoding so binarized strokes stay intact. Very
        small images give degenerate or near-duplicate tiles.
        """
        image = load_image(image_bytes)
        tiles = []
        for index, (left, top, w, h) in enumerate(
            tile_bounds(image.width, image.height, self.overlap)
        ):
            crop = image.crop((left, top, left + w, top + h))
            tiles.append(
                ImageTile(
                    index=index,
                    left=left,
                    top=top,
                    width=w,
                    height=h,
                    image_bytes=_encode_png(crop),
                )
            )
        return tiles


def _encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except (OSError, ValueError) as exc:
        raise ImageProcessingError("Tile encoding failed", details={"reason": str(exc)}) from exc
    return buffer.getvalue()
