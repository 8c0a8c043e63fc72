"""Source document and raster models."""

from pydantic import Field

from .base import BaseIRModel

PDF_MIME = "application/pdf"


class SourceDocument(BaseIRModel):
    """
    Raw upload as received from the caller.

    Immutable once received. Owned by the handling request and never
    persisted beyond it.
    """

    content: bytes = Field(..., repr=False)
    mime_type: str = Field(..., description="application/pdf or image/*")
    filename: str = Field(default="document")

    @property
    def is_pdf(self) -> bool:
        """Check if document is a PDF."""
        return self.mime_type.lower() == PDF_MIME

    @property
    def is_image(self) -> bool:
        """Check if document is a raster image."""
        return self.mime_type.lower().startswith("image/")

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    class Config:
        frozen = True
        populate_by_name = True


class RasterPage(BaseIRModel):
    """Single rasterized page."""

    page_number: int = Field(..., ge=1, description="1-indexed page number")
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    image_bytes: bytes = Field(..., repr=False, description="PNG-encoded pixels")


class ImageTile(BaseIRModel):
    """
    Rectangular crop of a page used for handwriting recognition.

    Bounds are absolute pixels and overlap neighbouring tiles.
    """

    index: int = Field(..., ge=0, le=3, description="0=TL, 1=TR, 2=BL, 3=BR")
    left: int = Field(..., ge=0)
    top: int = Field(..., ge=0)
    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)
    image_bytes: bytes = Field(..., repr=False)

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height
