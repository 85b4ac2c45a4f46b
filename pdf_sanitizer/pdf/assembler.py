import io

from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from pdf_sanitizer.pdf.exceptions import PdfAssembleError

# CSS reference pixel: 96 px per inch, 72 pt per inch.
POINTS_PER_PIXEL = 72 / 96


def px_to_pt(pixels: float) -> float:
    return pixels * POINTS_PER_PIXEL


class ImagePdfAssembler:
    """Builds a new PDF where every page is a single full-bleed image."""

    def __init__(self) -> None:
        self._buf = io.BytesIO()
        self._canvas = canvas.Canvas(self._buf, pageCompression=1)
        self._page_count = 0

    @property
    def page_count(self) -> int:
        return self._page_count

    def add_page(self, image_bytes: bytes, width_px: int, height_px: int) -> None:
        """Append one page sized to the image, converting pixels to points."""
        try:
            width_pt = px_to_pt(width_px)
            height_pt = px_to_pt(height_px)
            self._canvas.setPageSize((width_pt, height_pt))
            self._canvas.drawImage(
                ImageReader(io.BytesIO(image_bytes)),
                0,
                0,
                width=width_pt,
                height=height_pt,
            )
            self._canvas.showPage()
        except Exception as exc:
            raise PdfAssembleError(
                f"Failed to add page {self._page_count + 1}: {exc}"
            ) from exc
        self._page_count += 1

    def to_bytes(self) -> bytes:
        """Serialize the document. The assembler cannot be reused afterwards."""
        if self._page_count == 0:
            raise PdfAssembleError("Cannot serialize a document with no pages")
        try:
            self._canvas.save()
        except Exception as exc:
            raise PdfAssembleError(f"Failed to serialize document: {exc}") from exc
        return self._buf.getvalue()
