import io

import pdfplumber
from PIL import Image

from pdf_sanitizer.pdf.base import BasePdfRasterizer, RasterDocument
from pdf_sanitizer.pdf.exceptions import PdfDecodeError, PdfRenderError

_BASE_DPI = 72


class PdfPlumberDocument(RasterDocument):
    def __init__(self, pdf: pdfplumber.PDF) -> None:
        self._pdf = pdf

    @property
    def page_count(self) -> int:
        return len(self._pdf.pages)

    def render_page(self, index: int, scale: float) -> Image.Image:
        try:
            page_image = self._pdf.pages[index].to_image(resolution=_BASE_DPI * scale)
            return page_image.original.convert("RGB")
        except Exception as exc:
            raise PdfRenderError(
                f"pdfplumber failed to render page {index + 1}: {exc}"
            ) from exc

    def close(self) -> None:
        self._pdf.close()


class PdfPlumberRasterizer(BasePdfRasterizer):
    """Rasterizes PDF pages using pdfplumber."""

    def open(self, pdf_bytes: bytes) -> RasterDocument:
        try:
            pdf = pdfplumber.open(io.BytesIO(pdf_bytes))
            # Page tree is parsed lazily; touch it so broken files fail here.
            _ = len(pdf.pages)
        except Exception as exc:
            raise PdfDecodeError(f"pdfplumber could not open document: {exc}") from exc
        return PdfPlumberDocument(pdf)
