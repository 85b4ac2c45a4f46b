import pymupdf
from PIL import Image

from pdf_sanitizer.pdf.base import BasePdfRasterizer, RasterDocument
from pdf_sanitizer.pdf.exceptions import PdfDecodeError, PdfRenderError


class PyMuPdfDocument(RasterDocument):
    def __init__(self, doc: pymupdf.Document) -> None:
        self._doc = doc

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    def render_page(self, index: int, scale: float) -> Image.Image:
        try:
            page = self._doc.load_page(index)
            pix = page.get_pixmap(matrix=pymupdf.Matrix(scale, scale), alpha=False)
            return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
        except Exception as exc:
            raise PdfRenderError(f"pymupdf failed to render page {index + 1}: {exc}") from exc

    def close(self) -> None:
        self._doc.close()


class PyMuPdfRasterizer(BasePdfRasterizer):
    """Rasterizes PDF pages using PyMuPDF."""

    def open(self, pdf_bytes: bytes) -> RasterDocument:
        try:
            doc = pymupdf.open(stream=pdf_bytes, filetype="pdf")  # type: ignore[no-untyped-call]
        except Exception as exc:
            raise PdfDecodeError(f"pymupdf could not open document: {exc}") from exc
        if doc.needs_pass:
            doc.close()
            raise PdfDecodeError("pymupdf could not open document: password required")
        return PyMuPdfDocument(doc)
