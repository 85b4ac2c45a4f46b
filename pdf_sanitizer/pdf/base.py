from abc import ABC, abstractmethod
from types import TracebackType

from PIL import Image


class RasterDocument(ABC):
    """An opened, page-addressable source document."""

    @property
    @abstractmethod
    def page_count(self) -> int:
        """Number of pages in the document."""

    @abstractmethod
    def render_page(self, index: int, scale: float) -> Image.Image:
        """Render page *index* (0-based) to an RGB image.

        Args:
            index: Zero-based page index.
            scale: Multiplier over the page's natural size (72 dpi).

        Returns:
            RGB image with the page pixels.

        Raises:
            PdfRenderError: if the page cannot be rendered.
        """

    @abstractmethod
    def close(self) -> None:
        """Release the underlying document handle."""

    def __enter__(self) -> "RasterDocument":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class BasePdfRasterizer(ABC):
    """Contract for all PDF rasterization adapters."""

    @abstractmethod
    def open(self, pdf_bytes: bytes) -> RasterDocument:
        """Decode PDF bytes into a page-addressable document.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            An open document; callers close it (it is a context manager).

        Raises:
            PdfDecodeError: if the bytes are not a readable PDF.
        """
