import io

from PIL import Image

from pdf_sanitizer.pdf.exceptions import PdfEncodeError


class JpegEncoder:
    """Encodes page rasters as lossy JPEG images."""

    def encode(self, image: Image.Image, quality: float) -> bytes:
        """Encode *image* as JPEG.

        Args:
            image: Page raster.
            quality: Fraction in (0, 1]; mapped onto Pillow's 1-95 scale.

        Raises:
            PdfEncodeError: if Pillow cannot encode the image.
        """
        try:
            buf = io.BytesIO()
            image.convert("RGB").save(buf, format="JPEG", quality=self._to_percent(quality))
            return buf.getvalue()
        except Exception as exc:
            raise PdfEncodeError(f"JPEG encoding failed: {exc}") from exc

    @staticmethod
    def _to_percent(quality: float) -> int:
        # Pillow recommends staying at or below 95.
        return max(1, min(95, round(quality * 100)))
