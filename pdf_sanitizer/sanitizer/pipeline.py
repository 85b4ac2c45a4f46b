"""Rasterize-and-rebuild PDF sanitization.

Processing flow:
1. Skip anything that is not a PDF.
2. Apply the size cap, then decode and apply the page cap.
3. For each page, in order: render to pixels, encode as JPEG, append to a
   fresh image-only document.
4. Serialize the new document and wrap it in a new file with the same name.

Any failure returns the original file object untouched.
"""

import asyncio
from typing import TypeVar

from pdf_sanitizer.config.settings import Settings
from pdf_sanitizer.logging.logger import Log
from pdf_sanitizer.pdf.assembler import ImagePdfAssembler
from pdf_sanitizer.pdf.base import BasePdfRasterizer, RasterDocument
from pdf_sanitizer.pdf.encoder import JpegEncoder
from pdf_sanitizer.pdf.exceptions import (
    PdfAssembleError,
    PdfDecodeError,
    PdfEncodeError,
    PdfRenderError,
)
from pdf_sanitizer.sanitizer.exceptions import (
    DecodeError,
    EncodeError,
    NotApplicableError,
    PageCountExceededError,
    RenderError,
    SanitizationError,
    SizeExceededError,
)
from pdf_sanitizer.sanitizer.models import (
    PDF_MEDIA_TYPE,
    ProgressCallback,
    SanitizableFile,
    SanitizeOptions,
    now_ms,
)

_BYTES_PER_MB = 1024 * 1024

T = TypeVar("T")


class SanitizationPipeline:
    """Turns a PDF into an image-only reconstruction, failing open."""

    def __init__(
        self,
        settings: Settings,
        rasterizer: BasePdfRasterizer,
        encoder: JpegEncoder | None = None,
    ) -> None:
        self._settings = settings
        self._rasterizer = rasterizer
        self._encoder = encoder if encoder is not None else JpegEncoder()

    async def sanitize(
        self,
        file: SanitizableFile,
        options: SanitizeOptions | None = None,
    ) -> SanitizableFile:
        """Return a sanitized copy of *file*, or *file* itself.

        Never raises: policy skips and stage failures both hand back the
        original object.
        """
        options = options or SanitizeOptions()
        try:
            return await self._run(file, options)
        except NotApplicableError:
            return file
        except (SizeExceededError, PageCountExceededError) as exc:
            Log.warning(str(exc))
            return file
        except SanitizationError as exc:
            Log.error(f"PDF sanitization failed for {file.name}", exc)
            return file
        except Exception as exc:
            Log.error(f"Unexpected error while sanitizing {file.name}", exc)
            return file

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    async def _run(self, file: SanitizableFile, options: SanitizeOptions) -> SanitizableFile:
        if not file.is_pdf():
            raise NotApplicableError(f"{file.name} is not a PDF")

        self._check_size(file, options)
        Log.info(f"Processing PDF: {file.name}, Pages: checking...")

        content = file.content
        await asyncio.sleep(0)

        with self._decode(content) as document:
            await asyncio.sleep(0)
            total = document.page_count
            self._check_pages(total, options)
            output = await self._rebuild(document, total, options)
        await asyncio.sleep(0)

        sanitized = SanitizableFile(
            name=file.name,
            content=output,
            content_type=PDF_MEDIA_TYPE,
            last_modified=now_ms(),
        )
        Log.info(
            f"PDF sanitization successful: {file.name} "
            f"({sanitized.size / _BYTES_PER_MB:.2f} MB)"
        )
        return sanitized

    def _check_size(self, file: SanitizableFile, options: SanitizeOptions) -> None:
        limit_mb = _pick(options.max_file_size_mb, self._settings.max_file_size_mb)
        if limit_mb and file.size > limit_mb * _BYTES_PER_MB:
            raise SizeExceededError(f"PDF file exceeds maximum size of {limit_mb}MB")

    def _check_pages(self, total: int, options: SanitizeOptions) -> None:
        max_pages = _pick(options.max_pages, self._settings.max_pages)
        if max_pages and total > max_pages:
            raise PageCountExceededError(
                f"PDF has {total} pages, exceeding limit of {max_pages}. "
                "Skipping sanitization."
            )

    def _decode(self, content: bytes) -> RasterDocument:
        try:
            return self._rasterizer.open(content)
        except PdfDecodeError as exc:
            raise DecodeError(str(exc)) from exc

    async def _rebuild(
        self,
        document: RasterDocument,
        total: int,
        options: SanitizeOptions,
    ) -> bytes:
        scale = _pick(options.scale, self._settings.scale)
        quality = _pick(options.quality, self._settings.quality)
        # page index -> (jpeg bytes, width px, height px)
        pages: dict[int, tuple[bytes, int, int]] = {}

        for index in range(total):
            try:
                image = document.render_page(index, scale)
            except PdfRenderError as exc:
                raise RenderError(str(exc)) from exc
            await asyncio.sleep(0)

            try:
                pages[index] = (self._encoder.encode(image, quality), image.width, image.height)
            except PdfEncodeError as exc:
                raise EncodeError(str(exc)) from exc
            finally:
                image.close()
            await asyncio.sleep(0)

            _report(options.on_progress, index + 1, total)

        assembler = ImagePdfAssembler()
        try:
            for index in sorted(pages):
                assembler.add_page(*pages[index])
            return assembler.to_bytes()
        except PdfAssembleError as exc:
            raise EncodeError(str(exc)) from exc


def _pick(override: T | None, default: T) -> T:
    return override if override is not None else default


def _report(callback: ProgressCallback | None, current: int, total: int) -> None:
    if callback is None:
        return
    try:
        callback(current, total, f"Processing page {current} of {total}...")
    except Exception as exc:
        Log.warning(f"Progress callback failed: {exc}")
