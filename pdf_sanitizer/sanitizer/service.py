import asyncio

from pdf_sanitizer.logging.logger import Log
from pdf_sanitizer.page.elements import Element
from pdf_sanitizer.progress.presenter import PresentationContext, ProgressPresenter
from pdf_sanitizer.sanitizer.cache import SingleFlightCache
from pdf_sanitizer.sanitizer.models import SanitizableFile, SanitizeOptions
from pdf_sanitizer.sanitizer.pipeline import SanitizationPipeline

_BYTES_PER_MB = 1024 * 1024


class SanitizationService:
    """Entry point shared by every trigger path.

    Routes a file through the single-flight cache so the pipeline runs once
    per file object, and mirrors pipeline progress on the trigger's overlay.
    """

    def __init__(
        self,
        pipeline: SanitizationPipeline,
        cache: SingleFlightCache,
        presenter: ProgressPresenter,
    ) -> None:
        self._pipeline = pipeline
        self._cache = cache
        self._presenter = presenter
        self._background: set[asyncio.Task[None]] = set()

    @property
    def cache(self) -> SingleFlightCache:
        return self._cache

    def cached(self, file: SanitizableFile) -> SanitizableFile | None:
        return self._cache.get(file)

    async def sanitize_file(
        self,
        file: SanitizableFile,
        trigger: Element | None = None,
    ) -> SanitizableFile:
        """Return the sanitized counterpart of *file* (or *file* itself)."""

        async def produce(source: SanitizableFile) -> SanitizableFile:
            return await self._run_with_progress(source, trigger)

        return await self._cache.obtain(file, produce)

    async def _run_with_progress(
        self,
        file: SanitizableFile,
        trigger: Element | None,
    ) -> SanitizableFile:
        Log.info(
            f"Starting sanitization for file: {file.name} "
            f"({file.size / _BYTES_PER_MB:.2f} MB)"
        )
        context = self._presenter.show(trigger) if trigger is not None else None

        def on_progress(current: int, total: int, message: str) -> None:
            self._presenter.update(context, message, round(current / total * 100))

        try:
            result = await self._pipeline.sanitize(file, SanitizeOptions(on_progress=on_progress))
            Log.info(f"Sanitization completed for file: {file.name}")
            return result
        finally:
            if trigger is not None:
                self._schedule_hide(context, trigger)

    def _schedule_hide(self, context: PresentationContext | None, trigger: Element) -> None:
        # Fade-out runs in the background; the result is not held back for it.
        if context is not None:
            hiding = self._presenter.hide(context)
        else:
            hiding = self._presenter.hide_for(trigger)
        task = asyncio.get_running_loop().create_task(hiding)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def drain(self) -> None:
        """Wait for pending overlay fade-outs."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
