import asyncio
import weakref
from dataclasses import dataclass

from pdf_sanitizer.binder.trigger_binder import TriggerBinder
from pdf_sanitizer.config.settings import Settings
from pdf_sanitizer.logging.logger import Log
from pdf_sanitizer.page.elements import Element, Page
from pdf_sanitizer.pdf.factory import PdfRasterizerFactory
from pdf_sanitizer.progress.presenter import ProgressPresenter
from pdf_sanitizer.sanitizer.cache import SingleFlightCache
from pdf_sanitizer.sanitizer.pipeline import SanitizationPipeline
from pdf_sanitizer.sanitizer.service import SanitizationService
from pdf_sanitizer.transport.interceptor import TransportInterceptor

_active: weakref.WeakKeyDictionary[Page, "PdfSanitizer"] = weakref.WeakKeyDictionary()
_waiting: weakref.WeakSet[Page] = weakref.WeakSet()


@dataclass(eq=False)
class PdfSanitizer:
    """Everything wired for one page."""

    settings: Settings
    page: Page
    pipeline: SanitizationPipeline
    cache: SingleFlightCache
    presenter: ProgressPresenter
    service: SanitizationService
    interceptor: TransportInterceptor
    binder: TriggerBinder

    async def drain(self) -> None:
        """Wait for in-progress selections, deferred sends and overlay fades."""
        await self.binder.drain()
        await self.interceptor.drain()
        await self.service.drain()
        await asyncio.sleep(0)


def build_sanitizer(settings: Settings, page: Page) -> PdfSanitizer:
    """Build a PdfSanitizer with all required components."""
    pipeline = SanitizationPipeline(settings, PdfRasterizerFactory.create(settings))
    cache = SingleFlightCache()
    presenter = ProgressPresenter(settings)
    service = SanitizationService(pipeline, cache, presenter)
    return PdfSanitizer(
        settings=settings,
        page=page,
        pipeline=pipeline,
        cache=cache,
        presenter=presenter,
        service=service,
        interceptor=TransportInterceptor(service, page, settings),
        binder=TriggerBinder(page, service),
    )


def sanitizer_for(page: Page) -> PdfSanitizer | None:
    return _active.get(page)


def setup_pdf_sanitization(page: Page, settings: Settings | None = None) -> PdfSanitizer | None:
    """Activate sanitization on *page*.

    Activation happens as soon as the page holds a file input that accepts
    PDFs; until then the page is watched and setup completes on the first
    insertion or re-render that brings one in. Calling this again for the
    same page returns the existing instance.
    """
    settings = settings if settings is not None else Settings()
    Log.configure(settings.log_level, enabled=settings.log_errors)

    if not settings.enabled:
        Log.info("PDF sanitization disabled in config")
        return None

    existing = _active.get(page)
    if existing is not None:
        return existing

    if _has_pdf_input(page, page.root):
        return _activate(page, settings)

    if page not in _waiting:
        _waiting.add(page)
        Log.debug("No PDF inputs on page yet, waiting for one to appear")

        def on_inserted(nodes: list[Element]) -> None:
            for node in nodes:
                if _has_pdf_input(page, node):
                    _activate(page, settings)
                    return

        page.observe(on_inserted)
        page.on_morph(lambda root: on_inserted([root]))
    return None


def _has_pdf_input(page: Page, root: Element) -> bool:
    return any(node.accepts_pdf() for node in page.file_inputs(root))


def _activate(page: Page, settings: Settings) -> PdfSanitizer:
    existing = _active.get(page)
    if existing is not None:
        return existing

    sanitizer = build_sanitizer(settings, page)
    _active[page] = sanitizer
    _waiting.discard(page)

    sanitizer.interceptor.install()
    bound = sanitizer.binder.start()
    Log.info(
        f"PDF sanitization ready ({bound} input(s) bound, "
        f"engine={settings.pdf_engine}, worker={settings.worker_path})"
    )
    return sanitizer
