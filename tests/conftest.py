import io
from collections.abc import Iterator

import pytest
from reportlab.lib.pagesizes import A4, landscape, letter
from reportlab.pdfgen import canvas

from pdf_sanitizer.config.settings import Settings
from pdf_sanitizer.logging.logger import Log
from pdf_sanitizer.transport import http

# Three distinct page sizes (points) so output order can be checked by dimension.
THREE_PAGE_SIZES = [letter, landscape(A4), (300.0, 400.0)]


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def three_page_pdf_bytes() -> bytes:
    """Generate a three-page PDF; page N says "Page N" and has its own size."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf)
    for number, size in enumerate(THREE_PAGE_SIZES, start=1):
        c.setPageSize(size)
        c.drawString(36, 36, f"Page {number}")
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def three_page_sizes() -> list[tuple[float, float]]:
    return [tuple(size) for size in THREE_PAGE_SIZES]


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def settings() -> Settings:
    """Settings with no overlay fade so tests don't sleep."""
    return Settings(progress_fade_seconds=0, scale=0.5)


@pytest.fixture(autouse=True)
def restore_transport() -> Iterator[None]:
    """Undo any interceptor installed by a test."""
    original_fetch = http.fetch
    original_send = http.HttpRequest.send
    yield
    http.fetch = original_fetch
    http.HttpRequest.send = original_send  # type: ignore[method-assign]
    http._client = None


@pytest.fixture(autouse=True)
def reset_log() -> Iterator[None]:
    yield
    Log.configure("INFO", enabled=True)
