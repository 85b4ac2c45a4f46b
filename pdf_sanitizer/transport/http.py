"""Outbound request primitives used by upload widgets.

Two shapes are offered: an awaitable ``fetch`` and a callback-driven
``HttpRequest`` (``open`` then a non-blocking ``send``). Callers must go
through the module attribute (``http.fetch``) and the class methods so an
installed interceptor sees every request.
"""

import asyncio
from collections.abc import Callable
from typing import Any

import httpx

from pdf_sanitizer.config.settings import Settings
from pdf_sanitizer.transport.multipart import MultipartForm

RequestBody = MultipartForm | bytes | str | None

_client: httpx.AsyncClient | None = None
_pending: set[asyncio.Task[None]] = set()


def init_client(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
    """Initialize the shared HTTP client from settings."""
    global _client  # noqa: PLW0603
    _client = httpx.AsyncClient(
        timeout=settings.http_timeout_seconds,
        transport=transport,
    )


async def close_client() -> None:
    """Close the shared HTTP client."""
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_client() -> httpx.AsyncClient:
    if _client is None:
        raise RuntimeError("HTTP client not initialized. Call init_client() first.")
    return _client


def body_kwargs(body: RequestBody) -> dict[str, Any]:
    """Translate a request body into ``httpx`` request keyword arguments."""
    if body is None:
        return {}
    if isinstance(body, MultipartForm):
        return {"files": body.to_httpx_files()}
    return {"content": body}


async def fetch(
    url: str,
    *,
    method: str = "POST",
    body: RequestBody = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    return await get_client().request(method, url, headers=headers, **body_kwargs(body))


class HttpRequest:
    """Callback-style request.

    ``send`` returns immediately; the response (or error) is delivered to
    ``on_load`` / ``on_error`` once the exchange finishes. ``wait`` lets
    async code join on completion.
    """

    def __init__(
        self,
        on_load: Callable[["HttpRequest"], None] | None = None,
        on_error: Callable[["HttpRequest"], None] | None = None,
    ) -> None:
        self.on_load = on_load
        self.on_error = on_error
        self.method: str | None = None
        self.url: str | None = None
        self.headers: dict[str, str] = {}
        self.response: httpx.Response | None = None
        self.error: Exception | None = None
        self._done = asyncio.Event()

    def open(self, method: str, url: str) -> None:
        self.method = method.upper()
        self.url = url

    def set_request_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def send(self, body: RequestBody = None) -> None:
        if self.url is None or self.method is None:
            raise RuntimeError("HttpRequest.open() must be called before send()")
        task = asyncio.get_running_loop().create_task(self._dispatch(body))
        _pending.add(task)
        task.add_done_callback(_pending.discard)

    async def wait(self) -> httpx.Response:
        await self._done.wait()
        if self.error is not None:
            raise self.error
        if self.response is None:
            raise RuntimeError(f"Request to {self.url} finished without a response")
        return self.response

    async def _dispatch(self, body: RequestBody) -> None:
        try:
            self.response = await get_client().request(
                self.method or "POST",
                self.url or "",
                headers=self.headers or None,
                **body_kwargs(body),
            )
        except Exception as exc:
            self.error = exc
        finally:
            self._done.set()

        if self.error is not None:
            if self.on_error is not None:
                self.on_error(self)
        elif self.on_load is not None:
            self.on_load(self)
