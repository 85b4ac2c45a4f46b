import asyncio

import httpx
import pytest

from pdf_sanitizer.config.settings import Settings
from pdf_sanitizer.sanitizer.models import SanitizableFile
from pdf_sanitizer.transport import http
from pdf_sanitizer.transport.multipart import MultipartForm


def _make_transport(requests: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        request.read()
        requests.append(request)
        return httpx.Response(200, json={"ok": True})

    return httpx.MockTransport(handler)


class TestClient:
    def test_get_client_requires_init(self) -> None:
        with pytest.raises(RuntimeError, match="not initialized"):
            http.get_client()

    def test_close_client_resets(self, settings: Settings) -> None:
        http.init_client(settings, transport=_make_transport([]))
        asyncio.run(http.close_client())
        with pytest.raises(RuntimeError):
            http.get_client()


class TestFetch:
    def test_sends_multipart_form(self, settings: Settings) -> None:
        requests: list[httpx.Request] = []
        form = MultipartForm()
        form.append("name", "value")
        form.append("upload", SanitizableFile(name="a.pdf", content=b"PDFDATA"))

        async def run() -> httpx.Response:
            http.init_client(settings, transport=_make_transport(requests))
            try:
                return await http.fetch("https://example.test/upload", body=form)
            finally:
                await http.close_client()

        response = asyncio.run(run())

        assert response.status_code == 200
        assert requests[0].method == "POST"
        assert requests[0].headers["content-type"].startswith("multipart/form-data")
        assert b'filename="a.pdf"' in requests[0].content
        assert b"PDFDATA" in requests[0].content


class TestHttpRequest:
    def test_send_before_open_raises(self) -> None:
        with pytest.raises(RuntimeError, match="open"):
            http.HttpRequest().send(b"x")

    def test_callbacks_fire_after_send(self, settings: Settings) -> None:
        requests: list[httpx.Request] = []
        loaded: list[int] = []

        async def run() -> None:
            http.init_client(settings, transport=_make_transport(requests))
            try:
                request = http.HttpRequest(on_load=lambda r: loaded.append(r.response.status_code))
                request.open("put", "https://example.test/upload")
                request.set_request_header("X-Test", "1")
                request.send(b"payload")
                assert requests == []
                await request.wait()
            finally:
                await http.close_client()

        asyncio.run(run())

        assert loaded == [200]
        assert requests[0].method == "PUT"
        assert requests[0].headers["x-test"] == "1"
        assert requests[0].content == b"payload"

    def test_transport_error_goes_to_on_error(self, settings: Settings) -> None:
        errors: list[Exception | None] = []

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async def run() -> None:
            http.init_client(settings, transport=httpx.MockTransport(refuse))
            try:
                request = http.HttpRequest(on_error=lambda r: errors.append(r.error))
                request.open("POST", "https://example.test/upload")
                request.send(None)
                with pytest.raises(httpx.ConnectError):
                    await request.wait()
            finally:
                await http.close_client()

        asyncio.run(run())

        assert len(errors) == 1
        assert isinstance(errors[0], httpx.ConnectError)

    def test_cancelled_exchange_raises_on_wait(self, settings: Settings) -> None:
        async def run() -> None:
            started = asyncio.Event()

            async def stall(request: httpx.Request) -> httpx.Response:
                started.set()
                await asyncio.Event().wait()
                return httpx.Response(200)

            http.init_client(settings, transport=httpx.MockTransport(stall))
            try:
                request = http.HttpRequest()
                request.open("POST", "https://example.test/upload")
                request.send(b"payload")
                await started.wait()
                for task in list(http._pending):
                    task.cancel()
                with pytest.raises(RuntimeError, match="without a response"):
                    await request.wait()
            finally:
                await http.close_client()

        asyncio.run(run())
