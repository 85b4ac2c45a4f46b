"""Upload interception for the two outbound request primitives.

``TransportInterceptor.install`` replaces ``http.fetch`` and
``http.HttpRequest.send`` with wrappers that swap PDFs picked through a
marked file input for their sanitized counterparts before the request goes
out. Everything else reaches the original primitive untouched.

The primitives are wrapped once per process. Interceptors built for later
pages attach to that registration, and each upload entry is routed to the
interceptor whose page holds the input it was picked through.
"""

import asyncio
import weakref
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import httpx

from pdf_sanitizer.config.settings import Settings
from pdf_sanitizer.logging.logger import Log
from pdf_sanitizer.page.elements import FileInput, Page
from pdf_sanitizer.sanitizer.models import SanitizableFile
from pdf_sanitizer.sanitizer.service import SanitizationService
from pdf_sanitizer.transport import http
from pdf_sanitizer.transport.multipart import FormEntry, MultipartForm

FetchFn = Callable[..., Awaitable[httpx.Response]]
SendFn = Callable[[http.HttpRequest, http.RequestBody], None]

_REGISTRATION_ATTR = "__pdf_sanitizer_registration__"


@dataclass(frozen=True)
class InterceptionRegistration:
    """Originals captured by the one installed interceptor, plus attached peers."""

    interceptor: "TransportInterceptor"
    original_fetch: FetchFn
    original_send: SendFn
    _attached: list[weakref.ref["TransportInterceptor"]] = field(
        default_factory=list, compare=False, repr=False
    )

    def attach(self, interceptor: "TransportInterceptor") -> bool:
        if interceptor in self.interceptors():
            return False
        self._attached.append(weakref.ref(interceptor))
        return True

    def interceptors(self) -> list["TransportInterceptor"]:
        """Installed interceptor first, then live attached ones in attach order."""
        self._attached[:] = [ref for ref in self._attached if ref() is not None]
        attached = [ref() for ref in self._attached]
        return [self.interceptor, *(peer for peer in attached if peer is not None)]


def current_registration() -> InterceptionRegistration | None:
    return getattr(http.fetch, _REGISTRATION_ATTR, None)


class TransportInterceptor:
    def __init__(self, service: SanitizationService, page: Page, settings: Settings) -> None:
        self._service = service
        self._page = page
        self._settings = settings
        self._deferred: set[asyncio.Task[None]] = set()

    @property
    def page(self) -> Page:
        return self._page

    def install(self) -> bool:
        """Wrap both primitives. Returns False if an interceptor is already in place.

        A later interceptor attaches to the existing registration instead, so
        uploads from its page are still routed to it.
        """
        registration = current_registration()
        if registration is not None:
            if registration.attach(self):
                Log.debug("Upload interception already installed, attached page to it")
            else:
                Log.debug("Upload interception already installed")
            return False

        registration = InterceptionRegistration(
            interceptor=self,
            original_fetch=http.fetch,
            original_send=http.HttpRequest.send,
        )
        http.fetch = self._wrap_fetch(registration)
        http.HttpRequest.send = self._wrap_send(registration)  # type: ignore[method-assign]
        Log.info("Upload interception installed")
        return True

    # ------------------------------------------------------------------
    # Request classification
    # ------------------------------------------------------------------

    def matches_upload_url(self, url: str | None) -> bool:
        return bool(url) and any(pattern in url for pattern in self._settings.upload_url_patterns)

    def should_inspect(self, url: str | None, body: http.RequestBody) -> bool:
        if not isinstance(body, MultipartForm) or not body.has_files():
            return False
        if self.matches_upload_url(url):
            Log.debug(f"Upload request detected: {url}")
        else:
            Log.debug(f"Multipart request with files detected: {url}")
        return True

    def locate_input(self, field_name: str) -> FileInput | None:
        """Input the field was picked through: same name first, then the first marked one."""
        named = self._page.find_file_input(field_name)
        if named is not None:
            return named
        return self._page.first_marked_input()

    def _peers(self) -> list["TransportInterceptor"]:
        registration = current_registration()
        if registration is None:
            return [self]
        return [self, *(peer for peer in registration.interceptors() if peer is not self)]

    def _route(self, entry: FormEntry) -> tuple["TransportInterceptor", FileInput] | None:
        """Interceptor and marked input owning *entry*, or None to send it as is."""
        file = entry.file
        if file is None or not file.is_pdf():
            return None
        peers = self._peers()
        for peer in peers:
            named = peer.page.find_file_input(entry.name)
            if named is not None:
                return (peer, named) if named.is_marked() else None
        for peer in peers:
            marked = peer.page.first_marked_input()
            if marked is not None:
                return peer, marked
        return None

    # ------------------------------------------------------------------
    # Substitution
    # ------------------------------------------------------------------

    async def rewrite(self, form: MultipartForm) -> MultipartForm:
        """Return *form* with every marked PDF entry replaced by its sanitized file."""
        entries: list[FormEntry] = []
        changed = False
        for entry in form:
            route = self._route(entry)
            file = entry.file
            if route is None or file is None:
                entries.append(entry)
                continue
            owner, file_input = route
            sanitized = await owner._sanitize(file, file_input)
            if sanitized is not file:
                changed = True
                Log.info(f"Substituting sanitized file in upload: {file.name}")
            entries.append(_substitute(entry, sanitized))
        return MultipartForm(entries) if changed else form

    def rewrite_cached(self, form: MultipartForm) -> MultipartForm | None:
        """Synchronous variant; None when any marked entry is not sanitized yet."""
        entries: list[FormEntry] = []
        changed = False
        for entry in form:
            route = self._route(entry)
            file = entry.file
            if route is None or file is None:
                entries.append(entry)
                continue
            owner, _ = route
            sanitized = owner._service.cached(file)
            if sanitized is None:
                return None
            changed = changed or sanitized is not file
            entries.append(_substitute(entry, sanitized))
        return MultipartForm(entries) if changed else form

    async def _sanitize(self, file: SanitizableFile, file_input: FileInput) -> SanitizableFile:
        try:
            return await self._service.sanitize_file(file, file_input)
        except Exception as exc:
            Log.error(f"Sanitization failed, uploading original file: {file.name}", exc)
            return file

    # ------------------------------------------------------------------
    # Wrappers
    # ------------------------------------------------------------------

    def _wrap_fetch(self, registration: InterceptionRegistration) -> FetchFn:
        original = registration.original_fetch
        interceptor = self

        async def fetch(
            url: str,
            *,
            method: str = "POST",
            body: http.RequestBody = None,
            headers: dict[str, str] | None = None,
        ) -> httpx.Response:
            if isinstance(body, MultipartForm) and interceptor.should_inspect(url, body):
                body = await interceptor.rewrite(body)
            return await original(url, method=method, body=body, headers=headers)

        setattr(fetch, _REGISTRATION_ATTR, registration)
        return fetch

    def _wrap_send(self, registration: InterceptionRegistration) -> SendFn:
        original = registration.original_send
        interceptor = self

        def send(request: http.HttpRequest, body: http.RequestBody = None) -> None:
            if not isinstance(body, MultipartForm) or not interceptor.should_inspect(request.url, body):
                original(request, body)
                return

            rewritten = interceptor.rewrite_cached(body)
            if rewritten is not None:
                original(request, rewritten)
                return

            # Not sanitized yet: the real send happens once substitution resolves.
            Log.debug(f"Deferring upload until sanitization completes: {request.url}")
            interceptor._defer(original, request, body)

        setattr(send, _REGISTRATION_ATTR, registration)
        return send

    def _defer(self, original: SendFn, request: http.HttpRequest, form: MultipartForm) -> None:
        async def send_when_ready() -> None:
            try:
                payload = await self.rewrite(form)
            except Exception as exc:
                Log.error("Upload substitution failed, sending original payload", exc)
                payload = form
            original(request, payload)

        task = asyncio.get_running_loop().create_task(send_when_ready())
        self._deferred.add(task)
        task.add_done_callback(self._deferred.discard)

    @property
    def pending_sends(self) -> int:
        return len(self._deferred)

    async def drain(self) -> None:
        """Wait until every deferred send has been handed to the transport."""
        while self._deferred:
            await asyncio.gather(*list(self._deferred), return_exceptions=True)


def _substitute(entry: FormEntry, file: SanitizableFile) -> FormEntry:
    if file is entry.value:
        return entry
    return FormEntry(name=entry.name, value=file, filename=entry.filename or file.name)
