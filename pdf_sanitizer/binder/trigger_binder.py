import asyncio
import weakref
from enum import Enum

from pdf_sanitizer.logging.logger import Log
from pdf_sanitizer.page.elements import Element, Event, FileInput, Page
from pdf_sanitizer.sanitizer.models import SanitizableFile
from pdf_sanitizer.sanitizer.service import SanitizationService

BOUND_ATTRIBUTE = "data-pdf-sanitizer-bound"


class InputState(Enum):
    IDLE = "idle"
    SANITIZING = "sanitizing"
    # The next change event is our own re-dispatch and must pass through.
    SUPPRESS_NEXT = "suppress_next"


class TriggerBinder:
    """Hooks marked PDF inputs so a selection is sanitized before anyone sees it.

    One document-level capture listener, placed ahead of every other page
    listener, handles ``change`` for all bound inputs. It holds the original
    event back, swaps the selected PDFs for their sanitized counterparts and
    then re-dispatches ``change`` for the host's own listeners.
    """

    def __init__(self, page: Page, service: SanitizationService) -> None:
        self._page = page
        self._service = service
        self._states: weakref.WeakKeyDictionary[FileInput, InputState] = weakref.WeakKeyDictionary()
        self._tasks: set[asyncio.Task[None]] = set()
        self._listening = False

    def start(self) -> int:
        """Bind current inputs and follow the page for new ones."""
        if not self._listening:
            self._page.add_event_listener("change", self._on_document_change, capture=True, first=True)
            self._page.observe(self._on_inserted)
            self._page.on_morph(self._on_morph)
            self._listening = True
        return self.scan(self._page.root)

    def scan(self, root: Element) -> int:
        """Bind every eligible input under *root*; returns how many were new."""
        bound = 0
        for file_input in self._page.file_inputs(root):
            if file_input.is_marked() and file_input.accepts_pdf() and self.bind(file_input):
                bound += 1
        if bound:
            Log.debug(f"Bound {bound} PDF input(s)")
        return bound

    def bind(self, file_input: FileInput) -> bool:
        if file_input.get_attribute(BOUND_ATTRIBUTE) == "true":
            return False
        file_input.set_attribute(BOUND_ATTRIBUTE, "true")
        self._states[file_input] = InputState.IDLE
        return True

    def state_of(self, file_input: FileInput) -> InputState:
        return self._states.get(file_input, InputState.IDLE)

    async def drain(self) -> None:
        """Wait for in-progress selections to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------

    def _on_inserted(self, nodes: list[Element]) -> None:
        for node in nodes:
            self.scan(node)

    def _on_morph(self, root: Element) -> None:
        self.scan(root)

    def _on_document_change(self, event: Event) -> None:
        target = event.target
        if isinstance(target, FileInput) and target in self._states:
            self._on_change(target, event)

    def _on_change(self, file_input: FileInput, event: Event) -> None:
        state = self.state_of(file_input)

        if state is InputState.SUPPRESS_NEXT:
            self._states[file_input] = InputState.IDLE
            return
        if state is InputState.SANITIZING:
            # Held back either way; a changed selection is picked up when the current run ends.
            event.stop_immediate_propagation()
            Log.debug("Change event held back while sanitizing")
            return
        if not file_input.is_marked():
            return

        originals = list(file_input.files)
        if not any(file.is_pdf() for file in originals):
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            Log.warning("No running event loop, PDF selection left unsanitized")
            return

        event.stop_immediate_propagation()
        self._states[file_input] = InputState.SANITIZING
        task = loop.create_task(self._sanitize_selection(file_input, originals))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _sanitize_selection(self, file_input: FileInput, originals: list[SanitizableFile]) -> None:
        while True:
            replaced = await self._replace_all(file_input, originals)
            current = list(file_input.files)
            if _same_selection(current, originals):
                break
            Log.info("Selection changed while sanitizing, processing the newest files")
            originals = current

        file_input.files = replaced
        self._states[file_input] = InputState.SUPPRESS_NEXT
        self._redispatch(file_input)

    async def _replace_all(
        self, file_input: FileInput, originals: list[SanitizableFile]
    ) -> list[SanitizableFile]:
        try:
            replaced = await asyncio.gather(
                *(self._replace(file, file_input) for file in originals)
            )
        except Exception as exc:
            Log.error("Failed to process file input", exc)
            return list(originals)
        return list(replaced)

    async def _replace(self, file: SanitizableFile, file_input: FileInput) -> SanitizableFile:
        if not file.is_pdf():
            return file
        return await self._service.sanitize_file(file, file_input)

    def _redispatch(self, file_input: FileInput) -> None:
        page = file_input.page
        if page is None:
            self._states[file_input] = InputState.IDLE
            return
        page.dispatch_event(Event("change", file_input, synthetic=True))
        # A listener may have stopped the event before ours saw it.
        if self._states.get(file_input) is InputState.SUPPRESS_NEXT:
            self._states[file_input] = InputState.IDLE


def _same_selection(current: list[SanitizableFile], originals: list[SanitizableFile]) -> bool:
    return len(current) == len(originals) and all(a is b for a, b in zip(current, originals))
