"""In-process model of the hosting form page.

The page is owned by the host application; the sanitizer only needs a small
slice of it: an element tree with classes, attributes, inline styles and a
layout box, file inputs carrying selected files, capture/bubble change
events, and notifications when nodes are inserted or a subtree is re-rendered.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from pdf_sanitizer.sanitizer.models import SanitizableFile

EventHandler = Callable[["Event"], None]
MutationCallback = Callable[[list["Element"]], None]
MorphCallback = Callable[["Element"], None]


@dataclass(eq=False)
class Event:
    type: str
    target: Element
    synthetic: bool = False
    propagation_stopped: bool = field(default=False, init=False)
    immediate_propagation_stopped: bool = field(default=False, init=False)

    def stop_propagation(self) -> None:
        self.propagation_stopped = True

    def stop_immediate_propagation(self) -> None:
        self.propagation_stopped = True
        self.immediate_propagation_stopped = True


class Element:
    def __init__(
        self,
        tag: str,
        *,
        id: str | None = None,  # noqa: A002
        classes: tuple[str, ...] | list[str] = (),
        attrs: dict[str, str] | None = None,
        width: float = 0.0,
        height: float = 0.0,
        children: tuple[Element, ...] | list[Element] = (),
    ) -> None:
        self.tag = tag.lower()
        self.classes: list[str] = list(classes)
        self.attrs: dict[str, str] = dict(attrs or {})
        if id is not None:
            self.attrs["id"] = id
        self.style: dict[str, str] = {}
        self.text = ""
        # Layout box as reported by the host renderer.
        self.width = width
        self.height = height
        self.parent: Element | None = None
        self.children: list[Element] = []
        self._page: Page | None = None
        self._listeners: list[tuple[str, EventHandler, bool]] = []
        for child in children:
            self.append_child(child)

    def __repr__(self) -> str:
        classes = "." + ".".join(self.classes) if self.classes else ""
        return f"<{self.tag}{classes}>"

    @property
    def id(self) -> str | None:
        return self.attrs.get("id")

    @property
    def page(self) -> Page | None:
        node: Element | None = self
        while node is not None:
            if node._page is not None:
                return node._page
            node = node.parent
        return None

    # Attributes -------------------------------------------------------

    def get_attribute(self, name: str) -> str | None:
        return self.attrs.get(name)

    def set_attribute(self, name: str, value: str) -> None:
        self.attrs[name] = value

    def has_attribute(self, name: str) -> bool:
        return name in self.attrs

    def remove_attribute(self, name: str) -> None:
        self.attrs.pop(name, None)

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def has_box(self) -> bool:
        return self.width > 0 and self.height > 0

    # Tree -------------------------------------------------------------

    def append_child(self, child: Element) -> Element:
        child.detach()
        child.parent = self
        self.children.append(child)
        self._notify_inserted(child)
        return child

    def insert_before(self, child: Element, reference: Element) -> Element:
        child.detach()
        index = self.children.index(reference)
        child.parent = self
        self.children.insert(index, child)
        self._notify_inserted(child)
        return child

    def detach(self) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None

    def remove(self) -> None:
        self.detach()

    def iter(self) -> Iterator[Element]:
        """Yield this element and all descendants in document order."""
        yield self
        for child in self.children:
            yield from child.iter()

    def find_by_class(self, name: str) -> Element | None:
        for node in self.iter():
            if node.has_class(name):
                return node
        return None

    def ancestors(self) -> Iterator[Element]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def clone(self) -> Element:
        """Deep copy without listeners or tree position."""
        copy = Element(self.tag, classes=self.classes, attrs=self.attrs)
        copy.style = dict(self.style)
        copy.text = self.text
        for child in self.children:
            copy.append_child(child.clone())
        return copy

    def _notify_inserted(self, child: Element) -> None:
        page = self.page
        if page is not None:
            page.notify_inserted([child])

    # Events -----------------------------------------------------------

    def add_event_listener(self, type: str, handler: EventHandler, capture: bool = False) -> None:  # noqa: A002
        self._listeners.append((type, handler, capture))

    def _fire(self, event: Event, capture: bool) -> None:
        for type_, handler, is_capture in list(self._listeners):
            if type_ != event.type or is_capture != capture:
                continue
            handler(event)
            if event.immediate_propagation_stopped:
                return


class FileInput(Element):
    """``<input type="file">`` with its current selection."""

    SANITIZE_ATTRIBUTE = "data-pdf-sanitize"

    def __init__(
        self,
        *,
        name: str | None = None,
        accept: str | None = None,
        sanitize: bool = False,
        id: str | None = None,  # noqa: A002
        classes: tuple[str, ...] | list[str] = (),
        attrs: dict[str, str] | None = None,
        width: float = 0.0,
        height: float = 0.0,
    ) -> None:
        attrs = dict(attrs or {})
        attrs["type"] = "file"
        if name is not None:
            attrs["name"] = name
        if accept is not None:
            attrs["accept"] = accept
        if sanitize:
            attrs[self.SANITIZE_ATTRIBUTE] = "true"
        super().__init__(
            "input", id=id, classes=classes, attrs=attrs, width=width, height=height
        )
        self.files: list[SanitizableFile] = []

    @property
    def name(self) -> str | None:
        return self.attrs.get("name")

    def is_marked(self) -> bool:
        return self.attrs.get(self.SANITIZE_ATTRIBUTE) == "true"

    def accepts_pdf(self) -> bool:
        accept = self.attrs.get("accept")
        if not accept:
            return True
        return "pdf" in accept.lower()

    def select(self, files: list[SanitizableFile]) -> Event:
        """Simulate the user choosing *files* and fire ``change``."""
        self.files = list(files)
        page = self.page
        event = Event("change", self)
        if page is not None:
            page.dispatch_event(event)
        return event


class Page:
    """Root of the hosting page with document-level listeners and hooks."""

    def __init__(self, body: Element | None = None) -> None:
        self.root = Element("html")
        self.root._page = self
        self.body = body if body is not None else Element("body")
        self._listeners: list[tuple[str, EventHandler, bool]] = []
        self._observers: list[MutationCallback] = []
        self._morph_hooks: list[MorphCallback] = []
        self.root.append_child(self.body)

    # Lookup -----------------------------------------------------------

    def get_element_by_id(self, element_id: str) -> Element | None:
        for node in self.root.iter():
            if node.id == element_id:
                return node
        return None

    def file_inputs(self, root: Element | None = None) -> list[FileInput]:
        start = root if root is not None else self.root
        return [node for node in start.iter() if isinstance(node, FileInput)]

    def find_file_input(self, name: str) -> FileInput | None:
        for node in self.file_inputs():
            if node.name == name:
                return node
        return None

    def first_marked_input(self) -> FileInput | None:
        for node in self.file_inputs():
            if node.is_marked():
                return node
        return None

    # Hooks ------------------------------------------------------------

    def observe(self, callback: MutationCallback) -> None:
        """Register for batches of inserted nodes."""
        self._observers.append(callback)

    def on_morph(self, callback: MorphCallback) -> None:
        """Register for re-render notifications carrying the updated root."""
        self._morph_hooks.append(callback)

    def notify_inserted(self, nodes: list[Element]) -> None:
        for callback in list(self._observers):
            callback(nodes)

    def morph(self, root: Element) -> None:
        """Called by the host after it re-rendered the subtree at *root*."""
        for callback in list(self._morph_hooks):
            callback(root)

    # Events -----------------------------------------------------------

    def add_event_listener(
        self,
        type: str,  # noqa: A002
        handler: EventHandler,
        capture: bool = False,
        first: bool = False,
    ) -> None:
        """Register a document-level listener; *first* puts it ahead of existing ones."""
        if first:
            self._listeners.insert(0, (type, handler, capture))
        else:
            self._listeners.append((type, handler, capture))

    def dispatch_event(self, event: Event) -> None:
        """Deliver *event*: document capture, tree capture, target, bubble."""
        path = list(reversed(list(event.target.ancestors())))

        if self._fire(event, capture=True):
            return
        for node in path:
            node._fire(event, capture=True)
            if event.propagation_stopped:
                return

        event.target._fire(event, capture=True)
        if event.propagation_stopped:
            return
        event.target._fire(event, capture=False)
        if event.propagation_stopped:
            return

        for node in reversed(path):
            node._fire(event, capture=False)
            if event.propagation_stopped:
                return
        self._fire(event, capture=False)

    def _fire(self, event: Event, capture: bool) -> bool:
        for type_, handler, is_capture in list(self._listeners):
            if type_ != event.type or is_capture != capture:
                continue
            handler(event)
            if event.immediate_propagation_stopped:
                break
        return event.propagation_stopped
