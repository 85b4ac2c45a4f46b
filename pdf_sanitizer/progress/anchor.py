from collections.abc import Callable, Sequence
from dataclasses import dataclass

from pdf_sanitizer.page.elements import Element

# Upload widget wrappers, most specific first.
DEFAULT_ANCHOR_CLASSES = (
    "fi-fo-file-upload-wrapper",
    "fi-fo-field-wrp",
    "fi-input-wrp",
    "fi-input",
)
DEFAULT_MAX_HOPS = 15

AnchorMatcher = Callable[[Element], bool]
ResolvePresentationContext = Callable[[Element], Element | None]


@dataclass(frozen=True)
class ClassMatcher:
    """Element carries *class_name* and has a visible box."""

    class_name: str

    def __call__(self, element: Element) -> bool:
        return element.has_class(self.class_name) and element.has_box()


@dataclass(frozen=True)
class SizedContainerMatcher:
    """Any classed ``div`` large enough to host the overlay."""

    min_width: float = 100
    min_height: float = 50

    def __call__(self, element: Element) -> bool:
        return (
            element.tag == "div"
            and bool(element.classes)
            and element.width > self.min_width
            and element.height > self.min_height
        )


def default_matchers() -> list[AnchorMatcher]:
    matchers: list[AnchorMatcher] = [ClassMatcher(name) for name in DEFAULT_ANCHOR_CLASSES]
    matchers.append(SizedContainerMatcher())
    return matchers


class AnchorResolver:
    """Finds the element an overlay should cover for a given trigger input.

    Walks from the trigger outward, testing the matchers in priority order at
    every hop. Without a match it falls back to the trigger's parent, and
    with ``synthesize=True`` wraps a parentless (or body-level) trigger in a
    fresh ``div``.
    """

    def __init__(
        self,
        matchers: Sequence[AnchorMatcher] | None = None,
        max_hops: int = DEFAULT_MAX_HOPS,
    ) -> None:
        self._matchers = list(matchers) if matchers is not None else default_matchers()
        self._max_hops = max_hops

    def __call__(self, trigger: Element) -> Element | None:
        return self.resolve(trigger, synthesize=True)

    def resolve(self, trigger: Element, synthesize: bool = False) -> Element | None:
        match = self._walk(trigger)
        if match is not None:
            return match

        parent = trigger.parent
        if parent is not None and parent.tag != "body":
            return parent
        if not synthesize:
            return parent
        return self._wrap(trigger)

    def _walk(self, trigger: Element) -> Element | None:
        node: Element | None = trigger
        hops = 0
        while node is not None and hops < self._max_hops:
            for matcher in self._matchers:
                if matcher(node):
                    return node
            node = node.parent
            hops += 1
        return None

    @staticmethod
    def _wrap(trigger: Element) -> Element:
        wrapper = Element("div")
        wrapper.style.update({"position": "relative", "display": "inline-block", "width": "100%"})
        parent = trigger.parent
        if parent is not None:
            parent.insert_before(wrapper, trigger)
        wrapper.append_child(trigger)
        return wrapper
