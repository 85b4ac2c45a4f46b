import asyncio
import weakref
from dataclasses import dataclass

from pdf_sanitizer.config.settings import Settings
from pdf_sanitizer.logging.logger import Log
from pdf_sanitizer.page.elements import Element
from pdf_sanitizer.progress.anchor import AnchorResolver, ResolvePresentationContext

OVERLAY_CLASS = "pdf-sanitizer-progress-overlay"
CONTENT_CLASS = "pdf-sanitizer-progress-content"
SPINNER_CLASS = "pdf-sanitizer-spinner"
MESSAGE_CLASS = "pdf-sanitizer-message"
PERCENT_CLASS = "pdf-sanitizer-percent"
TEMPLATE_ID = "pdf-sanitizer-progress-template"
BUSY_ATTRIBUTE = "data-pdf-sanitizing"
INDICATOR_ATTRIBUTE = "data-pdf-sanitizer-indicator"

DEFAULT_MESSAGE = "Sanitizing PDF..."


@dataclass(eq=False)
class PresentationContext:
    trigger: Element
    anchor: Element
    overlay: Element


class ProgressPresenter:
    """Shows a busy overlay over the upload widget while a PDF is processed."""

    def __init__(
        self,
        settings: Settings,
        resolver: ResolvePresentationContext | None = None,
    ) -> None:
        self._settings = settings
        self._resolver = resolver if resolver is not None else AnchorResolver()
        self._contexts: weakref.WeakKeyDictionary[Element, PresentationContext] = (
            weakref.WeakKeyDictionary()
        )

    @property
    def enabled(self) -> bool:
        return self._settings.show_progress

    def context_for(self, trigger: Element) -> PresentationContext | None:
        return self._contexts.get(trigger)

    def show(self, trigger: Element | None, message: str = DEFAULT_MESSAGE) -> PresentationContext | None:
        """Display (or refresh) the overlay for *trigger*.

        Returns None when progress is disabled or no anchor can be found.
        """
        if not self.enabled:
            Log.debug("Progress indicator disabled in config")
            return None
        if trigger is None:
            Log.warning("Cannot show progress: input element is missing")
            return None

        try:
            return self._show(trigger, message)
        except Exception as exc:
            Log.warning(f"Progress indicator could not be created: {exc}")
            return None

    def update(
        self,
        context: PresentationContext | None,
        message: str,
        percent: int | None = None,
    ) -> None:
        if context is None:
            return
        message_el = context.overlay.find_by_class(MESSAGE_CLASS)
        if message_el is not None:
            message_el.text = message
        percent_el = context.overlay.find_by_class(PERCENT_CLASS)
        if percent_el is not None:
            percent_el.text = f"{percent}%" if percent is not None else ""

    async def hide(self, context: PresentationContext | None) -> None:
        """Fade out and remove the overlay, then clear busy markers."""
        if context is None:
            return
        self._contexts.pop(context.trigger, None)
        overlay = context.overlay
        if overlay.parent is not None:
            overlay.style["opacity"] = "0"
            overlay.style["transition"] = "opacity 0.2s ease-in-out"
            await asyncio.sleep(self._settings.progress_fade_seconds)
            if overlay.style.get("opacity") != "0":
                # Re-shown while fading.
                return
            overlay.remove()
            Log.debug("Progress indicator hidden")
        _clear_busy(context.anchor)

    async def hide_for(self, trigger: Element | None) -> None:
        """Hide whatever indicator belongs to *trigger*, if any."""
        if trigger is None:
            return
        context = self._contexts.get(trigger)
        if context is not None:
            await self.hide(context)
            return
        anchor = self._locate_existing(trigger)
        if anchor is None:
            return
        overlay = anchor.find_by_class(OVERLAY_CLASS)
        if overlay is not None:
            await self.hide(PresentationContext(trigger=trigger, anchor=anchor, overlay=overlay))
        else:
            _clear_busy(anchor)

    # ------------------------------------------------------------------

    def _show(self, trigger: Element, message: str) -> PresentationContext | None:
        anchor = self._resolver(trigger)
        if anchor is None:
            Log.warning("Progress indicator could not be created - wrapper element not found")
            return None
        Log.debug(f"Found wrapper element: {anchor!r}")

        if anchor.style.get("position", "static") == "static":
            anchor.style["position"] = "relative"

        overlay = anchor.find_by_class(OVERLAY_CLASS)
        if overlay is None:
            overlay = self._build_overlay(trigger, message)
            anchor.append_child(overlay)

        message_el = overlay.find_by_class(MESSAGE_CLASS)
        if message_el is None:
            message_el = Element("div", classes=[MESSAGE_CLASS])
            (overlay.find_by_class(CONTENT_CLASS) or overlay).append_child(message_el)
        message_el.text = message

        overlay.style.update({"display": "flex", "visibility": "visible", "opacity": "1"})
        anchor.set_attribute(BUSY_ATTRIBUTE, "true")
        anchor.style.update({"pointer-events": "none", "opacity": "0.7"})

        context = PresentationContext(trigger=trigger, anchor=anchor, overlay=overlay)
        self._contexts[trigger] = context
        return context

    def _build_overlay(self, trigger: Element, message: str) -> Element:
        page = trigger.page
        template = page.get_element_by_id(TEMPLATE_ID) if page is not None else None
        template_overlay = template.find_by_class(OVERLAY_CLASS) if template is not None else None
        if template_overlay is not None:
            Log.debug("Cloned progress indicator from template")
            return template_overlay.clone()

        message_el = Element("div", classes=[MESSAGE_CLASS])
        message_el.text = message
        content = Element(
            "div",
            classes=[CONTENT_CLASS],
            children=[
                Element("div", classes=[SPINNER_CLASS]),
                message_el,
                Element("div", classes=[PERCENT_CLASS]),
            ],
        )
        overlay = Element(
            "div",
            classes=[OVERLAY_CLASS],
            attrs={INDICATOR_ATTRIBUTE: "true"},
            children=[content],
        )
        overlay.style.update({"position": "absolute", "inset": "0", "z-index": "50"})
        return overlay

    def _locate_existing(self, trigger: Element) -> Element | None:
        if isinstance(self._resolver, AnchorResolver):
            return self._resolver.resolve(trigger, synthesize=False)
        return self._resolver(trigger)


def _clear_busy(anchor: Element) -> None:
    anchor.remove_attribute(BUSY_ATTRIBUTE)
    anchor.style.pop("pointer-events", None)
    anchor.style.pop("opacity", None)
