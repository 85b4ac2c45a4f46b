from pdf_sanitizer.page.elements import Element, Event, FileInput, Page
from pdf_sanitizer.sanitizer.models import SanitizableFile


def _make_page() -> tuple[Page, Element, FileInput]:
    page = Page()
    field = Element("div", classes=["field"])
    file_input = FileInput(name="attachment", accept="application/pdf", sanitize=True)
    field.append_child(file_input)
    page.body.append_child(field)
    return page, field, file_input


class TestFileInput:
    def test_marker_attribute(self) -> None:
        assert FileInput(sanitize=True).is_marked() is True
        assert FileInput().is_marked() is False
        assert FileInput(attrs={"data-pdf-sanitize": "false"}).is_marked() is False

    def test_accepts_pdf(self) -> None:
        assert FileInput().accepts_pdf() is True
        assert FileInput(accept=".pdf,.docx").accepts_pdf() is True
        assert FileInput(accept="application/PDF").accepts_pdf() is True
        assert FileInput(accept="image/*").accepts_pdf() is False

    def test_select_dispatches_change(self) -> None:
        page, _, file_input = _make_page()
        seen: list[list[SanitizableFile]] = []
        page.add_event_listener("change", lambda event: seen.append(list(event.target.files)))
        file = SanitizableFile(name="a.pdf", content=b"%PDF")

        file_input.select([file])

        assert seen == [[file]]


class TestEventDispatch:
    def test_capture_then_bubble_order(self) -> None:
        page, field, file_input = _make_page()
        order: list[str] = []
        page.add_event_listener("change", lambda e: order.append("document-capture"), capture=True)
        page.add_event_listener("change", lambda e: order.append("document-bubble"))
        field.add_event_listener("change", lambda e: order.append("field-capture"), capture=True)
        field.add_event_listener("change", lambda e: order.append("field-bubble"))
        file_input.add_event_listener("change", lambda e: order.append("target-capture"), capture=True)
        file_input.add_event_listener("change", lambda e: order.append("target-bubble"))

        page.dispatch_event(Event("change", file_input))

        assert order == [
            "document-capture",
            "field-capture",
            "target-capture",
            "target-bubble",
            "field-bubble",
            "document-bubble",
        ]

    def test_stop_immediate_propagation(self) -> None:
        page, _, file_input = _make_page()
        order: list[str] = []

        def stop(event: Event) -> None:
            order.append("first")
            event.stop_immediate_propagation()

        file_input.add_event_listener("change", stop, capture=True)
        file_input.add_event_listener("change", lambda e: order.append("second"), capture=True)
        page.add_event_listener("change", lambda e: order.append("document"))

        page.dispatch_event(Event("change", file_input))

        assert order == ["first"]

    def test_other_event_types_ignored(self) -> None:
        page, _, file_input = _make_page()
        calls: list[Event] = []
        file_input.add_event_listener("input", calls.append)

        page.dispatch_event(Event("change", file_input))

        assert calls == []


class TestPageHooks:
    def test_observer_sees_inserted_nodes(self) -> None:
        page, field, _ = _make_page()
        batches: list[list[Element]] = []
        page.observe(batches.append)
        added = FileInput(name="extra")

        field.append_child(added)

        assert batches == [[added]]

    def test_detached_tree_does_not_notify(self) -> None:
        page = Page()
        batches: list[list[Element]] = []
        page.observe(batches.append)

        Element("div").append_child(Element("span"))

        assert batches == []

    def test_morph_passes_root(self) -> None:
        page, field, _ = _make_page()
        roots: list[Element] = []
        page.on_morph(roots.append)

        page.morph(field)

        assert roots == [field]

    def test_lookups(self) -> None:
        page, _, file_input = _make_page()
        plain = FileInput(name="avatar")
        page.body.append_child(plain)

        assert page.find_file_input("attachment") is file_input
        assert page.find_file_input("missing") is None
        assert page.first_marked_input() is file_input
        assert page.file_inputs() == [file_input, plain]
        assert file_input.page is page


class TestElementTree:
    def test_insert_before_keeps_order(self) -> None:
        parent = Element("div")
        last = parent.append_child(Element("b"))
        first = parent.insert_before(Element("a"), last)
        assert parent.children == [first, last]
        assert first.parent is parent

    def test_append_moves_node(self) -> None:
        a = Element("div")
        b = Element("div")
        child = a.append_child(Element("span"))
        b.append_child(child)
        assert a.children == []
        assert child.parent is b

    def test_clone_is_deep_and_detached(self) -> None:
        source = Element("div", classes=["x"], children=[Element("span", classes=["y"])])
        source.style["color"] = "red"
        copy = source.clone()
        assert copy is not source
        assert copy.parent is None
        assert copy.find_by_class("y") is not source.find_by_class("y")
        assert copy.style == {"color": "red"}
