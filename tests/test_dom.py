"""Tests for iwgui.client.dom — the in-memory element tree."""

from iwgui.client.dom import Element


class TestTree:
    def test_append_sets_parent(self) -> None:
        root = Element("div")
        child = root.append(Element("span"))
        assert child.parent is root
        assert root.children == [child]

    def test_append_moves_between_parents(self) -> None:
        a, b = Element("div"), Element("div")
        child = a.append(Element("span"))
        b.append(child)
        assert a.children == []
        assert child.parent is b

    def test_replace_in_place(self) -> None:
        root = Element("div")
        old = root.append(Element("span"))
        new = Element("button")
        root.replace(0, new)
        assert root.children == [new]
        assert old.parent is None
        assert new.parent is root

    def test_replace_same_element_is_noop(self) -> None:
        root = Element("div")
        child = root.append(Element("span"))
        root.replace(0, child)
        assert root.children == [child]

    def test_replace_past_end_appends(self) -> None:
        root = Element("div")
        child = Element("span")
        root.replace(5, child)
        assert root.children == [child]

    def test_replace_moves_sibling(self) -> None:
        root = Element("div")
        first = root.append(Element("a"))
        second = root.append(Element("b"))
        root.replace(0, second)
        assert root.children == [second]
        assert first.parent is None

    def test_truncate(self) -> None:
        root = Element("div")
        kids = [root.append(Element("span")) for _ in range(3)]
        root.truncate(1)
        assert root.children == kids[:1]
        assert kids[2].parent is None

    def test_detach(self) -> None:
        root = Element("div")
        child = root.append(Element("span"))
        child.detach()
        assert root.children == []
        child.detach()

    def test_walk_and_find(self) -> None:
        root = Element("div")
        inner = root.append(Element("div"))
        inner.append(Element("button"))
        root.append(Element("button"))
        assert [el.tag for el in root.walk()] == ["div", "div", "button", "button"]
        assert len(root.find("button")) == 2


class TestEvents:
    def test_dispatch_runs_listeners(self) -> None:
        el = Element("button")
        seen: list[Element] = []
        el.add_listener("click", seen.append)
        el.add_listener("click", seen.append)
        assert el.dispatch("click") == 2
        assert seen == [el, el]

    def test_dispatch_without_listeners(self) -> None:
        assert Element("span").dispatch("click") == 0

    def test_click_toggles_checkbox(self) -> None:
        box = Element("input", type="checkbox")
        states: list[bool] = []
        box.add_listener("change", lambda el: states.append(el.checked))
        box.click()
        box.click()
        assert states == [True, False]

    def test_type_text(self) -> None:
        field = Element("input", type="text")
        values: list[str] = []
        field.add_listener("input", lambda el: values.append(el.value))
        field.type_text("quack")
        assert field.value == "quack"
        assert values == ["quack"]
