"""A minimal in-memory element tree.

Just enough of the DOM for the reconciler to run outside a browser: tags,
attributes, text, input state, children and event listeners.  The browser
script performs the same operations against the real document.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

type Listener = Callable[[Element], None]


class Element:
    """One element node.

    ``value``, ``checked`` and ``focused`` model live input state the user
    can change without the server knowing.
    """

    __slots__ = (
        "attrs",
        "checked",
        "children",
        "focused",
        "listeners",
        "parent",
        "tag",
        "text",
        "value",
    )

    def __init__(self, tag: str, **attrs: Any) -> None:
        self.tag = tag
        self.attrs: dict[str, Any] = dict(attrs)
        self.text = ""
        self.value = ""
        self.checked = False
        self.focused = False
        self.children: list[Element] = []
        self.listeners: dict[str, list[Listener]] = {}
        self.parent: Element | None = None

    def __repr__(self) -> str:
        return f"<{self.tag} children={len(self.children)}>"

    # ----- tree -----

    def append(self, child: Element) -> Element:
        child.detach()
        child.parent = self
        self.children.append(child)
        return child

    def replace(self, index: int, child: Element) -> None:
        """Put ``child`` at ``index``, detaching whatever was there."""
        if index < len(self.children) and self.children[index] is child:
            return
        child.detach()
        if index >= len(self.children):
            self.append(child)
            return
        old = self.children[index]
        old.parent = None
        child.parent = self
        self.children[index] = child

    def truncate(self, length: int) -> None:
        """Drop children beyond ``length``."""
        for child in self.children[length:]:
            child.parent = None
        del self.children[length:]

    def detach(self) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None

    def walk(self):
        """Yield this element and its descendants, pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, tag: str) -> list[Element]:
        return [el for el in self.walk() if el.tag == tag]

    # ----- events -----

    def add_listener(self, event: str, listener: Listener) -> None:
        self.listeners.setdefault(event, []).append(listener)

    def dispatch(self, event: str) -> int:
        """Invoke the listeners for ``event``; return how many ran."""
        listeners = self.listeners.get(event, [])
        for listener in listeners:
            listener(self)
        return len(listeners)

    # ----- user simulation -----

    def click(self) -> int:
        if self.tag == "input" and self.attrs.get("type") == "checkbox":
            self.checked = not self.checked
            return self.dispatch("change")
        return self.dispatch("click")

    def type_text(self, value: str) -> int:
        self.value = value
        return self.dispatch("input")
