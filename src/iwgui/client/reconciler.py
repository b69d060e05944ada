"""Client reconciler — keeps a rendered element tree in step with the host.

The reconciler holds a mirror: an arena of ``MirrorEntry(node, element)``
keyed by handle.  Applying a delta:

1. drops removed entries and detaches their elements,
2. upserts added and updated nodes, keeping any existing element so it can
   be patched in place,
3. remembers the new root, if one was sent,

then ``render()`` re-materializes from the root.  Structural kinds
reconcile their child lists positionally (replace differing, append
missing, drop surplus).  Leaf kinds patch in place; an input that has focus
keeps its live value so typing is never clobbered by a stale echo.

Listeners capture the element's handle when it is created and emit one
``Event`` per user action.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from iwgui._errors import ProtocolError
from iwgui._types import Handle
from iwgui.client.dom import Element
from iwgui.gui import nodes
from iwgui.gui.events import (
    ButtonPressed,
    CheckboxChecked,
    Event,
    NumberChanged,
    TextboxChanged,
)

if TYPE_CHECKING:
    from iwgui.gui.differ import Delta

type Emit = Callable[[Event], None]

_TAGS: dict[str, tuple[str, str | None]] = {
    nodes.StackLayout.kind: ("div", None),
    nodes.Columns.kind: ("div", None),
    nodes.Indeterminate.kind: ("div", None),
    nodes.Header.kind: ("h1", None),
    nodes.Label.kind: ("span", None),
    nodes.Button.kind: ("button", None),
    nodes.Checkbox.kind: ("input", "checkbox"),
    nodes.Textbox.kind: ("input", "text"),
    nodes.Number.kind: ("input", "number"),
}


@dataclass(slots=True)
class MirrorEntry:
    """The last node received for a handle and the element showing it."""

    node: nodes.Node
    element: Element | None = None


def format_number(value: float) -> str:
    return str(int(value)) if value.is_integer() else repr(value)


class Reconciler:
    """Applies deltas to a mirror and renders it under ``document``.

    Args:
        document: Container element; the root element is its only child.
        emit: Called with each interaction event.

    """

    __slots__ = ("_document", "_emit", "_mirror", "_root", "_warned")

    def __init__(self, document: Element, emit: Emit) -> None:
        self._document = document
        self._emit = emit
        self._mirror: dict[Handle, MirrorEntry] = {}
        self._root: Handle | None = None
        self._warned: set[str] = set()

    @property
    def root(self) -> Handle | None:
        return self._root

    @property
    def mirror(self) -> dict[Handle, MirrorEntry]:
        return self._mirror

    def element_for(self, handle: Handle) -> Element | None:
        entry = self._mirror.get(handle)
        return entry.element if entry is not None else None

    def apply(self, delta: Delta) -> None:
        """Fold ``delta`` into the mirror and re-render.

        Raises:
            ProtocolError: If the rendered tree references a handle that
                is neither in the mirror nor in the delta.

        """
        for handle in delta.removed:
            entry = self._mirror.pop(handle, None)
            if entry is not None and entry.element is not None:
                entry.element.detach()
        for section in (delta.added, delta.updated):
            for handle, node in section.items():
                entry = self._mirror.get(handle)
                if entry is None:
                    self._mirror[handle] = MirrorEntry(node)
                else:
                    entry.node = node
        if delta.root is not None:
            self._root = delta.root
        self.render()

    def render(self) -> None:
        if self._root is None:
            return
        element = self._materialize(self._root)
        if element is None:
            self._document.truncate(0)
            return
        self._document.replace(0, element)
        self._document.truncate(1)

    # ----- materialization -----

    def _materialize(self, handle: Handle) -> Element | None:
        entry = self._mirror.get(handle)
        if entry is None:
            msg = f"Handle {handle!r} is referenced but was never sent"
            raise ProtocolError(msg)

        node = entry.node
        if isinstance(node, nodes.UnknownNode):
            if node.kind not in self._warned:
                self._warned.add(node.kind)
                print(f"  Skipping unknown node kind {node.kind!r}", file=sys.stderr)
            return None

        element = entry.element
        if element is None or element.attrs.get("data-kind") != node.kind:
            element = self._create(handle, node)
            entry.element = element

        match node:
            case nodes.StackLayout() | nodes.Columns():
                self._reconcile_children(element, node.child_handles())
            case nodes.Header(text=text) | nodes.Label(text=text):
                element.text = text
            case nodes.Button(text=text):
                element.text = text or ""
            case nodes.Checkbox(checked=checked, text=text):
                element.checked = checked
                element.attrs["label"] = text
            case nodes.Textbox(value=value):
                if not element.focused:
                    element.value = value
            case nodes.Number():
                element.attrs.update(min=node.min, max=node.max, step=node.step, label=node.text)
                if not element.focused:
                    element.value = format_number(node.value)
        return element

    def _reconcile_children(self, element: Element, handles: tuple[Handle, ...]) -> None:
        rendered = [child for h in handles if (child := self._materialize(h)) is not None]
        for index, child in enumerate(rendered):
            element.replace(index, child)
        element.truncate(len(rendered))

    def _create(self, handle: Handle, node: nodes.Node) -> Element:
        tag, input_type = _TAGS[node.kind]
        element = Element(tag, **{"data-handle": handle, "data-kind": node.kind})
        if input_type is not None:
            element.attrs["type"] = input_type

        emit = self._emit
        match node:
            case nodes.Button():
                element.add_listener("click", lambda el: emit(Event(handle, ButtonPressed())))
            case nodes.Checkbox():
                element.add_listener(
                    "change", lambda el: emit(Event(handle, CheckboxChecked(el.checked)))
                )
            case nodes.Textbox():
                element.add_listener(
                    "input", lambda el: emit(Event(handle, TextboxChanged(el.value)))
                )
            case nodes.Number():
                element.add_listener("input", lambda el: _emit_number(emit, handle, el))
        return element


def _emit_number(emit: Emit, handle: Handle, element: Element) -> None:
    try:
        value = float(element.value)
    except ValueError:
        # Partial input such as "-" or "1e" is not reported
        return
    emit(Event(handle, NumberChanged(value)))
