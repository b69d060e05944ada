"""Node kinds — the immutable description of one widget in one frame.

All nodes are frozen dataclasses, so equality is plain ``==`` on the
payload.  Structural nodes reference children by handle only; comparing
two ``StackLayout`` nodes compares their ordered child-handle tuples, not
the children themselves (children are diffed independently by handle).

Wire encoding is a single-key tagged object keyed by the kind name::

    {"Button": {"text": "Save"}}
    {"StackLayout": {"children": ["P.1f…", "B.9a…"]}}

Payload-less kinds encode as the bare tag string (``"Indeterminate"``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from iwgui._errors import MessageError
from iwgui._types import Handle


@dataclass(frozen=True, slots=True)
class StackLayout:
    """Vertical stack of children in declaration order."""

    kind: ClassVar[str] = "StackLayout"

    children: tuple[Handle, ...] = ()

    def child_handles(self) -> tuple[Handle, ...]:
        return self.children

    def payload(self) -> dict[str, Any]:
        return {"children": list(self.children)}


@dataclass(frozen=True, slots=True)
class Columns:
    """Two side-by-side panels."""

    kind: ClassVar[str] = "Columns"

    left: Handle
    right: Handle

    def child_handles(self) -> tuple[Handle, ...]:
        return (self.left, self.right)

    def payload(self) -> dict[str, Any]:
        return {"left": self.left, "right": self.right}


@dataclass(frozen=True, slots=True)
class Indeterminate:
    """A layout slot that was opened but never filled."""

    kind: ClassVar[str] = "Indeterminate"

    def child_handles(self) -> tuple[Handle, ...]:
        return ()

    def payload(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class Header:
    kind: ClassVar[str] = "Header"

    text: str

    def child_handles(self) -> tuple[Handle, ...]:
        return ()

    def payload(self) -> dict[str, Any]:
        return {"text": self.text}


@dataclass(frozen=True, slots=True)
class Label:
    kind: ClassVar[str] = "Label"

    text: str

    def child_handles(self) -> tuple[Handle, ...]:
        return ()

    def payload(self) -> dict[str, Any]:
        return {"text": self.text}


@dataclass(frozen=True, slots=True)
class Button:
    kind: ClassVar[str] = "Button"

    text: str | None = None

    def child_handles(self) -> tuple[Handle, ...]:
        return ()

    def payload(self) -> dict[str, Any]:
        return {"text": self.text}


@dataclass(frozen=True, slots=True)
class Checkbox:
    kind: ClassVar[str] = "Checkbox"

    checked: bool = False
    text: str | None = None

    def child_handles(self) -> tuple[Handle, ...]:
        return ()

    def payload(self) -> dict[str, Any]:
        return {"checked": self.checked, "text": self.text}


@dataclass(frozen=True, slots=True)
class Textbox:
    kind: ClassVar[str] = "Textbox"

    value: str = ""

    def child_handles(self) -> tuple[Handle, ...]:
        return ()

    def payload(self) -> dict[str, Any]:
        return {"value": self.value}


@dataclass(frozen=True, slots=True)
class Number:
    kind: ClassVar[str] = "Number"

    value: float = 0.0
    min: float | None = None
    max: float | None = None
    step: float | None = None
    text: str | None = None

    def child_handles(self) -> tuple[Handle, ...]:
        return ()

    def payload(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "min": self.min,
            "max": self.max,
            "step": self.step,
            "text": self.text,
        }


@dataclass(frozen=True, slots=True)
class UnknownNode:
    """A node whose kind this side does not recognise.

    Produced only by ``decode_node``; the renderer skips it.
    """

    kind: str
    raw: Any = None

    def child_handles(self) -> tuple[Handle, ...]:
        return ()

    def payload(self) -> Any:
        return self.raw


type Node = (
    StackLayout
    | Columns
    | Indeterminate
    | Header
    | Label
    | Button
    | Checkbox
    | Textbox
    | Number
    | UnknownNode
)


# ---------------------------------------------------------------------------
# Wire codec
# ---------------------------------------------------------------------------


def encode_node(node: Node) -> Any:
    """Encode a node as a single-key tagged JSON-compatible value."""
    payload = node.payload()
    if payload is None:
        return node.kind
    return {node.kind: payload}


def _field(payload: dict[str, Any], name: str, kind: str) -> Any:
    try:
        return payload[name]
    except KeyError:
        msg = f"{kind} payload missing field {name!r}"
        raise MessageError(msg) from None


def _text(value: Any, kind: str, *, optional: bool = False) -> str | None:
    if value is None and optional:
        return None
    if not isinstance(value, str):
        msg = f"{kind} expected a string, got {type(value).__name__}"
        raise MessageError(msg)
    return value


def _number(value: Any, kind: str, *, optional: bool = False) -> float | None:
    if value is None and optional:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        msg = f"{kind} expected a number, got {type(value).__name__}"
        raise MessageError(msg)
    return float(value)


def _handle(value: Any, kind: str) -> Handle:
    if not isinstance(value, str):
        msg = f"{kind} child handle must be a string, got {type(value).__name__}"
        raise MessageError(msg)
    return Handle(value)


def decode_node(data: Any) -> Node:
    """Decode a tagged wire value into a node.

    Unrecognised kinds decode to ``UnknownNode`` rather than failing, so a
    newer host does not break an older renderer.

    Raises:
        MessageError: If the value is not a tagged node or a known kind's
            payload is malformed.

    """
    if isinstance(data, str):
        if data == Indeterminate.kind:
            return Indeterminate()
        return UnknownNode(kind=data)
    if not isinstance(data, dict) or len(data) != 1:
        msg = f"Node must be a single-key object or tag string, got {data!r}"
        raise MessageError(msg)

    ((kind, payload),) = data.items()
    decoder = _DECODERS.get(kind)
    if decoder is None:
        return UnknownNode(kind=kind, raw=payload)
    if not isinstance(payload, dict):
        msg = f"{kind} payload must be an object, got {type(payload).__name__}"
        raise MessageError(msg)
    return decoder(payload)


def _decode_stacklayout(p: dict[str, Any]) -> Node:
    children = _field(p, "children", "StackLayout")
    if not isinstance(children, list):
        msg = "StackLayout children must be a list"
        raise MessageError(msg)
    return StackLayout(children=tuple(_handle(c, "StackLayout") for c in children))


def _decode_checkbox(p: dict[str, Any]) -> Node:
    checked = _field(p, "checked", "Checkbox")
    if not isinstance(checked, bool):
        msg = "Checkbox checked must be a boolean"
        raise MessageError(msg)
    return Checkbox(checked=checked, text=_text(p.get("text"), "Checkbox", optional=True))


_DECODERS: dict[str, Any] = {
    "StackLayout": _decode_stacklayout,
    "Columns": lambda p: Columns(
        left=_handle(_field(p, "left", "Columns"), "Columns"),
        right=_handle(_field(p, "right", "Columns"), "Columns"),
    ),
    "Header": lambda p: Header(text=_text(_field(p, "text", "Header"), "Header")),
    "Label": lambda p: Label(text=_text(_field(p, "text", "Label"), "Label")),
    "Button": lambda p: Button(text=_text(p.get("text"), "Button", optional=True)),
    "Checkbox": _decode_checkbox,
    "Textbox": lambda p: Textbox(value=_text(_field(p, "value", "Textbox"), "Textbox")),
    "Number": lambda p: Number(
        value=_number(_field(p, "value", "Number"), "Number"),
        min=_number(p.get("min"), "Number", optional=True),
        max=_number(p.get("max"), "Number", optional=True),
        step=_number(p.get("step"), "Number", optional=True),
        text=_text(p.get("text"), "Number", optional=True),
    ),
}
