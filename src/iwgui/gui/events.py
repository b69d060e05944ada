"""Interaction events — what the browser reports back about a widget.

Wire form (upload channel)::

    {"Event": {"handle": "P.…", "kind": "ButtonPressed"}}
    {"Event": {"handle": "B.…", "kind": {"CheckboxChecked": true}}}
    {"Event": {"handle": "B.…", "kind": {"TextboxChanged": "hello"}}}
    {"Event": {"handle": "B.…", "kind": {"NumberChanged": 4.5}}}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from iwgui._errors import MessageError
from iwgui._types import Handle


@dataclass(frozen=True, slots=True)
class ButtonPressed:
    """Edge-triggered: observable for exactly one frame."""

    tag: ClassVar[str] = "ButtonPressed"


@dataclass(frozen=True, slots=True)
class CheckboxChecked:
    tag: ClassVar[str] = "CheckboxChecked"

    checked: bool


@dataclass(frozen=True, slots=True)
class TextboxChanged:
    tag: ClassVar[str] = "TextboxChanged"

    value: str


@dataclass(frozen=True, slots=True)
class NumberChanged:
    tag: ClassVar[str] = "NumberChanged"

    value: float


type EventKind = ButtonPressed | CheckboxChecked | TextboxChanged | NumberChanged


@dataclass(frozen=True, slots=True)
class Event:
    """An interaction with the widget identified by ``handle``."""

    handle: Handle
    kind: EventKind


def encode_event_kind(kind: EventKind) -> Any:
    """Encode an event kind as a bare tag or a single-key tagged payload."""
    match kind:
        case ButtonPressed():
            return ButtonPressed.tag
        case CheckboxChecked(checked=checked):
            return {CheckboxChecked.tag: checked}
        case TextboxChanged(value=value) | NumberChanged(value=value):
            return {kind.tag: value}
    msg = f"Not an event kind: {kind!r}"
    raise TypeError(msg)


def decode_event_kind(data: Any) -> EventKind:
    """Decode a wire event kind.

    Raises:
        MessageError: If the tag is unknown or the payload has the wrong type.

    """
    if data == ButtonPressed.tag:
        return ButtonPressed()
    if not isinstance(data, dict) or len(data) != 1:
        msg = f"Unrecognised event kind: {data!r}"
        raise MessageError(msg)

    ((tag, value),) = data.items()
    if tag == CheckboxChecked.tag and isinstance(value, bool):
        return CheckboxChecked(checked=value)
    if tag == TextboxChanged.tag and isinstance(value, str):
        return TextboxChanged(value=value)
    if (
        tag == NumberChanged.tag
        and isinstance(value, (int, float))
        and not isinstance(value, bool)
    ):
        return NumberChanged(value=float(value))

    msg = f"Unrecognised event kind or payload: {data!r}"
    raise MessageError(msg)


def encode_event(event: Event) -> dict[str, Any]:
    return {"Event": {"handle": event.handle, "kind": encode_event_kind(event.kind)}}
