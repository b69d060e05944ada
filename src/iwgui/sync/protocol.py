"""Wire codec for the two session channels.

Every channel opens with a handshake naming its direction and session::

    {"Welcome": {"direction": "ToBrowser", "uuid": "…"}}

After that the download channel (``ToBrowser``) carries deltas::

    {"removed": ["P.…"], "updated": {"P.…": {...}}, "added": {...}, "root": "P.…"}

``root`` is omitted when unchanged.  The upload channel (``ToServer``)
carries interaction events (see ``iwgui.gui.events``).

All messages are JSON text frames.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from iwgui._errors import MessageError
from iwgui._types import Direction, Handle
from iwgui.gui.differ import Delta
from iwgui.gui.events import Event, decode_event_kind, encode_event
from iwgui.gui.nodes import decode_node, encode_node

DIRECTIONS: frozenset[str] = frozenset({"ToBrowser", "ToServer"})


@dataclass(frozen=True, slots=True)
class Welcome:
    """Channel handshake: which half of which session this socket is."""

    direction: Direction
    uuid: str


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_welcome(welcome: Welcome) -> str:
    return json.dumps({"Welcome": {"direction": welcome.direction, "uuid": welcome.uuid}})


def delta_to_wire(delta: Delta) -> dict[str, Any]:
    """Return the JSON-compatible form of a delta."""
    message: dict[str, Any] = {
        "removed": sorted(delta.removed),
        "updated": {h: encode_node(n) for h, n in delta.updated.items()},
        "added": {h: encode_node(n) for h, n in delta.added.items()},
    }
    if delta.root is not None:
        message["root"] = delta.root
    return message


def encode_delta(delta: Delta) -> str:
    return json.dumps(delta_to_wire(delta), separators=(",", ":"))


def encode_event_message(event: Event) -> str:
    """Encode an interaction event for the upload channel."""
    return json.dumps(encode_event(event))


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _loads(text: str | bytes) -> Any:
    try:
        return json.loads(text)
    except (ValueError, UnicodeDecodeError) as exc:
        msg = f"Message is not valid JSON: {exc}"
        raise MessageError(msg) from exc


def _decode_welcome(body: Any) -> Welcome:
    if not isinstance(body, dict):
        msg = "Welcome body must be an object"
        raise MessageError(msg)
    direction = body.get("direction")
    uuid = body.get("uuid")
    if direction not in DIRECTIONS:
        msg = f"Welcome has unknown direction {direction!r}"
        raise MessageError(msg)
    if not isinstance(uuid, str) or not uuid:
        msg = "Welcome uuid must be a non-empty string"
        raise MessageError(msg)
    return Welcome(direction=direction, uuid=uuid)


def _decode_event(body: Any) -> Event:
    if not isinstance(body, dict):
        msg = "Event body must be an object"
        raise MessageError(msg)
    handle = body.get("handle")
    if not isinstance(handle, str):
        msg = "Event handle must be a string"
        raise MessageError(msg)
    if "kind" not in body:
        msg = "Event is missing its kind"
        raise MessageError(msg)
    return Event(handle=Handle(handle), kind=decode_event_kind(body["kind"]))


def parse_message(text: str | bytes) -> Welcome | Event:
    """Parse a message arriving on either channel's inbound side.

    Raises:
        MessageError: If the text is not JSON or not a recognised message.

    """
    data = _loads(text)
    if not isinstance(data, dict) or len(data) != 1:
        msg = f"Expected a single-key tagged message, got {str(data)[:80]!r}"
        raise MessageError(msg)
    ((tag, body),) = data.items()
    if tag == "Welcome":
        return _decode_welcome(body)
    if tag == "Event":
        return _decode_event(body)
    msg = f"Unknown message tag {tag!r}"
    raise MessageError(msg)


def decode_delta(text: str | bytes) -> Delta:
    """Decode a download-channel delta.

    Raises:
        MessageError: If the message is not a well-formed delta.

    """
    data = _loads(text)
    if not isinstance(data, dict):
        msg = "Delta must be a JSON object"
        raise MessageError(msg)

    removed = data.get("removed", [])
    if not isinstance(removed, list) or not all(isinstance(h, str) for h in removed):
        msg = "Delta removed must be a list of handles"
        raise MessageError(msg)

    sections: dict[str, dict] = {}
    for name in ("added", "updated"):
        section = data.get(name, {})
        if not isinstance(section, dict):
            msg = f"Delta {name} must be an object"
            raise MessageError(msg)
        sections[name] = {Handle(h): decode_node(n) for h, n in section.items()}

    root = data.get("root")
    if root is not None and not isinstance(root, str):
        msg = "Delta root must be a handle string"
        raise MessageError(msg)

    return Delta(
        added=MappingProxyType(sections["added"]),
        updated=MappingProxyType(sections["updated"]),
        removed=frozenset(Handle(h) for h in removed),
        root=Handle(root) if root is not None else None,
    )
