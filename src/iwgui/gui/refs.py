"""Bound values — host state that widgets read and the event router writes.

A ``Ref`` is a small mutable cell.  Widgets built against the same ``Ref``
share a bound handle, so their identity survives reordering, and inbound
interaction events overwrite ``Ref.value`` directly.

Identity is a monotonically issued integer key rather than the object's
address, so it never depends on memory layout.
"""

from __future__ import annotations

import itertools
import weakref
from enum import Enum

from iwgui._errors import HandleError

_ref_keys = itertools.count(1)
_object_keys = itertools.count(1)

# id(obj) -> token; a finalizer drops the entry when obj is collected
_object_tokens: dict[int, int] = {}


class Ref[T]:
    """A mutable cell with a stable identity key.

    Example::

        in_the_water = Ref(False)
        stack.checkbox(in_the_water).text("In the water").finish()

    """

    __slots__ = ("__weakref__", "key", "value")

    def __init__(self, value: T) -> None:
        self.value = value
        self.key = next(_ref_keys)

    def get(self) -> T:
        return self.value

    def set(self, value: T) -> None:
        self.value = value

    def __repr__(self) -> str:
        return f"Ref({self.value!r}, key={self.key})"


def binding_identity(binding: object) -> str:
    """Return a stable textual identity for a binding.

    - ``Ref``: its issued key.
    - Scalars and enum members: type name plus value, so ``"Save"`` or
      ``MyId.BUTTON1`` identify the same widget on every frame.
    - Tuples: the identities of their members, so ``(duck, "label")`` and
      ``(duck, "checkbox")`` stay distinct.
    - Any other object: a token issued on first use and kept for the
      object's lifetime.

    Raises:
        HandleError: If the object cannot be tracked (no weak references).

    """
    if isinstance(binding, Ref):
        return f"ref:{binding.key}"
    if isinstance(binding, Enum):
        return f"enum:{type(binding).__qualname__}.{binding.name}"
    if binding is None or isinstance(binding, (str, int, float, bool)):
        return f"{type(binding).__name__}:{binding!r}"
    if isinstance(binding, tuple):
        return "(" + ",".join(binding_identity(item) for item in binding) + ")"

    token = _object_tokens.get(id(binding))
    if token is not None:
        return f"obj:{token}"
    try:
        weakref.finalize(binding, _object_tokens.pop, id(binding), None)
    except TypeError as exc:
        msg = (
            f"Cannot bind to {type(binding).__name__!r}: objects used as bindings "
            "must support weak references (wrap the value in a Ref instead)"
        )
        raise HandleError(msg) from exc
    token = next(_object_keys)
    _object_tokens[id(binding)] = token
    return f"obj:{token}"
