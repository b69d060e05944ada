"""Handle allocation — stable widget identity across immediate-mode rebuilds.

Every node a builder pass emits gets a ``Handle``.  Two strategies:

- **positional** (``P.…``): a digest of the parent handle, the slot index
  and the node kind, optionally with a discriminator such as button text.
  Stable only while the siblings to its left are unchanged; inserting or
  removing an earlier sibling reassigns identity to everything after it.
- **bound** (``B.…``): a digest of the binding's identity alone, ignoring
  position.  Used when a control must keep focus or server-side
  correlation across reorders.

Digests use BLAKE2b so handles are identical across processes and runs.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from iwgui._types import Handle, NodeKind
from iwgui.gui.refs import binding_identity

POSITIONAL_PREFIX = "P."
BOUND_PREFIX = "B."

# Sentinel for "no binding given"; None is itself a valid binding
UNBOUND = object()


@dataclass(frozen=True, slots=True)
class Slot:
    """A position in the tree: the parent's handle and the child index.

    The root slot has no parent.
    """

    parent: Handle | None
    index: int


ROOT_SLOT = Slot(parent=None, index=0)


def _digest(text: str) -> str:
    return hashlib.blake2b(text.encode("utf-8"), digest_size=8).hexdigest()


def positional_handle(
    slot: Slot,
    kind: NodeKind,
    discriminator: str | None = None,
) -> Handle:
    """Derive a handle from tree position and node kind."""
    parts = [slot.parent or "", str(slot.index), kind]
    if discriminator is not None:
        parts.append(discriminator)
    return Handle(POSITIONAL_PREFIX + _digest("\x1f".join(parts)))


def bound_handle(binding: object) -> Handle:
    """Derive a handle from the identity of an external value."""
    return Handle(BOUND_PREFIX + _digest(binding_identity(binding)))


def allocate(
    context: Slot,
    kind: NodeKind,
    binding: object = UNBOUND,
    *,
    discriminator: str | None = None,
) -> Handle:
    """Allocate the handle for a node about to be emitted.

    If ``binding`` is given the handle depends on it alone; ``None`` is a
    valid binding.  Otherwise it depends on ``context``, ``kind`` and the
    optional ``discriminator``.

    """
    if binding is not UNBOUND:
        return bound_handle(binding)
    return positional_handle(context, kind, discriminator)


def is_bound(handle: Handle) -> bool:
    """Return True if ``handle`` was derived from a binding."""
    return handle.startswith(BOUND_PREFIX)
