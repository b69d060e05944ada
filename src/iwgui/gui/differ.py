"""Frame differ — handle-keyed diff between the committed tree and a new frame.

Compares the tree a session's renderer currently holds with a freshly
built frame and produces a ``Delta`` of added, updated and removed nodes.
Leverages the fact that all nodes are frozen dataclasses (comparable via
``==``); structural nodes compare by their child-handle lists only, so each
child is diffed independently under its own handle.

This is NOT a tree edit distance.  Identity comes entirely from handles:
a node whose handle changed (e.g. a positional handle shifted by an
earlier sibling's removal) is a removal plus an addition, never an update.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from iwgui._errors import ProtocolError

if TYPE_CHECKING:
    from iwgui._types import Handle
    from iwgui.gui.builder import Frame
    from iwgui.gui.nodes import Node

_EMPTY: Mapping = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class CommittedTree:
    """The Handle→Node mapping a renderer is known to hold, plus its root."""

    nodes: Mapping[Handle, Node] = field(default_factory=dict)
    root: Handle | None = None

    def __len__(self) -> int:
        return len(self.nodes)


@dataclass(frozen=True, slots=True)
class Delta:
    """How one frame differs from the previously committed tree.

    Attributes:
        added: Nodes under handles the committed tree did not have.
        updated: Nodes whose payload changed under an existing handle.
        removed: Handles no longer reachable from the root.
        root: The new root handle, or None if the root did not change.

    """

    added: Mapping[Handle, Node] = _EMPTY
    updated: Mapping[Handle, Node] = _EMPTY
    removed: frozenset[Handle] = frozenset()
    root: Handle | None = None

    @property
    def is_empty(self) -> bool:
        """True when applying this delta would change nothing."""
        return not (self.added or self.updated or self.removed or self.root is not None)

    @property
    def changes_count(self) -> int:
        return len(self.added) + len(self.updated) + len(self.removed)


def reachable(nodes: Mapping[Handle, Node], root: Handle | None) -> list[Handle]:
    """Depth-first pre-order walk from ``root``, each handle visited once.

    Handles referenced but absent from ``nodes`` are yielded too, so
    callers can detect dangling references.
    """
    if root is None:
        return []
    order: list[Handle] = []
    seen: set[Handle] = set()
    stack = [root]
    while stack:
        handle = stack.pop()
        if handle in seen:
            continue
        seen.add(handle)
        order.append(handle)
        node = nodes.get(handle)
        if node is not None:
            # Reverse so the leftmost child is visited first
            stack.extend(reversed(node.child_handles()))
    return order


def diff_trees(
    previous: CommittedTree | None,
    nodes: Mapping[Handle, Node],
    root: Handle | None,
) -> Delta:
    """Diff a new Handle→Node mapping against the committed tree.

    Algorithm:
        1. Walk the new tree depth-first from its root.
        2. For each visited handle: absent before → added; present with an
           unequal node → updated; equal → skipped (no redundant traffic).
        3. Every previously committed handle not visited → removed.
        4. Root is reported only if it differs from the previous root.

    """
    prev_nodes: Mapping[Handle, Node] = previous.nodes if previous is not None else _EMPTY
    prev_root = previous.root if previous is not None else None

    added: dict[Handle, Node] = {}
    updated: dict[Handle, Node] = {}
    visited = reachable(nodes, root)
    for handle in visited:
        node = nodes.get(handle)
        if node is None:
            msg = f"Node references missing child handle {handle!r}"
            raise ProtocolError(msg)
        old = prev_nodes.get(handle)
        if old is None:
            added[handle] = node
        elif old != node:
            updated[handle] = node

    visited_set = set(visited)
    removed = frozenset(h for h in prev_nodes if h not in visited_set)

    return Delta(
        added=MappingProxyType(added),
        updated=MappingProxyType(updated),
        removed=removed,
        root=root if root != prev_root else None,
    )


def diff_frames(previous: CommittedTree | None, frame: Frame) -> Delta:
    """Diff a finished builder frame against the committed tree."""
    frame.finish()
    return diff_trees(previous, frame.nodes, frame.root_handle)


def apply_delta(tree: CommittedTree | None, delta: Delta) -> CommittedTree:
    """Return ``tree ⊕ delta`` as a new committed tree.

    Pure: ``tree`` is not modified.  Applying the same delta twice is a
    no-op the second time.
    """
    base = tree if tree is not None else CommittedTree()
    nodes = dict(base.nodes)
    for handle in delta.removed:
        nodes.pop(handle, None)
    nodes.update(delta.added)
    nodes.update(delta.updated)
    root = delta.root if delta.root is not None else base.root
    return CommittedTree(nodes=nodes, root=root)


def validate_delta(tree: CommittedTree | None, delta: Delta) -> None:
    """Check a delta against the tree it is about to be applied to.

    Raises:
        ProtocolError: If a key appears in more than one section, a child
            handle reachable from the root resolves to neither the delta nor the
            committed tree (including a removed handle that is still
            referenced), or nodes arrive before any root is known.

    """
    base = tree if tree is not None else CommittedTree()
    overlap = (delta.added.keys() & delta.updated.keys()) | (
        (delta.added.keys() | delta.updated.keys()) & delta.removed
    )
    if overlap:
        msg = f"Delta lists handles in more than one section: {sorted(overlap)}"
        raise ProtocolError(msg)

    if delta.root is None and base.root is None and (delta.added or delta.updated):
        msg = "Delta carries nodes but no root has been established"
        raise ProtocolError(msg)

    after = apply_delta(base, delta)
    for handle in reachable(after.nodes, after.root):
        if handle not in after.nodes:
            msg = f"Delta leaves handle {handle!r} referenced but undefined"
            raise ProtocolError(msg)
