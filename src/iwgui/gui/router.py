"""Event router — applies inbound interactions to host state.

Events are resolved against the bound-control table installed by the most
recent builder pass:

- ``ButtonPressed`` sets a one-shot flag that the next pass's button
  ``finish()`` reports as ``True``; the flag is cleared when that pass ends
  whether or not the button was rebuilt (edge-triggered, at most once per
  click).
- ``CheckboxChecked`` / ``TextboxChanged`` / ``NumberChanged`` overwrite the
  bound ``Ref`` immediately and persistently (level-triggered).

Events whose handle is not in the table (a widget that has since been
removed) are discarded without error.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

from iwgui.gui.events import ButtonPressed, CheckboxChecked, NumberChanged, TextboxChanged

if TYPE_CHECKING:
    from collections.abc import Mapping

    from iwgui._types import Handle
    from iwgui.gui.events import Event
    from iwgui.gui.refs import Ref


class EventPolicy(StrEnum):
    """How several interactions arriving within one tick are folded."""

    COALESCE = "coalesce"
    """At most one press per button per tick; last write wins for values."""

    QUEUE = "queue"
    """One press per button per tick; extra presses carry to later ticks."""


@dataclass(frozen=True, slots=True)
class Control:
    """An interactive widget registered during a builder pass.

    Attributes:
        kind: Node kind of the widget (``"Button"``, ``"Checkbox"``, ...).
        ref: The bound value written by level-triggered events, or None
            for buttons.

    """

    kind: str
    ref: Ref | None = None


type RouteOutcome = Literal["applied", "stale", "mismatch"]

_LEVEL_KINDS: dict[type, str] = {
    CheckboxChecked: "Checkbox",
    TextboxChanged: "Textbox",
    NumberChanged: "Number",
}


class EventRouter:
    """Per-session event router.

    Owned by a single session's render loop; not thread-safe.

    Args:
        policy: Coalescing policy for presses that arrive between ticks.

    """

    __slots__ = ("_controls", "_pending", "_policy", "_pressed")

    def __init__(self, policy: EventPolicy = EventPolicy.COALESCE) -> None:
        self._policy = policy
        self._controls: dict[Handle, Control] = {}
        self._pending: Counter[Handle] = Counter()
        self._pressed: set[Handle] = set()

    @property
    def policy(self) -> EventPolicy:
        return self._policy

    @property
    def controls(self) -> Mapping[Handle, Control]:
        """The live bound-control table from the latest builder pass."""
        return self._controls

    def apply(self, event: Event) -> RouteOutcome:
        """Apply one inbound event to host state."""
        control = self._controls.get(event.handle)
        if control is None:
            return "stale"

        kind = event.kind
        if isinstance(kind, ButtonPressed):
            if control.kind != "Button":
                return "mismatch"
            if self._policy is EventPolicy.COALESCE:
                self._pending[event.handle] = 1
            else:
                self._pending[event.handle] += 1
            return "applied"

        if _LEVEL_KINDS.get(type(kind)) != control.kind or control.ref is None:
            return "mismatch"
        if isinstance(kind, CheckboxChecked):
            control.ref.value = kind.checked
        else:
            control.ref.value = kind.value
        return "applied"

    def begin_frame(self) -> None:
        """Expose pending presses to the builder pass about to run."""
        self._pressed = set(self._pending)
        if self._policy is EventPolicy.COALESCE:
            self._pending.clear()
        else:
            self._pending.subtract(self._pressed)
            self._pending = +self._pending

    def cancel_frame(self) -> None:
        """Return this frame's untaken presses to the pending set.

        Used when a builder pass is discarded (an empty frame), so a press
        is still observable by the next pass that builds its button.
        """
        for handle in self._pressed:
            if self._policy is EventPolicy.COALESCE:
                self._pending[handle] = 1
            else:
                self._pending[handle] += 1
        self._pressed.clear()

    def take_press(self, handle: Handle) -> bool:
        """Consume this frame's press for ``handle``, if any."""
        if handle in self._pressed:
            self._pressed.discard(handle)
            return True
        return False

    def end_frame(self, controls: Mapping[Handle, Control]) -> None:
        """Drop unconsumed presses and install the new control table."""
        self._pressed.clear()
        self._controls = dict(controls)
        if self._pending:
            # Queued presses for buttons that no longer exist are stale.
            for handle in [h for h in self._pending if h not in self._controls]:
                del self._pending[handle]
