"""Host-side immediate-mode layer.

Builds one frame per render-loop iteration, gives recurring widgets stable
handles, diffs frames against the committed tree and routes interaction
events back into bound host state.
"""

from iwgui.gui.builder import Cursor, Frame, Stack
from iwgui.gui.differ import CommittedTree, Delta, apply_delta, diff_frames, diff_trees
from iwgui.gui.events import (
    ButtonPressed,
    CheckboxChecked,
    Event,
    NumberChanged,
    TextboxChanged,
)
from iwgui.gui.handle import Slot, allocate
from iwgui.gui.refs import Ref
from iwgui.gui.router import Control, EventPolicy, EventRouter

__all__ = [
    "ButtonPressed",
    "CheckboxChecked",
    "CommittedTree",
    "Control",
    "Cursor",
    "Delta",
    "Event",
    "EventPolicy",
    "EventRouter",
    "Frame",
    "NumberChanged",
    "Ref",
    "Slot",
    "Stack",
    "TextboxChanged",
    "allocate",
    "apply_delta",
    "diff_frames",
    "diff_trees",
]
