"""Tests for iwgui.gui.router — applying interactions to host state."""

from __future__ import annotations

from iwgui._types import Handle
from iwgui.gui.events import (
    ButtonPressed,
    CheckboxChecked,
    Event,
    NumberChanged,
    TextboxChanged,
)
from iwgui.gui.refs import Ref
from iwgui.gui.router import Control, EventPolicy, EventRouter

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_BTN = Handle("P.button")
_BOX = Handle("B.box")
_TXT = Handle("B.text")
_NUM = Handle("B.num")


def _router(policy: EventPolicy = EventPolicy.COALESCE) -> tuple[EventRouter, dict[str, Ref]]:
    refs = {"box": Ref(False), "text": Ref(""), "num": Ref(0.0)}
    router = EventRouter(policy)
    router.end_frame({
        _BTN: Control("Button"),
        _BOX: Control("Checkbox", refs["box"]),
        _TXT: Control("Textbox", refs["text"]),
        _NUM: Control("Number", refs["num"]),
    })
    return router, refs


def _press(router: EventRouter, handle: Handle = _BTN) -> str:
    return router.apply(Event(handle, ButtonPressed()))


def _tick(router: EventRouter) -> bool:
    """Run one frame that rebuilds the button; return whether it was pressed."""
    router.begin_frame()
    pressed = router.take_press(_BTN)
    router.end_frame(router.controls)
    return pressed


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestLevelTriggered:
    """Value events overwrite the bound Ref immediately."""

    def test_checkbox(self) -> None:
        router, refs = _router()
        assert router.apply(Event(_BOX, CheckboxChecked(True))) == "applied"
        assert refs["box"].value is True

    def test_textbox_last_write_wins(self) -> None:
        router, refs = _router()
        router.apply(Event(_TXT, TextboxChanged("h")))
        router.apply(Event(_TXT, TextboxChanged("hi")))
        assert refs["text"].value == "hi"

    def test_number(self) -> None:
        router, refs = _router()
        router.apply(Event(_NUM, NumberChanged(2.5)))
        assert refs["num"].value == 2.5

    def test_value_persists_across_frames(self) -> None:
        router, refs = _router()
        router.apply(Event(_BOX, CheckboxChecked(True)))
        _tick(router)
        _tick(router)
        assert refs["box"].value is True


class TestEdgeTriggered:
    """Presses are observable in exactly one frame."""

    def test_press_visible_next_frame_only(self) -> None:
        router, _ = _router()
        assert _press(router) == "applied"
        assert _tick(router) is True
        assert _tick(router) is False

    def test_press_not_visible_before_begin_frame(self) -> None:
        router, _ = _router()
        _press(router)
        assert router.take_press(_BTN) is False

    def test_take_press_consumes(self) -> None:
        router, _ = _router()
        _press(router)
        router.begin_frame()
        assert router.take_press(_BTN) is True
        assert router.take_press(_BTN) is False

    def test_cancelled_frame_keeps_press(self) -> None:
        router, _ = _router()
        _press(router)
        router.begin_frame()
        router.cancel_frame()
        assert _tick(router) is True
        assert _tick(router) is False

    def test_unconsumed_press_expires(self) -> None:
        """A frame that does not rebuild the button still clears its press."""
        router, _ = _router()
        _press(router)
        router.begin_frame()
        router.end_frame(router.controls)
        assert _tick(router) is False


class TestPolicies:
    """Several presses within one tick."""

    def test_coalesce_folds_presses(self) -> None:
        router, _ = _router(EventPolicy.COALESCE)
        for _ in range(3):
            _press(router)
        assert [_tick(router) for _ in range(3)] == [True, False, False]

    def test_queue_carries_presses(self) -> None:
        router, _ = _router(EventPolicy.QUEUE)
        for _ in range(3):
            _press(router)
        assert [_tick(router) for _ in range(4)] == [True, True, True, False]

    def test_queue_cancelled_frame_keeps_count(self) -> None:
        router, _ = _router(EventPolicy.QUEUE)
        _press(router)
        _press(router)
        router.begin_frame()
        router.cancel_frame()
        assert [_tick(router) for _ in range(3)] == [True, True, False]

    def test_queue_drops_presses_for_vanished_button(self) -> None:
        router, _ = _router(EventPolicy.QUEUE)
        _press(router)
        _press(router)
        router.begin_frame()
        router.end_frame({})
        router.end_frame({_BTN: Control("Button")})
        router.begin_frame()
        assert router.take_press(_BTN) is False


class TestDiscarded:
    """Events that cannot be applied are reported, not raised."""

    def test_unknown_handle_is_stale(self) -> None:
        router, _ = _router()
        assert _press(router, Handle("P.gone")) == "stale"

    def test_kind_mismatch(self) -> None:
        router, refs = _router()
        assert router.apply(Event(_BOX, TextboxChanged("x"))) == "mismatch"
        assert refs["box"].value is False

    def test_press_on_checkbox_mismatch(self) -> None:
        router, _ = _router()
        assert _press(router, _BOX) == "mismatch"

    def test_stale_after_widget_removed(self) -> None:
        router, refs = _router()
        router.end_frame({})
        assert router.apply(Event(_BOX, CheckboxChecked(True))) == "stale"
        assert refs["box"].value is False
