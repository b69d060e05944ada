"""Tree builder — the immediate-mode construction API.

One ``Frame`` is built per render-loop iteration.  Construction order
mirrors the declared nesting::

    frame = session.frame()
    left, right = frame.root().columns()

    stack = left.stacklayout()
    stack.header("Ducks at the pond")
    if stack.button().text("Throw bread").finish():
        throw_bread()
    for duck in ducks:
        row = stack.layout().bind((duck, "row")).stacklayout()
        row.checkbox(duck.in_the_water).text(duck.name).finish()

    await session.show(frame)

Leaf builders return this frame's interaction result from ``finish()``:
``True`` for a button pressed since the previous frame, or the current
bound value for checkboxes, textboxes and number inputs.

Structural nodes reference children by handle.  A child's handle depends
only on its slot, kind and binding, never on its own children, so
container nodes are assembled when the frame is finished.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from iwgui._errors import BuilderError, HandleCollisionError
from iwgui.gui import nodes
from iwgui.gui.handle import ROOT_SLOT, UNBOUND, Slot, allocate
from iwgui.gui.router import Control, EventRouter

if TYPE_CHECKING:
    from collections.abc import Mapping

    from iwgui._types import Handle
    from iwgui.gui.nodes import Node
    from iwgui.gui.refs import Ref


class Frame:
    """The node tree produced by one builder pass.

    Args:
        router: Event router of the owning session.  Its pending presses
            are reported by buttons built in this frame.  A private router
            is created when omitted (useful for tests and offline builds).

    """

    def __init__(self, router: EventRouter | None = None) -> None:
        self._router = router if router is not None else EventRouter()
        self._nodes: dict[Handle, Node] = {}
        self._claimed: set[Handle] = set()
        self._controls: dict[Handle, Control] = {}
        self._cursors: list[Cursor] = []
        self._root_cursor: Cursor | None = None
        self._root: Handle | None = None
        self._finished = False

    # ----- public API -----

    def root(self) -> Cursor:
        """Start the frame and return a cursor over the root slot."""
        self._check_open()
        if self._root_cursor is not None:
            msg = "Frame.root() may only be called once per frame"
            raise BuilderError(msg)
        self._root_cursor = self._new_cursor(ROOT_SLOT)
        return self._root_cursor

    def finish(self) -> Frame:
        """Assemble container nodes and close the frame.

        Idempotent.  Called by the session before diffing.
        """
        if self._finished:
            return self
        for cursor in self._cursors:
            cursor._resolve()
        if self._root_cursor is not None:
            self._root = self._root_cursor._resolve()
        self._finished = True
        self._router.end_frame(self._controls)
        return self

    @property
    def nodes(self) -> Mapping[Handle, Node]:
        """Handle→Node mapping of this frame (complete once finished)."""
        return self._nodes

    @property
    def root_handle(self) -> Handle | None:
        return self._root

    @property
    def controls(self) -> Mapping[Handle, Control]:
        """Interactive widgets registered in this frame."""
        return self._controls

    @property
    def is_empty(self) -> bool:
        """True when ``root()`` was never called."""
        return self._root_cursor is None

    @property
    def finished(self) -> bool:
        return self._finished

    # ----- internal API used by cursors and builders -----

    def _check_open(self) -> None:
        if self._finished:
            msg = "Frame is already finished; start a new frame"
            raise BuilderError(msg)

    def _new_cursor(self, slot: Slot) -> Cursor:
        cursor = Cursor(self, slot)
        self._cursors.append(cursor)
        return cursor

    def _claim(self, handle: Handle, kind: str) -> None:
        if handle in self._claimed:
            msg = (
                f"Two {kind} widgets (or a {kind} and another widget) resolved to "
                f"handle {handle!r} in the same frame; give one of them a distinct binding"
            )
            raise HandleCollisionError(msg)
        self._claimed.add(handle)

    def _emit(self, handle: Handle, node: Node) -> None:
        self._claim(handle, node.kind)
        self._nodes[handle] = node

    def _register(self, handle: Handle, control: Control) -> None:
        self._controls[handle] = control

    def _take_press(self, handle: Handle) -> bool:
        return self._router.take_press(handle)


class Cursor:
    """An unfilled slot in the tree.

    Consume it exactly once with ``stacklayout()`` or ``columns()``.  An
    unconsumed cursor renders as an empty ``Indeterminate`` node.
    """

    __slots__ = ("_binding", "_container", "_frame", "_handle", "_slot")

    def __init__(self, frame: Frame, slot: Slot) -> None:
        self._frame = frame
        self._slot = slot
        self._binding: object = UNBOUND
        self._handle: Handle | None = None
        self._container: Stack | tuple[Cursor, Cursor] | None = None

    def bind(self, binding: object) -> Cursor:
        """Derive this container's handle from ``binding`` instead of position."""
        if self._container is not None:
            msg = "bind() must be called before the cursor is consumed"
            raise BuilderError(msg)
        self._binding = binding
        return self

    def stacklayout(self) -> Stack:
        """Fill this slot with a vertical stack."""
        handle = self._consume(nodes.StackLayout.kind)
        stack = Stack(self._frame, handle)
        self._container = stack
        return stack

    def columns(self) -> tuple[Cursor, Cursor]:
        """Fill this slot with two side-by-side panels."""
        handle = self._consume(nodes.Columns.kind)
        left = self._frame._new_cursor(Slot(parent=handle, index=0))
        right = self._frame._new_cursor(Slot(parent=handle, index=1))
        self._container = (left, right)
        return left, right

    vertical_panels = columns

    def _consume(self, kind: str) -> Handle:
        self._frame._check_open()
        if self._container is not None or self._handle is not None:
            msg = "A cursor can only be filled once"
            raise BuilderError(msg)
        handle = allocate(self._slot, kind, self._binding)
        self._frame._claim(handle, kind)
        self._handle = handle
        return handle

    def _resolve(self) -> Handle:
        """Emit this slot's node (once) and return its handle."""
        if self._handle is None:
            handle = allocate(self._slot, nodes.Indeterminate.kind, self._binding)
            self._frame._emit(handle, nodes.Indeterminate())
            self._handle = handle
            return handle
        if self._handle not in self._frame._nodes:
            container = self._container
            if isinstance(container, Stack):
                node: Node = nodes.StackLayout(
                    children=tuple(
                        child._resolve() if isinstance(child, Cursor) else child
                        for child in container._children
                    )
                )
            else:
                left, right = container  # type: ignore[misc]
                node = nodes.Columns(left=left._resolve(), right=right._resolve())
            self._frame._nodes[self._handle] = node
        return self._handle


class Stack:
    """A vertical stack being filled; children are appended in call order."""

    __slots__ = ("_children", "_frame", "handle")

    def __init__(self, frame: Frame, handle: Handle) -> None:
        self._frame = frame
        self.handle = handle
        self._children: list[Handle | Cursor] = []

    def _next_slot(self) -> Slot:
        self._frame._check_open()
        return Slot(parent=self.handle, index=len(self._children))

    def _append(self, handle: Handle, node: Node) -> None:
        self._frame._emit(handle, node)
        self._children.append(handle)

    # ----- immediate leaves -----

    def header(self, text: object, *, bind: object = UNBOUND) -> Handle:
        """Append a header.  Positional unless ``bind`` is given."""
        handle = allocate(self._next_slot(), nodes.Header.kind, bind)
        self._append(handle, nodes.Header(text=str(text)))
        return handle

    def label(self, text: object, *, bind: object = UNBOUND) -> Handle:
        """Append a label.  Positional unless ``bind`` is given."""
        handle = allocate(self._next_slot(), nodes.Label.kind, bind)
        self._append(handle, nodes.Label(text=str(text)))
        return handle

    # ----- builder leaves -----

    def button(self) -> ButtonBuilder:
        return ButtonBuilder(self)

    def checkbox(self, ref: Ref[bool]) -> CheckboxBuilder:
        return CheckboxBuilder(self, ref)

    def textbox(self, ref: Ref[str]) -> TextboxBuilder:
        return TextboxBuilder(self, ref)

    def number(self, ref: Ref[float]) -> NumberBuilder:
        return NumberBuilder(self, ref)

    # ----- nesting -----

    def layout(self) -> Cursor:
        """Open a nested slot at the next position in this stack."""
        slot = self._next_slot()
        cursor = self._frame._new_cursor(slot)
        # Resolved to a handle once the cursor is consumed, at frame finish.
        self._children.append(cursor)
        return cursor


class _LeafBuilder:
    """Shared configuration for leaf builders."""

    kind: str = ""

    def __init__(self, parent: Stack) -> None:
        self._parent = parent
        self._text: str | None = None
        self._binding: object = UNBOUND
        self._done = False

    def text(self, text: object) -> Any:
        self._text = str(text)
        return self

    def bind(self, binding: object) -> Any:
        """Derive the handle from ``binding`` instead of position and text."""
        self._binding = binding
        return self

    def _allocate(self) -> Handle:
        if self._done:
            msg = f"{self.kind} builder already finished"
            raise BuilderError(msg)
        self._done = True
        return allocate(
            self._parent._next_slot(),
            self.kind,
            self._binding,
            discriminator=self._text,
        )


class ButtonBuilder(_LeafBuilder):
    kind = nodes.Button.kind

    def finish(self) -> bool:
        """Emit the button; return True if it was pressed since the last frame."""
        handle = self._allocate()
        self._parent._append(handle, nodes.Button(text=self._text))
        frame = self._parent._frame
        frame._register(handle, Control(kind=self.kind))
        return frame._take_press(handle)


class _BoundLeafBuilder(_LeafBuilder):
    def __init__(self, parent: Stack, ref: Ref) -> None:
        super().__init__(parent)
        self._ref = ref
        self._binding = ref

    def _register(self, handle: Handle) -> None:
        self._parent._frame._register(handle, Control(kind=self.kind, ref=self._ref))


class CheckboxBuilder(_BoundLeafBuilder):
    kind = nodes.Checkbox.kind

    def finish(self) -> bool:
        """Emit the checkbox; return the bound value."""
        handle = self._allocate()
        checked = bool(self._ref.value)
        self._parent._append(handle, nodes.Checkbox(checked=checked, text=self._text))
        self._register(handle)
        return checked


class TextboxBuilder(_BoundLeafBuilder):
    kind = nodes.Textbox.kind

    def finish(self) -> str:
        """Emit the textbox; return the bound value."""
        handle = self._allocate()
        value = str(self._ref.value)
        self._parent._append(handle, nodes.Textbox(value=value))
        self._register(handle)
        return value


class NumberBuilder(_BoundLeafBuilder):
    kind = nodes.Number.kind

    def __init__(self, parent: Stack, ref: Ref) -> None:
        super().__init__(parent, ref)
        self._min: float | None = None
        self._max: float | None = None
        self._step: float | None = None

    def min(self, value: float) -> NumberBuilder:
        self._min = float(value)
        return self

    def max(self, value: float) -> NumberBuilder:
        self._max = float(value)
        return self

    def step(self, value: float) -> NumberBuilder:
        self._step = float(value)
        return self

    def finish(self) -> float:
        """Emit the number input; return the bound value."""
        handle = self._allocate()
        value = float(self._ref.value)
        self._parent._append(
            handle,
            nodes.Number(
                value=value,
                min=self._min,
                max=self._max,
                step=self._step,
                text=self._text,
            ),
        )
        self._register(handle)
        return value
