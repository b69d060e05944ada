"""iwgui — an immediate-mode GUI rendered in the browser.

The host rebuilds its whole interface every tick; iwgui gives recurring
widgets stable handles, sends only what changed and routes clicks and
edits back into host state.

Quick start::

    import iwgui

    name = iwgui.Ref("")

    def build(frame):
        ui = frame.root().stacklayout()
        ui.header("Hello")
        ui.textbox(name).finish()
        if ui.button().text("Greet").finish():
            print(f"Hello, {name.value}!")

    iwgui.run(build)

Sessions, the diff engine and the wire protocol live in ``iwgui.gui``,
``iwgui.sync`` and ``iwgui.client``.

"""

__version__ = "0.1.0-dev"
__all__ = [
    "EventPolicy",
    "Frame",
    "IwguiConfig",
    "Ref",
    "__version__",
    "run",
    "serve",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import iwgui`` fast while providing a clean top-level API.
    """
    if name == "Frame":
        from iwgui.gui.builder import Frame

        return Frame

    if name == "Ref":
        from iwgui.gui.refs import Ref

        return Ref

    if name == "EventPolicy":
        from iwgui.gui.router import EventPolicy

        return EventPolicy

    if name == "IwguiConfig":
        from iwgui.config import IwguiConfig

        return IwguiConfig

    if name == "run":
        from iwgui.app import run

        return run

    if name == "serve":
        from iwgui.app import serve

        return serve

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
