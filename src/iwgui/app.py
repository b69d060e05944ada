"""iwgui application entry points.

``run()`` blocks and serves a build function until interrupted; ``serve()``
is the same thing as a coroutine for hosts that own their event loop.
``load_build()`` resolves a ``module.py:attr`` reference for the CLI.
"""

import asyncio
import importlib.util
import sys
import time
from pathlib import Path

from iwgui._errors import ConfigError
from iwgui.config import IwguiConfig
from iwgui.config_loader import load_config
from iwgui.sync.server import SessionServer
from iwgui.sync.session import BuildFn


def load_build(ref: str, root: Path | None = None) -> BuildFn:
    """Resolve a build function from ``path/to/module.py:attr``.

    The module part may also be a dotted import path (``pkg.ui:build``).

    Raises:
        ConfigError: If the reference is malformed, the file is missing or
            the attribute is not callable.

    """
    module_part, _, attr = ref.partition(":")
    if not module_part or not attr:
        msg = f"Build reference {ref!r} must look like 'module.py:build'"
        raise ConfigError(msg)

    if module_part.endswith(".py"):
        py_file = (root or Path.cwd()) / module_part
        if not py_file.is_file():
            msg = f"Build reference {ref!r}: {py_file} not found"
            raise ConfigError(msg)
        module_name = f"iwgui_user_{py_file.stem}"
        loader_spec = importlib.util.spec_from_file_location(module_name, py_file)
        if loader_spec is None or loader_spec.loader is None:
            msg = f"Build reference {ref!r}: failed to load {py_file}"
            raise ConfigError(msg)
        module = importlib.util.module_from_spec(loader_spec)
        sys.modules[module_name] = module
        loader_spec.loader.exec_module(module)
    else:
        try:
            module = importlib.import_module(module_part)
        except ImportError as exc:
            msg = f"Build reference {ref!r}: {exc}"
            raise ConfigError(msg) from exc

    build = getattr(module, attr, None)
    if not callable(build):
        msg = f"Build reference {ref!r}: {attr} is not callable"
        raise ConfigError(msg)
    return build


async def serve(build: BuildFn, config: IwguiConfig | None = None) -> None:
    """Serve ``build`` to every connecting tab until cancelled."""
    server = SessionServer(build, config)
    try:
        await server.serve_forever()
    finally:
        await server.close()


def run(build: BuildFn, root: str | Path = ".", **kwargs: object) -> None:
    """Serve ``build`` until interrupted.

    Args:
        build: Called with a fresh ``Frame`` once per tick per session.
        root: Directory searched for ``iwgui.yaml`` / ``iwgui.toml``.
        **kwargs: Override IwguiConfig fields.

    """
    from iwgui.banner import print_banner

    t0 = time.perf_counter()
    config = load_config(Path(root), **kwargs)
    load_ms = (time.perf_counter() - t0) * 1000
    print_banner(config, load_ms=load_ms)

    try:
        asyncio.run(serve(build, config))
    except KeyboardInterrupt:
        print("\n  Stopped.", file=sys.stderr)
