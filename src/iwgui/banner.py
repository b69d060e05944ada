"""Startup banner — status output for ``iwgui run``.

Prints the listener address, tick rate and event policy to stderr.
Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from iwgui.config import IwguiConfig


# ---------------------------------------------------------------------------
# ANSI helpers: respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""


def _clickable_url(url: str) -> str:
    """Wrap *url* in an OSC 8 hyperlink escape if the terminal supports it."""
    if not _COLOR:
        return url
    return f"\033]8;;{url}\033\\{_BOLD}{_CYAN}{url}{_RESET}\033]8;;\033\\"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def print_banner(
    config: IwguiConfig,
    *,
    load_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> None:
    """Print the iwgui startup banner to stderr.

    Args:
        config: Resolved IwguiConfig.
        load_ms: Time spent loading configuration in milliseconds.
        warnings: Optional list of warning messages to display.

    """
    from iwgui import __version__

    lines: list[str] = [
        "",
        f"  {_BOLD}iwgui{_RESET} {_DIM}v{__version__}{_RESET}  {_GREEN}[run]{_RESET}",
        f"  {_DIM}{'─' * 43}{_RESET}",
    ]

    tick_ms = config.tick_interval * 1000
    timing = f" {_DIM}(config in {load_ms:.0f}ms){_RESET}" if load_ms > 0 else ""
    lines.append(f"  {_DIM}├─{_RESET} tick: {tick_ms:.0f}ms{timing}")
    lines.append(f"  {_DIM}├─{_RESET} events: {config.event_policy.value}")
    if config.serve_index:
        lines.append(f"  {_DIM}└─{_RESET} stats: {_DIM}/__iwgui/stats{_RESET}")
    else:
        lines.append(f"  {_DIM}└─{_RESET} websocket only {_DIM}(index not served){_RESET}")

    lines.append("")
    lines.append(f"  {_clickable_url(config.url)}")

    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)

    lines.append("")

    print("\n".join(lines), file=sys.stderr)
