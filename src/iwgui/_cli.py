"""iwgui CLI — iwgui run.

Entry point for the ``iwgui`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the iwgui CLI."""
    parser = argparse.ArgumentParser(
        prog="iwgui",
        description="Immediate-mode GUI served to the browser.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # iwgui run
    run_parser = subparsers.add_parser(
        "run",
        help="Serve a build function",
    )
    run_parser.add_argument("target", help="Build function, e.g. app.py:build or pkg.ui:build")
    run_parser.add_argument("--root", default=".", help="Directory holding iwgui.yaml/iwgui.toml")
    run_parser.add_argument("--host", default=None, help="Bind address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port")
    run_parser.add_argument(
        "--tick", type=float, default=None, dest="tick_interval", help="Seconds between frames",
    )
    run_parser.add_argument(
        "--policy",
        choices=("coalesce", "queue"),
        default=None,
        dest="event_policy",
        help="How presses arriving within one tick are folded",
    )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from iwgui import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from pathlib import Path

    from iwgui._errors import IwguiError
    from iwgui.app import load_build, run

    if args.command == "run":
        root = Path(args.root)
        try:
            build = load_build(args.target, root)
            run(
                build,
                root=root,
                host=args.host,
                port=args.port,
                tick_interval=args.tick_interval,
                event_policy=args.event_policy,
            )
        except IwguiError as exc:
            print(f"  Error: {exc}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()
