"""Websocket listener — accepts channels, pairs them and runs sessions.

One listener serves everything:

- ``GET /`` (plain HTTP): the bootstrap page, with a fresh session uuid
  substituted for the ``#uuid`` placeholder.
- ``GET /iwgui.js``: the browser reconciler script.
- ``GET /__iwgui/stats``: JSON frame and session statistics.
- Websocket upgrades on any path: session channels.

Each channel must start with a ``Welcome``.  Anything received before it is
dropped and recorded.  When both halves of a uuid are present a ``Session``
runs on the second half's connection handler; the first handler simply
waits for its socket to close.
"""

from __future__ import annotations

import json
import uuid
from http import HTTPStatus
from pathlib import Path
from typing import TYPE_CHECKING

from websockets.asyncio.server import ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from iwgui._errors import MessageError, ProtocolError
from iwgui.config import IwguiConfig
from iwgui.observability.collector import SessionCollector
from iwgui.observability.log import EventLog
from iwgui.observability.profiler import compute_aggregate_stats
from iwgui.sync.protocol import Welcome, parse_message
from iwgui.sync.registry import SessionRegistry
from iwgui.sync.session import BuildFn, Session

if TYPE_CHECKING:
    from websockets.asyncio.server import Server
    from websockets.http11 import Request, Response

STATIC_DIR = Path(__file__).parent.parent / "client" / "static"
UUID_PLACEHOLDER = "#uuid"
STATS_PATH = "/__iwgui/stats"


def render_index(session_id: str | None = None) -> str:
    """Return the bootstrap page bound to ``session_id`` (fresh if omitted)."""
    template = (STATIC_DIR / "index.html").read_text(encoding="utf-8")
    sid = session_id if session_id is not None else str(uuid.uuid4())
    return template.replace(UUID_PLACEHOLDER, json.dumps(sid))


class SessionServer:
    """Listener plus registry for one host build function.

    Args:
        build: Called once per frame per session with a fresh ``Frame``.
            May be a coroutine function.
        config: Server configuration.
        collector: Observability sink shared by all sessions.

    """

    def __init__(
        self,
        build: BuildFn,
        config: IwguiConfig | None = None,
        *,
        collector: SessionCollector | None = None,
    ) -> None:
        self._build = build
        self._config = config if config is not None else IwguiConfig()
        self._collector = (
            collector
            if collector is not None
            else SessionCollector(EventLog(max_events=self._config.max_events))
        )
        self._registry = SessionRegistry()
        self._server: Server | None = None

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def collector(self) -> SessionCollector:
        return self._collector

    @property
    def port(self) -> int:
        """The bound port (useful when configured with port 0)."""
        if self._server is None:
            return self._config.port
        return self._server.sockets[0].getsockname()[1]

    # ----- lifecycle -----

    async def start(self) -> Server:
        """Bind the listener and return it; later calls return the same one."""
        if self._server is None:
            self._server = await serve(
                self._handle_connection,
                self._config.host,
                self._config.port,
                process_request=self._process_request,
            )
        return self._server

    async def serve_forever(self) -> None:
        server = await self.start()
        await server.serve_forever()

    async def close(self) -> None:
        """Stop accepting connections and end every running session."""
        for session in self._registry.sessions():
            await session.close(reason="server shutdown")
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    async def __aenter__(self) -> SessionServer:
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ----- plain HTTP -----

    def stats(self) -> dict:
        """Session counts, event-log summary and frame latency percentiles."""
        log = self._collector.log
        return {
            "sessions": self._registry.session_count,
            "pending": self._registry.pending_count,
            "events": log.stats(),
            "frames": compute_aggregate_stats(log),
        }

    def _process_request(self, connection: ServerConnection, request: Request) -> Response | None:
        if request.headers.get("Upgrade", "").lower() == "websocket":
            return None

        path = request.path.split("?", 1)[0]
        if path == STATS_PATH:
            return _respond(connection, json.dumps(self.stats()), "application/json")
        if self._config.serve_index and path in ("/", "/index.html"):
            return _respond(connection, render_index(), "text/html; charset=utf-8")
        if self._config.serve_index and path == "/iwgui.js":
            script = (STATIC_DIR / "iwgui.js").read_text(encoding="utf-8")
            return _respond(connection, script, "text/javascript; charset=utf-8")
        return connection.respond(HTTPStatus.NOT_FOUND, "Not found\n")

    # ----- websocket channels -----

    async def _handshake(self, connection: ServerConnection) -> Welcome | None:
        """Read until a Welcome arrives; None if the socket closes first."""
        try:
            async for raw in connection:
                try:
                    message = parse_message(raw)
                except MessageError as exc:
                    self._collector.record_drop(f"before handshake: {exc}")
                    continue
                if isinstance(message, Welcome):
                    return message
                self._collector.record_drop("event before handshake")
        except ConnectionClosed:
            pass
        return None

    async def _handle_connection(self, connection: ServerConnection) -> None:
        welcome = await self._handshake(connection)
        if welcome is None:
            return

        try:
            pair = self._registry.offer(welcome, connection)
        except ProtocolError as exc:
            self._collector.record_drop(
                str(exc), session_id=welcome.uuid, direction=welcome.direction
            )
            await connection.close()
            return

        if pair is None:
            # First half: stay open until the session (or the peer) closes us.
            await connection.wait_closed()
            self._registry.withdraw(welcome.uuid, connection)
            return

        download, upload = pair
        session = Session(
            welcome.uuid,
            download,
            upload,
            config=self._config,
            collector=self._collector,
        )
        self._registry.register(session)
        try:
            await session.run(self._build)
        finally:
            self._registry.unregister(session)


def _respond(connection: ServerConnection, body: str, content_type: str) -> Response:
    response = connection.respond(HTTPStatus.OK, body)
    del response.headers["Content-Type"]
    response.headers["Content-Type"] = content_type
    return response

