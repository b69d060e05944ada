"""iwgui configuration.

IwguiConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass

from iwgui._errors import ConfigError
from iwgui.gui.router import EventPolicy


@dataclass(frozen=True, slots=True)
class IwguiConfig:
    """Configuration for an iwgui server.

    Attributes:
        host: Bind address for the listener.
        port: Bind port for the listener (HTTP bootstrap and websockets share it).
        tick_interval: Seconds between render-loop iterations of each session.
        event_policy: How interactions arriving within one tick are folded.
            ``coalesce`` honours at most one press per button per tick,
            ``queue`` carries extra presses over to later ticks.
        max_inbox: Upper bound on undrained events per session; further
            events are dropped until the loop catches up.
        serve_index: Answer plain HTTP requests with the bootstrap page and
            client script.
        max_events: Capacity of the observability event log.

    """

    host: str = "127.0.0.1"
    port: int = 9001
    tick_interval: float = 0.05
    event_policy: EventPolicy = EventPolicy.COALESCE
    max_inbox: int = 1024
    serve_index: bool = True
    max_events: int = 10_000

    def __post_init__(self) -> None:
        if isinstance(self.event_policy, str):
            try:
                object.__setattr__(self, "event_policy", EventPolicy(self.event_policy))
            except ValueError as exc:
                msg = f"Unknown event_policy {self.event_policy!r}"
                raise ConfigError(msg) from exc
        if self.tick_interval <= 0:
            msg = f"tick_interval must be positive, got {self.tick_interval}"
            raise ConfigError(msg)
        if not 0 <= self.port <= 65535:
            msg = f"port out of range: {self.port}"
            raise ConfigError(msg)
        if self.max_inbox < 1:
            msg = f"max_inbox must be at least 1, got {self.max_inbox}"
            raise ConfigError(msg)

    @property
    def url(self) -> str:
        """Address of the bootstrap page."""
        return f"http://{self.host}:{self.port}"
