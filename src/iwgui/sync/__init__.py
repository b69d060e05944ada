"""Session sync — wire codec, channel pairing, per-session render loop and listener."""

from iwgui.sync.protocol import Welcome, decode_delta, encode_delta, parse_message
from iwgui.sync.registry import SessionRegistry
from iwgui.sync.server import SessionServer
from iwgui.sync.session import Channel, Session

__all__ = [
    "Channel",
    "Session",
    "SessionRegistry",
    "SessionServer",
    "Welcome",
    "decode_delta",
    "encode_delta",
    "parse_message",
]
