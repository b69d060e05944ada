"""iwgui error hierarchy.

All iwgui-specific errors inherit from IwguiError for easy catching.
"""


class IwguiError(Exception):
    """Base error for all iwgui operations."""


class ConfigError(IwguiError):
    """Invalid or missing configuration."""


class HandleError(IwguiError):
    """A widget identity could not be derived."""


class HandleCollisionError(HandleError):
    """Two live nodes in the same frame resolved to the same handle."""


class BuilderError(IwguiError):
    """The tree builder was driven out of order (cursor reused, second root)."""


class MessageError(IwguiError):
    """A wire message could not be parsed.

    Recoverable: the message is dropped and the session continues.
    """


class ProtocolError(IwguiError):
    """A message was well-formed but violated the session protocol.

    Fatal for the session that received it.
    """
