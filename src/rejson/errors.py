"""Exception hierarchy for the JSON command client."""

from typing import Any


class RejsonError(Exception):
    """Base class for every error raised by this package."""


class TransportError(RejsonError, ConnectionError):
    """The connection to the store failed, timed out or was lost."""


class ReplyError(TransportError):
    """The store rejected a command with an error reply."""


class ProtocolError(RejsonError):
    """A reply did not match what the command guarantees."""

    def __init__(self, reply: Any, message: str | None = None) -> None:
        self.reply = reply
        super().__init__(message or f"Unexpected reply: {reply!r}")


class ParseError(RejsonError, ValueError):
    """Canonical JSON text could not be decoded."""
