from __future__ import annotations


class DargoClientError(Exception):
    """Base class for errors raised by the client."""


class NotReadyError(DargoClientError):
    """`send` was called while the connection is not in the connected state."""

    def __init__(self, message: str = "socket not ready") -> None:
        super().__init__(message)


class RetriesExhaustedError(DargoClientError):
    """
    The retry budget is used up and the manager has stopped reconnecting.

    `__cause__` carries the transport error that triggered the final failure.
    """

    def __init__(self, url: str, retries: int) -> None:
        super().__init__(f"giving up on {url} after {retries} retries")
        self.url = url
        self.retries = retries


class TransportClosedError(DargoClientError):
    """A live connection was closed by the peer or the network."""

    def __init__(self, code: int | None = None, reason: str = "") -> None:
        detail = f" (code={code}{', ' + reason if reason else ''})" if code is not None else ""
        super().__init__(f"WebSocket closed{detail}")
        self.code = code
        self.reason = reason


class InvalidTransitionError(DargoClientError):
    """A state write tried to leave a terminal state."""
