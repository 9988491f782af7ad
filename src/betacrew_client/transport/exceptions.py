"""Exception types for transport and persistence errors."""

from __future__ import annotations

from betacrew_client.protocol.exceptions import ExchangeProtocolError


class ExchangeConnectionError(ExchangeProtocolError):
    """Connection state error (connect failed, not connected, write failed).

    Named ExchangeConnectionError to avoid shadowing Python's built-in ConnectionError.

    Attributes:
        reason: Specific failure reason
        state: Connection state when error occurred
    """

    def __init__(self, reason: str, state: str = "unknown") -> None:
        self.reason: str = reason
        self.state: str = state
        super().__init__(f"Connection error: {reason} (state: {state})")


class PersistenceError(ExchangeProtocolError):
    """The output artifact could not be written or read.

    Attributes:
        reason: Underlying failure
        path: Destination path
    """

    def __init__(self, reason: str, path: str = "") -> None:
        self.reason: str = reason
        self.path: str = path
        super().__init__(f"Persistence failed for {path}: {reason}")
