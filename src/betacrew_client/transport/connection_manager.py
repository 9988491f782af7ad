"""Connection lifecycle for the single BetaCrew exchange session.

ConnectionManager wraps TCPConnection with an explicit state machine
(DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED) and converts the
transport's bool/None results into exceptions where the run has to react.
"""

from __future__ import annotations

import logging
from enum import Enum

from betacrew_client.metrics import registry
from betacrew_client.transport.exceptions import ExchangeConnectionError
from betacrew_client.transport.socket_abstraction import CLOSE_REASON_ERROR, TCPConnection

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection state enumeration."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ConnectionManager:
    """Owns the TCP session: connect, detect end-of-stream, reconnect.

    Only one session exists at a time. No locking is needed because every
    call is awaited from the single orchestrator task.
    """

    def __init__(self, connection: TCPConnection) -> None:
        self.conn: TCPConnection = connection
        self.state: ConnectionState = ConnectionState.DISCONNECTED
        self.reconnects: int = 0

    def _set_state(self, state: ConnectionState) -> None:
        if state != self.state:
            logger.debug("Connection state %s -> %s", self.state.value, state.value)
        self.state = state
        registry.record_connection_state(state.value)

    async def connect(self) -> None:
        """Open a session.

        Raises:
            ExchangeConnectionError: If the transport cannot establish a session

        """
        if self.state == ConnectionState.CONNECTED:
            return
        self._set_state(ConnectionState.CONNECTING)
        if not await self.conn.connect():
            self._set_state(ConnectionState.DISCONNECTED)
            raise ExchangeConnectionError(
                f"cannot connect to {self.conn.host}:{self.conn.port}",
                state=self.state.value,
            )
        self._set_state(ConnectionState.CONNECTED)

    async def reconnect(self, reason: str = "gap_fill") -> None:
        """Drop any stale session and connect again."""
        registry.record_reconnection(reason)
        self.reconnects += 1
        logger.info(
            "Reconnecting to %s:%d (%s)",
            self.conn.host,
            self.conn.port,
            reason,
            extra={"reason": reason, "reconnects": self.reconnects},
        )
        await self.close()
        await self.connect()

    async def send(self, frame: bytes) -> None:
        """Write one request frame.

        A failed write always ends the session, so a frame that may still
        reach the exchange never shares a session with the next request.

        Raises:
            ExchangeConnectionError: If not connected or the write fails

        """
        if self.state != ConnectionState.CONNECTED:
            raise ExchangeConnectionError("send requires CONNECTED state", state=self.state.value)
        if not await self.conn.send(frame):
            if self.conn.close_reason is None:
                self.conn.close_reason = CLOSE_REASON_ERROR
            await self._session_ended()
            raise ExchangeConnectionError(f"write of {frame.hex()} failed", state=self.state.value)

    async def read(self) -> bytes | None:
        """Wait for one inbound data event.

        Returns:
            The bytes of the event, or None at end of stream (peer close or
            idle timeout); the manager is DISCONNECTED afterwards

        """
        if self.state != ConnectionState.CONNECTED:
            return None
        data = await self.conn.recv()
        if data is None:
            await self._session_ended()
        return data

    async def _session_ended(self) -> None:
        reason = self.conn.close_reason or "unknown"
        await self.conn.close()
        self._set_state(ConnectionState.DISCONNECTED)
        logger.info("Session ended (%s)", reason, extra={"close_reason": reason})

    async def close(self) -> None:
        """Close the session if one is open (idempotent)."""
        await self.conn.close()
        if self.state != ConnectionState.DISCONNECTED:
            self._set_state(ConnectionState.DISCONNECTED)

    @property
    def is_connected(self) -> bool:
        """True while a session is open."""
        return self.state == ConnectionState.CONNECTED
