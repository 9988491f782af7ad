"""Asyncio TCP session to the exchange with deadlines and idle detection."""

import asyncio
import logging
import time

logger = logging.getLogger(__name__)

CLOSE_REASON_PEER = "peer_closed"
CLOSE_REASON_IDLE = "idle_timeout"
CLOSE_REASON_ERROR = "error"
CLOSE_REASON_LOCAL = "local"


def _ms_since(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class TCPConnection:
    """One TCP session at a time to the exchange.

    The protocol has no in-band end-of-stream marker, so ``recv()`` reports
    both a peer close and an idle timeout as ``None``. Which one happened is
    kept in ``close_reason`` for logging.

    Primitives never raise on network errors: ``connect()`` and ``send()``
    return ``False`` and ``recv()`` returns ``None``.
    """

    def __init__(
        self,
        host: str,
        port: int,
        connect_timeout: float = 5.0,
        io_timeout: float = 5.0,
        idle_timeout: float = 30.0,
        max_read_size: int = 65536,
    ):
        """
        Args:
            host: Exchange host
            port: Exchange port
            connect_timeout: Seconds allowed for the TCP handshake
            io_timeout: Seconds allowed for a write to drain
            idle_timeout: Seconds without inbound data before the session is closed
            max_read_size: Upper bound for a single read
        """
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout
        self.io_timeout = io_timeout
        self.idle_timeout = idle_timeout
        self.max_read_size = max_read_size
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self.close_reason: str | None = None
        self._connected = False

    @property
    def peer(self) -> str:
        return f"{self.host}:{self.port}"

    async def connect(self) -> bool:
        """Open a new session; True on success."""
        self.close_reason = None
        started = time.perf_counter()
        logger.info("Connecting to exchange at %s (timeout: %.1fs)", self.peer, self.connect_timeout)
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.connect_timeout,
            )
        except (TimeoutError, OSError) as e:
            logger.exception(
                "Could not connect to %s after %.1fms",
                self.peer,
                _ms_since(started),
                extra={"peer": self.peer, "error": str(e) or "timeout"},
            )
            return False

        self._connected = True
        logger.info(
            "Connected to exchange at %s in %.1fms",
            self.peer,
            _ms_since(started),
            extra={"peer": self.peer},
        )
        return True

    async def send(self, data: bytes) -> bool:
        """Write one request frame and wait for it to drain; True on success."""
        if not self._connected or self.writer is None:
            logger.error("Cannot send %s: no session to %s", data.hex(), self.peer)
            return False

        started = time.perf_counter()
        try:
            self.writer.write(data)
            await asyncio.wait_for(self.writer.drain(), timeout=self.io_timeout)
        except TimeoutError:
            logger.exception("Write of %s to %s did not drain within %.1fs", data.hex(), self.peer, self.io_timeout)
            # A session whose write did not drain never carries another request
            await self.close()
            self.close_reason = CLOSE_REASON_ERROR
            return False
        except OSError as e:
            logger.exception(
                "Write of %s to %s failed",
                data.hex(),
                self.peer,
                extra={"peer": self.peer, "error": str(e)},
            )
            self._connected = False
            self.close_reason = CLOSE_REASON_ERROR
            return False

        logger.debug("Sent %s to %s in %.1fms", data.hex(), self.peer, _ms_since(started))
        return True

    async def recv(self, max_bytes: int | None = None) -> bytes | None:
        """
        Wait for the next inbound data event.

        Args:
            max_bytes: Read size limit (default: max_read_size)

        Returns:
            The bytes of one read, or None once the session is over (peer
            close, idle timeout or socket error)
        """
        if not self._connected or self.reader is None:
            logger.debug("No session to %s, nothing to receive", self.peer)
            return None

        try:
            data = await asyncio.wait_for(
                self.reader.read(max_bytes or self.max_read_size),
                timeout=self.idle_timeout,
            )
        except TimeoutError:
            logger.info(
                "Exchange at %s silent for %.1fs, ending session",
                self.peer,
                self.idle_timeout,
                extra={"peer": self.peer, "idle_timeout": self.idle_timeout},
            )
            await self.close()
            self.close_reason = CLOSE_REASON_IDLE
            return None
        except OSError as e:
            logger.exception("Read from %s failed", self.peer, extra={"peer": self.peer, "error": str(e)})
            await self.close()
            self.close_reason = CLOSE_REASON_ERROR
            return None

        if not data:
            logger.info("Exchange at %s closed the session", self.peer)
            self._connected = False
            self.close_reason = CLOSE_REASON_PEER
            return None

        logger.debug("Read %d bytes from %s", len(data), self.peer, extra={"bytes": len(data)})
        return data

    async def close(self) -> None:
        """Close the session if one is open. Safe to call repeatedly."""
        writer, self.writer, self.reader = self.writer, None, None
        self._connected = False
        if writer is None:
            return

        self.close_reason = self.close_reason or CLOSE_REASON_LOCAL
        logger.debug("Closing session to %s (%s)", self.peer, self.close_reason)
        try:
            writer.close()
            await writer.wait_closed()
        except OSError as e:
            logger.warning("Error closing session to %s: %s", self.peer, e, extra={"error_type": type(e).__name__})

    @property
    def is_connected(self) -> bool:
        return self._connected

    def __repr__(self) -> str:
        status = "connected" if self._connected else "disconnected"
        return f"TCPConnection({self.peer}, {status})"
