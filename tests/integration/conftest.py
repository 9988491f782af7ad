"""Fixtures for integration tests."""

import asyncio
import logging
from collections import deque
from collections.abc import AsyncGenerator
from enum import Enum

import pytest

from betacrew_client.protocol.exchange_protocol import ExchangeProtocol
from betacrew_client.protocol.packet_types import Packet, Side

logger = logging.getLogger(__name__)


class StreamMode(Enum):
    """How the mock exchange ends a stream-all session."""

    CLOSE = "close"  # Send everything then close the connection
    HOLD = "hold"  # Send everything then go silent (client idle timeout ends it)


def make_packets(count: int, symbols: tuple[str, ...] = ("MSFT", "AAPL", "AMZN", "META")) -> list[Packet]:
    """Deterministic book of packets with sequences 1..count."""
    return [
        Packet(
            symbol=symbols[seq % len(symbols)],
            side=Side.BUY if seq % 2 else Side.SELL,
            quantity=50 + seq,
            price=100 + 3 * seq,
            sequence=seq,
        )
        for seq in range(1, count + 1)
    ]


class MockExchangeServer:
    """Mock exchange speaking the two-byte request / 17-byte record protocol."""

    def __init__(
        self,
        packets: list[Packet],
        withhold: set[int] | None = None,
        stream_mode: StreamMode = StreamMode.CLOSE,
        chunk_size: int = 0,
        host: str = "127.0.0.1",
        port: int = 0,
    ):
        """Initialize mock exchange.

        Args:
            packets: Full book, served in order on stream-all and by resend
            withhold: Sequences left out of the stream-all response
            stream_mode: Whether to close or go silent after streaming
            chunk_size: Split every write into chunks of this size (0 = whole)
            host: Host to bind to
            port: Port to bind to (0 = OS assigns)

        """
        self.packets = {p.sequence: p for p in packets}
        self.withhold = withhold or set()
        self.stream_mode = stream_mode
        self.chunk_size = chunk_size
        self.host = host
        self.port = port
        self.server: asyncio.Server | None = None
        self.requests: list[bytes] = []
        self.connection_count = 0
        # Scripted raw responses per resend sequence, consumed before the real record
        self.resend_overrides: dict[int, deque[bytes]] = {}

    async def start(self) -> None:
        """Start the mock exchange."""
        self.server = await asyncio.start_server(self._handle_client, self.host, self.port)
        if self.port == 0:
            self.port = self.server.sockets[0].getsockname()[1]
        logger.info("Mock exchange started on %s:%d", self.host, self.port)

    async def stop(self) -> None:
        """Stop the mock exchange."""
        if self.server:
            self.server.close()
            await self.server.wait_closed()
            logger.info("Mock exchange stopped")

    def override_resend(self, sequence: int, *responses: bytes) -> None:
        """Answer the next resend requests for ``sequence`` with raw bytes."""
        self.resend_overrides.setdefault(sequence, deque()).extend(responses)

    def resend_requests(self) -> list[int]:
        """Sequences requested by resend, in arrival order."""
        return [request[1] for request in self.requests if request[0] == 2]

    async def _write(self, writer: asyncio.StreamWriter, data: bytes) -> None:
        step = self.chunk_size or len(data) or 1
        for offset in range(0, len(data), step):
            writer.write(data[offset : offset + step])
            await writer.drain()
            # Let each chunk arrive as its own read on the client
            await asyncio.sleep(0.01)

    async def _stream_all(self, writer: asyncio.StreamWriter) -> None:
        payload = b"".join(
            ExchangeProtocol.encode_packet(packet)
            for seq, packet in sorted(self.packets.items())
            if seq not in self.withhold
        )
        await self._write(writer, payload)
        logger.info("Streamed %d bytes", len(payload))

    async def _resend(self, writer: asyncio.StreamWriter, sequence: int) -> None:
        overrides = self.resend_overrides.get(sequence)
        if overrides:
            await self._write(writer, overrides.popleft())
            return
        packet = self.packets.get(sequence)
        if packet is not None:
            await self._write(writer, ExchangeProtocol.encode_packet(packet))

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Serve requests until the client closes the connection."""
        self.connection_count += 1
        logger.info("Connection #%d from %s", self.connection_count, writer.get_extra_info("peername"))
        try:
            while True:
                try:
                    request = await reader.readexactly(2)
                except asyncio.IncompleteReadError:
                    return
                self.requests.append(request)
                call_type, arg = request
                if call_type == 1:
                    await self._stream_all(writer)
                    if self.stream_mode == StreamMode.CLOSE:
                        return
                elif call_type == 2:
                    await self._resend(writer, arg)
                else:
                    logger.warning("Unknown call type %d", call_type)
                    return
        except ConnectionError as e:
            logger.warning("Client connection error: %s", e)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError as e:
                logger.warning("Error closing writer: %s", e)


@pytest.fixture
async def exchange_factory() -> AsyncGenerator:
    """Factory fixture starting mock exchanges and stopping them afterwards."""
    servers: list[MockExchangeServer] = []

    async def _start(packets: list[Packet], **kwargs) -> MockExchangeServer:
        server = MockExchangeServer(packets, **kwargs)
        await server.start()
        servers.append(server)
        return server

    yield _start

    for server in servers:
        await server.stop()
