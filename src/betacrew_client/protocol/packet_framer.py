"""TCP stream framing for fixed-size BetaCrew packet records."""

import logging

from betacrew_client.const import PACKET_SIZE
from betacrew_client.protocol.exchange_protocol import ExchangeProtocol
from betacrew_client.protocol.packet_types import Packet

logger = logging.getLogger(__name__)


class PacketFramer:
    """Turn a TCP byte stream into decoded packets.

    TCP reads may return partial records, several records, or exact
    boundaries. The framer keeps the trailing partial record between feeds
    and prefixes it onto the next chunk, so no byte is dropped or decoded
    twice.

    Example:
        framer = PacketFramer()
        assert framer.feed(record[:10]) == []  # incomplete
        assert len(framer.feed(record[10:])) == 1

    """

    def __init__(self) -> None:
        self.buffer: bytearray = bytearray()

    def feed(self, data: bytes) -> list[Packet]:
        """Add data to the buffer and return every packet completed by it."""
        self.buffer.extend(data)
        packets, leftover = ExchangeProtocol.decode(self.buffer)
        del self.buffer[: len(self.buffer) - len(leftover)]
        return packets

    @property
    def pending_bytes(self) -> int:
        """Number of buffered bytes belonging to an incomplete record."""
        return len(self.buffer)

    def reset(self) -> None:
        """Drop any partial record (a record cannot span two sessions)."""
        if self.buffer:
            logger.warning(
                "Discarding %d bytes of incomplete packet (expected %d)",
                len(self.buffer),
                PACKET_SIZE,
                extra={"pending_bytes": len(self.buffer)},
            )
        self.buffer.clear()
