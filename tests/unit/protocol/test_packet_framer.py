"""Unit tests for PacketFramer TCP stream framing."""

from betacrew_client.protocol.exchange_protocol import ExchangeProtocol
from betacrew_client.protocol.packet_framer import PacketFramer
from betacrew_client.protocol.packet_types import Packet, Side

PACKET_SIZE = 17
SPLIT_AT = 10


def record(sequence: int) -> bytes:
    return ExchangeProtocol.encode_packet(
        Packet(symbol="TSLA", side=Side.BUY, quantity=5, price=700, sequence=sequence),
    )


class TestPacketFramer:
    """PacketFramer buffering tests."""

    def test_empty_feed(self) -> None:
        """Test empty feed returns no packets."""
        framer = PacketFramer()
        assert framer.feed(b"") == []
        assert framer.pending_bytes == 0

    def test_record_split_across_reads(self) -> None:
        """Test a record split over two reads is reassembled."""
        framer = PacketFramer()
        data = record(4)

        assert framer.feed(data[:SPLIT_AT]) == []
        assert framer.pending_bytes == SPLIT_AT

        packets = framer.feed(data[SPLIT_AT:])
        assert [p.sequence for p in packets] == [4]
        assert framer.pending_bytes == 0

    def test_byte_at_a_time(self) -> None:
        """Test feeding one byte at a time yields the record on the last byte."""
        framer = PacketFramer()
        data = record(9)
        results = [framer.feed(data[i : i + 1]) for i in range(PACKET_SIZE)]
        assert all(r == [] for r in results[:-1])
        assert [p.sequence for p in results[-1]] == [9]

    def test_multiple_records_and_partial(self) -> None:
        """Test leftover from one read is prefixed onto the next."""
        framer = PacketFramer()
        stream = record(1) + record(2) + record(3)
        first, second = stream[:25], stream[25:]

        packets = framer.feed(first)
        assert [p.sequence for p in packets] == [1]
        assert framer.pending_bytes == 25 - PACKET_SIZE

        packets = framer.feed(second)
        assert [p.sequence for p in packets] == [2, 3]
        assert framer.pending_bytes == 0

    def test_buffer_trimmed_in_place(self) -> None:
        """Test consumed records are removed from the same buffer object."""
        framer = PacketFramer()
        buffer = framer.buffer
        stream = record(1) + record(2)

        framer.feed(stream[:30])
        assert framer.buffer is buffer
        assert bytes(framer.buffer) == stream[PACKET_SIZE:30]

        framer.feed(stream[30:])
        assert framer.buffer is buffer
        assert framer.pending_bytes == 0

    def test_reset_drops_partial(self) -> None:
        """Test reset discards incomplete bytes."""
        framer = PacketFramer()
        framer.feed(record(1)[:5])
        framer.reset()
        assert framer.pending_bytes == 0
        assert [p.sequence for p in framer.feed(record(2))] == [2]
