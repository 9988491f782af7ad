"""BetaCrew exchange protocol encoder/decoder.

Outbound requests are 2 bytes, ``[callType, resendSeq]``. Inbound data is a
byte stream of back-to-back 17-byte records with no end-of-message marker:

    offset  size  field
    0       4     symbol (ASCII)
    4       1     buy/sell indicator ('B' or 'S')
    5       4     quantity (int32, big-endian)
    9       4     price (int32, big-endian)
    13      4     sequence (int32, big-endian)
"""

from __future__ import annotations

import logging
import struct

from betacrew_client.const import (
    CALL_TYPE_RESEND,
    CALL_TYPE_STREAM_ALL,
    MAX_RESEND_SEQUENCE,
    PACKET_SIZE,
)
from betacrew_client.metrics import registry
from betacrew_client.protocol.exceptions import PacketDecodeError, SequenceRangeError
from betacrew_client.protocol.packet_types import Packet, Side

PACKET_STRUCT = struct.Struct(">4sciii")
SYMBOL_LENGTH = 4

logger = logging.getLogger(__name__)


class ExchangeProtocol:
    """BetaCrew protocol encoder/decoder.

    All methods are stateless; buffering across TCP reads lives in PacketFramer.
    """

    @staticmethod
    def encode_stream_all() -> bytes:
        """Encode the "stream all packets" request.

        Example:
            >>> ExchangeProtocol.encode_stream_all()
            b'\\x01\\x00'

        """
        payload = bytes([CALL_TYPE_STREAM_ALL, 0])
        logger.debug("Encoded stream all request: %s", payload.hex())
        return payload

    @staticmethod
    def encode_resend(sequence: int) -> bytes:
        """Encode a resend request for one sequence number.

        Args:
            sequence: Sequence to request (0..255, one unsigned byte on the wire)

        Returns:
            2-byte request

        Raises:
            SequenceRangeError: If the sequence does not fit in one byte

        Example:
            >>> ExchangeProtocol.encode_resend(7)
            b'\\x02\\x07'

        """
        if not 0 <= sequence <= MAX_RESEND_SEQUENCE:
            raise SequenceRangeError(sequence)
        payload = bytes([CALL_TYPE_RESEND, sequence])
        logger.debug("Encoded resend request for sequence %d: %s", sequence, payload.hex())
        return payload

    @staticmethod
    def encode_packet(packet: Packet) -> bytes:
        """Encode a Packet into its 17-byte wire record.

        Raises:
            ValueError: If the symbol is not 4 ASCII characters or a numeric
                field does not fit in int32

        """
        symbol = packet.symbol.encode("ascii")
        if len(symbol) != SYMBOL_LENGTH:
            msg = f"symbol must be {SYMBOL_LENGTH} ASCII characters, got {packet.symbol!r}"
            raise ValueError(msg)
        try:
            return PACKET_STRUCT.pack(
                symbol,
                packet.side.value.encode("ascii"),
                packet.quantity,
                packet.price,
                packet.sequence,
            )
        except struct.error as e:
            raise ValueError(str(e)) from e

    @staticmethod
    def decode_packet(record: bytes) -> Packet:
        """Decode exactly one 17-byte record.

        Raises:
            PacketDecodeError: On wrong length, non-ASCII symbol, unknown side
                or non-positive sequence

        """
        if len(record) != PACKET_SIZE:
            raise PacketDecodeError("bad_length", record)

        raw_symbol, raw_side, quantity, price, sequence = PACKET_STRUCT.unpack(record)

        try:
            symbol = raw_symbol.decode("ascii")
        except UnicodeDecodeError:
            raise PacketDecodeError("invalid_symbol", record) from None

        try:
            side = Side(raw_side.decode("ascii"))
        except (UnicodeDecodeError, ValueError):
            raise PacketDecodeError("invalid_side", record) from None

        if sequence <= 0:
            raise PacketDecodeError("invalid_sequence", record)

        return Packet(symbol=symbol, side=side, quantity=quantity, price=price, sequence=sequence)

    @staticmethod
    def decode(buffer: bytes | bytearray) -> tuple[list[Packet], bytes]:
        """Decode every whole record in buffer.

        TCP does not preserve message boundaries, so the buffer may end in a
        partial record. Those trailing bytes are returned untouched so the
        caller can prefix them onto the next chunk. Invalid records are logged
        and skipped; decoding never stops on a single bad record.

        Args:
            buffer: Raw bytes from one or more TCP reads

        Returns:
            Tuple of (decoded packets in wire order, leftover bytes)

        """
        whole = len(buffer) - (len(buffer) % PACKET_SIZE)
        packets: list[Packet] = []

        for offset in range(0, whole, PACKET_SIZE):
            record = bytes(buffer[offset : offset + PACKET_SIZE])
            try:
                packet = ExchangeProtocol.decode_packet(record)
            except PacketDecodeError as e:
                logger.warning(
                    "Dropping invalid packet at offset %d: %s",
                    offset,
                    e.reason,
                    extra={"reason": e.reason, "data_preview": e.data_preview.hex()},
                )
                registry.record_decode_error(e.reason)
                continue
            packets.append(packet)

        if packets:
            registry.record_packets_decoded(len(packets))

        return packets, bytes(buffer[whole:])
