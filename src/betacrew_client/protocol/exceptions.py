"""Exception types for BetaCrew exchange protocol errors.

All client errors derive from ExchangeProtocolError so the CLI can report any
failure of a run with a single handler while callers keep specific types for
detailed handling.
"""

from __future__ import annotations


class ExchangeProtocolError(Exception):
    """Base exception for all BetaCrew client errors."""


class PacketDecodeError(ExchangeProtocolError):
    """A 17-byte packet record cannot be decoded.

    Attributes:
        reason: Specific failure reason (e.g., "invalid_side", "bad_length")
        data_preview: First 16 bytes of the record
    """

    def __init__(self, reason: str, data: bytes = b""):
        self.reason = reason
        self.data_preview = data[:16] if data else b""
        super().__init__(f"Packet decode failed: {reason}")


class SequenceRangeError(ExchangeProtocolError, ValueError):
    """Sequence number does not fit in the one-byte resend argument.

    Attributes:
        sequence: The rejected sequence number
    """

    def __init__(self, sequence: int):
        self.sequence = sequence
        super().__init__(f"Resend sequence {sequence} outside 0..255")
