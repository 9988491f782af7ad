"""Per-run accumulation of decoded packets."""

from __future__ import annotations

from collections.abc import Iterator

from betacrew_client.protocol.packet_types import Packet


class PacketStore:
    """Packets received during one run, in arrival order.

    No deduplication happens here: the orchestrator only ever adds a resent
    packet for a sequence it knows to be missing.
    """

    def __init__(self) -> None:
        self._packets: list[Packet] = []
        self._sequences: set[int] = set()

    def add(self, packet: Packet) -> None:
        self._packets.append(packet)
        self._sequences.add(packet.sequence)

    def sequences(self) -> set[int]:
        """Return a copy of the observed sequence numbers."""
        return set(self._sequences)

    def sorted_by_sequence(self) -> list[Packet]:
        """Return the packets in ascending sequence order (stable)."""
        return sorted(self._packets, key=lambda p: p.sequence)

    def __contains__(self, sequence: object) -> bool:
        return sequence in self._sequences

    def __iter__(self) -> Iterator[Packet]:
        return iter(self._packets)

    def __len__(self) -> int:
        return len(self._packets)
