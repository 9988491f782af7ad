"""Packet type definitions for the BetaCrew exchange protocol."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Side(Enum):
    """Buy/sell indicator, wire-encoded as one ASCII byte."""

    BUY = "B"
    SELL = "S"


@dataclass(frozen=True, slots=True)
class Packet:
    """One decoded price-update record.

    Attributes:
        symbol: 4-character ASCII instrument code
        side: Buy or sell indicator
        quantity: Order quantity (int32)
        price: Price (int32)
        sequence: Stream sequence number, positive and unique within a run
    """

    symbol: str
    side: Side
    quantity: int
    price: int
    sequence: int

    def to_dict(self) -> dict[str, object]:
        """Return the record shape written to the output artifact."""
        return {
            "symbol": self.symbol,
            "buySellIndicator": self.side.value,
            "quantity": self.quantity,
            "price": self.price,
            "sequence": self.sequence,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Packet:
        """Build a Packet from an artifact record."""
        return cls(
            symbol=str(data["symbol"]),
            side=Side(data["buySellIndicator"]),
            quantity=int(data["quantity"]),  # type: ignore[call-overload]
            price=int(data["price"]),  # type: ignore[call-overload]
            sequence=int(data["sequence"]),  # type: ignore[call-overload]
        )
