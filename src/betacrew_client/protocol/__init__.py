"""BetaCrew protocol package - request encoding, record decoding and framing.

Public API:
- Packet dataclass and Side enum
- Protocol encoder/decoder (ExchangeProtocol)
- Stream framer (PacketFramer)
"""

from betacrew_client.protocol.exchange_protocol import ExchangeProtocol
from betacrew_client.protocol.packet_framer import PacketFramer
from betacrew_client.protocol.packet_types import Packet, Side

__all__ = [
    "ExchangeProtocol",
    "Packet",
    "PacketFramer",
    "Side",
]
