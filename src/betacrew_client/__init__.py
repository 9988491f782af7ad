"""BetaCrew exchange client - stream, gap-fill and persist market data packets."""

__version__ = "0.1.0"
