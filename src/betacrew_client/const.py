import os

from betacrew_client import __version__

__all__ = [
    "BETACREW_CONNECT_TIMEOUT",
    "BETACREW_DEBUG",
    "BETACREW_HOST",
    "BETACREW_IDLE_TIMEOUT",
    "BETACREW_IO_TIMEOUT",
    "BETACREW_LOG_FORMAT",
    "BETACREW_MAX_RESEND_ATTEMPTS",
    "BETACREW_METRICS_PORT",
    "BETACREW_OUTPUT_FILE",
    "BETACREW_PORT",
    "BETACREW_VERSION",
    "CALL_TYPE_RESEND",
    "CALL_TYPE_STREAM_ALL",
    "MAX_RESEND_SEQUENCE",
    "PACKET_SIZE",
    "REQUEST_SIZE",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
BETACREW_VERSION: str = __version__

# Wire protocol
PACKET_SIZE = 17  # symbol (4) + side (1) + quantity (4) + price (4) + sequence (4)
REQUEST_SIZE = 2  # callType (1) + resendSeq (1)
CALL_TYPE_STREAM_ALL = 1
CALL_TYPE_RESEND = 2
# resendSeq is a single unsigned byte on the wire
MAX_RESEND_SEQUENCE = 0xFF


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


BETACREW_HOST: str = os.environ.get("BETACREW_HOST", "localhost")
BETACREW_PORT: int = _env_int("BETACREW_PORT", 3000)
BETACREW_IDLE_TIMEOUT: float = _env_float("BETACREW_IDLE_TIMEOUT", 30.0)
BETACREW_CONNECT_TIMEOUT: float = _env_float("BETACREW_CONNECT_TIMEOUT", 5.0)
BETACREW_IO_TIMEOUT: float = _env_float("BETACREW_IO_TIMEOUT", 5.0)
BETACREW_OUTPUT_FILE: str = os.environ.get("BETACREW_OUTPUT_FILE", "exchange_data.json")
BETACREW_MAX_RESEND_ATTEMPTS: int = max(1, _env_int("BETACREW_MAX_RESEND_ATTEMPTS", 3))
# 0 disables the Prometheus endpoint
BETACREW_METRICS_PORT: int = _env_int("BETACREW_METRICS_PORT", 0)

BETACREW_DEBUG = os.environ.get("BETACREW_DEBUG", "0").casefold() in YES_ANSWER
BETACREW_LOG_FORMAT: str = os.environ.get("BETACREW_LOG_FORMAT", "human")  # "json" or "human"
