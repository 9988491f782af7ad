"""Metrics module."""

from .registry import (
    record_connection_state,
    record_decode_error,
    record_packets_decoded,
    record_permanently_missing,
    record_reconnection,
    record_request_sent,
    record_resend,
    start_metrics_server,
)

__all__ = [
    "record_connection_state",
    "record_decode_error",
    "record_packets_decoded",
    "record_permanently_missing",
    "record_reconnection",
    "record_request_sent",
    "record_resend",
    "start_metrics_server",
]
