"""Prometheus metrics registry for the BetaCrew client."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Gauge,
    start_http_server,
)

betacrew_packets_decoded_total: Final = Counter(  # type: ignore[assignment]
    "betacrew_packets_decoded_total",
    "Total packet records decoded",
)

betacrew_decode_errors_total: Final = Counter(  # type: ignore[assignment]
    "betacrew_decode_errors_total",
    "Total packet records dropped as invalid",
    ["reason"],
)

betacrew_requests_sent_total: Final = Counter(  # type: ignore[assignment]
    "betacrew_requests_sent_total",
    "Total requests written to the exchange",
    ["call_type", "outcome"],
)

betacrew_resend_total: Final = Counter(  # type: ignore[assignment]
    "betacrew_resend_total",
    "Total resend attempts by outcome",
    ["outcome"],
)

betacrew_permanently_missing_total: Final = Counter(  # type: ignore[assignment]
    "betacrew_permanently_missing_total",
    "Total sequences given up on after gap fill",
    ["reason"],
)

betacrew_reconnection_total: Final = Counter(  # type: ignore[assignment]
    "betacrew_reconnection_total",
    "Total reconnection attempts",
    ["reason"],
)

betacrew_connection_state: Final = Gauge(  # type: ignore[assignment]
    "betacrew_connection_state",
    "Current connection state",
    ["state"],
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_packets_decoded(count: int) -> None:
    """Record decoded packets."""
    betacrew_packets_decoded_total.inc(count)  # type: ignore[no-untyped-call]


def record_decode_error(reason: str) -> None:
    """Record a dropped record."""
    betacrew_decode_errors_total.labels(reason=reason).inc()  # type: ignore[no-untyped-call]


def record_request_sent(call_type: str, outcome: str) -> None:
    """Record a request write."""
    betacrew_requests_sent_total.labels(call_type=call_type, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_resend(outcome: str) -> None:
    """Record one resend attempt outcome."""
    betacrew_resend_total.labels(outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_permanently_missing(reason: str, count: int = 1) -> None:
    """Record sequences that stay missing after gap fill."""
    betacrew_permanently_missing_total.labels(reason=reason).inc(count)  # type: ignore[no-untyped-call]


def record_reconnection(reason: str) -> None:
    """Record a reconnection attempt."""
    betacrew_reconnection_total.labels(reason=reason).inc()  # type: ignore[no-untyped-call]


def record_connection_state(state: str) -> None:
    """Record connection state change."""
    # 1 for the current state, 0 for the others
    for s in ["disconnected", "connecting", "connected"]:
        value = 1 if s == state else 0
        betacrew_connection_state.labels(state=s).set(value)  # type: ignore[no-untyped-call]
