"""Transport package - TCP session, connection state machine, retry policy."""

from betacrew_client.transport.connection_manager import ConnectionManager, ConnectionState
from betacrew_client.transport.exceptions import ExchangeConnectionError, PersistenceError
from betacrew_client.transport.retry_policy import RetryPolicy
from betacrew_client.transport.socket_abstraction import TCPConnection

__all__ = [
    "ConnectionManager",
    "ConnectionState",
    "ExchangeConnectionError",
    "PersistenceError",
    "RetryPolicy",
    "TCPConnection",
]
