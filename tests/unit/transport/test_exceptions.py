"""Unit tests for transport layer exceptions."""

from __future__ import annotations

from betacrew_client.protocol.exceptions import ExchangeProtocolError
from betacrew_client.transport.exceptions import ExchangeConnectionError, PersistenceError


class TestExceptionHierarchy:
    """Tests for exception inheritance."""

    def test_all_exceptions_inherit_from_exchange_protocol_error(self):
        """Test that all transport exceptions inherit from ExchangeProtocolError."""
        assert issubclass(ExchangeConnectionError, ExchangeProtocolError)
        assert issubclass(PersistenceError, ExchangeProtocolError)

    def test_connection_error_does_not_shadow_builtin(self):
        """Test that ExchangeConnectionError is distinct from the builtin ConnectionError."""
        assert not issubclass(ExchangeConnectionError, ConnectionError)


class TestExchangeConnectionError:
    """Tests for ExchangeConnectionError."""

    def test_connection_error_with_reason(self):
        """Test ExchangeConnectionError with reason only."""
        error = ExchangeConnectionError(reason="not_connected")
        assert error.reason == "not_connected"
        assert error.state == "unknown"
        assert "not_connected" in str(error)

    def test_connection_error_with_state(self):
        """Test ExchangeConnectionError with reason and state."""
        error = ExchangeConnectionError(reason="cannot connect to localhost:3000", state="connecting")
        assert error.state == "connecting"
        assert str(error) == "Connection error: cannot connect to localhost:3000 (state: connecting)"


class TestPersistenceError:
    """Tests for PersistenceError."""

    def test_persistence_error_fields(self):
        """Test PersistenceError carries reason and path."""
        error = PersistenceError(reason="No space left on device", path="exchange_data.json")
        assert error.reason == "No space left on device"
        assert error.path == "exchange_data.json"
        assert "exchange_data.json" in str(error)
        assert "No space left on device" in str(error)

    def test_persistence_error_default_path(self):
        """Test PersistenceError without a path."""
        error = PersistenceError(reason="malformed artifact")
        assert error.path == ""
