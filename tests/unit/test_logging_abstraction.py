"""Unit tests for log formatters and setup."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from betacrew_client.correlation import run_context
from betacrew_client.logging_abstraction import HumanReadableFormatter, JSONFormatter, setup_logging


def make_record(msg: str = "Received %d packets", args: tuple = (3,), **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="betacrew_client.orchestrator",
        level=logging.INFO,
        pathname=__file__,
        lineno=42,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self):
        """Test the JSON output carries the standard fields."""
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "betacrew_client.orchestrator"
        assert data["line"] == 42
        assert data["message"] == "Received 3 packets"
        assert data["run_id"] is None
        assert "context" not in data

    def test_run_id_and_context(self):
        """Test the run ID and extra= fields are included."""
        with run_context("run-1"):
            data = json.loads(JSONFormatter().format(make_record(sequence=7, reason="invalid")))

        assert data["run_id"] == "run-1"
        assert data["context"] == {"sequence": 7, "reason": "invalid"}

    def test_exception_included(self):
        """Test exception info is rendered."""
        try:
            raise ValueError("bad record")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad record" in data["exception"]

    def test_non_serializable_context(self):
        """Test context values that are not JSON types are stringified."""
        data = json.loads(JSONFormatter().format(make_record(payload=b"\x02\x05")))
        assert data["context"]["payload"] == str(b"\x02\x05")


class TestHumanReadableFormatter:
    """Tests for HumanReadableFormatter."""

    def test_without_run_id(self):
        """Test the placeholder is used outside a run."""
        line = HumanReadableFormatter().format(make_record())

        assert "[--------]" in line
        assert "INFO" in line
        assert line.endswith("> Received 3 packets")

    def test_with_run_id_and_context(self):
        """Test the short run ID and context suffix."""
        with run_context("0123456789abcdef"):
            line = HumanReadableFormatter().format(make_record(sequence=7))

        assert "[01234567]" in line
        assert line.endswith("Received 3 packets | sequence=7")


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_format(self):
        """Test a single JSON handler is installed at the given level."""
        setup_logging("debug", "json")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_human_format_default(self):
        """Test the human formatter is the default."""
        setup_logging("WARNING")

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, HumanReadableFormatter)

    def test_unknown_level_falls_back_to_info(self):
        """Test an unknown level name falls back to INFO."""
        setup_logging("chatty")
        assert logging.getLogger().level == logging.INFO

    def test_replaces_existing_handlers(self):
        """Test repeated setup does not stack handlers."""
        setup_logging("INFO")
        setup_logging("INFO")
        assert len(logging.getLogger().handlers) == 1
