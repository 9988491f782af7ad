"""
Run ID tracking for log correlation.

Every client run gets its own ID, stored in a contextvar so that records
emitted from the transport, codec and orchestrator of one run can be grouped
together in the JSON log output.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Generator
from contextlib import contextmanager

__all__ = [
    "generate_run_id",
    "get_run_id",
    "run_context",
]

_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id",
    default=None,
)


def generate_run_id() -> str:
    """Return a new run ID (UUID4 hex without dashes)."""
    return uuid.uuid4().hex


def get_run_id() -> str | None:
    """Return the run ID of the current context, if any."""
    return _run_id.get()


@contextmanager
def run_context(run_id: str | None = None) -> Generator[str]:
    """
    Scope a run ID for the duration of a client run.

    Args:
        run_id: Specific ID to use (None to generate one)

    Yields:
        The run ID in effect inside the block

    Example:
        with run_context() as run_id:
            await orchestrator.run()  # every log record carries run_id
    """
    token = _run_id.set(run_id or generate_run_id())
    try:
        yield _run_id.get() or ""
    finally:
        _run_id.reset(token)
