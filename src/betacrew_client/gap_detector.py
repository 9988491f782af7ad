"""Sequence gap detection."""

from __future__ import annotations

from collections.abc import Iterable


def find_missing_sequences(observed: Iterable[int]) -> set[int]:
    """Return the sequence numbers below the highest observed one that never arrived.

    Sequences start at 1, so the result is ``{1..max-1}`` minus the observed
    set. Nothing can be inferred from an empty input, which yields an empty
    set. Runs in linear time using set membership.

    Example:
        >>> sorted(find_missing_sequences({1, 2, 4, 5, 7}))
        [3, 6]

    """
    present = set(observed)
    if not present:
        return set()
    return {seq for seq in range(1, max(present)) if seq not in present}
