"""JSON persistence of the final packet collection."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from betacrew_client.protocol.packet_types import Packet
from betacrew_client.transport.exceptions import PersistenceError

logger = logging.getLogger(__name__)


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def save_packets(packets: Iterable[Packet], destination: str | Path) -> Path:
    """Write packets, sorted by sequence, as a JSON array.

    The file is written to a temporary sibling, fsynced and renamed over
    the destination, so readers never see a half-written artifact and any
    previous content is replaced.

    Args:
        packets: Packets to save (any order)
        destination: Output file path

    Returns:
        The destination path

    Raises:
        PersistenceError: If the file cannot be written

    """
    path = Path(destination)
    ordered = sorted(packets, key=lambda p: p.sequence)
    payload = json.dumps([p.to_dict() for p in ordered], indent=2)

    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        # mkstemp creates the file 0600; give the artifact the mode a plain open() would
        os.chmod(tmp_name, 0o666 & ~_current_umask())
        Path(tmp_name).replace(path)
    except OSError as e:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise PersistenceError(str(e), str(path)) from e

    logger.info(
        "Saved %d packets to %s",
        len(ordered),
        path,
        extra={"packets": len(ordered), "path": str(path)},
    )
    return path


def load_packets(source: str | Path) -> list[Packet]:
    """Read an artifact written by save_packets.

    Raises:
        PersistenceError: If the file is missing or not a packet array

    """
    path = Path(source)
    try:
        records = json.loads(path.read_text(encoding="utf-8"))
        return [Packet.from_dict(r) for r in records]
    except OSError as e:
        raise PersistenceError(str(e), str(path)) from e
    except (ValueError, KeyError, TypeError) as e:
        raise PersistenceError(f"malformed artifact: {e}", str(path)) from e
