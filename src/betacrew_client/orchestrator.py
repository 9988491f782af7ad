"""Run control flow: stream everything, find gaps, re-request them, persist.

The whole run is one coroutine walking an explicit state machine:

    DISCONNECTED -> CONNECTING -> STREAMING -> GAP_ANALYSIS
        -> [RESEND_LOOP] -> PERSISTING -> DONE

Any fatal error (initial connect, the stream-all write, persistence) moves
the run to FAILED and propagates. Problems with a single resend are kept
local to that sequence.

Resend requests carry no correlation identifier, so exactly one request is
in flight at a time and the response is attributed to it by program order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from betacrew_client.const import MAX_RESEND_SEQUENCE
from betacrew_client.gap_detector import find_missing_sequences
from betacrew_client.metrics import registry
from betacrew_client.persistence import save_packets
from betacrew_client.protocol.exceptions import ExchangeProtocolError
from betacrew_client.protocol.exchange_protocol import ExchangeProtocol
from betacrew_client.protocol.packet_framer import PacketFramer
from betacrew_client.protocol.packet_types import Packet
from betacrew_client.store import PacketStore
from betacrew_client.transport.connection_manager import ConnectionManager
from betacrew_client.transport.exceptions import ExchangeConnectionError
from betacrew_client.transport.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)


class RunState(Enum):
    """Run state enumeration."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    GAP_ANALYSIS = "gap_analysis"
    RESEND_LOOP = "resend_loop"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RunResult:
    """Outcome of a completed run.

    Attributes:
        output_path: Where the artifact was written
        packets_saved: Number of packets in the artifact
        missing_before_fill: Gaps found after the initial stream (ascending)
        recovered: Sequences filled by resend requests (ascending)
        permanently_missing: Sequences still absent from the artifact (ascending)
        reconnects: Number of reconnections made during the run
    """

    output_path: Path
    packets_saved: int
    missing_before_fill: list[int] = field(default_factory=list)
    recovered: list[int] = field(default_factory=list)
    permanently_missing: list[int] = field(default_factory=list)
    reconnects: int = 0

    @property
    def complete(self) -> bool:
        """True when the artifact has no sequence gaps."""
        return not self.permanently_missing


class ResendOrchestrator:
    """Drives one client run against a single exchange session at a time."""

    def __init__(
        self,
        manager: ConnectionManager,
        output_path: str | Path,
        store: PacketStore | None = None,
        retry_policy: RetryPolicy | None = None,
        sink: Callable[[Iterable[Packet], str | Path], Path] = save_packets,
    ) -> None:
        """Initialize orchestrator.

        Args:
            manager: Connection manager owning the TCP session
            output_path: Artifact destination
            store: Packet store for this run (a fresh one if None)
            retry_policy: Bounded retry for individual resend requests
            sink: Persistence function, save_packets unless overridden

        """
        self.manager = manager
        self.output_path = Path(output_path)
        self.store = store if store is not None else PacketStore()
        self.retry_policy = retry_policy or RetryPolicy()
        self.sink = sink
        self.state = RunState.DISCONNECTED
        self.transitions: list[RunState] = [RunState.DISCONNECTED]
        self.recovered: list[int] = []
        self.permanently_missing: list[int] = []

    def _transition(self, state: RunState) -> None:
        logger.debug("Run state %s -> %s", self.state.value, state.value)
        self.state = state
        self.transitions.append(state)

    async def run(self) -> RunResult:
        """Execute the full run and return its result.

        Raises:
            ExchangeConnectionError: Initial connection or stream request failed
            PersistenceError: The artifact could not be written

        """
        try:
            await self.stream_all()
            missing = self.analyze_gaps()
            if missing:
                await self.fill_gaps(missing)
            else:
                logger.info("No gaps found, skipping resend phase")
            path = self.persist()
        except ExchangeProtocolError:
            self._transition(RunState.FAILED)
            raise
        finally:
            await self.manager.close()

        self._transition(RunState.DONE)
        return RunResult(
            output_path=path,
            packets_saved=len(self.store),
            missing_before_fill=missing,
            recovered=sorted(self.recovered),
            permanently_missing=sorted(self.permanently_missing),
            reconnects=self.manager.reconnects,
        )

    async def stream_all(self) -> None:
        """Request the full stream and decode it until the session ends."""
        self._transition(RunState.CONNECTING)
        await self.manager.connect()

        self._transition(RunState.STREAMING)
        request = ExchangeProtocol.encode_stream_all()
        logger.info("Sending stream all packets request. Payload: %s", request.hex())
        try:
            await self.manager.send(request)
        except ExchangeConnectionError:
            registry.record_request_sent("stream_all", "error")
            raise
        registry.record_request_sent("stream_all", "success")

        framer = PacketFramer()
        while (data := await self.manager.read()) is not None:
            for packet in framer.feed(data):
                self.store.add(packet)
        framer.reset()

        logger.info(
            "Received and processed %d packets",
            len(self.store),
            extra={"packets": len(self.store)},
        )

    def analyze_gaps(self) -> list[int]:
        """Return the missing sequences in ascending order."""
        self._transition(RunState.GAP_ANALYSIS)
        missing = sorted(find_missing_sequences(self.store.sequences()))
        logger.info(
            "Identified %d missing sequences: %s",
            len(missing),
            missing,
            extra={"missing": len(missing)},
        )
        return missing

    async def fill_gaps(self, missing: list[int]) -> None:
        """Re-request each missing sequence, strictly one at a time, ascending."""
        self._transition(RunState.RESEND_LOOP)
        pending = sorted(missing)

        try:
            await self.manager.reconnect("gap_fill")
        except ExchangeConnectionError:
            logger.exception("Reconnect for gap fill failed")
            self._give_up(pending, "reconnect_failed")
            return

        for index, sequence in enumerate(pending):
            if sequence > MAX_RESEND_SEQUENCE:
                logger.error(
                    "Sequence %d cannot be requested: resend argument is one byte (max %d)",
                    sequence,
                    MAX_RESEND_SEQUENCE,
                    extra={"sequence": sequence},
                )
                self._give_up([sequence], "unaddressable")
                continue
            try:
                recovered = await self._resend_with_retry(sequence)
            except ExchangeConnectionError:
                logger.exception("Reconnect during gap fill failed at sequence %d", sequence)
                self._give_up(pending[index:], "reconnect_failed")
                return
            if recovered:
                self.recovered.append(sequence)
            else:
                self._give_up([sequence], "retries_exhausted")

    async def _resend_with_retry(self, sequence: int) -> bool:
        attempts = 0
        while self.retry_policy.should_retry(attempts):
            if attempts:
                delay = self.retry_policy.get_delay(attempts - 1)
                logger.info(
                    "Retrying sequence %d in %.2fs (attempt %d/%d)",
                    sequence,
                    delay,
                    attempts + 1,
                    self.retry_policy.max_attempts,
                )
                await asyncio.sleep(delay)
            attempts += 1
            packet = await self._resend_once(sequence)
            if packet is not None:
                self.store.add(packet)
                logger.info("Received and processed missing packet %d", sequence)
                return True
        return False

    async def _resend_once(self, sequence: int) -> Packet | None:
        """One request/response exchange; None when the attempt failed.

        Raises:
            ExchangeConnectionError: The dropped session could not be re-established

        """
        if not self.manager.is_connected:
            await self.manager.reconnect("session_dropped")

        request = ExchangeProtocol.encode_resend(sequence)
        logger.info("Requesting resend for sequence: %d. Payload: %s", sequence, request.hex())
        try:
            await self.manager.send(request)
        except ExchangeConnectionError:
            logger.exception("Resend request for sequence %d not written", sequence)
            registry.record_request_sent("resend", "error")
            registry.record_resend("write_failed")
            return None
        registry.record_request_sent("resend", "success")

        # The response may arrive split over several reads
        framer = PacketFramer()
        packets: list[Packet] = []
        while not packets:
            data = await self.manager.read()
            if data is None:
                logger.warning("Session ended before sequence %d arrived", sequence)
                registry.record_resend("session_ended")
                return None
            packets = framer.feed(data)
            if not packets and not framer.pending_bytes:
                logger.warning("Invalid resend response for sequence %d", sequence)
                registry.record_resend("invalid")
                return None

        if len(packets) > 1 or framer.pending_bytes:
            # Unsolicited bytes would be attributed to the next request
            logger.warning(
                "Unexpected extra data after resend response for sequence %d, dropping session",
                sequence,
                extra={"extra_packets": len(packets) - 1, "pending_bytes": framer.pending_bytes},
            )
            await self.manager.close()

        packet = next((p for p in packets if p.sequence == sequence), None)
        if packet is None:
            logger.warning(
                "Resend for sequence %d answered with sequence(s) %s",
                sequence,
                [p.sequence for p in packets],
            )
            registry.record_resend("mismatch")
            return None

        registry.record_resend("recovered")
        return packet

    def _give_up(self, sequences: list[int], reason: str) -> None:
        if not sequences:
            return
        self.permanently_missing.extend(sequences)
        registry.record_permanently_missing(reason, len(sequences))
        logger.error(
            "Sequences permanently missing (%s): %s",
            reason,
            sequences,
            extra={"reason": reason, "count": len(sequences)},
        )

    def persist(self) -> Path:
        """Write the sorted packet collection to the output path."""
        self._transition(RunState.PERSISTING)
        return self.sink(self.store.sorted_by_sequence(), self.output_path)
