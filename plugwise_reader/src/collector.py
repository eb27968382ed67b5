"""
Fixed-rate collection schedule for the Plugwise reader.

Each tick runs the pipeline fetch -> extract -> write sequentially:

1. **Fetch**: DeviceClient GETs ``/core/modules`` from the gateway.
2. **Extract**: ReadingExtractor turns the XML body into a Reading.
3. **Write**: MetricSink writes the Reading as one InfluxDB point.

Ticks are due at ``start + n * interval`` with the first tick immediate. A
tick that overruns one or more boundaries causes the missed ticks to be
skipped, never run concurrently.

Failure isolation: a :class:`~plugwise_reader.src.errors.CycleError` raised by
any stage is logged with its stage and the tick is abandoned; the schedule is
unaffected. Any other exception escaping a tick is treated as a defect: it is
logged, stored on :attr:`Collector.fatal_error`, and the schedule stops.

Stopping sets a shared asyncio.Event. An in-flight tick is allowed to finish;
no new tick starts afterwards.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
from enum import StrEnum
from typing import TYPE_CHECKING

from plugwise_reader.src.errors import CycleError, Stage

if TYPE_CHECKING:
    from plugwise_reader.src.client import DeviceClient
    from plugwise_reader.src.extractor import ReadingExtractor
    from plugwise_reader.src.health import HealthWriter
    from plugwise_reader.src.models import GatewayCredentials, Reading
    from plugwise_reader.src.sink import MetricSink

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_S: float = 20.0
"""Seconds between collection ticks."""


class CollectorState(StrEnum):
    """Lifecycle state of a Collector."""

    IDLE = "idle"
    RUNNING = "running"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    WRITING = "writing"
    STOPPED = "stopped"


def next_tick_due(previous_due: float, now: float, interval_s: float) -> tuple[float, int]:
    """Compute the next fixed-rate boundary after a tick finished.

    Args:
        previous_due: Loop time the finished tick was due at.
        now: Current loop time.
        interval_s: Schedule period.

    Returns:
        ``(due, skipped)``: the next boundary not already in the past and
        the number of boundaries skipped because the tick overran them.
    """
    due = previous_due + interval_s
    if now <= due:
        return due, 0
    skipped = math.floor((now - due) / interval_s) + 1
    return due + skipped * interval_s, skipped


class Collector:
    """Owns the schedule and runs the three-stage pipeline on every tick.

    Args:
        client: Gateway HTTP client.
        extractor: Turns the gateway body into a Reading.
        sink: InfluxDB writer.
        credentials: Gateway address and credential pair, passed to every
            fetch.
        interval_s: Schedule period in seconds (default 20).
        health: Optional HealthWriter updated after every tick.
    """

    def __init__(
        self,
        *,
        client: DeviceClient,
        extractor: ReadingExtractor,
        sink: MetricSink,
        credentials: GatewayCredentials,
        interval_s: float = DEFAULT_INTERVAL_S,
        health: HealthWriter | None = None,
    ) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self._client = client
        self._extractor = extractor
        self._sink = sink
        self._credentials = credentials
        self._interval_s = interval_s
        self._health = health
        self._stop_event = asyncio.Event()
        self._tick_lock = asyncio.Lock()
        self._scheduled = False
        self._state = CollectorState.IDLE
        self.fatal_error: Exception | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> CollectorState:
        return self._state

    @property
    def interval_s(self) -> float:
        return self._interval_s

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Request the schedule to stop.

        Safe to call from a signal handler and more than once. A tick that
        is in flight runs to completion.
        """
        if not self._stop_event.is_set():
            logger.info("Stop requested, no new collection ticks will start")
        self._stop_event.set()
        if self._state in (CollectorState.IDLE, CollectorState.RUNNING):
            self._state = CollectorState.STOPPED

    async def run(self) -> None:
        """Run the fixed-rate schedule until :meth:`stop` or a defect.

        Raises:
            RuntimeError: If the collector was already started.
        """
        if self._stop_event.is_set():
            logger.info("Collector stopped before the schedule started")
            self._state = CollectorState.STOPPED
            return
        if self._scheduled or self._state is not CollectorState.IDLE:
            raise RuntimeError("Collector schedule can only be started once")

        loop = asyncio.get_running_loop()
        self._scheduled = True
        self._state = CollectorState.RUNNING
        logger.info("Collector started (interval=%ss)", self._interval_s)

        due = loop.time()
        try:
            while not self._stop_event.is_set():
                await self.run_tick()

                due, skipped = next_tick_due(due, loop.time(), self._interval_s)
                if skipped:
                    logger.warning(
                        "Collection tick overran the %ss interval, skipped %d tick(s)",
                        self._interval_s,
                        skipped,
                    )
                # Wait for the next boundary, waking early on stop.
                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(
                        self._stop_event.wait(),
                        timeout=max(0.0, due - loop.time()),
                    )
        except Exception as exc:
            self.fatal_error = exc
            logger.critical(
                "Unexpected error in collection tick, stopping collector",
                exc_info=True,
            )
            self._stop_event.set()
        finally:
            self._scheduled = False
            self._state = CollectorState.STOPPED
            logger.info("Collector stopped")

    async def run_tick(self) -> Reading | None:
        """Execute one fetch -> extract -> write cycle.

        Cycle errors are logged and swallowed here; any other exception
        propagates to the caller.

        Returns:
            The Reading that was written, or ``None`` if the tick was
            abandoned or skipped.
        """
        if self._tick_lock.locked():
            logger.warning("Collection tick still in flight, skipping this tick")
            return None

        async with self._tick_lock:
            try:
                reading = await self._run_pipeline()
            except CycleError as exc:
                logger.warning(
                    "Collection cycle abandoned at %s stage: %s",
                    exc.stage,
                    exc,
                    extra={"stage": str(exc.stage)},
                )
                self._record_health(exc.stage)
                return None
            finally:
                self._state = self._resting_state()

        self._record_health(None)
        return reading

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _run_pipeline(self) -> Reading:
        self._state = CollectorState.FETCHING
        body = await self._client.fetch(self._credentials)

        self._state = CollectorState.EXTRACTING
        reading = self._extractor.extract(body)

        self._state = CollectorState.WRITING
        await self._sink.write(reading)
        return reading

    def _resting_state(self) -> CollectorState:
        if self._stop_event.is_set():
            return CollectorState.STOPPED
        if self._scheduled:
            return CollectorState.RUNNING
        return CollectorState.IDLE

    def _record_health(self, failed_stage: Stage | None) -> None:
        if self._health is None:
            return
        try:
            if failed_stage is None:
                self._health.record_stored()
            else:
                self._health.record_abandoned(failed_stage)
        except OSError:
            logger.warning("Failed to write health file", exc_info=True)
