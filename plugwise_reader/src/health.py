"""
Health file writer for the reader daemon.

Writes a JSON health file at a configurable path with four fields:
- last_tick_ts: ISO timestamp of the most recent collection tick.
- last_write_ts: ISO timestamp of the most recent point stored in InfluxDB.
- consecutive_failures: Number of ticks in a row that were abandoned.
- last_error_stage: Stage (fetch / extract / write) the most recent abandoned
  tick failed at; cleared by the next stored point.

The file is rewritten after every tick, providing a simple liveness signal
that a Docker HEALTHCHECK or monitoring can inspect. A gateway outage shows
up as a growing failure count with ``last_error_stage == "fetch"``, while an
unreachable InfluxDB shows ``"write"``.

CHANGELOG:
- 2026-10-19: Record the stage of the last abandoned tick
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from plugwise_reader.src.errors import Stage


class HealthWriter:
    """Writes collection health status to a JSON file.

    Each record call updates the in-memory state and immediately rewrites
    the health file so it always reflects the latest tick.

    Args:
        path: Filesystem path for the health JSON file. Accepts str or Path.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._last_tick_ts: str | None = None
        self._last_write_ts: str | None = None
        self._consecutive_failures: int = 0
        self._last_error_stage: Stage | None = None

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def last_error_stage(self) -> Stage | None:
        return self._last_error_stage

    def record_stored(self) -> None:
        """Record a tick whose point was accepted by InfluxDB."""
        now = datetime.now(tz=UTC).isoformat()
        self._last_tick_ts = now
        self._last_write_ts = now
        self._consecutive_failures = 0
        self._last_error_stage = None
        self._write()

    def record_abandoned(self, stage: Stage) -> None:
        """Record a tick abandoned at ``stage``; the last write time is kept."""
        self._last_tick_ts = datetime.now(tz=UTC).isoformat()
        self._consecutive_failures += 1
        self._last_error_stage = stage
        self._write()

    def _write(self) -> None:
        data = {
            "last_tick_ts": self._last_tick_ts,
            "last_write_ts": self._last_write_ts,
            "consecutive_failures": self._consecutive_failures,
            "last_error_stage": (
                str(self._last_error_stage) if self._last_error_stage else None
            ),
        }
        self.path.write_text(json.dumps(data))
