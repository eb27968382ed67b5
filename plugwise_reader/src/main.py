"""
Reader daemon entrypoint for the Plugwise-to-InfluxDB pipeline.

Loads settings, builds the DeviceClient, ReadingExtractor, MetricSink and
Collector, and runs the fixed-rate collection schedule until SIGTERM/SIGINT.
A defect escaping a tick stops the schedule through the same path and the
process exits with status 1.

Structured JSON logging is used for all events.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import signal
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from plugwise_reader.src.client import DeviceClient
from plugwise_reader.src.collector import Collector
from plugwise_reader.src.extractor import ReadingExtractor
from plugwise_reader.src.health import HealthWriter
from plugwise_reader.src.sink import MetricSink

if TYPE_CHECKING:
    from plugwise_reader.src.config import ReaderSettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter.

    Adds the pipeline ``stage`` when the record carries one.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        stage = getattr(record, "stage", None)
        if stage is not None:
            log_entry["stage"] = stage
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging for the reader daemon.

    Sets up the root logger with a JSON-formatted handler writing to stderr.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def _masked_secret(value: str | None) -> str:
    """Return a short non-reversible fingerprint for diagnostics."""
    if not value:
        return "empty"
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:10]
    return f"len={len(value)} sha256={digest}"


# ---------------------------------------------------------------------------
# Startup config logging
# ---------------------------------------------------------------------------


def log_config_summary(settings: ReaderSettings) -> None:
    """Log a config summary at startup, masking both passwords."""
    logger.info(
        "Reader starting with config: "
        "plugwise_ip=%s, plugwise_username=%s, plugwise_password_masked=%s, "
        "influx_url=%s, influx_username=%s, influx_password_masked=%s, "
        "influx_database=%s, influx_retention_policy=%s, influx_measurement=%s, "
        "poll_interval_s=%s, fetch_timeout_s=%s, write_timeout_s=%s, "
        "health_path=%s",
        settings.plugwise_ip,
        settings.plugwise_username,
        _masked_secret(settings.plugwise_password),
        settings.influx_url,
        settings.influx_username,
        _masked_secret(settings.influx_password),
        settings.influx_database,
        settings.influx_retention_policy,
        settings.influx_measurement,
        settings.poll_interval_s,
        settings.fetch_timeout_s,
        settings.write_timeout_s,
        settings.health_path,
    )
    if (settings.influx_username is None) != (settings.influx_password is None):
        logger.warning(
            "Only one of INFLUX_USERNAME / INFLUX_PASSWORD is set, "
            "writing to InfluxDB anonymously"
        )


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


def build_collector(settings: ReaderSettings, sink: MetricSink) -> Collector:
    """Build the collector and its gateway-side components from settings."""
    health = HealthWriter(settings.health_path) if settings.health_path else None
    return Collector(
        client=DeviceClient(timeout_s=settings.fetch_timeout_s),
        extractor=ReadingExtractor(),
        sink=sink,
        credentials=settings.gateway_credentials(),
        interval_s=settings.poll_interval_s,
        health=health,
    )


async def run(settings: ReaderSettings) -> int:
    """Run the collector until shutdown.

    Installs SIGTERM/SIGINT handlers that stop the schedule, and always
    closes the InfluxDB client on the way out.

    Returns:
        Process exit status: 0 after a clean stop, 1 after a defect.
    """
    sink = MetricSink(settings.sink_config(), timeout_s=settings.write_timeout_s)
    collector = build_collector(settings, sink)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, lambda: _handle_signal(collector))

    try:
        await collector.run()
    finally:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)
        await sink.aclose()

    if collector.fatal_error is not None:
        logger.error("Reader exiting after an unexpected error")
        return 1
    logger.info("Shutdown complete")
    return 0


def _handle_signal(collector: Collector) -> None:
    """Handle SIGTERM/SIGINT by stopping the collector."""
    logger.info("Received shutdown signal, shutting down reader")
    collector.stop()


async def async_main() -> int:
    """Async entrypoint: load config, configure logging, run."""
    from plugwise_reader.src.config import ReaderSettings

    settings = ReaderSettings()
    configure_logging(settings.log_level)
    log_config_summary(settings)
    return await run(settings)


def main() -> None:
    """Synchronous entrypoint for the reader daemon."""
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
