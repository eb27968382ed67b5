"""
InfluxDB 1.x writer for meter Readings.

Encodes each Reading as a single line-protocol point and POSTs it to the
InfluxDB ``/write`` endpoint for the configured database and retention
policy with millisecond precision. One ``httpx.AsyncClient`` is created at
construction and reused for every write; it carries HTTP Basic auth when both
store username and password are configured and is anonymous otherwise.

Operations:
- write(reading): Encode and POST one point, raise WriteError on failure.
- aclose(): Release the HTTP client.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from plugwise_reader.src.errors import WriteError

if TYPE_CHECKING:
    from plugwise_reader.src.models import Reading, SinkConfig

logger = logging.getLogger(__name__)

DEFAULT_WRITE_TIMEOUT_S: float = 10.0
"""Timeout for one InfluxDB write request in seconds."""

FIELD_KEYS: dict[str, str] = {
    "electricity_consumed": "electricityConsumed",
    "electricity_produced": "electricityProduced",
    "gas_consumed_cumulative": "gasConsumedCumulative",
}
"""Maps Reading attribute -> InfluxDB field key, in write order."""


# ---------------------------------------------------------------------------
# Line protocol encoding
# ---------------------------------------------------------------------------


def _escape_measurement(name: str) -> str:
    return name.replace("\\", "\\\\").replace(",", "\\,").replace(" ", "\\ ")


def _escape_field_key(key: str) -> str:
    return (
        key.replace("\\", "\\\\")
        .replace(",", "\\,")
        .replace("=", "\\=")
        .replace(" ", "\\ ")
    )


def build_point(measurement: str, reading: Reading) -> str:
    """Encode a Reading as one InfluxDB line-protocol point.

    Fields are written as floats (``repr`` keeps full precision and always
    includes a decimal point or exponent) with a millisecond timestamp.

    Args:
        measurement: Target measurement name.
        reading: The Reading to encode.

    Returns:
        A single line without trailing newline, e.g.
        ``smartmeter electricityConsumed=1234.5,... 1760870400000``.
    """
    fields = ",".join(
        f"{_escape_field_key(key)}={float(getattr(reading, attr))!r}"
        for attr, key in FIELD_KEYS.items()
    )
    return f"{_escape_measurement(measurement)} {fields} {reading.timestamp_ms}"


# ---------------------------------------------------------------------------
# Sink
# ---------------------------------------------------------------------------


class MetricSink:
    """Writes Readings to InfluxDB over its 1.x HTTP API.

    The client is owned by the sink and shared by all ticks; the collector
    calls :meth:`write` from a single serialized task, so no locking is
    needed.

    Args:
        config: Immutable store configuration.
        timeout_s: Per-write timeout in seconds.
        transport: Optional httpx transport, used by tests to stub the store.

    Usage::

        sink = MetricSink(config)
        try:
            await sink.write(reading)
        finally:
            await sink.aclose()
    """

    def __init__(
        self,
        config: SinkConfig,
        *,
        timeout_s: float = DEFAULT_WRITE_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        auth = (
            httpx.BasicAuth(config.username, config.password)
            if config.has_credentials
            else None
        )
        self._client = httpx.AsyncClient(
            base_url=config.url,
            auth=auth,
            timeout=timeout_s,
            transport=transport,
        )
        self._params = {
            "db": config.database,
            "rp": config.retention_policy,
            "precision": "ms",
        }

    @property
    def config(self) -> SinkConfig:
        return self._config

    async def write(self, reading: Reading) -> None:
        """Write one point for ``reading``.

        Args:
            reading: Fully populated Reading; it is not modified.

        Raises:
            WriteError: If the store answers with a non-2xx status, the
                request fails at the transport level, or the reply cannot
                be decoded.
        """
        line = build_point(self._config.measurement, reading)

        try:
            response = await self._client.post(
                "/write",
                params=self._params,
                content=line.encode("utf-8"),
                headers={"Content-Type": "text/plain; charset=utf-8"},
            )
        except httpx.TimeoutException as exc:
            raise WriteError(
                f"InfluxDB write to {self._config.url} timed out"
            ) from exc
        except httpx.RequestError as exc:
            raise WriteError(
                f"InfluxDB write to {self._config.url} failed: {exc!r}"
            ) from exc

        if not response.is_success:
            raise WriteError(
                f"InfluxDB rejected write (HTTP {response.status_code}): "
                f"{response.text[:200]}",
                status_code=response.status_code,
            )

        logger.info(
            "Wrote point to %s/%s measurement=%s ts=%d",
            self._config.database,
            self._config.retention_policy,
            self._config.measurement,
            reading.timestamp_ms,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
