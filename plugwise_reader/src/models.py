"""
Pydantic models shared by the reader pipeline.

Defines the immutable gateway credentials and sink configuration built once
at startup, and the Reading produced by each collection cycle.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

DEFAULT_DATABASE = "energy"
DEFAULT_RETENTION_POLICY = "autogen"
DEFAULT_MEASUREMENT = "smartmeter"


class GatewayCredentials(BaseModel):
    """Address and static credential pair of the Plugwise gateway.

    Attributes:
        address: Gateway host, optionally with ``:port``.
        username: HTTP Basic auth username.
        password: HTTP Basic auth password.
    """

    model_config = ConfigDict(frozen=True)

    address: str
    username: str
    password: str


class SinkConfig(BaseModel):
    """Connection and target settings for the InfluxDB 1.x store.

    Basic auth is used only when both ``username`` and ``password`` are set.

    Attributes:
        url: Base URL of the InfluxDB HTTP API, e.g. ``http://influx:8086``.
        username: Optional store username.
        password: Optional store password.
        database: Target database.
        retention_policy: Target retention policy within ``database``.
        measurement: Measurement the points are written to.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    username: str | None = None
    password: str | None = None
    database: str = DEFAULT_DATABASE
    retention_policy: str = DEFAULT_RETENTION_POLICY
    measurement: str = DEFAULT_MEASUREMENT

    @property
    def has_credentials(self) -> bool:
        return self.username is not None and self.password is not None


class Reading(BaseModel):
    """One fully populated set of meter values from a single cycle.

    Attributes:
        electricity_consumed: Current electricity consumption.
        electricity_produced: Current electricity production.
        gas_consumed_cumulative: Cumulative gas meter value.
        timestamp: UTC instant of extraction, millisecond resolution.
    """

    model_config = ConfigDict(frozen=True)

    electricity_consumed: float
    electricity_produced: float
    gas_consumed_cumulative: float
    timestamp: datetime

    @property
    def timestamp_ms(self) -> int:
        """Timestamp as integer milliseconds since the Unix epoch."""
        return round(self.timestamp.timestamp() * 1000)
