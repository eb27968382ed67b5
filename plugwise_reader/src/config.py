"""
Reader daemon configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
All configuration values come from environment variables or .env files;
no hardcoded addresses, URLs, or credentials.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

import httpx
from plugwise_reader.src.models import (
    DEFAULT_DATABASE,
    DEFAULT_MEASUREMENT,
    DEFAULT_RETENTION_POLICY,
    GatewayCredentials,
    SinkConfig,
)
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings


class ReaderSettings(BaseSettings):
    """Reader daemon configuration for the Plugwise-to-InfluxDB pipeline.

    All values are loaded from environment variables. Required variables
    must be set; optional variables have sensible defaults.

    Attributes:
        plugwise_ip: Gateway IP address / hostname on the local LAN.
        plugwise_username: Gateway username (Smile gateways use ``smile``).
        plugwise_password: Gateway password (the Smile ID).
        influx_url: InfluxDB HTTP API base URL (http:// or https://).
        influx_username: Optional InfluxDB username.
        influx_password: Optional InfluxDB password.
        influx_database: Target database (default ``energy``).
        influx_retention_policy: Target retention policy (default ``autogen``).
        influx_measurement: Target measurement (default ``smartmeter``).
        poll_interval_s: Seconds between collection ticks (default 20).
        fetch_timeout_s: Timeout for the gateway request in seconds.
        write_timeout_s: Timeout for the InfluxDB write in seconds.
        health_path: Optional path of the JSON health file.
        log_level: Root log level name.
    """

    plugwise_ip: str
    plugwise_username: str = "smile"
    plugwise_password: str
    influx_url: str
    influx_username: str | None = None
    influx_password: str | None = None
    influx_database: str = DEFAULT_DATABASE
    influx_retention_policy: str = DEFAULT_RETENTION_POLICY
    influx_measurement: str = DEFAULT_MEASUREMENT
    poll_interval_s: float = 20.0
    fetch_timeout_s: float = 10.0
    write_timeout_s: float = 10.0
    health_path: str | None = None
    log_level: str = "INFO"

    @field_validator("influx_url")
    @classmethod
    def influx_url_must_be_http(cls, v: str) -> str:
        """Validate that the InfluxDB URL uses http:// or https://."""
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError(
                f"INFLUX_URL must start with http:// or https:// (got: '{v[:30]}')"
            )
        return v.rstrip("/")

    @field_validator("plugwise_ip")
    @classmethod
    def plugwise_ip_must_be_bare_address(cls, v: str) -> str:
        """Validate that the gateway address is a usable host[:port], not a URL."""
        v = v.strip()
        if not v:
            raise ValueError("PLUGWISE_IP must not be empty")
        if "://" in v or "/" in v:
            raise ValueError(
                "PLUGWISE_IP must be a host or host:port, not a URL "
                f"(got: '{v[:30]}')"
            )
        if any(ch.isspace() for ch in v):
            raise ValueError(
                f"PLUGWISE_IP must not contain whitespace (got: '{v[:30]}')"
            )
        try:
            httpx.URL(f"http://{v}/")
        except httpx.InvalidURL as exc:
            raise ValueError(f"PLUGWISE_IP is not a valid host[:port]: {exc}") from exc
        return v

    @field_validator("poll_interval_s", "fetch_timeout_s", "write_timeout_s")
    @classmethod
    def durations_must_be_positive(cls, v: float) -> float:
        """Validate that intervals and timeouts are strictly positive."""
        if v <= 0:
            raise ValueError("intervals and timeouts must be > 0 seconds")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Validate the log level against the standard level names."""
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL must be a standard level name (got: '{v}')")
        return level

    @model_validator(mode="after")
    def _blank_influx_credentials_are_unset(self) -> "ReaderSettings":
        """Treat empty INFLUX_USERNAME / INFLUX_PASSWORD values as unset."""
        if not self.influx_username:
            self.influx_username = None
        if not self.influx_password:
            self.influx_password = None
        return self

    def gateway_credentials(self) -> GatewayCredentials:
        """Build the immutable gateway credentials."""
        return GatewayCredentials(
            address=self.plugwise_ip,
            username=self.plugwise_username,
            password=self.plugwise_password,
        )

    def sink_config(self) -> SinkConfig:
        """Build the immutable InfluxDB sink configuration."""
        return SinkConfig(
            url=self.influx_url,
            username=self.influx_username,
            password=self.influx_password,
            database=self.influx_database,
            retention_policy=self.influx_retention_policy,
            measurement=self.influx_measurement,
        )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
