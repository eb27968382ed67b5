"""
Shared test fixtures for reader daemon tests.

Provides environment variable fixtures for ReaderSettings configuration tests.
All reader env vars are cleaned before each test to ensure isolation.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import pytest

# All ReaderSettings environment variable names, used for cleanup.
_ALL_READER_ENV_VARS = (
    "PLUGWISE_IP",
    "PLUGWISE_USERNAME",
    "PLUGWISE_PASSWORD",
    "INFLUX_URL",
    "INFLUX_USERNAME",
    "INFLUX_PASSWORD",
    "INFLUX_DATABASE",
    "INFLUX_RETENTION_POLICY",
    "INFLUX_MEASUREMENT",
    "POLL_INTERVAL_S",
    "FETCH_TIMEOUT_S",
    "WRITE_TIMEOUT_S",
    "HEALTH_PATH",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_reader_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all reader env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_READER_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set all required and optional environment variables for ReaderSettings.

    Returns the dict of env var names to values for assertion convenience.
    """
    env = {
        "PLUGWISE_IP": "192.168.1.50",
        "PLUGWISE_USERNAME": "smile",
        "PLUGWISE_PASSWORD": "abcdefgh",
        "INFLUX_URL": "http://influx.local:8086",
        "INFLUX_USERNAME": "writer",
        "INFLUX_PASSWORD": "influx-secret",
        "INFLUX_DATABASE": "home",
        "INFLUX_RETENTION_POLICY": "one_year",
        "INFLUX_MEASUREMENT": "p1",
        "POLL_INTERVAL_S": "30",
        "FETCH_TIMEOUT_S": "5",
        "WRITE_TIMEOUT_S": "7",
        "HEALTH_PATH": "/tmp/reader-health.json",
        "LOG_LEVEL": "debug",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def env_vars_required_only(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set only the required environment variables (no optional ones).

    Optional variables should fall back to their defaults.
    """
    env = {
        "PLUGWISE_IP": "10.0.0.20",
        "PLUGWISE_PASSWORD": "smileid1",
        "INFLUX_URL": "http://localhost:8086",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env
