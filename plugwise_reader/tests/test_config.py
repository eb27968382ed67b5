"""
Unit tests for reader daemon configuration (ReaderSettings).

Tests verify:
- Config loads from environment variables with correct defaults.
- Config validation rejects missing required variables.
- INFLUX_URL must be http(s); PLUGWISE_IP must be a bare address.
- Intervals and timeouts must be positive.
- Settings build immutable GatewayCredentials and SinkConfig.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

import pytest
from plugwise_reader.src.config import ReaderSettings
from pydantic import ValidationError


class TestReaderSettingsLoadsFromEnv:
    """Config loads all values from environment variables."""

    def test_loads_all_env_vars(self, env_vars_full: dict[str, str]) -> None:
        """All env vars are read and assigned correctly."""
        settings = ReaderSettings()

        assert settings.plugwise_ip == env_vars_full["PLUGWISE_IP"]
        assert settings.plugwise_username == env_vars_full["PLUGWISE_USERNAME"]
        assert settings.plugwise_password == env_vars_full["PLUGWISE_PASSWORD"]
        assert settings.influx_url == env_vars_full["INFLUX_URL"]
        assert settings.influx_username == env_vars_full["INFLUX_USERNAME"]
        assert settings.influx_password == env_vars_full["INFLUX_PASSWORD"]
        assert settings.influx_database == "home"
        assert settings.influx_retention_policy == "one_year"
        assert settings.influx_measurement == "p1"
        assert settings.poll_interval_s == 30.0
        assert settings.fetch_timeout_s == 5.0
        assert settings.write_timeout_s == 7.0
        assert settings.health_path == "/tmp/reader-health.json"
        assert settings.log_level == "DEBUG"

    def test_defaults_applied_when_optional_vars_missing(
        self, env_vars_required_only: dict[str, str]
    ) -> None:
        """Optional variables use default values when not set."""
        settings = ReaderSettings()

        assert settings.plugwise_username == "smile"
        assert settings.influx_username is None
        assert settings.influx_password is None
        assert settings.influx_database == "energy"
        assert settings.influx_retention_policy == "autogen"
        assert settings.influx_measurement == "smartmeter"
        assert settings.poll_interval_s == 20.0
        assert settings.fetch_timeout_s == 10.0
        assert settings.write_timeout_s == 10.0
        assert settings.health_path is None
        assert settings.log_level == "INFO"

    def test_lowercase_env_names_accepted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Env var names are matched case-insensitively."""
        monkeypatch.setenv("plugwise_ip", "192.168.1.9")
        monkeypatch.setenv("plugwise_password", "pw")
        monkeypatch.setenv("influx_url", "http://db:8086")

        settings = ReaderSettings()

        assert settings.plugwise_ip == "192.168.1.9"


class TestReaderSettingsRequiredVars:
    """Config validation rejects missing required variables."""

    def test_missing_plugwise_ip_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PLUGWISE_PASSWORD", "pw")
        monkeypatch.setenv("INFLUX_URL", "http://db:8086")

        with pytest.raises(ValidationError) as exc_info:
            ReaderSettings()
        assert "plugwise_ip" in str(exc_info.value).lower()

    def test_missing_plugwise_password_raises(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PLUGWISE_IP", "192.168.1.9")
        monkeypatch.setenv("INFLUX_URL", "http://db:8086")

        with pytest.raises(ValidationError) as exc_info:
            ReaderSettings()
        assert "plugwise_password" in str(exc_info.value).lower()

    def test_missing_influx_url_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PLUGWISE_IP", "192.168.1.9")
        monkeypatch.setenv("PLUGWISE_PASSWORD", "pw")

        with pytest.raises(ValidationError) as exc_info:
            ReaderSettings()
        assert "influx_url" in str(exc_info.value).lower()


class TestReaderSettingsValidation:
    """Field validators reject bad values at startup."""

    def test_influx_url_without_scheme_rejected(
        self, env_vars_required_only: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("INFLUX_URL", "influx.local:8086")

        with pytest.raises(ValidationError, match="INFLUX_URL"):
            ReaderSettings()

    def test_influx_url_trailing_slash_stripped(
        self, env_vars_required_only: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("INFLUX_URL", "https://influx.example.com/")

        assert ReaderSettings().influx_url == "https://influx.example.com"

    def test_plugwise_ip_as_url_rejected(
        self, env_vars_required_only: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PLUGWISE_IP", "http://192.168.1.9/core/modules")

        with pytest.raises(ValidationError, match="PLUGWISE_IP"):
            ReaderSettings()

    @pytest.mark.parametrize("address", ["gw:abc", "gw host", "192.168.1.9:80a"])
    def test_plugwise_ip_unusable_in_url_rejected(
        self,
        env_vars_required_only: dict[str, str],
        monkeypatch: pytest.MonkeyPatch,
        address: str,
    ) -> None:
        """Addresses httpx cannot build a request URL from fail at startup."""
        monkeypatch.setenv("PLUGWISE_IP", address)

        with pytest.raises(ValidationError, match="PLUGWISE_IP"):
            ReaderSettings()

    def test_plugwise_ip_with_port_accepted(
        self, env_vars_required_only: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PLUGWISE_IP", "192.168.1.9:8080")

        assert ReaderSettings().plugwise_ip == "192.168.1.9:8080"

    @pytest.mark.parametrize(
        "var", ["POLL_INTERVAL_S", "FETCH_TIMEOUT_S", "WRITE_TIMEOUT_S"]
    )
    def test_non_positive_durations_rejected(
        self,
        var: str,
        env_vars_required_only: dict[str, str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv(var, "0")

        with pytest.raises(ValidationError):
            ReaderSettings()

    def test_unknown_log_level_rejected(
        self, env_vars_required_only: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("LOG_LEVEL", "chatty")

        with pytest.raises(ValidationError, match="LOG_LEVEL"):
            ReaderSettings()

    def test_blank_influx_credentials_treated_as_unset(
        self, env_vars_required_only: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("INFLUX_USERNAME", "")
        monkeypatch.setenv("INFLUX_PASSWORD", "")

        settings = ReaderSettings()

        assert settings.influx_username is None
        assert settings.influx_password is None


class TestReaderSettingsBuildsModels:
    """Settings produce the immutable models used by the pipeline."""

    def test_gateway_credentials(self, env_vars_full: dict[str, str]) -> None:
        credentials = ReaderSettings().gateway_credentials()

        assert credentials.address == "192.168.1.50"
        assert credentials.username == "smile"
        assert credentials.password == "abcdefgh"

    def test_sink_config(self, env_vars_full: dict[str, str]) -> None:
        config = ReaderSettings().sink_config()

        assert config.url == "http://influx.local:8086"
        assert config.database == "home"
        assert config.retention_policy == "one_year"
        assert config.measurement == "p1"
        assert config.has_credentials is True

    def test_sink_config_anonymous_by_default(
        self, env_vars_required_only: dict[str, str]
    ) -> None:
        config = ReaderSettings().sink_config()

        assert config.has_credentials is False
        assert config.database == "energy"
        assert config.retention_policy == "autogen"
        assert config.measurement == "smartmeter"

    def test_models_are_immutable(self, env_vars_required_only: dict[str, str]) -> None:
        settings = ReaderSettings()
        credentials = settings.gateway_credentials()
        config = settings.sink_config()

        with pytest.raises(ValidationError):
            credentials.password = "changed"  # type: ignore[misc]
        with pytest.raises(ValidationError):
            config.database = "other"  # type: ignore[misc]
