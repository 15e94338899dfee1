"""Tests for environment-driven Settings."""

from services.forecast.config import Settings


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.weather_api_base_url == "https://api.weather.gov"
        assert settings.weather_api_timeout_s == 8.0
        assert settings.forecast_sliding_ttl_s == 5
        assert settings.forecast_max_ttl_s == 30

    def test_ttls_from_environment(self, monkeypatch):
        monkeypatch.setenv("FORECAST_SLIDING_TTL_S", "10")
        monkeypatch.setenv("FORECAST_MAX_TTL_S", "120")
        settings = Settings(_env_file=None)
        assert settings.forecast_sliding_ttl_s == 10
        assert settings.forecast_max_ttl_s == 120

    def test_only_consumed_fields_declared(self):
        assert "debug" not in Settings.model_fields
