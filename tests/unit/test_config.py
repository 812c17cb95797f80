"""Test AnalyticsSettings loading and validation."""

from pathlib import Path

import pytest

from journal_analytics.core.config import AnalyticsSettings, load_settings
from journal_analytics.core.errors import ConfigError

DEFAULT_TOML = Path(__file__).resolve().parents[2] / "configs" / "default.toml"


class TestDefaults:
    def test_default_settings(self):
        settings = AnalyticsSettings()
        assert settings.sort_chronologically is True
        assert settings.advanced.risk_free_rate == 0.02
        assert settings.kelly.max_kelly_fraction == 0.25
        assert settings.kelly.account_sizes == [1000, 5000, 10000, 25000, 50000, 100000]
        assert settings.compliance.high_compliance_threshold == 0.7

    def test_shipped_file_matches_defaults(self):
        assert load_settings(DEFAULT_TOML).model_dump() == AnalyticsSettings().model_dump()


class TestLoadSettings:
    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "absent.toml")
        assert settings.setups.top_n == 3

    def test_file_values(self, tmp_path):
        path = tmp_path / "analytics.toml"
        path.write_text("sort_chronologically = false\n[kelly]\nmax_risk_percent = 2.5\n")
        settings = load_settings(path)
        assert settings.sort_chronologically is False
        assert settings.kelly.max_risk_percent == 2.5
        assert settings.kelly.min_risk_percent == 0.5

    def test_overrides_win(self, tmp_path):
        path = tmp_path / "analytics.toml"
        path.write_text("[patterns]\ntop_n = 3\n")
        settings = load_settings(path, overrides={"patterns": {"top_n": 7}})
        assert settings.patterns.top_n == 7

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("[kelly\n")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_settings(path)

    def test_invalid_value(self):
        with pytest.raises(ConfigError, match="Invalid analytics settings"):
            load_settings(overrides={"compliance": {"high_compliance_threshold": 2}})


class TestEnvironment:
    def test_nested_env_override(self, monkeypatch):
        monkeypatch.setenv("JOURNAL_ANALYTICS_KELLY__MAX_RISK_PERCENT", "3")
        assert AnalyticsSettings().kelly.max_risk_percent == 3.0

    def test_top_level_env_override(self, monkeypatch):
        monkeypatch.setenv("JOURNAL_ANALYTICS_SORT_CHRONOLOGICALLY", "false")
        assert AnalyticsSettings().sort_chronologically is False
