"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings

from .errors import ConfigError


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class AdvancedConfig(BaseModel):
    risk_free_rate: float = 0.02  # Annual, spread over periods_per_year
    periods_per_year: int = 252


class KellyConfig(BaseModel):
    max_kelly_fraction: float = Field(default=0.25, gt=0, le=1)
    min_risk_percent: float = 0.5
    max_risk_percent: float = 5.0
    account_sizes: list[float] = Field(
        default_factory=lambda: [1000, 5000, 10000, 25000, 50000, 100000]
    )
    conservative_win_rate: float = 0.4
    strong_win_rate: float = 0.6
    low_profit_factor: float = 1.5
    high_profit_factor: float = 3.0
    drawdown_alert_ratio: float = 0.8  # Current DD vs worst DD
    long_recovery_trades: int = 20


class SetupConfig(BaseModel):
    top_n: int = 3
    min_trades: int = 3
    weak_win_rate: float = 0.4


class PsychologyConfig(BaseModel):
    top_n: int = 5
    min_tagged_trades: int = 5


class ComplianceConfig(BaseModel):
    high_compliance_threshold: float = Field(default=0.7, ge=0, le=1)
    min_scored_trades: int = 10
    top_n: int = 5


class PatternConfig(BaseModel):
    min_pattern_trades: int = 2
    top_n: int = 5
    small_sample_threshold: int = 20


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class AnalyticsSettings(BaseSettings):
    """Top-level analytics settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    # Walk trades in date order before ordering-sensitive analytics
    sort_chronologically: bool = True

    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)
    kelly: KellyConfig = Field(default_factory=KellyConfig)
    setups: SetupConfig = Field(default_factory=SetupConfig)
    psychology: PsychologyConfig = Field(default_factory=PsychologyConfig)
    compliance: ComplianceConfig = Field(default_factory=ComplianceConfig)
    patterns: PatternConfig = Field(default_factory=PatternConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "JOURNAL_ANALYTICS_", "env_nested_delimiter": "__"}


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> AnalyticsSettings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.

    Raises:
        ConfigError: the file is unreadable TOML or a value fails validation.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            try:
                with open(path, "rb") as f:
                    data = tomli.load(f)
            except tomli.TOMLDecodeError as exc:
                raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    if overrides:
        data.update(overrides)

    try:
        return AnalyticsSettings(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid analytics settings: {exc}") from exc
