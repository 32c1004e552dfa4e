"""Application configuration management."""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS_PATH = Path(__file__).with_name("thresholds.yaml")


class FatigueFactors(BaseModel):
    """Volume/intensity multipliers applied to future workouts per fatigue level."""

    model_config = ConfigDict(frozen=True)

    volume: float = Field(ge=0, le=1)
    intensity: float = Field(ge=0, le=1)


def _default_fatigue_factors() -> dict[str, FatigueFactors]:
    return {
        "low": FatigueFactors(volume=1.0, intensity=1.0),
        "moderate": FatigueFactors(volume=0.9, intensity=0.95),
        "high": FatigueFactors(volume=0.7, intensity=0.85),
        "severe": FatigueFactors(volume=0.5, intensity=0.7),
    }


class EngineThresholds(BaseModel):
    """Numeric constants used by every engine component.

    Instances are immutable and passed explicitly to constructors so a test
    (or a host application) can run an engine with its own thresholds.
    """

    model_config = ConfigDict(frozen=True)

    # Acute:chronic workload ratio bands
    safe_acwr_lower: float = 0.8
    safe_acwr_upper: float = 1.3
    high_risk_acwr: float = 1.5

    acute_window_days: int = Field(default=7, ge=1)
    chronic_window_days: int = Field(default=28, ge=1)
    threshold_pace: float = Field(default=5.0, gt=0, description="Threshold pace in min/km")

    # Recovery
    min_recovery_score: float = 60
    recovery_base_score: float = 70

    # Fatigue detection
    acute_fatigue_lookback_days: int = 3
    chronic_fatigue_sessions: int = 5
    emerging_fatigue_sessions: int = 3
    overreaching_tss_threshold: float = 150
    overload_detection_days: int = 2
    severe_overload_days: int = 3
    fatigue_factors: dict[str, FatigueFactors] = Field(default_factory=_default_fatigue_factors)

    # Risk projection
    default_planned_tss: float = 50
    projected_acwr_divisor: float = Field(default=350, gt=0)

    # Adherence
    min_adherence_rate: float = 0.7

    # Calendar: 0 = Monday ... 6 = Sunday
    week_start_day: int = Field(default=0, ge=0, le=6)

    @field_validator("fatigue_factors")
    @classmethod
    def require_all_fatigue_levels(
        cls, value: dict[str, FatigueFactors]
    ) -> dict[str, FatigueFactors]:
        merged = {**_default_fatigue_factors(), **value}
        unknown = set(merged) - {"low", "moderate", "high", "severe"}
        if unknown:
            raise ValueError(f"Unknown fatigue levels: {', '.join(sorted(unknown))}")
        return merged


def load_thresholds(path: Path | str | None = None) -> EngineThresholds:
    """Load engine thresholds from the ``thresholds`` section of a YAML file.

    Falls back to the built-in defaults when the file or section is missing.
    """
    config_path = Path(path) if path else DEFAULT_THRESHOLDS_PATH

    if not config_path.exists():
        logger.warning("Thresholds file %s not found - using defaults", config_path)
        return EngineThresholds()

    with config_path.open("r", encoding="utf-8") as f:
        full_config: dict[str, Any] = yaml.safe_load(f) or {}

    section = full_config.get("thresholds", {})
    if not section:
        logger.warning("No thresholds section found in %s - using defaults", config_path)
        return EngineThresholds()

    return EngineThresholds.model_validate(section)


class Settings(BaseSettings):
    """Centralised application settings derived from environment variables."""

    app_host: str = Field(default="0.0.0.0")
    app_port: int = Field(default=8000, ge=1, le=65535)

    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("logs"))
    log_max_bytes: int = Field(
        default=5_000_000,
        ge=0,
        description="Rotate the engine log at this size; 0 disables rotation.",
    )
    log_backup_count: int = Field(default=3, ge=0)
    thresholds_path: Path = Field(
        default=DEFAULT_THRESHOLDS_PATH,
        description="YAML file holding the engine thresholds.",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        valid = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        upper = value.upper()
        if upper not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(sorted(valid))}")
        return upper


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance so it can be reused across the app."""

    settings = Settings()
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    return settings


@lru_cache()
def get_thresholds() -> EngineThresholds:
    """Return the thresholds configured for this process."""

    return load_thresholds(get_settings().thresholds_path)
