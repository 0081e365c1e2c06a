"""Pydantic settings loaded from YAML configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, SecretStr, field_validator, model_validator

from serverhealth.core.types import MetricName

APP_NAME = "serverhealth"

_settings: Settings | None = None


def default_config_path() -> Path:
    """Return ``$XDG_CONFIG_HOME/serverhealth/config.yaml`` (or ~/.config)."""
    base = os.environ.get("XDG_CONFIG_HOME")
    config_dir = Path(base) if base else Path.home() / ".config"
    return config_dir / APP_NAME / "config.yaml"


class MonitoringConfig(BaseModel):
    """Threshold and rate-limit settings for one metric."""

    enabled: bool = True
    threshold: int = 80
    check_interval_secs: float = 60.0
    max_daily_alerts: int = 5

    @field_validator("threshold")
    @classmethod
    def _threshold_in_range(cls, v: int) -> int:
        if not 1 <= v <= 100:
            raise ValueError("threshold must be between 1 and 100")
        return v

    @field_validator("check_interval_secs")
    @classmethod
    def _interval_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("check_interval_secs must be positive")
        return v

    @field_validator("max_daily_alerts")
    @classmethod
    def _max_alerts_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_daily_alerts must be at least 1")
        return v


class NotificationConfig(BaseModel):
    """One notification provider entry.

    Only the fields relevant to ``type`` are read: ``webhook_url`` for slack
    and discord, ``bot_token`` + ``chat_id`` for telegram.
    """

    type: str
    enabled: bool = True
    webhook_url: SecretStr = SecretStr("")
    bot_token: SecretStr = SecretStr("")
    chat_id: str = ""


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"


# Per-metric defaults; a partial YAML block is merged over these.
_METRIC_DEFAULTS: dict[str, dict[str, Any]] = {
    "disk": {"threshold": 80, "check_interval_secs": 12 * 3600.0},
    "cpu": {"threshold": 85, "check_interval_secs": 60.0},
    "memory": {"threshold": 85, "check_interval_secs": 60.0},
}


class Settings(BaseModel):
    """Root settings container."""

    disk: MonitoringConfig = MonitoringConfig(**_METRIC_DEFAULTS["disk"])
    cpu: MonitoringConfig = MonitoringConfig(**_METRIC_DEFAULTS["cpu"])
    memory: MonitoringConfig = MonitoringConfig(**_METRIC_DEFAULTS["memory"])
    notifications: list[NotificationConfig] = []
    logging: LoggingConfig = LoggingConfig()
    service_name: str = APP_NAME

    @model_validator(mode="before")
    @classmethod
    def _merge_metric_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        merged = dict(data)
        for name, defaults in _METRIC_DEFAULTS.items():
            block = merged.get(name)
            if isinstance(block, dict):
                merged[name] = {**defaults, **block}
        return merged

    def monitoring(self, metric: MetricName) -> MonitoringConfig:
        """Return the per-metric config block for *metric*."""
        return getattr(self, metric.value)


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file and cache globally.

    Args:
        path: Path to YAML config. Defaults to :func:`default_config_path`.

    Returns:
        Parsed Settings instance.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else default_config_path()

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = raw

    _settings = Settings(**data)
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None
