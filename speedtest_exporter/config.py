"""Configuration loading helpers for the speedtest exporter."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv


class ConfigError(ValueError):
    """Raised when a configuration value cannot be used."""


@dataclass
class SchedulerConfig:
    interval_minutes: int = 60


@dataclass
class SpeedtestConfig:
    binary: str = "speedtest"


@dataclass
class WebConfig:
    host: str = "0.0.0.0"
    port: int = 9516


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class AppConfig:
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    speedtest: SpeedtestConfig = field(default_factory=SpeedtestConfig)
    web: WebConfig = field(default_factory=WebConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# (section, attribute) -> environment variable
ENV_OVERRIDES = {
    ("scheduler", "interval_minutes"): "TEST_INTERVAL_MINUTES",
    ("web", "host"): "HTTP_HOST",
    ("web", "port"): "HTTP_PORT",
    ("speedtest", "binary"): "SPEEDTEST_BINARY",
    ("logging", "level"): "LOG_LEVEL",
}


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")
    return data


def _section(data: Dict[str, Any], name: str, cls):
    values = data.get(name) or {}
    try:
        return cls(**values)
    except TypeError as exc:
        raise ConfigError(f"Invalid '{name}' section: {exc}") from exc


def _as_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def apply_overrides(config: AppConfig, overrides: Mapping[tuple, Any]) -> AppConfig:
    """Apply ``{(section, attribute): value}`` overrides, skipping ``None`` values."""

    for (section, attribute), value in overrides.items():
        if value is None:
            continue
        setattr(getattr(config, section), attribute, value)
    return config


def validate(config: AppConfig) -> AppConfig:
    interval = _as_int("interval_minutes", config.scheduler.interval_minutes)
    if interval < 1:
        raise ConfigError(f"interval_minutes must be at least 1, got {interval}")
    config.scheduler.interval_minutes = interval

    port = _as_int("port", config.web.port)
    if not 1 <= port <= 65535:
        raise ConfigError(f"port must be between 1 and 65535, got {port}")
    config.web.port = port

    if not config.web.host:
        raise ConfigError("host cannot be empty")
    if not config.speedtest.binary:
        raise ConfigError("speedtest binary cannot be empty")
    level = str(config.logging.level).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"Unknown log level {config.logging.level!r}")
    config.logging.level = level
    return config


def load_config(
    path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    cli_overrides: Optional[Mapping[tuple, Any]] = None,
    dotenv_path: Optional[str] = ".env",
) -> AppConfig:
    """Build the application configuration.

    Later sources win: defaults, the optional YAML file, environment
    variables (after loading ``.env``), then command-line overrides.
    """

    if environ is None:
        if dotenv_path:
            load_dotenv(dotenv_path)
        environ = os.environ

    data: Dict[str, Any] = {}
    if path:
        source_path = Path(path)
        if source_path.exists():
            data = _read_yaml(source_path)

    config = AppConfig(
        scheduler=_section(data, "scheduler", SchedulerConfig),
        speedtest=_section(data, "speedtest", SpeedtestConfig),
        web=_section(data, "web", WebConfig),
        logging=_section(data, "logging", LoggingConfig),
    )

    apply_overrides(
        config,
        {key: environ.get(variable) for key, variable in ENV_OVERRIDES.items()},
    )
    if cli_overrides:
        apply_overrides(config, cli_overrides)

    return validate(config)
