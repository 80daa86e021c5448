"""Configuration loading and validation for psmeter."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class SamplerConfig:
    """Periodic memory sampler settings."""

    enabled: bool = True
    interval_seconds: float = 60.0
    metric_name: str = "Memory/Physical"
    # None or 0 waits for the command indefinitely
    command_timeout_seconds: float | None = 10.0


@dataclass
class SqlConfig:
    """SQL statement timing settings."""

    enabled: bool = True
    slow_threshold_seconds: float = 0.5
    max_slow_sql: int = 10


@dataclass
class LocalExporterConfig:
    """Local file exporter settings."""

    enabled: bool = True
    output_dir: str = "./psmeter_data"


@dataclass
class OtelExporterConfig:
    """OpenTelemetry exporter settings."""

    endpoint: str = "http://localhost:4318"
    service_name: str = "psmeter"
    headers: dict[str, str] = field(default_factory=dict)
    export_interval_ms: int = 60000


@dataclass
class PsmeterConfig:
    """Top-level psmeter configuration."""

    mode: str = "local"
    sampler: SamplerConfig = field(default_factory=SamplerConfig)
    sql: SqlConfig = field(default_factory=SqlConfig)
    local_exporter: LocalExporterConfig = field(default_factory=LocalExporterConfig)
    otel: OtelExporterConfig = field(default_factory=OtelExporterConfig)


def _merge_dict(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *source* into *target*."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_dict(target[key], value)
        else:
            target[key] = value
    return target


_ENV_MAP: dict[str, tuple[str, ...]] = {
    "PSMETER_MODE": ("mode",),
    "PSMETER_INTERVAL": ("sampler", "interval_seconds"),
    "PSMETER_METRIC_NAME": ("sampler", "metric_name"),
    "PSMETER_COMMAND_TIMEOUT": ("sampler", "command_timeout_seconds"),
    "PSMETER_OTEL_ENDPOINT": ("otel", "endpoint"),
    "PSMETER_OTEL_SERVICE_NAME": ("otel", "service_name"),
    "PSMETER_LOCAL_OUTPUT_DIR": ("local_exporter", "output_dir"),
}

_FLOAT_KEYS = {"interval_seconds", "command_timeout_seconds"}


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using the PSMETER_ prefix."""
    for env_key, path in _ENV_MAP.items():
        value = os.environ.get(env_key)
        if value is None:
            continue
        obj = data
        for part in path[:-1]:
            obj = obj.setdefault(part, {})
        final_key = path[-1]
        if final_key in _FLOAT_KEYS:
            obj[final_key] = float(value)
        else:
            obj[final_key] = value
    return data


def _section(cls: type, data: dict[str, Any]) -> Any:
    return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


def _dict_to_config(data: dict[str, Any]) -> PsmeterConfig:
    """Convert a raw dictionary to a PsmeterConfig dataclass."""
    return PsmeterConfig(
        mode=data.get("mode", "local"),
        sampler=_section(SamplerConfig, data.get("sampler") or {}),
        sql=_section(SqlConfig, data.get("sql") or {}),
        local_exporter=_section(LocalExporterConfig, data.get("local_exporter") or {}),
        otel=_section(OtelExporterConfig, data.get("otel") or {}),
    )


def load_config(path: str | Path | None = None) -> PsmeterConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``psmeter.yaml`` in the current directory if *path* is None.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("psmeter.yaml")
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                data = _merge_dict(data, loaded)

    data = _apply_env_overrides(data)
    return _dict_to_config(data)
