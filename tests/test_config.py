"""Tests for the configuration module."""

import os
import tempfile

import yaml

from psmeter.config import PsmeterConfig, load_config


def test_load_config_defaults():
    """Loading from a non-existent file returns defaults."""
    cfg = load_config("/tmp/nonexistent_psmeter.yaml")
    assert isinstance(cfg, PsmeterConfig)
    assert cfg.mode == "local"
    assert cfg.sampler.enabled is True
    assert cfg.sampler.metric_name == "Memory/Physical"
    assert cfg.sampler.command_timeout_seconds == 10.0
    assert cfg.sql.slow_threshold_seconds == 0.5
    assert cfg.otel.endpoint == "http://localhost:4318"
    assert cfg.local_exporter.output_dir == "./psmeter_data"


def test_load_config_from_yaml():
    """Loading from a YAML file populates values and ignores unknown keys."""
    data = {
        "mode": "online",
        "sampler": {
            "interval_seconds": 5.0,
            "metric_name": "Memory/RSS",
            "bogus": 1,
        },
        "sql": {"enabled": False},
        "otel": {
            "endpoint": "http://otel:4318",
            "service_name": "my-service",
        },
    }
    with tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False) as fh:
        yaml.dump(data, fh)
        path = fh.name

    try:
        cfg = load_config(path)
        assert cfg.mode == "online"
        assert cfg.sampler.interval_seconds == 5.0
        assert cfg.sampler.metric_name == "Memory/RSS"
        assert cfg.sampler.enabled is True
        assert cfg.sql.enabled is False
        assert cfg.otel.endpoint == "http://otel:4318"
        assert cfg.otel.service_name == "my-service"
    finally:
        os.unlink(path)


def test_empty_yaml_gives_defaults():
    with tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False) as fh:
        fh.write("")
        path = fh.name
    try:
        cfg = load_config(path)
        assert cfg == PsmeterConfig()
    finally:
        os.unlink(path)


def test_env_override(monkeypatch):
    """Environment variables override YAML values."""
    data = {"mode": "local", "sampler": {"interval_seconds": 30}}
    with tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False) as fh:
        yaml.dump(data, fh)
        path = fh.name

    try:
        monkeypatch.setenv("PSMETER_MODE", "online")
        monkeypatch.setenv("PSMETER_OTEL_ENDPOINT", "http://env-otel:4318")
        monkeypatch.setenv("PSMETER_INTERVAL", "2.5")
        monkeypatch.setenv("PSMETER_COMMAND_TIMEOUT", "3")
        cfg = load_config(path)
        assert cfg.mode == "online"
        assert cfg.otel.endpoint == "http://env-otel:4318"
        assert cfg.sampler.interval_seconds == 2.5
        assert cfg.sampler.command_timeout_seconds == 3.0
    finally:
        os.unlink(path)
