"""Tests for configuration loading and precedence."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from mongo_statsd.config.settings import (
    MongoConfig,
    Settings,
    StatsdConfig,
    load_config,
)
from mongo_statsd.errors import ConfigError


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Keep default config file lookup away from the real cwd and home."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))


def _write_yaml(path: Path, data: dict) -> None:
    with open(path, "w") as f:
        yaml.dump(data, f)


# ── Defaults ─────────────────────────────────────────────────────────


def test_defaults():
    s = load_config(environ={})
    assert s.interval == 5.0
    assert s.mongo.url == "mongodb://localhost:27017"
    assert s.mongo.connect_timeout == 30.0
    assert s.statsd.host == "localhost"
    assert s.statsd.port == 8125
    assert s.statsd.prefix == ""
    assert s.metric_prefix == ""
    assert s.debug is False
    assert s.abort_on_fetch_error is False


def test_settings_are_immutable():
    s = Settings()
    with pytest.raises(ValidationError):
        s.interval = 10.0  # type: ignore[misc]
    with pytest.raises(ValidationError):
        s.statsd.port = 9125  # type: ignore[misc]


def test_statsd_address():
    s = Settings(statsd=StatsdConfig(host="metrics.local", port=9125))
    assert s.statsd_address == "metrics.local:9125"


# ── Metric prefix ────────────────────────────────────────────────────


@pytest.mark.parametrize("key,prefix,expected", [
    ("", "", ""),
    ("", "mongodb", "mongodb"),
    ("abc123", "", "abc123"),
    ("abc123", "mongodb", "abc123.mongodb"),
])
def test_metric_prefix(key, prefix, expected):
    s = Settings(statsd=StatsdConfig(prefix=prefix, hosted_graphite_key=key))
    assert s.metric_prefix == expected


# ── Interval ─────────────────────────────────────────────────────────


def test_interval_duration_string():
    assert Settings(interval="1m30s").interval == 90.0


def test_interval_without_unit_rejected():
    with pytest.raises(ConfigError, match="invalid update interval '5'"):
        load_config(environ={"UPDATE_INTERVAL": "5"})


def test_interval_must_be_positive():
    with pytest.raises(ConfigError, match="must be positive"):
        load_config(environ={"UPDATE_INTERVAL": "-5s"})
    with pytest.raises(ConfigError):
        load_config(overrides={"interval": "0s"}, environ={})


# ── Environment ──────────────────────────────────────────────────────


def test_environment_variables():
    env = {
        "UPDATE_INTERVAL": "10s",
        "MONGO_URL": "mongodb://db1:27017",
        "STATSD_HOST": "statsd.local",
        "STATSD_PORT": "9125",
        "STATSD_PREFIX": "mongodb",
        "HOSTED_GRAPHITE_KEY": "key",
        "DEBUG": "true",
        "CONNECT_TIMEOUT": "5",
    }
    s = load_config(environ=env)
    assert s.interval == 10.0
    assert s.mongo.url == "mongodb://db1:27017"
    assert s.mongo.connect_timeout == 5.0
    assert s.statsd.host == "statsd.local"
    assert s.statsd.port == 9125
    assert s.metric_prefix == "key.mongodb"
    assert s.debug is True


def test_empty_environment_value_ignored():
    s = load_config(environ={"STATSD_HOST": ""})
    assert s.statsd.host == "localhost"


def test_invalid_port():
    with pytest.raises(ConfigError, match="statsd.port"):
        load_config(environ={"STATSD_PORT": "not-a-port"})
    with pytest.raises(ConfigError, match="statsd.port"):
        load_config(environ={"STATSD_PORT": "70000"})


# ── YAML file ────────────────────────────────────────────────────────


def test_yaml_file(tmp_path):
    cfg = tmp_path / "exporter.yaml"
    _write_yaml(cfg, {
        "interval": "30s",
        "mongo": {"url": "mongodb://yaml:27017"},
        "statsd": {"host": "yaml-statsd", "prefix": "mongo"},
    })
    s = load_config(cfg, environ={})
    assert s.interval == 30.0
    assert s.mongo.url == "mongodb://yaml:27017"
    assert s.statsd.host == "yaml-statsd"
    assert s.statsd.port == 8125


def test_yaml_env_expansion(tmp_path):
    cfg = tmp_path / "exporter.yaml"
    cfg.write_text("mongo:\n  url: mongodb://${DB_HOST}:27017\n")
    s = load_config(cfg, environ={"DB_HOST": "db7"})
    assert s.mongo.url == "mongodb://db7:27017"


def test_yaml_default_location(tmp_path):
    _write_yaml(tmp_path / "mongo-statsd.yaml", {"statsd": {"port": 8126}})
    s = load_config(environ={})
    assert s.statsd.port == 8126


def test_yaml_must_be_mapping(tmp_path):
    cfg = tmp_path / "exporter.yaml"
    cfg.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError, match="must contain a mapping"):
        load_config(cfg, environ={})


def test_missing_yaml_file(tmp_path):
    with pytest.raises(ConfigError, match="Cannot read config file"):
        load_config(tmp_path / "nope.yaml", environ={})


# ── Precedence ───────────────────────────────────────────────────────


def test_precedence_yaml_env_flags(tmp_path):
    cfg = tmp_path / "exporter.yaml"
    _write_yaml(cfg, {
        "interval": "30s",
        "statsd": {"host": "from-yaml", "port": 1111, "prefix": "yaml"},
    })
    env = {"STATSD_HOST": "from-env", "STATSD_PORT": "2222"}
    overrides = {"statsd.host": "from-flag", "statsd.prefix": None}

    s = load_config(cfg, environ=env, overrides=overrides)
    assert s.interval == 30.0              # yaml only
    assert s.statsd.port == 2222           # env beats yaml
    assert s.statsd.host == "from-flag"    # flag beats env
    assert s.statsd.prefix == "yaml"       # None flag is skipped


def test_nested_models_defaults():
    assert MongoConfig().url == "mongodb://localhost:27017"
    assert StatsdConfig().port == 8125
