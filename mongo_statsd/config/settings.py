"""Configuration loader: defaults, YAML file, environment, then flags."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from mongo_statsd.config.duration import parse_duration
from mongo_statsd.errors import ConfigError

# Environment variable -> dotted settings path
ENV_VARS: dict[str, str] = {
    "UPDATE_INTERVAL": "interval",
    "MONGO_URL": "mongo.url",
    "CONNECT_TIMEOUT": "mongo.connect_timeout",
    "STATSD_HOST": "statsd.host",
    "STATSD_PORT": "statsd.port",
    "STATSD_PREFIX": "statsd.prefix",
    "HOSTED_GRAPHITE_KEY": "statsd.hosted_graphite_key",
    "DEBUG": "debug",
    "ABORT_ON_FETCH_ERROR": "abort_on_fetch_error",
}


def _expand_env_vars(value: str, environ: Mapping[str, str]) -> str:
    """Replace ${VAR_NAME} with environment variable values."""
    pattern = re.compile(r"\$\{([^}]+)\}")
    def replacer(match: re.Match) -> str:
        var = match.group(1)
        return environ.get(var, match.group(0))
    return pattern.sub(replacer, value)


def _walk_and_expand(obj: object, environ: Mapping[str, str]) -> object:
    """Recursively expand environment variables in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj, environ)
    if isinstance(obj, dict):
        return {k: _walk_and_expand(v, environ) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_expand(item, environ) for item in obj]
    return obj


def _set_path(raw: dict[str, Any], path: str, value: object) -> None:
    """Assign *value* at a dotted *path*, creating sections as needed."""
    *sections, key = path.split(".")
    target = raw
    for section in sections:
        node = target.get(section)
        if not isinstance(node, dict):
            node = {}
            target[section] = node
        target = node
    target[key] = value


class MongoConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str = "mongodb://localhost:27017"
    connect_timeout: float = Field(default=30.0, gt=0)  # seconds


class StatsdConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = "localhost"
    port: int = Field(default=8125, ge=1, le=65535)
    prefix: str = ""
    hosted_graphite_key: str = ""


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    interval: float = 5.0  # seconds; strings use duration notation
    mongo: MongoConfig = Field(default_factory=MongoConfig)
    statsd: StatsdConfig = Field(default_factory=StatsdConfig)
    debug: bool = False
    abort_on_fetch_error: bool = False
    shutdown_grace: float = Field(default=5.0, ge=0)

    @field_validator("interval", mode="before")
    @classmethod
    def _parse_interval(cls, value: object) -> object:
        if isinstance(value, str):
            try:
                return parse_duration(value)
            except ValueError as exc:
                raise ValueError(f"invalid update interval {value!r}: {exc}") from exc
        return value

    @field_validator("interval")
    @classmethod
    def _positive_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("update interval must be positive")
        return value

    @property
    def metric_prefix(self) -> str:
        """Prefix handed to the StatsD client (joined to names with '.')."""
        prefix = ""
        if self.statsd.hosted_graphite_key:
            prefix = f"{self.statsd.hosted_graphite_key}."
        if self.statsd.prefix:
            prefix = f"{prefix}{self.statsd.prefix}"
        return prefix.rstrip(".")

    @property
    def statsd_address(self) -> str:
        return f"{self.statsd.host}:{self.statsd.port}"


def _find_config_file() -> Path | None:
    candidates = [
        Path("mongo-statsd.yaml"),
        Path("mongo-statsd.yml"),
        Path.home() / ".mongo-statsd" / "config.yaml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def _read_yaml(path: Path, environ: Mapping[str, str]) -> dict[str, Any]:
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return _walk_and_expand(raw, environ)  # type: ignore[return-value]


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error["loc"]) or "settings"
        parts.append(f"{loc}: {error['msg']}")
    return "; ".join(parts)


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, object] | None = None,
) -> Settings:
    """Build the immutable Settings for this process.

    Later sources win: built-in defaults, the YAML file (explicit *path* or
    the first default location that exists), the environment variables in
    ``ENV_VARS``, then *overrides* keyed by dotted path (command-line flags;
    ``None`` values are skipped). Raises ConfigError on any invalid value.
    """
    if environ is None:
        environ = os.environ

    if path is None:
        path = _find_config_file()

    raw: dict[str, Any] = {}
    if path is not None:
        raw = _read_yaml(Path(path), environ)

    for var, dotted in ENV_VARS.items():
        value = environ.get(var)
        if value is not None and value != "":
            _set_path(raw, dotted, value)

    for dotted, value in (overrides or {}).items():
        if value is not None:
            _set_path(raw, dotted, value)

    try:
        return Settings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {_describe(exc)}") from exc
