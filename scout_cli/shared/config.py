"""Configuration loading utilities for the scout tool suite."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml

from . import paths
from .exceptions import ConfigurationError

DEFAULT_MAX_CACHE_FILE_SIZE = 50 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class ConnectionSettings:
    """MySQL server connection configuration."""

    host: str
    port: int
    user: str
    password: str
    database: str | None
    ssl: bool
    connect_timeout: int
    read_timeout: int


@dataclass(frozen=True, slots=True)
class CacheSettings:
    """On-disk analysis cache configuration."""

    enabled: bool
    base_dir: Path
    max_file_size: int
    retention_days: int


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Top-level application configuration."""

    source_path: Path
    connection: ConnectionSettings
    cache: CacheSettings

    def with_database(self, database: str | None) -> AppConfig:
        """Return a copy targeting a different default database."""
        new_connection = replace(self.connection, database=database or None)
        return replace(self, connection=new_connection)

    def with_cache_enabled(self, enabled: bool) -> AppConfig:
        """Return a copy with caching switched on or off."""
        return replace(self, cache=replace(self.cache, enabled=enabled))


def _default_config(env: Mapping[str, str]) -> dict[str, Any]:
    return {
        "connection": {
            "host": "localhost",
            "port": 3306,
            "user": "root",
            "password": "",
            "database": None,
            "ssl": False,
            "connect_timeout": 10,
            "read_timeout": 60,
        },
        "cache": {
            "enabled": True,
            "base_dir": str(paths.default_cache_dir(env=env)),
            "max_file_size": DEFAULT_MAX_CACHE_FILE_SIZE,
            "retention_days": 30,
        },
    }


ENV_OVERRIDE_SPEC: dict[str, tuple[str, type]] = {
    "connection.host": ("MYSQL_HOST", str),
    "connection.port": ("MYSQL_PORT", int),
    "connection.user": ("MYSQL_USER", str),
    "connection.password": ("MYSQL_PASSWORD", str),
    "connection.database": ("MYSQL_DATABASE", str),
    "connection.ssl": ("MYSQL_SSL", bool),
    "connection.connect_timeout": ("SCOUT_CONNECT_TIMEOUT", int),
    "connection.read_timeout": ("SCOUT_READ_TIMEOUT", int),
    "cache.enabled": ("SCOUT_CACHE_ENABLED", bool),
    "cache.base_dir": (paths.CACHE_DIR_ENV, str),
    "cache.max_file_size": ("SCOUT_CACHE_MAX_SIZE", int),
    "cache.retention_days": ("SCOUT_CACHE_RETENTION_DAYS", int),
}


def load_config(
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load configuration from defaults, YAML file, and env overrides."""
    env = dict(env if env is not None else os.environ)
    resolved_config_path = _resolve_config_path(config_path, env)
    file_data = _load_yaml(resolved_config_path)
    defaults = _default_config(env)
    merged: dict[str, Any] = _deep_merge(defaults, file_data)
    merged = _apply_env_overrides(merged, env)
    return _build_config(merged, resolved_config_path)


def _resolve_config_path(config_path: str | Path | None, env: Mapping[str, str]) -> Path:
    if config_path:
        return paths.resolve_path(config_path)
    return paths.default_config_path(env=env)


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Config file at {path} is not valid YAML: {exc}") from exc
        if not isinstance(data, MutableMapping):
            raise ConfigurationError(f"Config file at {path} must define a mapping root object.")
        return dict(data)


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides(config: dict[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    config_copy = _deep_merge(config, {})  # shallow copy via merge
    for dotted_key, (env_key, expected_type) in ENV_OVERRIDE_SPEC.items():
        if env_key not in env:
            continue
        raw_value = env[env_key]
        try:
            value = _coerce_env_value(raw_value, expected_type)
        except ValueError as exc:
            raise ConfigurationError(
                f"Environment override {env_key} has invalid value '{raw_value}': {exc}"
            ) from exc
        _assign_nested(config_copy, dotted_key.split("."), value)
    return config_copy


def _coerce_env_value(raw: str, expected_type: type) -> Any:
    cleaned = raw.strip()
    if expected_type is bool:
        lowered = cleaned.lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
        raise ValueError("expected boolean (true/false)")
    if expected_type is int:
        return int(cleaned)
    return cleaned


def _assign_nested(target: MutableMapping[str, Any], keys: list[str], value: Any) -> None:
    current = target
    for key in keys[:-1]:
        if key not in current or not isinstance(current[key], MutableMapping):
            current[key] = {}
        current = current[key]  # type: ignore[assignment]
    current[keys[-1]] = value


def _build_config(data: Mapping[str, Any], source_path: Path) -> AppConfig:
    try:
        conn_cfg = data["connection"]
        database = conn_cfg.get("database")
        connection = ConnectionSettings(
            host=str(conn_cfg["host"]),
            port=int(conn_cfg["port"]),
            user=str(conn_cfg["user"]),
            password=str(conn_cfg["password"] or ""),
            database=str(database) if database else None,
            ssl=bool(conn_cfg["ssl"]),
            connect_timeout=int(conn_cfg["connect_timeout"]),
            read_timeout=int(conn_cfg["read_timeout"]),
        )
        cache_cfg = data["cache"]
        cache = CacheSettings(
            enabled=bool(cache_cfg["enabled"]),
            base_dir=paths.resolve_path(cache_cfg["base_dir"]),
            max_file_size=int(cache_cfg["max_file_size"]),
            retention_days=int(cache_cfg["retention_days"]),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ConfigurationError(f"Invalid configuration structure: {exc}") from exc

    if connection.port <= 0:
        raise ConfigurationError("connection.port must be a positive integer.")
    if cache.max_file_size <= 0:
        raise ConfigurationError("cache.max_file_size must be a positive integer.")

    return AppConfig(source_path=source_path, connection=connection, cache=cache)
