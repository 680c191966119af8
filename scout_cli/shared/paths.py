"""Utilities for resolving and managing application paths."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

DEFAULT_CONFIG_DIR = "~/.mysqlscout"
DEFAULT_CACHE_DIR = "~/.mysqlscout/cache"
DEFAULT_CONFIG_FILE = "config.yaml"

CONFIG_DIR_ENV = "SCOUT_CONFIG_DIR"
CONFIG_FILE_ENV = "SCOUT_CONFIG_PATH"
CACHE_DIR_ENV = "SCOUT_CACHE_DIR"


def _expand(path_str: str) -> Path:
    """Return a Path with user and environment variables expanded."""
    return Path(os.path.expandvars(path_str)).expanduser()


def get_config_dir(create: bool = False, env: Mapping[str, str] | None = None) -> Path:
    """Return the configuration directory, optionally creating it."""
    env = env if env is not None else os.environ
    raw = env.get(CONFIG_DIR_ENV, DEFAULT_CONFIG_DIR)
    path = _expand(raw)
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def default_config_path(create_parents: bool = False, env: Mapping[str, str] | None = None) -> Path:
    """Return the default config file path, optionally ensuring parent dirs exist."""
    env = env if env is not None else os.environ
    override = env.get(CONFIG_FILE_ENV)
    if override:
        path = _expand(override)
        if create_parents:
            path.parent.mkdir(parents=True, exist_ok=True)
        return path
    config_dir = get_config_dir(create=create_parents, env=env)
    return config_dir / DEFAULT_CONFIG_FILE


def default_cache_dir(create: bool = False, env: Mapping[str, str] | None = None) -> Path:
    """Return the cache base directory used for analysis snapshots."""
    env = env if env is not None else os.environ
    override = env.get(CACHE_DIR_ENV)
    path = _expand(override) if override else _expand(DEFAULT_CACHE_DIR)
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def resolve_path(path_str: str | Path) -> Path:
    """Expand user and environment variables for arbitrary paths."""
    if isinstance(path_str, Path):
        return _expand(str(path_str))
    return _expand(path_str)
