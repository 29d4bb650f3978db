"""Runtime configuration.

Settings come from an optional YAML file followed by environment overrides::

    redis_url: redis://localhost:6379/0
    rpc_url: https://eth.llamarpc.com
    store_timeout_seconds: 5
    cache:
      ttl_seconds: 300
      max_entries: 10000

The YAML path is the ``path`` argument or the ``ENSIGHT_CONFIG`` variable.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from ensight.services.errors import ConfigError

DEFAULT_RPC_URL = "https://eth.llamarpc.com"
DEFAULT_CACHE_TTL_SECONDS = 5 * 60
DEFAULT_CACHE_MAX_ENTRIES = 10000

# (setting path, env vars checked in order)
ENV_OVERRIDES = [
    (("redis_url",), ("ENSIGHT_REDIS_URL", "REDIS_URL")),
    (("rpc_url",), ("ENSIGHT_RPC_URL", "RPC_URL")),
    (("store_timeout_seconds",), ("ENSIGHT_STORE_TIMEOUT_SECONDS",)),
    (("cache", "ttl_seconds"), ("ENSIGHT_CACHE_TTL_SECONDS",)),
    (("cache", "max_entries"), ("ENSIGHT_CACHE_MAX_ENTRIES",)),
]


class CacheSettings(BaseModel):
    """Expiring cache options."""

    ttl_seconds: float = Field(default=DEFAULT_CACHE_TTL_SECONDS, gt=0)
    max_entries: int = Field(default=DEFAULT_CACHE_MAX_ENTRIES, ge=1)


class Settings(BaseModel):
    """Top-level settings handed to each component at construction."""

    redis_url: Optional[str] = None
    rpc_url: str = DEFAULT_RPC_URL
    store_timeout_seconds: float = Field(default=5.0, gt=0)
    cache: CacheSettings = Field(default_factory=CacheSettings)


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def _apply_env(data: Dict[str, Any], environ: Mapping[str, str]) -> None:
    for path, names in ENV_OVERRIDES:
        value = next((environ[name] for name in names if environ.get(name)), None)
        if value is None:
            continue
        target = data
        for part in path[:-1]:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]
        target[path[-1]] = value


def load_settings(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build Settings from YAML (if any) and the environment.

    Args:
        path: Optional YAML config file. Defaults to ``$ENSIGHT_CONFIG``.
        environ: Environment mapping, ``os.environ`` when omitted.

    Raises:
        ConfigError: If the file is unreadable or a value fails validation.
    """
    environ = os.environ if environ is None else environ
    if path is None and environ.get("ENSIGHT_CONFIG"):
        path = Path(environ["ENSIGHT_CONFIG"])

    data: Dict[str, Any] = _read_yaml(path) if path else {}
    _apply_env(data, environ)

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
