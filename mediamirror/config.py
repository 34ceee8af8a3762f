"""Application configuration utilities for MediaMirror."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any

from mediamirror.logging import get_logger

logger = get_logger(__name__)

DEFAULT_APP_PORT = 3005
DEFAULT_MUSIC_DIR = "/music"
DEFAULT_STATE_DIR = "/state"
DEFAULT_CATALOG_FILENAME = "tracks.json"
DEFAULT_IPFS_API_URL = "http://ipfs:5001"
DEFAULT_IPFS_TIMEOUT_MS = 30_000
DEFAULT_IPFS_RESOLVE_TIMEOUT_MS = 10_000
DEFAULT_IPFS_CID_VERSION = 0
DEFAULT_SYNC_CONCURRENCY = 2
DEFAULT_API_BASE_PATH = "/api"
DEFAULT_LOG_LEVEL = "INFO"

_LEGACY_APP_PORT_ENV_VARS: tuple[str, ...] = ("PORT", "UVICORN_PORT")

_RUNTIME_ENV_CACHE: dict[str, str] | None = None


@dataclass(slots=True, frozen=True)
class StoreConfig:
    api_url: str
    timeout_ms: int
    pin: bool
    cid_version: int
    resolve_timeout_ms: int


@dataclass(slots=True, frozen=True)
class SyncConfig:
    concurrency: int


@dataclass(slots=True, frozen=True)
class LoggingConfig:
    level: str
    log_file: str | None


@dataclass(slots=True, frozen=True)
class AppConfig:
    media_dir: Path
    state_dir: Path
    catalog_file: Path
    api_base_path: str
    port: int
    store: StoreConfig
    sync: SyncConfig
    logging: LoggingConfig


def _load_env_file(path: Path) -> dict[str, str]:
    try:
        contents = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    env_values: dict[str, str] = {}
    for line in contents.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith("export "):
            stripped = stripped[len("export ") :].lstrip()
        key, sep, value = stripped.partition("=")
        if not sep:
            continue
        env_values[key.strip()] = value.strip().strip('"').strip("'")
    return env_values


def load_runtime_env(
    *,
    env_file: str | os.PathLike[str] | None = None,
    base_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Load runtime environment values applying .env before explicit environment."""

    env: dict[str, str] = {}
    source = dict(base_env if base_env is not None else os.environ)

    path = Path(env_file) if env_file is not None else Path(".env")
    if path.exists() and path.is_file():
        env.update(_load_env_file(path))

    env.update({key: str(value) for key, value in source.items() if value is not None})
    return env


def get_runtime_env() -> Mapping[str, str]:
    """Return the cached runtime environment mapping."""

    global _RUNTIME_ENV_CACHE
    if _RUNTIME_ENV_CACHE is None:
        _RUNTIME_ENV_CACHE = load_runtime_env()
    return _RUNTIME_ENV_CACHE


def override_runtime_env(runtime_env: Mapping[str, str] | None) -> None:
    """Override the cached runtime environment (primarily for testing)."""

    global _RUNTIME_ENV_CACHE
    if runtime_env is None:
        _RUNTIME_ENV_CACHE = None
    else:
        _RUNTIME_ENV_CACHE = dict(runtime_env)


def _env_value(env: Mapping[str, Any], key: str) -> str | None:
    value = env.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_bool(value: str | None, *, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _coerce_int(value: Any, *, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _bounded_int(
    value: Any,
    *,
    default: int,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    resolved = _coerce_int(value, default=default)
    if minimum is not None:
        resolved = max(minimum, resolved)
    if maximum is not None:
        resolved = min(maximum, resolved)
    return resolved


def _normalise_base_path(value: str | None) -> str:
    if value is None:
        return DEFAULT_API_BASE_PATH
    stripped = value.strip().strip("/")
    if not stripped:
        return ""
    return f"/{stripped}"


def resolve_app_port(env: Mapping[str, Any] | None = None) -> int:
    """Return the configured listen port constrained to valid TCP ranges."""

    runtime_env: Mapping[str, Any] = env if env is not None else get_runtime_env()
    raw_value = _env_value(runtime_env, "APP_PORT")
    if raw_value is None:
        for alias in _LEGACY_APP_PORT_ENV_VARS:
            raw_value = _env_value(runtime_env, alias)
            if raw_value is not None:
                logger.warning(
                    "Legacy port alias %s=%r detected without APP_PORT; using alias value.",
                    alias,
                    raw_value,
                )
                break
    if raw_value is not None and _coerce_int(raw_value, default=-1) == -1:
        logger.warning(
            "Invalid port value %r; falling back to default %s.", raw_value, DEFAULT_APP_PORT
        )
    return _bounded_int(raw_value, default=DEFAULT_APP_PORT, minimum=1, maximum=65535)


def _load_store_config(env: Mapping[str, Any]) -> StoreConfig:
    api_url = _env_value(env, "IPFS_API_URL") or DEFAULT_IPFS_API_URL
    timeout_ms = _bounded_int(
        _env_value(env, "IPFS_TIMEOUT_MS"),
        default=DEFAULT_IPFS_TIMEOUT_MS,
        minimum=100,
    )
    return StoreConfig(
        api_url=api_url.rstrip("/"),
        timeout_ms=timeout_ms,
        pin=_as_bool(_env_value(env, "IPFS_PIN"), default=True),
        cid_version=_bounded_int(
            _env_value(env, "IPFS_CID_VERSION"),
            default=DEFAULT_IPFS_CID_VERSION,
            minimum=0,
            maximum=1,
        ),
        # Must expire before the HTTP read timeout so Kubo reports it.
        resolve_timeout_ms=_bounded_int(
            _env_value(env, "IPFS_RESOLVE_TIMEOUT_MS"),
            default=min(DEFAULT_IPFS_RESOLVE_TIMEOUT_MS, timeout_ms),
            minimum=100,
            maximum=timeout_ms,
        ),
    )


def _load_sync_config(env: Mapping[str, Any]) -> SyncConfig:
    concurrency = _bounded_int(
        _env_value(env, "SYNC_CONCURRENCY"),
        default=DEFAULT_SYNC_CONCURRENCY,
        minimum=1,
    )
    return SyncConfig(concurrency=concurrency)


def load_config(runtime_env: Mapping[str, Any] | None = None) -> AppConfig:
    """Build the application configuration from the runtime environment."""

    env = runtime_env if runtime_env is not None else get_runtime_env()
    media_dir = Path(_env_value(env, "MUSIC_DIR") or DEFAULT_MUSIC_DIR).expanduser()
    state_dir = Path(_env_value(env, "STATE_DIR") or DEFAULT_STATE_DIR).expanduser()
    raw_catalog = _env_value(env, "CATALOG_FILE")
    catalog_file = (
        Path(raw_catalog).expanduser() if raw_catalog else state_dir / DEFAULT_CATALOG_FILENAME
    )

    return AppConfig(
        media_dir=media_dir,
        state_dir=state_dir,
        catalog_file=catalog_file,
        api_base_path=_normalise_base_path(env.get("API_BASE_PATH")),
        port=resolve_app_port(env),
        store=_load_store_config(env),
        sync=_load_sync_config(env),
        logging=LoggingConfig(
            level=(_env_value(env, "LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
            log_file=_env_value(env, "LOG_FILE"),
        ),
    )


__all__ = [
    "AppConfig",
    "DEFAULT_APP_PORT",
    "LoggingConfig",
    "StoreConfig",
    "SyncConfig",
    "get_runtime_env",
    "load_config",
    "load_runtime_env",
    "override_runtime_env",
    "resolve_app_port",
]
