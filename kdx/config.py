"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from kdx.models.config import (
    CacheConfig,
    DiscoveryConfig,
    KdxConfig,
    LogConfig,
    OutputConfig,
)

OUTPUT_FORMATS = ("table", "json", "yaml")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KDX_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_output_format(value: str) -> str:
    if value.lower() not in OUTPUT_FORMATS:
        raise ValueError(f"Invalid output format: {value}. Must be one of {set(OUTPUT_FORMATS)}")
    return value.lower()


def load_config() -> KdxConfig:
    """Load configuration from KDX_* environment variables."""
    return KdxConfig(
        cache=CacheConfig(
            enabled=_env_bool("CACHE_ENABLED", True),
            ttl_seconds=_env_int("CACHE_TTL", 300, min_val=1, max_val=86400),
        ),
        discovery=DiscoveryConfig(
            context=_env("CONTEXT", ""),
            concurrency=_env_int("CONCURRENCY", 10, min_val=1, max_val=100),
            page_size=_env_int("PAGE_SIZE", 100, min_val=1, max_val=1000),
        ),
        output=OutputConfig(
            format=_validate_output_format(_env("OUTPUT", "table")),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "warning")),
        ),
    )
