"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class CacheConfig:
    """Resource cache configuration."""

    enabled: bool = True
    ttl_seconds: int = 300


@dataclass
class DiscoveryConfig:
    """Cluster discovery configuration."""

    context: str = ""
    concurrency: int = 10
    page_size: int = 100


@dataclass
class OutputConfig:
    """Output rendering configuration."""

    format: str = "table"


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "warning"


@dataclass
class KdxConfig:
    """Top-level kdx configuration."""

    cache: CacheConfig = field(default_factory=CacheConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log: LogConfig = field(default_factory=LogConfig)
