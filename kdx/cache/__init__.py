"""Cache layer for kdx.

Holds recent resource listings in memory so repeated queries within the TTL
skip the cluster API.  Nothing is persisted across processes.

Submodules:
    resource_cache -- Per-kind, scope-keyed TTL cache with lazy and swept expiry.
"""

from kdx.cache.resource_cache import (
    CacheEntry,
    CacheStats,
    ResourceCache,
    custom_resource_key,
    scope_key,
)

__all__ = ["CacheEntry", "CacheStats", "ResourceCache", "custom_resource_key", "scope_key"]
