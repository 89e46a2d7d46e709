"""Resource discovery for kdx.

Exports:
    DiscoveryEngine  -- Cache-aware listing with bounded per-namespace fan-out.
    ResourceProvider -- ABC for anything that can list cluster resources.

The kubernetes-asyncio implementation lives in ``kdx.discovery.kubernetes``
and is imported only by the CLI, so the rest of the package works without a
cluster configuration.
"""

from kdx.discovery.engine import DEFAULT_WARM_KINDS, NAMESPACED_KINDS, DiscoveryEngine
from kdx.discovery.provider import ResourceProvider

__all__ = ["DEFAULT_WARM_KINDS", "NAMESPACED_KINDS", "DiscoveryEngine", "ResourceProvider"]
