"""Cache-aware discovery orchestration.

DiscoveryEngine sits between the CLI and a ResourceProvider: every listing
goes through the ResourceCache first and only reaches the provider on a
miss.  All-namespace listings fan out one task per namespace, bounded by a
semaphore so large clusters do not open hundreds of API calls at once.
"""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Iterable

from kdx.cache import CacheStats, ResourceCache
from kdx.discovery.provider import ResourceProvider
from kdx.errors import KdxError, ProviderError
from kdx.models.resources import CRDInfo, CustomResourceInfo, ResourceKind, ResourceRecord
from kdx.observability.logging import get_logger

_log = get_logger("discovery.engine")

NAMESPACED_KINDS: tuple[ResourceKind, ...] = (
    ResourceKind.SERVICES,
    ResourceKind.PODS,
    ResourceKind.DEPLOYMENTS,
    ResourceKind.STATEFULSETS,
    ResourceKind.DAEMONSETS,
    ResourceKind.CONFIGMAPS,
    ResourceKind.SECRETS,
)

DEFAULT_WARM_KINDS: tuple[ResourceKind, ...] = (
    ResourceKind.SERVICES,
    ResourceKind.PODS,
    ResourceKind.DEPLOYMENTS,
    ResourceKind.CONFIGMAPS,
)


class DiscoveryEngine:
    """Lists resources through an optional cache and a provider.

    Pass ``cache=None`` to always hit the provider.
    """

    def __init__(
        self,
        provider: ResourceProvider,
        cache: ResourceCache | None = None,
        concurrency: int = 10,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._provider = provider
        self._cache = cache
        self._concurrency = concurrency

    @property
    def cache(self) -> ResourceCache | None:
        return self._cache

    async def list(
        self,
        kind: ResourceKind,
        namespace: str | None = None,
        selector: str | None = None,
        use_cache: bool = True,
    ) -> list[ResourceRecord]:
        """List one namespaced kind in *namespace* (None: cluster-wide)."""
        if kind not in NAMESPACED_KINDS:
            raise ValueError(f"{kind} cannot be listed by namespace; use the CRD methods")

        if use_cache and self._cache is not None:
            cached = self._cache.get_scoped(kind, namespace, selector)
            if cached is not None:
                return cached

        records = await self._provider.list_resources(kind, namespace, selector)
        if self._cache is not None:
            self._cache.set_scoped(kind, records, namespace, selector)
        return records

    async def list_across_namespaces(
        self,
        kind: ResourceKind,
        namespaces: Iterable[str] | None = None,
        selector: str | None = None,
        use_cache: bool = True,
    ) -> list[ResourceRecord]:
        """List *kind* in every namespace concurrently, one cached scope each.

        A namespace whose listing fails is logged and skipped; if every
        namespace fails, the first error is raised.
        """
        targets = list(namespaces) if namespaces is not None else await self._provider.list_namespaces()
        if not targets:
            return []

        semaphore = asyncio.Semaphore(self._concurrency)

        async def _one(ns: str) -> list[ResourceRecord]:
            async with semaphore:
                return await self.list(kind, ns, selector, use_cache)

        results = await asyncio.gather(*(_one(ns) for ns in targets), return_exceptions=True)

        records: list[ResourceRecord] = []
        errors: list[Exception] = []
        for ns, result in zip(targets, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                errors.append(result)
                _log.warning("namespace_listing_failed", kind=str(kind), namespace=ns, error=str(result))
                continue
            records.extend(result)

        if errors and len(errors) == len(targets):
            first = errors[0]
            if isinstance(first, KdxError):
                raise first
            raise ProviderError(f"list {kind} across namespaces", first)

        _log.debug(
            "namespaces_listed",
            kind=str(kind),
            namespaces=len(targets),
            failed=len(errors),
            count=len(records),
        )
        return records

    async def list_crds(self, use_cache: bool = True, count_instances: bool = False) -> list[CRDInfo]:
        crds: list[CRDInfo] | None = None
        if use_cache and self._cache is not None:
            crds = self._cache.get_crds()
        if crds is None:
            crds = await self._provider.list_crds()
            if self._cache is not None:
                self._cache.set_crds(crds)
        if count_instances:
            crds = await self._count_instances(crds)
        return crds

    async def list_custom_resources(
        self,
        crd_name: str,
        namespace: str | None = None,
        use_cache: bool = True,
    ) -> list[CustomResourceInfo]:
        if use_cache and self._cache is not None:
            cached = self._cache.get_custom_resources(crd_name, namespace)
            if cached is not None:
                return cached

        records = await self._provider.list_custom_resources(crd_name, namespace)
        if self._cache is not None:
            self._cache.set_custom_resources(crd_name, records, namespace)
        return records

    async def warm(
        self,
        namespaces: Iterable[str] | None = None,
        kinds: Iterable[ResourceKind] | None = None,
    ) -> int:
        """Pre-populate the cache; return the number of namespace/kind scopes loaded."""
        targets = list(namespaces) if namespaces else await self._provider.list_namespaces()
        warm_kinds = list(kinds) if kinds else list(DEFAULT_WARM_KINDS)
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _one(kind: ResourceKind, ns: str) -> bool:
            async with semaphore:
                try:
                    await self.list(kind, ns, use_cache=False)
                except Exception as exc:
                    _log.warning("cache_warm_failed", kind=str(kind), namespace=ns, error=str(exc))
                    return False
                return True

        outcomes = await asyncio.gather(*(_one(kind, ns) for kind in warm_kinds for ns in targets))
        warmed = sum(1 for ok in outcomes if ok)
        _log.info("cache_warmed", scopes=warmed, namespaces=len(targets), kinds=[str(k) for k in warm_kinds])
        return warmed

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def cache_stats(self) -> CacheStats | None:
        return self._cache.stats() if self._cache is not None else None

    def clear_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()

    def cleanup_cache(self) -> int:
        return self._cache.cleanup_expired() if self._cache is not None else 0

    async def _count_instances(self, crds: list[CRDInfo]) -> list[CRDInfo]:
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _count(crd: CRDInfo) -> CRDInfo:
            async with semaphore:
                try:
                    instances = await self.list_custom_resources(crd.name)
                except Exception as exc:
                    _log.warning("crd_instance_count_failed", crd=crd.name, error=str(exc))
                    return crd
                return dataclasses.replace(crd, instance_count=len(instances))

        return list(await asyncio.gather(*(_count(crd) for crd in crds)))
