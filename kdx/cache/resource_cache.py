"""TTL result cache for resource listings.

One independent map per ResourceKind, keyed by the query scope (namespace
and/or label selector).  Each map has its own lock, so traffic for one kind
never serialises behind another.  Entries are immutable and swapped whole on
``set``; a concurrent ``get`` sees either the old entry or the new one.

Expiry is lazy (an expired entry is dropped by the read that finds it) plus
an explicit ``cleanup_expired`` sweep for scopes that are written once and
never read again.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Generic, TypeVar

from kdx.models.resources import CRDInfo, CustomResourceInfo, ResourceKind, ResourceRecord
from kdx.observability.logging import get_logger

T = TypeVar("T")

_log = get_logger("cache")

DEFAULT_TTL = timedelta(minutes=5)
ALL_SCOPE = "all"


def scope_key(namespace: str | None = None, selector: str | None = None) -> str:
    """Derive the cache key for a query scope.

    ``ns:sel`` / ``ns`` / ``all:sel`` / ``all`` depending on which of the two
    are given.  Empty strings count as absent.
    """
    if namespace and selector:
        return f"{namespace}:{selector}"
    if namespace:
        return namespace
    if selector:
        return f"{ALL_SCOPE}:{selector}"
    return ALL_SCOPE


def custom_resource_key(crd_name: str, namespace: str | None = None) -> str:
    return f"{crd_name}:{scope_key(namespace)}"


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached payload stamped with its insertion time (monotonic seconds)."""

    data: T
    inserted_at: float
    ttl: timedelta

    def age(self, now: float | None = None) -> float:
        return (time.monotonic() if now is None else now) - self.inserted_at

    def is_expired(self, now: float | None = None) -> bool:
        return self.age(now) > self.ttl.total_seconds()


@dataclass(frozen=True)
class CacheStats:
    """Read-only snapshot of cache occupancy."""

    entries: dict[ResourceKind, int] = field(default_factory=dict)
    default_ttl: timedelta = DEFAULT_TTL

    def entries_for(self, kind: ResourceKind) -> int:
        return self.entries.get(kind, 0)

    def total_entries(self) -> int:
        return sum(self.entries.values())

    def to_dict(self) -> dict[str, object]:
        return {
            "entries": {str(kind): count for kind, count in self.entries.items()},
            "total_entries": self.total_entries(),
            "default_ttl_seconds": self.default_ttl.total_seconds(),
        }


class _KindMap:
    """Scope-keyed entries for one resource kind, guarded by its own lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry[tuple[ResourceRecord, ...]]] = {}

    def get(self, key: str) -> CacheEntry[tuple[ResourceRecord, ...]] | None:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, entry: CacheEntry[tuple[ResourceRecord, ...]]) -> None:
        with self._lock:
            self._entries[key] = entry

    def discard_if_same(self, key: str, entry: CacheEntry[tuple[ResourceRecord, ...]]) -> bool:
        """Remove *key* only if it still holds *entry* (not a newer replacement)."""
        with self._lock:
            if self._entries.get(key) is entry:
                del self._entries[key]
                return True
            return False

    def retain_fresh(self, now: float) -> int:
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ResourceCache:
    """Per-kind, scope-keyed TTL cache.

    Construct one per process and hand it to whatever needs it; there is no
    module-level instance.  No method raises: a miss and an expired read
    both return ``None``.
    """

    def __init__(
        self,
        default_ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = default_ttl
        self._clock = clock
        self._maps: dict[ResourceKind, _KindMap] = {kind: _KindMap() for kind in ResourceKind}

    @property
    def default_ttl(self) -> timedelta:
        return self._default_ttl

    # ------------------------------------------------------------------
    # Generic access
    # ------------------------------------------------------------------

    def get(self, kind: ResourceKind, scope: str) -> list[ResourceRecord] | None:
        """Return a copy of the cached list for *scope*, or None on miss/expiry."""
        kind_map = self._maps[kind]
        entry = kind_map.get(scope)
        if entry is None:
            _log.debug("cache_miss", kind=str(kind), scope=scope)
            return None
        if entry.is_expired(self._clock()):
            kind_map.discard_if_same(scope, entry)
            _log.debug("cache_expired", kind=str(kind), scope=scope)
            return None
        _log.debug("cache_hit", kind=str(kind), scope=scope, count=len(entry.data))
        return list(entry.data)

    def set(self, kind: ResourceKind, scope: str, data: Sequence[ResourceRecord]) -> None:
        """Insert or replace the entry for *scope* with a freshly stamped one."""
        entry = CacheEntry(data=tuple(data), inserted_at=self._clock(), ttl=self._default_ttl)
        self._maps[kind].put(scope, entry)
        _log.debug("cache_set", kind=str(kind), scope=scope, count=len(entry.data))

    def get_scoped(
        self,
        kind: ResourceKind,
        namespace: str | None = None,
        selector: str | None = None,
    ) -> list[ResourceRecord] | None:
        return self.get(kind, scope_key(namespace, selector))

    def set_scoped(
        self,
        kind: ResourceKind,
        data: Sequence[ResourceRecord],
        namespace: str | None = None,
        selector: str | None = None,
    ) -> None:
        self.set(kind, scope_key(namespace, selector), data)

    # ------------------------------------------------------------------
    # CRDs and custom resources
    # ------------------------------------------------------------------

    def get_crds(self) -> list[CRDInfo] | None:
        return self.get(ResourceKind.CRDS, ALL_SCOPE)  # type: ignore[return-value]

    def set_crds(self, data: Sequence[CRDInfo]) -> None:
        self.set(ResourceKind.CRDS, ALL_SCOPE, data)

    def get_custom_resources(self, crd_name: str, namespace: str | None = None) -> list[CustomResourceInfo] | None:
        return self.get(ResourceKind.CUSTOM_RESOURCES, custom_resource_key(crd_name, namespace))  # type: ignore[return-value]

    def set_custom_resources(
        self,
        crd_name: str,
        data: Sequence[CustomResourceInfo],
        namespace: str | None = None,
    ) -> None:
        self.set(ResourceKind.CUSTOM_RESOURCES, custom_resource_key(crd_name, namespace), data)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def clear(self) -> None:
        for kind_map in self._maps.values():
            kind_map.clear()
        _log.info("cache_cleared")

    def cleanup_expired(self) -> int:
        """Drop every expired entry across all kinds; return how many went."""
        now = self._clock()
        removed = sum(kind_map.retain_fresh(now) for kind_map in self._maps.values())
        if removed:
            _log.info("cache_expired_entries_removed", removed=removed)
        return removed

    def stats(self) -> CacheStats:
        return CacheStats(
            entries={kind: len(kind_map) for kind, kind_map in self._maps.items()},
            default_ttl=self._default_ttl,
        )
