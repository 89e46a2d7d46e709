"""Resource provider interface.

A provider performs the actual list calls against a cluster.  The
DiscoveryEngine only talks to this interface, so tests substitute an
in-memory implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from kdx.models.resources import CRDInfo, CustomResourceInfo, ResourceKind, ResourceRecord


class ResourceProvider(ABC):
    """Abstract source of resource records."""

    @abstractmethod
    async def list_namespaces(self) -> list[str]:
        """Names of every namespace visible to the caller."""

    @abstractmethod
    async def list_resources(
        self,
        kind: ResourceKind,
        namespace: str | None = None,
        selector: str | None = None,
    ) -> list[ResourceRecord]:
        """List records of a namespaced *kind*.

        ``namespace=None`` lists across all namespaces.  *selector* narrows
        by labels (services: by their pod selector).
        """

    @abstractmethod
    async def list_crds(self) -> list[CRDInfo]:
        """List CustomResourceDefinitions (instance counts left at zero)."""

    @abstractmethod
    async def list_custom_resources(
        self,
        crd_name: str,
        namespace: str | None = None,
    ) -> list[CustomResourceInfo]:
        """List instances of the CRD named ``<plural>.<group>``."""

    async def close(self) -> None:  # noqa: B027
        """Release connections.  Default: nothing to release."""
