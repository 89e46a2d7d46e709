"""In-memory stand-ins shared by kdx tests.

FakeProvider serves canned records without touching a cluster; FakeClock
drives cache expiry deterministically.  The ``make_*`` factories build
records with sensible defaults.
"""

from __future__ import annotations

import asyncio

from kdx.discovery.provider import ResourceProvider
from kdx.errors import ProviderError, ResourceNotFoundError
from kdx.models.resources import (
    ConfigMapInfo,
    CRDInfo,
    CustomResourceInfo,
    DeploymentInfo,
    PodInfo,
    ResourceKind,
    ResourceRecord,
    ServiceInfo,
    ServicePort,
)
from kdx.selector import LabelSelector

# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------


def make_pod(
    name: str = "web-1",
    namespace: str = "default",
    labels: dict[str, str] | None = None,
    phase: str = "Running",
) -> PodInfo:
    return PodInfo(
        name=name,
        namespace=namespace,
        phase=phase,
        pod_ip="10.0.0.10",
        node_name="node-a",
        labels=labels if labels is not None else {"app": "web"},
        ready_containers=1,
        total_containers=1,
        age="5m",
    )


def make_service(
    name: str = "web",
    namespace: str = "default",
    selector: dict[str, str] | None = None,
) -> ServiceInfo:
    return ServiceInfo(
        name=name,
        namespace=namespace,
        cluster_ip="10.96.0.10",
        ports=(ServicePort(port=80, target_port="8080"),),
        selector=selector,
    )


def make_deployment(
    name: str = "web",
    namespace: str = "default",
    replicas: int = 3,
    ready: int = 3,
    labels: dict[str, str] | None = None,
) -> DeploymentInfo:
    return DeploymentInfo(
        name=name,
        namespace=namespace,
        replicas=replicas,
        ready_replicas=ready,
        available_replicas=ready,
        age="2d",
        labels=labels if labels is not None else {"app": "web"},
    )


def make_configmap(
    name: str = "web-config",
    namespace: str = "default",
    labels: dict[str, str] | None = None,
) -> ConfigMapInfo:
    return ConfigMapInfo(
        name=name,
        namespace=namespace,
        data_keys=("app.yaml",),
        age="1h",
        labels=labels or {},
    )


def make_crd(name: str = "certificates.cert-manager.io", labels: dict[str, str] | None = None) -> CRDInfo:
    plural, _, group = name.partition(".")
    return CRDInfo(
        name=name,
        group=group,
        resource_kind=plural.rstrip("s").capitalize(),
        versions=("v1",),
        labels=labels or {},
        age="30d",
    )


def make_custom_resource(
    name: str = "web-tls",
    namespace: str = "default",
    crd_name: str = "certificates.cert-manager.io",
    labels: dict[str, str] | None = None,
) -> CustomResourceInfo:
    return CustomResourceInfo(
        name=name,
        namespace=namespace,
        crd_name=crd_name,
        resource_kind="Certificate",
        api_version="cert-manager.io/v1",
        labels=labels or {},
        age="3d",
    )


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------


class FakeProvider(ResourceProvider):
    """Serves canned records and records every call it receives.

    Namespaces listed in ``failing_namespaces`` raise ProviderError.  A
    non-zero ``delay`` makes each call yield so concurrency can be observed
    through ``max_in_flight``.
    """

    def __init__(
        self,
        records: dict[ResourceKind, list[ResourceRecord]] | None = None,
        crds: list[CRDInfo] | None = None,
        custom_resources: dict[str, list[CustomResourceInfo]] | None = None,
        namespaces: list[str] | None = None,
        failing_namespaces: tuple[str, ...] = (),
        delay: float = 0.0,
    ) -> None:
        self.records = records or {}
        self.crds = crds or []
        self.custom_resources = custom_resources or {}
        self._namespaces = namespaces
        self.failing_namespaces = failing_namespaces
        self.delay = delay
        self.calls: list[tuple[object, ...]] = []
        self.closed = False
        self.in_flight = 0
        self.max_in_flight = 0

    async def list_namespaces(self) -> list[str]:
        self.calls.append(("list_namespaces",))
        if self._namespaces is not None:
            return list(self._namespaces)
        return sorted({r.namespace for records in self.records.values() for r in records})

    async def list_resources(
        self,
        kind: ResourceKind,
        namespace: str | None = None,
        selector: str | None = None,
    ) -> list[ResourceRecord]:
        self.calls.append(("list_resources", kind, namespace, selector))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if namespace in self.failing_namespaces:
                raise ProviderError(f"list {kind} in {namespace}", RuntimeError("connection refused"))
            items = [r for r in self.records.get(kind, []) if namespace is None or r.namespace == namespace]
            if selector:
                compiled = LabelSelector.parse(selector)
                items = [r for r in items if r.selection_labels is not None and compiled.matches(r.selection_labels)]
            return items
        finally:
            self.in_flight -= 1

    async def list_crds(self) -> list[CRDInfo]:
        self.calls.append(("list_crds",))
        return list(self.crds)

    async def list_custom_resources(
        self,
        crd_name: str,
        namespace: str | None = None,
    ) -> list[CustomResourceInfo]:
        self.calls.append(("list_custom_resources", crd_name, namespace))
        if crd_name not in self.custom_resources:
            raise ResourceNotFoundError("CustomResourceDefinition", crd_name, "cluster")
        return [r for r in self.custom_resources[crd_name] if namespace is None or r.namespace == namespace]

    async def close(self) -> None:
        self.closed = True

    def calls_for(self, name: str) -> list[tuple[object, ...]]:
        return [call for call in self.calls if call[0] == name]
