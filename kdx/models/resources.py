"""Resource record data structures.

Every record is an immutable, already-converted view of one Kubernetes
object.  The discovery layer produces them; the cache stores lists of them;
the filter and grouper read ``selection_labels``, ``namespace`` and
``status`` without caring which kind they hold.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import ClassVar

CLUSTER_SCOPED_NAMESPACE = "cluster-scoped"


class ResourceKind(StrEnum):
    """Resource kinds handled uniformly by the cache, filter and grouper."""

    SERVICES = "services"
    PODS = "pods"
    DEPLOYMENTS = "deployments"
    STATEFULSETS = "statefulsets"
    DAEMONSETS = "daemonsets"
    CONFIGMAPS = "configmaps"
    SECRETS = "secrets"
    CRDS = "crds"
    CUSTOM_RESOURCES = "customresources"

    @property
    def display_name(self) -> str:
        """Plural, human-facing name (``ConfigMaps``, ``Custom Resources``)."""
        return _DISPLAY_NAMES[self]

    @classmethod
    def from_name(cls, name: str) -> ResourceKind:
        """Resolve a user-supplied kind name, accepting common aliases."""
        token = name.strip().lower().replace("-", "").replace("_", "")
        kind = _KIND_ALIASES.get(token)
        if kind is None:
            raise ValueError(f"Unknown resource kind: {name}")
        return kind


_DISPLAY_NAMES: dict[ResourceKind, str] = {
    ResourceKind.SERVICES: "Services",
    ResourceKind.PODS: "Pods",
    ResourceKind.DEPLOYMENTS: "Deployments",
    ResourceKind.STATEFULSETS: "StatefulSets",
    ResourceKind.DAEMONSETS: "DaemonSets",
    ResourceKind.CONFIGMAPS: "ConfigMaps",
    ResourceKind.SECRETS: "Secrets",
    ResourceKind.CRDS: "CRDs",
    ResourceKind.CUSTOM_RESOURCES: "Custom Resources",
}

_KIND_ALIASES: dict[str, ResourceKind] = {
    "services": ResourceKind.SERVICES,
    "service": ResourceKind.SERVICES,
    "svc": ResourceKind.SERVICES,
    "pods": ResourceKind.PODS,
    "pod": ResourceKind.PODS,
    "po": ResourceKind.PODS,
    "deployments": ResourceKind.DEPLOYMENTS,
    "deployment": ResourceKind.DEPLOYMENTS,
    "deploy": ResourceKind.DEPLOYMENTS,
    "statefulsets": ResourceKind.STATEFULSETS,
    "statefulset": ResourceKind.STATEFULSETS,
    "sts": ResourceKind.STATEFULSETS,
    "daemonsets": ResourceKind.DAEMONSETS,
    "daemonset": ResourceKind.DAEMONSETS,
    "ds": ResourceKind.DAEMONSETS,
    "configmaps": ResourceKind.CONFIGMAPS,
    "configmap": ResourceKind.CONFIGMAPS,
    "cm": ResourceKind.CONFIGMAPS,
    "secrets": ResourceKind.SECRETS,
    "secret": ResourceKind.SECRETS,
    "crds": ResourceKind.CRDS,
    "crd": ResourceKind.CRDS,
    "customresourcedefinitions": ResourceKind.CRDS,
    "customresources": ResourceKind.CUSTOM_RESOURCES,
    "customresource": ResourceKind.CUSTOM_RESOURCES,
    "cr": ResourceKind.CUSTOM_RESOURCES,
}


class ReferenceType(StrEnum):
    """How a workload refers to a ConfigMap or Secret."""

    VOLUME_MOUNT = "VolumeMount"
    ENVIRONMENT = "Environment"
    ENVIRONMENT_FROM = "EnvironmentFrom"
    IMAGE_PULL_SECRET = "ImagePullSecret"


@dataclass(frozen=True)
class ResourceReference:
    """A workload that consumes a config object."""

    kind: str
    name: str
    namespace: str
    reference_type: ReferenceType


@dataclass(frozen=True)
class ServicePort:
    port: int
    target_port: str
    protocol: str = "TCP"
    name: str | None = None


@dataclass(frozen=True)
class ServiceInfo:
    """A Service.  Services are selected and grouped by their pod selector."""

    kind: ClassVar[ResourceKind] = ResourceKind.SERVICES

    name: str
    namespace: str
    service_type: str = "ClusterIP"
    cluster_ip: str | None = None
    ports: tuple[ServicePort, ...] = ()
    selector: dict[str, str] | None = None

    @property
    def selection_labels(self) -> dict[str, str] | None:
        return self.selector

    @property
    def status(self) -> str | None:
        return None


@dataclass(frozen=True)
class PodInfo:
    kind: ClassVar[ResourceKind] = ResourceKind.PODS

    name: str
    namespace: str
    phase: str = "Unknown"
    pod_ip: str | None = None
    node_name: str | None = None
    labels: dict[str, str] = field(default_factory=dict)
    ready_containers: int = 0
    total_containers: int = 0
    restart_count: int = 0
    age: str = "Unknown"

    @property
    def selection_labels(self) -> dict[str, str] | None:
        return self.labels

    @property
    def status(self) -> str | None:
        """The literal pod phase (``Running``, ``Pending``, ...)."""
        return self.phase


@dataclass(frozen=True)
class DeploymentInfo:
    kind: ClassVar[ResourceKind] = ResourceKind.DEPLOYMENTS

    name: str
    namespace: str
    replicas: int = 1
    ready_replicas: int = 0
    available_replicas: int = 0
    strategy: str = "RollingUpdate"
    age: str = "Unknown"
    labels: dict[str, str] = field(default_factory=dict)
    selector: dict[str, str] = field(default_factory=dict)

    @property
    def selection_labels(self) -> dict[str, str] | None:
        return self.labels

    @property
    def status(self) -> str | None:
        """Readiness derived from replica counts.

        ``Ready`` when every replica is ready, ``NotReady`` when none is,
        ``PartiallyReady`` otherwise.  A deployment scaled to zero is Ready.
        """
        if self.ready_replicas == self.replicas:
            return "Ready"
        if self.ready_replicas == 0:
            return "NotReady"
        return "PartiallyReady"


@dataclass(frozen=True)
class StatefulSetInfo:
    kind: ClassVar[ResourceKind] = ResourceKind.STATEFULSETS

    name: str
    namespace: str
    replicas: int = 1
    ready_replicas: int = 0
    current_replicas: int = 0
    age: str = "Unknown"
    labels: dict[str, str] = field(default_factory=dict)
    selector: dict[str, str] = field(default_factory=dict)

    @property
    def selection_labels(self) -> dict[str, str] | None:
        return self.labels

    @property
    def status(self) -> str | None:
        return None


@dataclass(frozen=True)
class DaemonSetInfo:
    kind: ClassVar[ResourceKind] = ResourceKind.DAEMONSETS

    name: str
    namespace: str
    desired: int = 0
    current: int = 0
    ready: int = 0
    up_to_date: int = 0
    age: str = "Unknown"
    labels: dict[str, str] = field(default_factory=dict)
    selector: dict[str, str] = field(default_factory=dict)

    @property
    def selection_labels(self) -> dict[str, str] | None:
        return self.labels

    @property
    def status(self) -> str | None:
        return None


@dataclass(frozen=True)
class ConfigMapInfo:
    kind: ClassVar[ResourceKind] = ResourceKind.CONFIGMAPS

    name: str
    namespace: str
    data_keys: tuple[str, ...] = ()
    age: str = "Unknown"
    labels: dict[str, str] = field(default_factory=dict)
    used_by: tuple[ResourceReference, ...] = ()
    mount_paths: tuple[str, ...] = ()

    @property
    def selection_labels(self) -> dict[str, str] | None:
        return self.labels

    @property
    def status(self) -> str | None:
        return None


@dataclass(frozen=True)
class SecretInfo:
    """A Secret.  Only key names are ever recorded, never values."""

    kind: ClassVar[ResourceKind] = ResourceKind.SECRETS

    name: str
    namespace: str
    secret_type: str = "Opaque"
    data_keys: tuple[str, ...] = ()
    age: str = "Unknown"
    labels: dict[str, str] = field(default_factory=dict)
    used_by: tuple[ResourceReference, ...] = ()
    mount_paths: tuple[str, ...] = ()

    @property
    def selection_labels(self) -> dict[str, str] | None:
        return self.labels

    @property
    def status(self) -> str | None:
        return None


@dataclass(frozen=True)
class CRDInfo:
    """A CustomResourceDefinition.  Cluster-scoped, so it has no namespace."""

    kind: ClassVar[ResourceKind] = ResourceKind.CRDS

    name: str
    group: str
    resource_kind: str
    scope: str = "Namespaced"
    versions: tuple[str, ...] = ()
    labels: dict[str, str] = field(default_factory=dict)
    instance_count: int = 0
    age: str = "Unknown"
    namespace: str = CLUSTER_SCOPED_NAMESPACE

    @property
    def selection_labels(self) -> dict[str, str] | None:
        return self.labels

    @property
    def status(self) -> str | None:
        return None


@dataclass(frozen=True)
class CustomResourceInfo:
    kind: ClassVar[ResourceKind] = ResourceKind.CUSTOM_RESOURCES

    name: str
    namespace: str
    crd_name: str
    resource_kind: str
    api_version: str
    labels: dict[str, str] = field(default_factory=dict)
    age: str = "Unknown"

    @property
    def selection_labels(self) -> dict[str, str] | None:
        return self.labels

    @property
    def status(self) -> str | None:
        return None


ResourceRecord = (
    ServiceInfo
    | PodInfo
    | DeploymentInfo
    | StatefulSetInfo
    | DaemonSetInfo
    | ConfigMapInfo
    | SecretInfo
    | CRDInfo
    | CustomResourceInfo
)
