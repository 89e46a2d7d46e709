"""Convert raw Kubernetes API objects into resource records.

Input is the camelCase dict form of an API object (what
``ApiClient.sanitize_for_serialization`` or a CustomObjectsApi call
returns).  Converters return None for objects without a name.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from kdx.models.resources import (
    CLUSTER_SCOPED_NAMESPACE,
    ConfigMapInfo,
    CRDInfo,
    CustomResourceInfo,
    DaemonSetInfo,
    DeploymentInfo,
    PodInfo,
    ReferenceType,
    ResourceReference,
    SecretInfo,
    ServiceInfo,
    ServicePort,
    StatefulSetInfo,
)

_DEFAULT_NAMESPACE = "default"


def format_age(created: str | datetime | None, now: datetime | None = None) -> str:
    """Render a creation timestamp as a kubectl-style age (``5d``, ``3h``, ``42s``)."""
    if created is None or created == "":
        return "Unknown"
    if isinstance(created, str):
        try:
            created = datetime.fromisoformat(created.replace("Z", "+00:00"))
        except ValueError:
            return "Unknown"
    if created.tzinfo is None:
        created = created.replace(tzinfo=UTC)

    seconds = int(((now or datetime.now(tz=UTC)) - created).total_seconds())
    if seconds < 0:
        return "0s"
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"


def _metadata(raw: dict[str, Any]) -> dict[str, Any]:
    return raw.get("metadata") or {}


def _labels(meta: dict[str, Any]) -> dict[str, str]:
    return {str(k): str(v) for k, v in (meta.get("labels") or {}).items()}


def _match_labels(spec: dict[str, Any]) -> dict[str, str]:
    selector = spec.get("selector") or {}
    return {str(k): str(v) for k, v in (selector.get("matchLabels") or {}).items()}


def service_from_raw(raw: dict[str, Any], now: datetime | None = None) -> ServiceInfo | None:
    meta = _metadata(raw)
    name = meta.get("name")
    if not name:
        return None
    spec = raw.get("spec") or {}

    ports = tuple(
        ServicePort(
            name=port.get("name"),
            port=int(port.get("port", 0)),
            target_port=str(port.get("targetPort", port.get("port", ""))),
            protocol=port.get("protocol") or "TCP",
        )
        for port in spec.get("ports") or []
    )
    selector = spec.get("selector")
    return ServiceInfo(
        name=name,
        namespace=meta.get("namespace") or _DEFAULT_NAMESPACE,
        service_type=spec.get("type") or "ClusterIP",
        cluster_ip=spec.get("clusterIP"),
        ports=ports,
        selector={str(k): str(v) for k, v in selector.items()} if selector is not None else None,
    )


def pod_from_raw(raw: dict[str, Any], now: datetime | None = None) -> PodInfo | None:
    meta = _metadata(raw)
    name = meta.get("name")
    if not name:
        return None
    spec = raw.get("spec") or {}
    status = raw.get("status") or {}
    container_statuses = status.get("containerStatuses") or []

    return PodInfo(
        name=name,
        namespace=meta.get("namespace") or _DEFAULT_NAMESPACE,
        phase=status.get("phase") or "Unknown",
        pod_ip=status.get("podIP"),
        node_name=spec.get("nodeName"),
        labels=_labels(meta),
        ready_containers=sum(1 for cs in container_statuses if cs.get("ready")),
        total_containers=len(spec.get("containers") or []),
        restart_count=sum(int(cs.get("restartCount", 0)) for cs in container_statuses),
        age=format_age(meta.get("creationTimestamp"), now),
    )


def deployment_from_raw(raw: dict[str, Any], now: datetime | None = None) -> DeploymentInfo | None:
    meta = _metadata(raw)
    name = meta.get("name")
    if not name:
        return None
    spec = raw.get("spec") or {}
    status = raw.get("status") or {}
    replicas = spec.get("replicas")

    return DeploymentInfo(
        name=name,
        namespace=meta.get("namespace") or _DEFAULT_NAMESPACE,
        replicas=1 if replicas is None else int(replicas),
        ready_replicas=int(status.get("readyReplicas") or 0),
        available_replicas=int(status.get("availableReplicas") or 0),
        strategy=(spec.get("strategy") or {}).get("type") or "RollingUpdate",
        age=format_age(meta.get("creationTimestamp"), now),
        labels=_labels(meta),
        selector=_match_labels(spec),
    )


def statefulset_from_raw(raw: dict[str, Any], now: datetime | None = None) -> StatefulSetInfo | None:
    meta = _metadata(raw)
    name = meta.get("name")
    if not name:
        return None
    spec = raw.get("spec") or {}
    status = raw.get("status") or {}
    replicas = spec.get("replicas")

    return StatefulSetInfo(
        name=name,
        namespace=meta.get("namespace") or _DEFAULT_NAMESPACE,
        replicas=1 if replicas is None else int(replicas),
        ready_replicas=int(status.get("readyReplicas") or 0),
        current_replicas=int(status.get("currentReplicas") or 0),
        age=format_age(meta.get("creationTimestamp"), now),
        labels=_labels(meta),
        selector=_match_labels(spec),
    )


def daemonset_from_raw(raw: dict[str, Any], now: datetime | None = None) -> DaemonSetInfo | None:
    meta = _metadata(raw)
    name = meta.get("name")
    if not name:
        return None
    spec = raw.get("spec") or {}
    status = raw.get("status") or {}

    return DaemonSetInfo(
        name=name,
        namespace=meta.get("namespace") or _DEFAULT_NAMESPACE,
        desired=int(status.get("desiredNumberScheduled") or 0),
        current=int(status.get("currentNumberScheduled") or 0),
        ready=int(status.get("numberReady") or 0),
        up_to_date=int(status.get("updatedNumberScheduled") or 0),
        age=format_age(meta.get("creationTimestamp"), now),
        labels=_labels(meta),
        selector=_match_labels(spec),
    )


# ---------------------------------------------------------------------------
# ConfigMap / Secret usage
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConfigUsage:
    """Where pods in one namespace consume a ConfigMap or Secret."""

    references: tuple[ResourceReference, ...] = ()
    mount_paths: tuple[str, ...] = ()


# (namespace, "ConfigMap" | "Secret", name) -> usage
UsageIndex = dict[tuple[str, str, str], ConfigUsage]


def index_config_usage(raw_pods: Iterable[dict[str, Any]]) -> UsageIndex:
    """Scan pod specs for volume, env, envFrom and imagePullSecret references."""
    refs: dict[tuple[str, str, str], list[ResourceReference]] = defaultdict(list)
    paths: dict[tuple[str, str, str], list[str]] = defaultdict(list)

    def _add(key: tuple[str, str, str], ref: ResourceReference) -> None:
        if ref not in refs[key]:
            refs[key].append(ref)

    for pod in raw_pods:
        meta = _metadata(pod)
        pod_name = meta.get("name")
        if not pod_name:
            continue
        ns = meta.get("namespace") or _DEFAULT_NAMESPACE
        spec = pod.get("spec") or {}

        def _ref(ref_type: ReferenceType, pod_name: str = pod_name, ns: str = ns) -> ResourceReference:
            return ResourceReference(kind="Pod", name=pod_name, namespace=ns, reference_type=ref_type)

        volume_targets: dict[str, tuple[str, str]] = {}
        for volume in spec.get("volumes") or []:
            if volume.get("configMap"):
                volume_targets[volume.get("name", "")] = ("ConfigMap", volume["configMap"].get("name", ""))
            elif volume.get("secret"):
                volume_targets[volume.get("name", "")] = ("Secret", volume["secret"].get("secretName", ""))

        for kind, target in volume_targets.values():
            _add((ns, kind, target), _ref(ReferenceType.VOLUME_MOUNT))

        containers = list(spec.get("containers") or []) + list(spec.get("initContainers") or [])
        for container in containers:
            for mount in container.get("volumeMounts") or []:
                target = volume_targets.get(mount.get("name", ""))
                if target is not None and mount.get("mountPath"):
                    key = (ns, target[0], target[1])
                    if mount["mountPath"] not in paths[key]:
                        paths[key].append(mount["mountPath"])

            for env in container.get("env") or []:
                value_from = env.get("valueFrom") or {}
                if value_from.get("configMapKeyRef"):
                    _add((ns, "ConfigMap", value_from["configMapKeyRef"].get("name", "")), _ref(ReferenceType.ENVIRONMENT))
                if value_from.get("secretKeyRef"):
                    _add((ns, "Secret", value_from["secretKeyRef"].get("name", "")), _ref(ReferenceType.ENVIRONMENT))

            for env_from in container.get("envFrom") or []:
                if env_from.get("configMapRef"):
                    _add((ns, "ConfigMap", env_from["configMapRef"].get("name", "")), _ref(ReferenceType.ENVIRONMENT_FROM))
                if env_from.get("secretRef"):
                    _add((ns, "Secret", env_from["secretRef"].get("name", "")), _ref(ReferenceType.ENVIRONMENT_FROM))

        for pull_secret in spec.get("imagePullSecrets") or []:
            _add((ns, "Secret", pull_secret.get("name", "")), _ref(ReferenceType.IMAGE_PULL_SECRET))

    return {
        key: ConfigUsage(references=tuple(refs.get(key, ())), mount_paths=tuple(paths.get(key, ())))
        for key in set(refs) | set(paths)
    }


def configmap_from_raw(
    raw: dict[str, Any],
    usage: UsageIndex | None = None,
    now: datetime | None = None,
) -> ConfigMapInfo | None:
    meta = _metadata(raw)
    name = meta.get("name")
    if not name:
        return None
    namespace = meta.get("namespace") or _DEFAULT_NAMESPACE
    found = (usage or {}).get((namespace, "ConfigMap", name), ConfigUsage())
    data_keys = list((raw.get("data") or {}).keys()) + list((raw.get("binaryData") or {}).keys())

    return ConfigMapInfo(
        name=name,
        namespace=namespace,
        data_keys=tuple(sorted(data_keys)),
        age=format_age(meta.get("creationTimestamp"), now),
        labels=_labels(meta),
        used_by=found.references,
        mount_paths=found.mount_paths,
    )


def secret_from_raw(
    raw: dict[str, Any],
    usage: UsageIndex | None = None,
    now: datetime | None = None,
) -> SecretInfo | None:
    meta = _metadata(raw)
    name = meta.get("name")
    if not name:
        return None
    namespace = meta.get("namespace") or _DEFAULT_NAMESPACE
    found = (usage or {}).get((namespace, "Secret", name), ConfigUsage())

    return SecretInfo(
        name=name,
        namespace=namespace,
        secret_type=raw.get("type") or "Opaque",
        data_keys=tuple(sorted((raw.get("data") or {}).keys())),
        age=format_age(meta.get("creationTimestamp"), now),
        labels=_labels(meta),
        used_by=found.references,
        mount_paths=found.mount_paths,
    )


# ---------------------------------------------------------------------------
# CRDs and custom resources
# ---------------------------------------------------------------------------


def crd_from_raw(raw: dict[str, Any], now: datetime | None = None) -> CRDInfo | None:
    meta = _metadata(raw)
    name = meta.get("name")
    if not name:
        return None
    spec = raw.get("spec") or {}
    names = spec.get("names") or {}

    return CRDInfo(
        name=name,
        group=spec.get("group") or "",
        resource_kind=names.get("kind") or "",
        scope=spec.get("scope") or "Namespaced",
        versions=tuple(v.get("name", "") for v in spec.get("versions") or [] if v.get("served", True)),
        labels=_labels(meta),
        age=format_age(meta.get("creationTimestamp"), now),
    )


def storage_version(raw_crd: dict[str, Any]) -> str:
    """The version to query a CRD's objects at (storage version, else first served)."""
    versions = (raw_crd.get("spec") or {}).get("versions") or []
    for version in versions:
        if version.get("storage"):
            return str(version.get("name", ""))
    return str(versions[0].get("name", "")) if versions else ""


def custom_resource_from_raw(
    raw: dict[str, Any],
    crd_name: str,
    now: datetime | None = None,
) -> CustomResourceInfo | None:
    meta = _metadata(raw)
    name = meta.get("name")
    if not name:
        return None

    return CustomResourceInfo(
        name=name,
        namespace=meta.get("namespace") or CLUSTER_SCOPED_NAMESPACE,
        crd_name=crd_name,
        resource_kind=raw.get("kind") or "",
        api_version=raw.get("apiVersion") or "",
        labels=_labels(meta),
        age=format_age(meta.get("creationTimestamp"), now),
    )
