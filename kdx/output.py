"""Render records, groups and cache statistics as tables, JSON or YAML."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

import click
import yaml
from rich.console import Console
from rich.table import Table

from kdx.cache import CacheStats
from kdx.errors import OutputFormatError
from kdx.models.filtering import GroupedResources
from kdx.models.resources import (
    ConfigMapInfo,
    CRDInfo,
    CustomResourceInfo,
    DaemonSetInfo,
    DeploymentInfo,
    PodInfo,
    ResourceKind,
    ResourceRecord,
    SecretInfo,
    ServiceInfo,
    StatefulSetInfo,
)

_NONE = "<none>"


def to_plain(obj: Any) -> Any:
    """Convert records and containers into JSON/YAML-safe builtins."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_plain(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, Enum):
        return str(obj.value)
    if isinstance(obj, dict):
        return {str(to_plain(k)): to_plain(v) for k, v in obj.items()}
    if isinstance(obj, list | tuple):
        return [to_plain(item) for item in obj]
    return obj


def _dump(document: Any, fmt: str) -> str:
    try:
        if fmt == "json":
            return json.dumps(document, indent=2)
        if fmt == "yaml":
            return yaml.safe_dump(document, sort_keys=False).rstrip("\n")
    except (TypeError, ValueError, yaml.YAMLError) as exc:
        raise OutputFormatError(str(exc)) from exc
    raise OutputFormatError(f"unsupported format '{fmt}'")


def _labels(labels: dict[str, str] | None) -> str:
    if not labels:
        return _NONE
    return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))


def _service_row(svc: ServiceInfo) -> list[str]:
    ports = ",".join(f"{p.port}:{p.target_port}/{p.protocol}" for p in svc.ports) or _NONE
    return [svc.namespace, svc.name, svc.service_type, svc.cluster_ip or _NONE, ports, _labels(svc.selector)]


def _pod_row(pod: PodInfo) -> list[str]:
    return [
        pod.namespace,
        pod.name,
        pod.phase,
        f"{pod.ready_containers}/{pod.total_containers}",
        str(pod.restart_count),
        pod.pod_ip or _NONE,
        pod.node_name or _NONE,
        pod.age,
    ]


def _deployment_row(dep: DeploymentInfo) -> list[str]:
    return [
        dep.namespace,
        dep.name,
        f"{dep.ready_replicas}/{dep.replicas}",
        str(dep.available_replicas),
        dep.status or "",
        dep.strategy,
        dep.age,
    ]


def _statefulset_row(sts: StatefulSetInfo) -> list[str]:
    return [sts.namespace, sts.name, f"{sts.ready_replicas}/{sts.replicas}", str(sts.current_replicas), sts.age]


def _daemonset_row(ds: DaemonSetInfo) -> list[str]:
    return [ds.namespace, ds.name, str(ds.desired), str(ds.current), str(ds.ready), str(ds.up_to_date), ds.age]


def _used_by(refs: Sequence[Any]) -> str:
    return ",".join(f"{r.kind}/{r.name}" for r in refs) or _NONE


def _configmap_row(cm: ConfigMapInfo) -> list[str]:
    return [cm.namespace, cm.name, str(len(cm.data_keys)), _used_by(cm.used_by), cm.age]


def _secret_row(secret: SecretInfo) -> list[str]:
    return [secret.namespace, secret.name, secret.secret_type, str(len(secret.data_keys)), _used_by(secret.used_by), secret.age]


def _crd_row(crd: CRDInfo) -> list[str]:
    return [crd.name, crd.group, crd.resource_kind, crd.scope, ",".join(crd.versions) or _NONE, str(crd.instance_count), crd.age]


def _custom_resource_row(cr: CustomResourceInfo) -> list[str]:
    return [cr.namespace, cr.name, cr.resource_kind, cr.api_version, cr.age]


_TABLES: dict[ResourceKind, tuple[list[str], Callable[[Any], list[str]]]] = {
    ResourceKind.SERVICES: (["NAMESPACE", "NAME", "TYPE", "CLUSTER-IP", "PORTS", "SELECTOR"], _service_row),
    ResourceKind.PODS: (["NAMESPACE", "NAME", "PHASE", "READY", "RESTARTS", "IP", "NODE", "AGE"], _pod_row),
    ResourceKind.DEPLOYMENTS: (
        ["NAMESPACE", "NAME", "READY", "AVAILABLE", "STATUS", "STRATEGY", "AGE"],
        _deployment_row,
    ),
    ResourceKind.STATEFULSETS: (["NAMESPACE", "NAME", "READY", "CURRENT", "AGE"], _statefulset_row),
    ResourceKind.DAEMONSETS: (
        ["NAMESPACE", "NAME", "DESIRED", "CURRENT", "READY", "UP-TO-DATE", "AGE"],
        _daemonset_row,
    ),
    ResourceKind.CONFIGMAPS: (["NAMESPACE", "NAME", "KEYS", "USED-BY", "AGE"], _configmap_row),
    ResourceKind.SECRETS: (["NAMESPACE", "NAME", "TYPE", "KEYS", "USED-BY", "AGE"], _secret_row),
    ResourceKind.CRDS: (["NAME", "GROUP", "KIND", "SCOPE", "VERSIONS", "INSTANCES", "AGE"], _crd_row),
    ResourceKind.CUSTOM_RESOURCES: (["NAMESPACE", "NAME", "KIND", "API-VERSION", "AGE"], _custom_resource_row),
}


def _build_table(kind: ResourceKind, records: Sequence[ResourceRecord], title: str | None = None) -> Table:
    headers, row = _TABLES[kind]
    table = Table(title=title, box=None, header_style="bold")
    for header in headers:
        table.add_column(header, no_wrap=True)
    for record in records:
        table.add_row(*row(record))
    return table


def print_records(kind: ResourceKind, records: Sequence[ResourceRecord], fmt: str = "table") -> None:
    if fmt == "table":
        console = Console()
        if not records:
            console.print(f"No {kind.display_name.lower()} found.")
            return
        console.print(_build_table(kind, records))
        return
    click.echo(_dump(to_plain(list(records)), fmt))


def print_grouped(grouped: GroupedResources, fmt: str = "table") -> None:
    if fmt != "table":
        document = {key: to_plain(group.to_dict()) for key, group in grouped.sorted_groups()}
        click.echo(_dump(document, fmt))
        return

    console = Console()
    if not grouped.groups:
        console.print("No resources found.")
        return
    for _, group in grouped.sorted_groups():
        header = f"[bold]{group.name}[/bold] ({group.group_type}) - {group.total_resources()} resources"
        if group.metadata:
            header += " " + " ".join(f"[dim]{k}={v}[/dim]" for k, v in sorted(group.metadata.items()))
        console.print(header)
        for kind in ResourceKind:
            records = group.of_kind(kind)
            if records:
                console.print(_build_table(kind, records, title=kind.display_name))
        console.print()


def print_cache_stats(stats: CacheStats | None, fmt: str = "table") -> None:
    if stats is None:
        click.echo("Cache is disabled.")
        return
    if fmt != "table":
        click.echo(_dump(stats.to_dict(), fmt))
        return

    table = Table(title="Cache Statistics", box=None, header_style="bold")
    table.add_column("KIND")
    table.add_column("ENTRIES", justify="right")
    for kind in ResourceKind:
        table.add_row(kind.display_name, str(stats.entries_for(kind)))
    table.add_row("Total", str(stats.total_entries()), style="bold")
    console = Console()
    console.print(table)
    console.print(f"Default TTL: {int(stats.default_ttl.total_seconds())}s")
