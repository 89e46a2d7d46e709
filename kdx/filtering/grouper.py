"""Partition resource collections into named buckets."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from kdx.models.filtering import (
    ALL_GROUP_KEY,
    UNKNOWN_GROUP,
    GroupBy,
    GroupByMode,
    GroupedResources,
    ResourceGroup,
)
from kdx.models.resources import ResourceKind, ResourceRecord

_NAMESPACE_GROUP_TYPE = "namespace"
_NONE_GROUP_TYPE = "none"


def parse_group_by(token: str) -> GroupBy:
    """Map a ``--group-by`` token to a GroupBy.

    Known tokens are matched case-insensitively; anything else is taken as
    a custom label key, with its original spelling (label keys are
    case-sensitive).
    """
    match token.strip().lower():
        case "app":
            return GroupBy.app()
        case "tier":
            return GroupBy.tier()
        case "helm" | "helm-release":
            return GroupBy.helm_release()
        case "namespace" | "ns":
            return GroupBy.namespace()
        case "none":
            return GroupBy.none()
        case _:
            return GroupBy.custom_label(token.strip())


class ResourceGrouper:
    """Builds GroupedResources from records of one or more kinds."""

    @classmethod
    def group(
        cls,
        records_by_kind: Mapping[ResourceKind, Iterable[ResourceRecord]],
        group_by: GroupBy,
    ) -> GroupedResources:
        """Assign every record to a bucket derived from *group_by*.

        Each kind is walked independently; bucket membership does not depend
        on the order of kinds, only the order within a bucket's per-kind list.
        """
        grouped = GroupedResources()

        if group_by.mode is GroupByMode.NONE:
            group = ResourceGroup(name=_all_bucket_name(records_by_kind), group_type=_NONE_GROUP_TYPE)
            for records in records_by_kind.values():
                for record in records:
                    group.add(record)
            grouped.groups[ALL_GROUP_KEY] = group
            return grouped

        for records in records_by_kind.values():
            for record in records:
                key, group_type = _bucket_for(record, group_by)
                group = grouped.groups.get(key)
                if group is None:
                    group = ResourceGroup(name=key, group_type=group_type)
                    grouped.groups[key] = group
                group.add(record)

        if group_by.mode is GroupByMode.HELM_RELEASE:
            for group in grouped.groups.values():
                group.metadata["managed-by"] = "Helm"

        return grouped

    @classmethod
    def group_records(cls, records: Iterable[ResourceRecord], group_by: GroupBy) -> GroupedResources:
        """Group a single-kind list (kind taken from the records themselves)."""
        records = list(records)
        by_kind: dict[ResourceKind, list[ResourceRecord]] = {}
        for record in records:
            by_kind.setdefault(record.kind, []).append(record)
        return cls.group(by_kind, group_by)


def _bucket_for(record: ResourceRecord, group_by: GroupBy) -> tuple[str, str]:
    if group_by.mode is GroupByMode.NAMESPACE:
        return record.namespace, _NAMESPACE_GROUP_TYPE

    label_key = group_by.label_key or ""
    labels = record.selection_labels or {}
    return labels.get(label_key, UNKNOWN_GROUP), label_key


def _all_bucket_name(records_by_kind: Mapping[ResourceKind, Iterable[ResourceRecord]]) -> str:
    if len(records_by_kind) == 1:
        (kind,) = records_by_kind
        return f"All {kind.display_name}"
    return "All Resources"
