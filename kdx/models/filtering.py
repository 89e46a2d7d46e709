"""Filter and grouping data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import StrEnum

from kdx.models.resources import ResourceKind, ResourceRecord

HELM_RELEASE_LABEL = "app.kubernetes.io/instance"
UNKNOWN_GROUP = "unknown"
ALL_GROUP_KEY = "all"


@dataclass(frozen=True)
class FilterCriteria:
    """What a filtering pass keeps.  The default matches everything."""

    label_selector: str | None = None
    status_filter: str | None = None
    newer_than: timedelta | None = None
    older_than: timedelta | None = None
    include_types: tuple[str, ...] = ()
    exclude_types: tuple[str, ...] = ()

    def includes_kind(self, kind: ResourceKind) -> bool:
        """Return True if records of *kind* take part in this pass.

        An empty ``include_types`` includes every kind; ``exclude_types``
        always wins.  Names are resolved through ResourceKind aliases.
        """
        excluded = {ResourceKind.from_name(name) for name in self.exclude_types}
        if kind in excluded:
            return False
        if not self.include_types:
            return True
        return kind in {ResourceKind.from_name(name) for name in self.include_types}


class GroupByMode(StrEnum):
    APP = "app"
    TIER = "tier"
    HELM_RELEASE = "helm-release"
    NAMESPACE = "namespace"
    CUSTOM_LABEL = "custom-label"
    NONE = "none"


@dataclass(frozen=True)
class GroupBy:
    """Which derived key drives bucket assignment.

    Build one with the class constructors (``GroupBy.app()``,
    ``GroupBy.custom_label("team")``) or from a CLI token with
    ``kdx.filtering.parse_group_by``.
    """

    mode: GroupByMode
    label_key: str | None = None

    @classmethod
    def app(cls) -> GroupBy:
        return cls(GroupByMode.APP, "app")

    @classmethod
    def tier(cls) -> GroupBy:
        return cls(GroupByMode.TIER, "tier")

    @classmethod
    def helm_release(cls) -> GroupBy:
        return cls(GroupByMode.HELM_RELEASE, HELM_RELEASE_LABEL)

    @classmethod
    def namespace(cls) -> GroupBy:
        return cls(GroupByMode.NAMESPACE)

    @classmethod
    def custom_label(cls, key: str) -> GroupBy:
        return cls(GroupByMode.CUSTOM_LABEL, key)

    @classmethod
    def none(cls) -> GroupBy:
        return cls(GroupByMode.NONE)


@dataclass
class ResourceGroup:
    """A named bucket of records, kept in per-kind lists."""

    name: str
    group_type: str
    resources: dict[ResourceKind, list[ResourceRecord]] = field(default_factory=dict)
    metadata: dict[str, str] = field(default_factory=dict)

    def add(self, record: ResourceRecord) -> None:
        self.resources.setdefault(record.kind, []).append(record)

    def of_kind(self, kind: ResourceKind) -> list[ResourceRecord]:
        """Records of *kind* in insertion order (empty list if none)."""
        return self.resources.get(kind, [])

    def total_resources(self) -> int:
        return sum(len(records) for records in self.resources.values())

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "group_type": self.group_type,
            "metadata": dict(self.metadata),
            "total_resources": self.total_resources(),
            "resources": {str(kind): list(records) for kind, records in self.resources.items()},
        }


@dataclass
class GroupedResources:
    """Terminal output of a grouping pass: bucket key -> ResourceGroup."""

    groups: dict[str, ResourceGroup] = field(default_factory=dict)

    def keys(self) -> list[str]:
        """Bucket keys in sorted order."""
        return sorted(self.groups)

    def sorted_groups(self) -> list[tuple[str, ResourceGroup]]:
        return [(key, self.groups[key]) for key in self.keys()]

    def total_resources(self) -> int:
        return sum(group.total_resources() for group in self.groups.values())

    def __len__(self) -> int:
        return len(self.groups)

    def __contains__(self, key: object) -> bool:
        return key in self.groups

    def __getitem__(self, key: str) -> ResourceGroup:
        return self.groups[key]
