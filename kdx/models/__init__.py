"""Core data structures for kdx."""

from kdx.models.config import KdxConfig
from kdx.models.filtering import (
    FilterCriteria,
    GroupBy,
    GroupByMode,
    GroupedResources,
    ResourceGroup,
)
from kdx.models.resources import (
    ConfigMapInfo,
    CRDInfo,
    CustomResourceInfo,
    DaemonSetInfo,
    DeploymentInfo,
    PodInfo,
    ReferenceType,
    ResourceKind,
    ResourceRecord,
    ResourceReference,
    SecretInfo,
    ServiceInfo,
    ServicePort,
    StatefulSetInfo,
)

__all__ = [
    "CRDInfo",
    "ConfigMapInfo",
    "CustomResourceInfo",
    "DaemonSetInfo",
    "DeploymentInfo",
    "FilterCriteria",
    "GroupBy",
    "GroupByMode",
    "GroupedResources",
    "KdxConfig",
    "PodInfo",
    "ReferenceType",
    "ResourceGroup",
    "ResourceKind",
    "ResourceRecord",
    "ResourceReference",
    "SecretInfo",
    "ServiceInfo",
    "ServicePort",
    "StatefulSetInfo",
]
