"""Shared fixtures for kdx tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog

from kdx.filtering import compile_selector
from kdx.models.resources import ResourceKind
from kdx.observability.logging import setup_logging
from tests.fakes import FakeClock, FakeProvider, make_configmap, make_deployment, make_pod, make_service


@pytest.fixture(autouse=True)
def _quiet_logging() -> Iterator[None]:
    """Route logs to stderr at warning level so stdout holds only command output."""
    setup_logging("warning")
    yield
    structlog.reset_defaults()
    compile_selector.cache_clear()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def sample_provider() -> FakeProvider:
    """Two namespaces with a small web/api application in each."""
    return FakeProvider(
        records={
            ResourceKind.PODS: [
                make_pod("web-1", "default", {"app": "web", "tier": "frontend"}),
                make_pod("web-2", "default", {"app": "web", "tier": "frontend"}, phase="Pending"),
                make_pod("api-1", "prod", {"app": "api", "tier": "backend"}),
                make_pod("job-1", "prod", {}, phase="Succeeded"),
            ],
            ResourceKind.SERVICES: [
                make_service("web", "default", {"app": "web"}),
                make_service("api", "prod", {"app": "api"}),
                make_service("external", "prod", None),
            ],
            ResourceKind.DEPLOYMENTS: [
                make_deployment("web", "default", replicas=2, ready=2, labels={"app": "web"}),
                make_deployment("api", "prod", replicas=3, ready=1, labels={"app": "api"}),
            ],
            ResourceKind.CONFIGMAPS: [make_configmap("web-config", "default", {"app": "web"})],
        },
        namespaces=["default", "prod"],
    )
