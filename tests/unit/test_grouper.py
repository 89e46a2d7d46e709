"""Tests for ResourceGrouper and group-by token parsing."""

from __future__ import annotations

import pytest

from kdx.filtering import ResourceGrouper, parse_group_by
from kdx.models.filtering import HELM_RELEASE_LABEL, GroupBy, GroupByMode
from kdx.models.resources import ResourceKind
from tests.fakes import make_configmap, make_deployment, make_pod, make_service


class TestParseGroupBy:
    @pytest.mark.parametrize(
        ("token", "mode"),
        [
            ("app", GroupByMode.APP),
            ("APP", GroupByMode.APP),
            ("tier", GroupByMode.TIER),
            ("helm", GroupByMode.HELM_RELEASE),
            ("Helm-Release", GroupByMode.HELM_RELEASE),
            ("namespace", GroupByMode.NAMESPACE),
            ("ns", GroupByMode.NAMESPACE),
            ("none", GroupByMode.NONE),
        ],
    )
    def test_known_tokens(self, token: str, mode: GroupByMode) -> None:
        assert parse_group_by(token).mode is mode

    def test_unknown_token_is_a_custom_label(self) -> None:
        """Custom label keys keep their spelling; label keys are case-sensitive."""
        group_by = parse_group_by(" team.example.com/Owner ")
        assert group_by == GroupBy.custom_label("team.example.com/Owner")

    def test_helm_uses_instance_label(self) -> None:
        assert parse_group_by("helm").label_key == HELM_RELEASE_LABEL


class TestGroupByLabel:
    def test_app_buckets_with_unknown(self) -> None:
        """Records missing the label all land in the single "unknown" bucket."""
        pods = [
            make_pod("a", labels={"app": "web"}),
            make_pod("b", labels={}),
            make_pod("c", labels={"app": "api"}),
            make_pod("d", labels={"tier": "db"}),
        ]
        grouped = ResourceGrouper.group({ResourceKind.PODS: pods}, GroupBy.app())

        assert grouped.keys() == ["api", "unknown", "web"]
        unknown = grouped["unknown"]
        assert [p.name for p in unknown.of_kind(ResourceKind.PODS)] == ["b", "d"]
        assert unknown.group_type == "app"

    def test_services_group_by_selector(self) -> None:
        services = [make_service("web", selector={"app": "web"}), make_service("ext", selector=None)]
        grouped = ResourceGrouper.group({ResourceKind.SERVICES: services}, GroupBy.app())
        assert [s.name for s in grouped["web"].of_kind(ResourceKind.SERVICES)] == ["web"]
        assert [s.name for s in grouped["unknown"].of_kind(ResourceKind.SERVICES)] == ["ext"]

    def test_mixed_kinds_share_buckets(self) -> None:
        collection = {
            ResourceKind.DEPLOYMENTS: [make_deployment("web", labels={"app": "web"})],
            ResourceKind.PODS: [make_pod("web-1", labels={"app": "web"}), make_pod("web-2", labels={"app": "web"})],
            ResourceKind.SERVICES: [make_service("web", selector={"app": "web"})],
        }
        grouped = ResourceGrouper.group(collection, GroupBy.app())

        assert len(grouped) == 1
        web = grouped["web"]
        assert web.total_resources() == 4
        assert len(web.of_kind(ResourceKind.PODS)) == 2
        assert web.of_kind(ResourceKind.SECRETS) == []

    def test_membership_does_not_depend_on_kind_order(self) -> None:
        pods = [make_pod("a", labels={"app": "web"}), make_pod("b", labels={"app": "api"})]
        configmaps = [make_configmap("c", labels={"app": "web"})]
        forward = ResourceGrouper.group({ResourceKind.PODS: pods, ResourceKind.CONFIGMAPS: configmaps}, GroupBy.app())
        reverse = ResourceGrouper.group({ResourceKind.CONFIGMAPS: configmaps, ResourceKind.PODS: pods}, GroupBy.app())

        assert forward.keys() == reverse.keys()
        for key in forward.keys():
            assert forward[key].resources == reverse[key].resources

    def test_custom_label(self) -> None:
        pods = [make_pod("a", labels={"team": "payments"}), make_pod("b", labels={"team": "search"})]
        grouped = ResourceGrouper.group({ResourceKind.PODS: pods}, GroupBy.custom_label("team"))
        assert grouped.keys() == ["payments", "search"]
        assert grouped["payments"].group_type == "team"

    def test_helm_release_stamps_metadata(self) -> None:
        pods = [
            make_pod("a", labels={HELM_RELEASE_LABEL: "shop"}),
            make_pod("b", labels={}),
        ]
        grouped = ResourceGrouper.group({ResourceKind.PODS: pods}, GroupBy.helm_release())
        assert grouped.keys() == ["shop", "unknown"]
        for _, group in grouped.sorted_groups():
            assert group.metadata == {"managed-by": "Helm"}

    def test_label_modes_leave_metadata_empty(self) -> None:
        grouped = ResourceGrouper.group({ResourceKind.PODS: [make_pod()]}, GroupBy.app())
        assert grouped["web"].metadata == {}


class TestGroupByNamespace:
    def test_one_bucket_per_namespace(self) -> None:
        """N records over M namespaces give M buckets totalling N records."""
        pods = [
            make_pod("a", namespace="default"),
            make_pod("b", namespace="prod"),
            make_pod("c", namespace="prod"),
            make_pod("d", namespace="staging"),
        ]
        services = [make_service("s", namespace="prod")]
        grouped = ResourceGrouper.group(
            {ResourceKind.PODS: pods, ResourceKind.SERVICES: services},
            GroupBy.namespace(),
        )

        assert grouped.keys() == ["default", "prod", "staging"]
        assert sum(group.total_resources() for _, group in grouped.sorted_groups()) == 5
        assert grouped.total_resources() == 5
        for key, group in grouped.sorted_groups():
            assert group.name == key
            assert group.group_type == "namespace"
            for records in group.resources.values():
                assert all(r.namespace == key for r in records)


class TestGroupByNone:
    def test_single_kind_bucket_name(self) -> None:
        grouped = ResourceGrouper.group({ResourceKind.CONFIGMAPS: [make_configmap()]}, GroupBy.none())
        assert grouped.keys() == ["all"]
        assert grouped["all"].name == "All ConfigMaps"
        assert grouped["all"].group_type == "none"

    def test_multi_kind_bucket_name(self) -> None:
        collection = {
            ResourceKind.PODS: [make_pod("a", labels={}), make_pod("b")],
            ResourceKind.SERVICES: [make_service()],
        }
        grouped = ResourceGrouper.group(collection, GroupBy.none())
        assert len(grouped) == 1
        assert grouped["all"].name == "All Resources"
        assert grouped["all"].total_resources() == 3

    def test_empty_input_still_yields_the_bucket(self) -> None:
        grouped = ResourceGrouper.group({ResourceKind.PODS: []}, GroupBy.none())
        assert grouped["all"].total_resources() == 0

    def test_label_modes_with_no_records_yield_no_buckets(self) -> None:
        grouped = ResourceGrouper.group({ResourceKind.PODS: []}, GroupBy.app())
        assert len(grouped) == 0
        assert "unknown" not in grouped


class TestGroupRecords:
    def test_groups_by_each_records_kind(self) -> None:
        records = [make_pod("a"), make_service("s", selector={"app": "web"})]
        grouped = ResourceGrouper.group_records(records, GroupBy.app())
        web = grouped["web"]
        assert len(web.of_kind(ResourceKind.PODS)) == 1
        assert len(web.of_kind(ResourceKind.SERVICES)) == 1

    def test_to_dict_summarises_bucket(self) -> None:
        grouped = ResourceGrouper.group_records([make_pod("a"), make_pod("b")], GroupBy.app())
        summary = grouped["web"].to_dict()
        assert summary["name"] == "web"
        assert summary["total_resources"] == 2
        assert list(summary["resources"]) == ["pods"]  # type: ignore[call-overload]
