"""Tests for table, JSON and YAML rendering."""

from __future__ import annotations

import json
from datetime import timedelta

import pytest
import yaml

from kdx.cache import ResourceCache
from kdx.errors import OutputFormatError
from kdx.filtering import ResourceGrouper
from kdx.models.filtering import GroupBy
from kdx.models.resources import ConfigMapInfo, ReferenceType, ResourceKind, ResourceReference
from kdx.output import print_cache_stats, print_grouped, print_records, to_plain
from tests.fakes import make_pod, make_service


class TestToPlain:
    def test_records_become_dicts(self) -> None:
        plain = to_plain(make_service("web", selector={"app": "web"}))
        assert plain["name"] == "web"
        assert plain["ports"] == [{"port": 80, "target_port": "8080", "protocol": "TCP", "name": None}]
        assert plain["selector"] == {"app": "web"}

    def test_enums_and_nested_references(self) -> None:
        cm = ConfigMapInfo(
            name="cfg",
            namespace="default",
            used_by=(ResourceReference("Pod", "web-1", "default", ReferenceType.ENVIRONMENT_FROM),),
        )
        plain = to_plain(cm)
        assert plain["used_by"][0]["reference_type"] == "EnvironmentFrom"


class TestPrintRecords:
    def test_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        print_records(ResourceKind.PODS, [make_pod("web-1"), make_pod("web-2")], "json")
        data = json.loads(capsys.readouterr().out)
        assert [p["name"] for p in data] == ["web-1", "web-2"]
        assert data[0]["phase"] == "Running"

    def test_yaml(self, capsys: pytest.CaptureFixture[str]) -> None:
        print_records(ResourceKind.SERVICES, [make_service("web")], "yaml")
        data = yaml.safe_load(capsys.readouterr().out)
        assert data[0]["name"] == "web"
        assert data[0]["selector"] is None

    def test_table(self, capsys: pytest.CaptureFixture[str]) -> None:
        print_records(ResourceKind.SERVICES, [make_service("web", selector={"app": "web"})], "table")
        out = capsys.readouterr().out
        assert "NAME" in out
        assert "web" in out
        assert "app=web" in out

    def test_empty_table(self, capsys: pytest.CaptureFixture[str]) -> None:
        print_records(ResourceKind.CONFIGMAPS, [], "table")
        assert "No configmaps found." in capsys.readouterr().out

    def test_empty_json_is_an_empty_list(self, capsys: pytest.CaptureFixture[str]) -> None:
        print_records(ResourceKind.PODS, [], "json")
        assert json.loads(capsys.readouterr().out) == []

    def test_unknown_format(self) -> None:
        with pytest.raises(OutputFormatError, match="unsupported format"):
            print_records(ResourceKind.PODS, [make_pod()], "xml")


class TestPrintGrouped:
    def test_json_keys_are_bucket_keys(self, capsys: pytest.CaptureFixture[str]) -> None:
        grouped = ResourceGrouper.group(
            {ResourceKind.PODS: [make_pod("a", labels={"app": "web"}), make_pod("b", labels={})]},
            GroupBy.app(),
        )
        print_grouped(grouped, "json")
        data = json.loads(capsys.readouterr().out)
        assert list(data) == ["unknown", "web"]
        assert data["web"]["total_resources"] == 1
        assert data["web"]["resources"]["pods"][0]["name"] == "a"

    def test_table_shows_bucket_headers(self, capsys: pytest.CaptureFixture[str]) -> None:
        grouped = ResourceGrouper.group({ResourceKind.PODS: [make_pod("a", namespace="prod")]}, GroupBy.namespace())
        print_grouped(grouped, "table")
        out = capsys.readouterr().out
        assert "prod" in out
        assert "1 resources" in out


class TestPrintCacheStats:
    def test_disabled(self, capsys: pytest.CaptureFixture[str]) -> None:
        print_cache_stats(None)
        assert "Cache is disabled." in capsys.readouterr().out

    def test_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        cache = ResourceCache(default_ttl=timedelta(seconds=90))
        cache.set(ResourceKind.PODS, "default", [make_pod()])
        print_cache_stats(cache.stats(), "json")
        data = json.loads(capsys.readouterr().out)
        assert data["entries"]["pods"] == 1
        assert data["total_entries"] == 1
        assert data["default_ttl_seconds"] == 90.0

    def test_table(self, capsys: pytest.CaptureFixture[str]) -> None:
        print_cache_stats(ResourceCache().stats(), "table")
        out = capsys.readouterr().out
        assert "Total" in out
        assert "Default TTL: 300s" in out
