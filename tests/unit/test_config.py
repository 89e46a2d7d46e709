"""Tests for environment-driven configuration loading."""

from __future__ import annotations

import pytest

from kdx.config import load_config


class TestLoadConfig:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """With no KDX_* variables set, defaults apply."""
        for var in ("CACHE_TTL", "CACHE_ENABLED", "CONCURRENCY", "PAGE_SIZE", "OUTPUT", "LOG_LEVEL", "CONTEXT"):
            monkeypatch.delenv(f"KDX_{var}", raising=False)

        config = load_config()

        assert config.cache.enabled is True
        assert config.cache.ttl_seconds == 300
        assert config.discovery.concurrency == 10
        assert config.discovery.page_size == 100
        assert config.discovery.context == ""
        assert config.output.format == "table"
        assert config.log.level == "warning"

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KDX_CACHE_TTL", "60")
        monkeypatch.setenv("KDX_CACHE_ENABLED", "no")
        monkeypatch.setenv("KDX_CONCURRENCY", "4")
        monkeypatch.setenv("KDX_OUTPUT", "JSON")
        monkeypatch.setenv("KDX_LOG_LEVEL", "Debug")
        monkeypatch.setenv("KDX_CONTEXT", "staging")

        config = load_config()

        assert config.cache.ttl_seconds == 60
        assert config.cache.enabled is False
        assert config.discovery.concurrency == 4
        assert config.output.format == "json"
        assert config.log.level == "debug"
        assert config.discovery.context == "staging"

    @pytest.mark.parametrize(
        ("var", "value", "attr", "expected"),
        [
            ("KDX_CACHE_TTL", "0", "ttl", 1),
            ("KDX_CACHE_TTL", "999999", "ttl", 86400),
            ("KDX_CONCURRENCY", "0", "concurrency", 1),
            ("KDX_CONCURRENCY", "500", "concurrency", 100),
            ("KDX_PAGE_SIZE", "5000", "page_size", 1000),
        ],
    )
    def test_integers_are_clamped(
        self,
        monkeypatch: pytest.MonkeyPatch,
        var: str,
        value: str,
        attr: str,
        expected: int,
    ) -> None:
        monkeypatch.setenv(var, value)
        config = load_config()
        actual = {
            "ttl": config.cache.ttl_seconds,
            "concurrency": config.discovery.concurrency,
            "page_size": config.discovery.page_size,
        }[attr]
        assert actual == expected

    def test_invalid_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KDX_LOG_LEVEL", "chatty")
        with pytest.raises(ValueError, match="Invalid log level"):
            load_config()

    def test_invalid_output_format(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KDX_OUTPUT", "xml")
        with pytest.raises(ValueError, match="Invalid output format"):
            load_config()
