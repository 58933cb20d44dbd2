"""Tests for docmirror.config module."""

import logging

from docmirror.config import (
    FALLBACK_CONTAINER_SELECTORS,
    ScraperSettings,
    SettingsOverrides,
    _apply_overrides,
    _convert_wait_until,
    build_settings,
)


class TestScraperSettings:
    def test_defaults(self):
        s = ScraperSettings()
        assert s.path_filter == "/doc/"
        assert s.wait_until == "networkidle"
        assert s.navigation_timeout_ms == 60_000
        assert s.tree_poll_attempts == 30
        assert s.pacing_delay == 0.5
        assert s.viewport_width == 1920

    def test_fallback_selectors_order(self):
        assert FALLBACK_CONTAINER_SELECTORS[0] == ".ant-tree"
        assert FALLBACK_CONTAINER_SELECTORS[-1] == ".sidebar"


class TestConvertWaitUntil:
    def test_none_returns_default(self):
        assert _convert_wait_until(None, "load") == "load"

    def test_known_value(self):
        assert _convert_wait_until("DOMContentLoaded", "load") == "domcontentloaded"

    def test_puppeteer_spelling(self):
        assert _convert_wait_until("networkidle2", "load") == "networkidle"

    def test_unknown_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert _convert_wait_until("whenever", "load") == "load"
        assert "Unknown wait_until" in caplog.text


class TestApplyOverrides:
    def test_no_overrides(self):
        s = ScraperSettings()
        _apply_overrides(s, SettingsOverrides())
        assert s == ScraperSettings()

    def test_values_applied(self):
        s = ScraperSettings()
        _apply_overrides(
            s,
            SettingsOverrides(
                path_filter="/docs/",
                include_subdomains=True,
                headless=False,
                wait_until="load",
                navigation_timeout_ms=1000,
                pacing_delay=0.0,
                index_title="My Docs",
            ),
        )
        assert s.path_filter == "/docs/"
        assert s.include_subdomains is True
        assert s.headless is False
        assert s.wait_until == "load"
        assert s.navigation_timeout_ms == 1000
        assert s.pacing_delay == 0.0
        assert s.index_title == "My Docs"

    def test_extra_known_and_unknown(self, caplog):
        s = ScraperSettings()
        with caplog.at_level(logging.WARNING):
            _apply_overrides(
                s, SettingsOverrides(extra={"tree_settle_delay": 0, "bogus": 1})
            )
        assert s.tree_settle_delay == 0
        assert not hasattr(s, "bogus")
        assert "bogus" in caplog.text


class TestBuildSettings:
    def test_env_path_filter(self, monkeypatch):
        monkeypatch.setenv("DOCMIRROR_PATH_FILTER", "/reference/")
        assert build_settings().path_filter == "/reference/"

    def test_override_beats_env(self, monkeypatch):
        monkeypatch.setenv("DOCMIRROR_PATH_FILTER", "/reference/")
        s = build_settings(SettingsOverrides(path_filter="/guide/"))
        assert s.path_filter == "/guide/"

    def test_default_without_env(self, monkeypatch):
        monkeypatch.delenv("DOCMIRROR_PATH_FILTER", raising=False)
        assert build_settings().path_filter == "/doc/"
