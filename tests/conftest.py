"""Shared fixtures plus global pytest hooks for strict test-accounting guardrails."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import pytest

from docmirror.config import ScraperSettings
from docmirror.extractor import EXPAND_COLLAPSED_JS, SCAN_TREE_JS

BASE = "https://docs.example.com"


class FakePage:
    """In-memory stand-in for a Playwright page.

    Args:
        tree_rows: start URL -> rows returned by the tree scan (missing means
            the page has no tree container).
        html: URL -> rendered HTML returned by ``content()``.
        expand_rounds: click counts returned by successive expansion rounds.
        ready_after: number of empty polls before tree rows appear; ``None``
            means rows never appear.
        fallback_found: fallback selectors that resolve.
        fail_urls: URLs whose navigation raises.
        expand_error: raised by the first expansion round when set.
    """

    def __init__(
        self,
        *,
        tree_rows: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        html: Optional[Dict[str, str]] = None,
        expand_rounds: Iterable[int] = (),
        ready_after: Optional[int] = 0,
        fallback_found: Iterable[str] = (),
        fail_urls: Iterable[str] = (),
        expand_error: Optional[Exception] = None,
    ) -> None:
        self.tree_rows = tree_rows or {}
        self.html = html or {}
        self.expand_rounds = list(expand_rounds)
        self.ready_after = ready_after
        self.fallback_found = set(fallback_found)
        self.fail_urls = set(fail_urls)
        self.expand_error = expand_error
        self.current: Optional[str] = None
        self.visited: List[str] = []
        self.goto_kwargs: List[Dict[str, Any]] = []
        self.waited_selectors: List[str] = []
        self.expand_calls = 0
        self.polls = 0

    async def goto(self, url: str, *, wait_until: str, timeout: float) -> None:
        self.visited.append(url)
        self.goto_kwargs.append({"wait_until": wait_until, "timeout": timeout})
        if url in self.fail_urls:
            raise TimeoutError(f"Timeout {timeout}ms exceeded navigating to {url}")
        self.current = url

    async def wait_for_selector(self, selector: str, *, timeout: float) -> object:
        self.waited_selectors.append(selector)
        if selector in self.fallback_found:
            return object()
        raise TimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def query_selector_all(self, selector: str) -> List[object]:
        self.polls += 1
        if self.ready_after is None or self.polls <= self.ready_after:
            return []
        return [object()]

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        if expression == EXPAND_COLLAPSED_JS:
            self.expand_calls += 1
            if self.expand_error is not None:
                raise self.expand_error
            return self.expand_rounds.pop(0) if self.expand_rounds else 0
        if expression == SCAN_TREE_JS:
            return self.tree_rows.get(self.current)
        raise AssertionError(f"Unexpected script: {expression[:40]}")

    async def content(self) -> str:
        return self.html.get(self.current, f"<html><body>{self.current}</body></html>")


def row(level: int, text: str, href: Optional[str] = None) -> Dict[str, Any]:
    return {"level": level, "text": text, "href": href}


def fast_settings(**kwargs: Any) -> ScraperSettings:
    """Settings with every delay removed."""
    values: Dict[str, Any] = dict(
        tree_poll_attempts=2,
        tree_poll_interval=0,
        fallback_selector_timeout_ms=10,
        tree_settle_delay=0,
        expand_round_delay=0,
        page_settle_delay=0,
        pacing_delay=0,
    )
    values.update(kwargs)
    return ScraperSettings(**values)


def make_session_factory(page: FakePage):
    calls: List[Any] = []

    @asynccontextmanager
    async def factory(settings, auth):
        calls.append((settings, auth))
        yield page

    factory.calls = calls  # type: ignore[attr-defined]
    return factory


@pytest.fixture
def settings() -> ScraperSettings:
    return fast_settings()


# ---------------------------------------------------------------------------
# Strict accounting: no skipped, deselected or xfail tests
# ---------------------------------------------------------------------------


@dataclass
class _TestAccounting:
    deselected: int = 0
    skipped: int = 0
    xfailed: int = 0
    xpassed: int = 0


_ACCOUNTING = _TestAccounting()


def pytest_deselected(items):  # pragma: no cover - pytest hook
    _ACCOUNTING.deselected += len(items)


def pytest_runtest_logreport(report):  # pragma: no cover - pytest hook
    if report.when not in {"setup", "call"}:
        return

    is_xfail = bool(getattr(report, "wasxfail", False))
    if is_xfail:
        if report.outcome == "skipped":
            _ACCOUNTING.xfailed += 1
        elif report.outcome == "passed":
            _ACCOUNTING.xpassed += 1
        return

    if report.outcome == "skipped":
        _ACCOUNTING.skipped += 1


def pytest_sessionfinish(session, exitstatus):  # pragma: no cover - pytest hook
    violations = []
    if _ACCOUNTING.deselected:
        violations.append(f"deselected={_ACCOUNTING.deselected}")
    if _ACCOUNTING.skipped:
        violations.append(f"skipped={_ACCOUNTING.skipped}")
    if _ACCOUNTING.xfailed:
        violations.append(f"xfailed={_ACCOUNTING.xfailed}")
    if _ACCOUNTING.xpassed:
        violations.append(f"xpassed={_ACCOUNTING.xpassed}")

    if not violations:
        return

    reporter = session.config.pluginmanager.get_plugin("terminalreporter")
    if reporter:
        reporter.write_sep(
            "=",
            "Strict guard failed: test accounting violations detected "
            f"({', '.join(violations)})",
        )
        reporter.write_line(
            "Hard guard requires zero skipped/deselected/xfail/xpass tests."
        )

    session.exitstatus = 1
