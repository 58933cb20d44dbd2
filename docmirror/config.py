"""Scraper settings and the selectors of the supported navigation tree layout."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from typing import List, Optional

from .urls import DEFAULT_PATH_FILTER

LOGGER = logging.getLogger(__name__)

# Rows exist once the tree has rendered at least one node
TREE_READY_SELECTOR = ".ant-tree-node-content-wrapper"

# Tried in order when the tree rows never show up
FALLBACK_CONTAINER_SELECTORS: List[str] = [
    ".ant-tree",
    "[class*='tree']",
    "nav",
    ".sidebar",
]

TREE_ROOT_SELECTOR = ".ant-tree"
TREE_NODE_SELECTOR = ".ant-tree-treenode:not(.ant-tree-treenode-disabled)"
NODE_CONTENT_SELECTOR = ".ant-tree-node-content-wrapper"
INDENT_SELECTOR = ".ant-tree-indent"
INDENT_UNIT_SELECTOR = ".ant-tree-indent-unit"
COLLAPSED_SWITCHER_SELECTOR = ".ant-tree-switcher_close"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

WAIT_UNTIL_CHOICES = ("load", "domcontentloaded", "networkidle", "commit")

ENV_START_URL = "DOCMIRROR_START_URL"
ENV_OUTPUT_DIR = "DOCMIRROR_OUTPUT_DIR"
ENV_CHECKPOINT = "DOCMIRROR_CHECKPOINT"
ENV_PATH_FILTER = "DOCMIRROR_PATH_FILTER"

DEFAULT_OUTPUT_DIR = "output"
DEFAULT_CHECKPOINT = "links.json"


@dataclass
class ScraperSettings:
    """Timeouts, delays and filters used by every stage."""

    path_filter: str = DEFAULT_PATH_FILTER
    include_subdomains: bool = False
    headless: bool = True
    viewport_width: int = 1920
    viewport_height: int = 1080
    user_agent: str = DEFAULT_USER_AGENT
    wait_until: str = "networkidle"
    navigation_timeout_ms: int = 60_000
    tree_poll_attempts: int = 30
    tree_poll_interval: float = 1.0
    fallback_selector_timeout_ms: int = 5_000
    tree_settle_delay: float = 2.0
    expand_round_delay: float = 0.5
    max_expand_rounds: int = 500
    page_settle_delay: float = 1.0
    pacing_delay: float = 0.5
    index_title: str = "Documentation Index"


@dataclass
class SettingsOverrides:
    """Optional overrides; ``None`` keeps the default."""

    path_filter: Optional[str] = None
    include_subdomains: Optional[bool] = None
    headless: Optional[bool] = None
    wait_until: Optional[str] = None
    navigation_timeout_ms: Optional[int] = None
    page_settle_delay: Optional[float] = None
    pacing_delay: Optional[float] = None
    max_expand_rounds: Optional[int] = None
    index_title: Optional[str] = None
    extra: dict = field(default_factory=dict)


def _convert_wait_until(value: Optional[str], default: str) -> str:
    if not value:
        return default
    candidate = value.strip().lower()
    # puppeteer spelling
    if candidate in ("networkidle0", "networkidle2"):
        candidate = "networkidle"
    if candidate in WAIT_UNTIL_CHOICES:
        return candidate
    LOGGER.warning("Unknown wait_until '%s'; falling back to %s.", value, default)
    return default


def _apply_overrides(settings: ScraperSettings, overrides: SettingsOverrides) -> None:
    """Apply optional overrides to a ScraperSettings instance."""
    if overrides.path_filter is not None:
        settings.path_filter = overrides.path_filter
    if overrides.include_subdomains is not None:
        settings.include_subdomains = overrides.include_subdomains
    if overrides.headless is not None:
        settings.headless = overrides.headless
    if overrides.wait_until:
        settings.wait_until = _convert_wait_until(
            overrides.wait_until, settings.wait_until
        )
    if overrides.navigation_timeout_ms is not None:
        settings.navigation_timeout_ms = overrides.navigation_timeout_ms
    if overrides.page_settle_delay is not None:
        settings.page_settle_delay = overrides.page_settle_delay
    if overrides.pacing_delay is not None:
        settings.pacing_delay = overrides.pacing_delay
    if overrides.max_expand_rounds is not None:
        settings.max_expand_rounds = overrides.max_expand_rounds
    if overrides.index_title:
        settings.index_title = overrides.index_title

    known = {f.name for f in fields(ScraperSettings)}
    for name, value in overrides.extra.items():
        if name not in known:
            LOGGER.warning("Ignoring unknown setting '%s'.", name)
            continue
        setattr(settings, name, value)


def build_settings(overrides: Optional[SettingsOverrides] = None) -> ScraperSettings:
    """Default settings, with the path filter taken from the environment."""
    settings = ScraperSettings()
    env_filter = os.environ.get(ENV_PATH_FILTER)
    if env_filter:
        settings.path_filter = env_filter
    if overrides:
        _apply_overrides(settings, overrides)
    return settings
