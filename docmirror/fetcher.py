"""Fetch rendered pages and mirror them into the output directory."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence, Set

from .browser import RenderedPage, navigate
from .config import ScraperSettings
from .errors import PersistenceError
from .tree import LinkRecord
from .urls import url_to_storage_path

LOGGER = logging.getLogger(__name__)


@dataclass
class FetchOptions:
    """Per-run fetch policy."""

    output_dir: Path
    incremental: bool = False
    settings: ScraperSettings = field(default_factory=ScraperSettings)


@dataclass(slots=True)
class FailedFetch:
    url: str
    title: str
    error: str


@dataclass
class CrawlState:
    """Bookkeeping for one fetch run; rebuilt from scratch every run."""

    visited: Set[str] = field(default_factory=set)
    failed: List[FailedFetch] = field(default_factory=list)
    success_count: int = 0
    skipped_count: int = 0

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    def to_dict(self) -> dict:
        return {
            "success": self.success_count,
            "skipped": self.skipped_count,
            "failed": [
                {"url": item.url, "title": item.title, "error": item.error}
                for item in self.failed
            ],
        }


def storage_file(output_dir: Path, url: str) -> Path:
    return Path(output_dir) / url_to_storage_path(url)


def _write_page(path: Path, html: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"Failed to write {path}: {exc}") from exc


def _claim(link: LinkRecord, state: CrawlState, options: FetchOptions) -> bool:
    """Mark ``link`` visited; False for duplicates and incremental skips."""
    if link.url in state.visited:
        LOGGER.debug("Already visited in this run: %s", link.url)
        return False
    state.visited.add(link.url)

    if options.incremental and storage_file(options.output_dir, link.url).exists():
        state.skipped_count += 1
        LOGGER.info("Skipping (already saved): %s (%s)", link.title, link.url)
        return False
    return True


async def _download(
    page: RenderedPage,
    link: LinkRecord,
    state: CrawlState,
    options: FetchOptions,
) -> None:
    settings = options.settings
    target = storage_file(options.output_dir, link.url)
    LOGGER.info("Fetching: %s (%s)", link.title, link.url)
    try:
        await navigate(page, link.url, settings)
        await asyncio.sleep(settings.page_settle_delay)
        html = await page.content()
        _write_page(target, html)
    except Exception as exc:
        message = str(exc) or exc.__class__.__name__
        LOGGER.error("Fetch failed: %s (%s)", link.url, message)
        state.failed.append(FailedFetch(url=link.url, title=link.title, error=message))
        return

    state.success_count += 1
    LOGGER.info("Saved: %s", target)


async def fetch_page(
    page: RenderedPage,
    link: LinkRecord,
    state: CrawlState,
    options: FetchOptions,
) -> bool:
    """Fetch one link into the output directory, updating ``state``.

    Returns:
        True if the browser was used (a fetch was attempted), False for
        duplicates and incremental skips.
    """
    if not _claim(link, state, options):
        return False
    await _download(page, link, state, options)
    return True


async def fetch_all(
    page: RenderedPage,
    links: Sequence[LinkRecord],
    options: FetchOptions,
) -> CrawlState:
    """Fetch every link in order; individual failures never stop the batch.

    The pacing delay precedes every fetch except the first one.
    """
    state = CrawlState()
    total = len(links)
    LOGGER.info("Fetching %d page(s)...", total)

    fetched_before = False
    for index, link in enumerate(links, 1):
        LOGGER.info("[%d/%d]", index, total)
        if not _claim(link, state, options):
            continue
        if fetched_before:
            await asyncio.sleep(options.settings.pacing_delay)
        await _download(page, link, state, options)
        fetched_before = True

    return state
