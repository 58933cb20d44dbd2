"""Stage orchestration: extract, scrape, index, or all of them in one session."""

from __future__ import annotations

import asyncio
import logging
import shutil
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from .auth import AuthConfig
from .browser import RenderedPage, open_browser_session
from .checkpoint import Checkpoint, LinkStore
from .config import DEFAULT_CHECKPOINT, DEFAULT_OUTPUT_DIR, ScraperSettings
from .errors import ConfigurationError, MalformedURLError, PersistenceError
from .extractor import extract_roots
from .fetcher import CrawlState, FetchOptions, fetch_all
from .index_builder import write_index
from .tree import LinkRecord, NavNode, flatten_tree
from .urls import canonicalize_root

LOGGER = logging.getLogger(__name__)

SessionFactory = Callable[
    [ScraperSettings, Optional[AuthConfig]],
    AbstractAsyncContextManager[RenderedPage],
]


class Stage(str, Enum):
    EXTRACT = "extract"
    SCRAPE = "scrape"
    INDEX = "index"
    ALL = "all"

    @classmethod
    def parse(cls, value: Union[str, "Stage"]) -> "Stage":
        if isinstance(value, Stage):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            choices = ", ".join(stage.value for stage in cls)
            raise ConfigurationError(
                f"Unknown stage '{value}' (expected one of: {choices})"
            ) from exc


def split_start_urls(value: Union[str, Sequence[str], None]) -> List[str]:
    """Accept a comma-separated string or a list of (possibly comma-joined) URLs."""
    if not value:
        return []
    items = [value] if isinstance(value, str) else list(value)
    urls: List[str] = []
    for item in items:
        urls.extend(part.strip() for part in str(item).split(",") if part.strip())
    return urls


@dataclass
class PipelineOptions:
    """Parsed run configuration."""

    start_urls: List[str] = field(default_factory=list)
    stage: Stage = Stage.ALL
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    checkpoint_path: Path = Path(DEFAULT_CHECKPOINT)
    incremental: bool = False
    dry_run: bool = False
    settings: ScraperSettings = field(default_factory=ScraperSettings)
    auth: Optional[AuthConfig] = None

    def validate(self) -> None:
        """Normalize fields and reject unusable input before any browser starts.

        Raises:
            ConfigurationError: For an unknown stage, a missing or invalid start
                URL, or a checkpoint inside an output directory this run clears.
        """
        self.stage = Stage.parse(self.stage)
        self.output_dir = Path(self.output_dir).expanduser()
        self.checkpoint_path = Path(self.checkpoint_path).expanduser()
        self.start_urls = split_start_urls(self.start_urls)

        if self.stage in (Stage.EXTRACT, Stage.ALL):
            if not self.start_urls:
                raise ConfigurationError(
                    f"At least one start URL is required for the {self.stage.value} stage"
                )
            try:
                self.start_urls = [canonicalize_root(url) for url in self.start_urls]
            except MalformedURLError as exc:
                raise ConfigurationError(f"Invalid start URL: {exc}") from exc

        if self.clears_output_dir and self.checkpoint_path.resolve().is_relative_to(
            self.output_dir.resolve()
        ):
            raise ConfigurationError(
                f"Checkpoint {self.checkpoint_path} is inside the output directory "
                f"{self.output_dir}, which a full {self.stage.value} run clears; "
                "move the checkpoint or use --incremental"
            )

    @property
    def clears_output_dir(self) -> bool:
        return (
            self.stage in (Stage.SCRAPE, Stage.ALL)
            and not self.incremental
            and not self.dry_run
        )


@dataclass
class PipelineResult:
    """What a run did; the CLI turns this into the user-facing report."""

    stage: Stage
    dry_run: bool = False
    links: List[LinkRecord] = field(default_factory=list)
    tree: Optional[NavNode] = None
    checkpoint: Optional[Checkpoint] = None
    crawl_state: Optional[CrawlState] = None
    index_path: Optional[Path] = None


def empty_dir(path: Path) -> None:
    """Create ``path`` if needed and delete everything inside it."""
    try:
        path.mkdir(parents=True, exist_ok=True)
        for child in path.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
    except OSError as exc:
        raise PersistenceError(f"Failed to clear output directory {path}: {exc}") from exc


def _prepare_output_dir(options: PipelineOptions) -> None:
    if options.dry_run:
        return
    if options.incremental:
        LOGGER.info("Incremental mode: keeping existing files in %s", options.output_dir)
        options.output_dir.mkdir(parents=True, exist_ok=True)
    else:
        LOGGER.info("Full mode: clearing output directory %s", options.output_dir)
        empty_dir(options.output_dir)


def _log_crawl_summary(state: CrawlState, incremental: bool) -> None:
    LOGGER.info("Fetched: %d page(s)", state.success_count)
    if incremental and state.skipped_count:
        LOGGER.info("Skipped: %d page(s) (already saved)", state.skipped_count)
    LOGGER.info("Failed: %d page(s)", state.failed_count)
    for item in state.failed:
        LOGGER.warning("  - %s: %s (%s)", item.title, item.url, item.error)


async def _fetch_and_index(
    page: RenderedPage,
    tree: NavNode,
    links: List[LinkRecord],
    options: PipelineOptions,
    result: PipelineResult,
) -> None:
    fetch_options = FetchOptions(
        output_dir=options.output_dir,
        incremental=options.incremental,
        settings=options.settings,
    )
    state = await fetch_all(page, links, fetch_options)
    _log_crawl_summary(state, options.incremental)
    result.crawl_state = state
    result.index_path = write_index(
        tree, options.output_dir, title=options.settings.index_title
    )


async def _run_extract(
    options: PipelineOptions, store: LinkStore, session_factory: SessionFactory
) -> PipelineResult:
    result = PipelineResult(stage=Stage.EXTRACT, dry_run=options.dry_run)
    LOGGER.info("Stage 1: extracting page links")

    async with session_factory(options.settings, options.auth) as page:
        tree = await extract_roots(page, options.start_urls, options.settings)

    links = flatten_tree(tree)
    result.tree = tree
    result.links = links
    if not links:
        LOGGER.warning("No links found; checkpoint not written")
        return result

    result.checkpoint = store.save(tree, options.start_urls)
    LOGGER.info("Stage 1 complete: %d link(s) extracted", len(links))
    return result


async def _run_scrape(
    options: PipelineOptions, store: LinkStore, session_factory: SessionFactory
) -> PipelineResult:
    result = PipelineResult(stage=Stage.SCRAPE, dry_run=options.dry_run)
    LOGGER.info("Stage 2: fetching pages")

    checkpoint = store.load()
    result.checkpoint = checkpoint
    result.tree = checkpoint.tree
    result.links = list(checkpoint.links)

    if not result.links:
        LOGGER.warning("Link list is empty; nothing to fetch")
        return result

    if options.dry_run:
        return result

    _prepare_output_dir(options)
    async with session_factory(options.settings, options.auth) as page:
        await _fetch_and_index(page, checkpoint.tree, result.links, options, result)
    LOGGER.info("Stage 2 complete")
    return result


def _run_index(options: PipelineOptions, store: LinkStore) -> PipelineResult:
    result = PipelineResult(stage=Stage.INDEX, dry_run=options.dry_run)
    checkpoint = store.load()
    result.checkpoint = checkpoint
    result.tree = checkpoint.tree
    result.links = list(checkpoint.links)

    if options.dry_run:
        LOGGER.info("Dry run: index would list %d page(s)", checkpoint.total_count)
        return result

    result.index_path = write_index(
        checkpoint.tree, options.output_dir, title=options.settings.index_title
    )
    return result


async def _run_all(
    options: PipelineOptions, store: LinkStore, session_factory: SessionFactory
) -> PipelineResult:
    result = PipelineResult(stage=Stage.ALL, dry_run=options.dry_run)
    _prepare_output_dir(options)

    async with session_factory(options.settings, options.auth) as page:
        tree = await extract_roots(page, options.start_urls, options.settings)
        links = flatten_tree(tree)
        result.tree = tree
        result.links = links
        result.checkpoint = store.save(tree, options.start_urls)

        if options.dry_run:
            return result

        if not links:
            LOGGER.warning("No links found; fetching the first start page instead")
            links = [
                LinkRecord(url=options.start_urls[0], title="Start page", pathname="")
            ]
        await _fetch_and_index(page, tree, links, options, result)

    LOGGER.info("Run complete")
    return result


async def run_pipeline_async(
    options: PipelineOptions,
    *,
    session_factory: SessionFactory = open_browser_session,
) -> PipelineResult:
    """Run the selected stage.

    Raises:
        ConfigurationError: Invalid options, raised before a browser starts.
        CheckpointMissingError: scrape/index without a prior extract.
        PersistenceError: The checkpoint or output directory cannot be written.
    """
    options.validate()
    store = LinkStore(options.checkpoint_path)

    if options.stage is Stage.EXTRACT:
        return await _run_extract(options, store, session_factory)
    if options.stage is Stage.SCRAPE:
        return await _run_scrape(options, store, session_factory)
    if options.stage is Stage.INDEX:
        return _run_index(options, store)
    return await _run_all(options, store, session_factory)


def run_pipeline(
    options: PipelineOptions,
    *,
    session_factory: SessionFactory = open_browser_session,
) -> PipelineResult:
    """Synchronous wrapper for run_pipeline_async."""
    return asyncio.run(run_pipeline_async(options, session_factory=session_factory))
