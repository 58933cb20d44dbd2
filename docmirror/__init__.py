"""Mirror documentation sites whose page list lives in a navigation tree.

The work is split into stages that share a JSON checkpoint, so each one can be
re-run on its own:

- extract: open the start page(s), expand the whole navigation tree and
  save the reconstructed hierarchy plus a flat link list
- scrape: fetch every link from the checkpoint into the output directory
  and write ``index.html``
- index: rebuild ``index.html`` from the checkpoint without network access
- all: extract then scrape in a single browser session

Example usage:

    from docmirror import PipelineOptions, Stage, run_pipeline

    result = run_pipeline(
        PipelineOptions(
            start_urls=["https://example.com/doc/guides/start"],
            stage=Stage.ALL,
            output_dir="output",
            incremental=True,
        )
    )
    print(result.crawl_state.success_count)

    # Tree reconstruction on its own
    from docmirror import FlatRecord, build_tree

    tree = build_tree([
        FlatRecord(level=0, title="Guide", url="https://example.com/doc/guide"),
        FlatRecord(level=1, title="Setup", url="https://example.com/doc/setup"),
    ])
"""

from __future__ import annotations

from .auth import AuthConfig
from .checkpoint import Checkpoint, LinkStore
from .config import ScraperSettings, SettingsOverrides, build_settings
from .errors import (
    BrowserSessionError,
    CheckpointError,
    CheckpointFormatError,
    CheckpointMissingError,
    ConfigurationError,
    DocMirrorError,
    MalformedURLError,
    NavigationError,
    PersistenceError,
)
from .extractor import extract_roots, extract_tree
from .fetcher import CrawlState, FailedFetch, FetchOptions, fetch_all
from .index_builder import render_index, write_index
from .pipeline import (
    PipelineOptions,
    PipelineResult,
    Stage,
    run_pipeline,
    run_pipeline_async,
)
from .tree import (
    FlatRecord,
    LinkRecord,
    NavNode,
    build_tree,
    count_links,
    flatten_records,
    flatten_tree,
)
from .urls import UrlScope, canonicalize_href, url_to_storage_path

__all__ = [
    # Tree model
    "NavNode",
    "FlatRecord",
    "LinkRecord",
    "build_tree",
    "flatten_tree",
    "flatten_records",
    "count_links",
    # URLs
    "UrlScope",
    "canonicalize_href",
    "url_to_storage_path",
    # Stages
    "extract_tree",
    "extract_roots",
    "LinkStore",
    "Checkpoint",
    "CrawlState",
    "FailedFetch",
    "FetchOptions",
    "fetch_all",
    "render_index",
    "write_index",
    # Orchestration
    "Stage",
    "PipelineOptions",
    "PipelineResult",
    "run_pipeline",
    "run_pipeline_async",
    # Config
    "ScraperSettings",
    "SettingsOverrides",
    "build_settings",
    "AuthConfig",
    # Errors
    "DocMirrorError",
    "ConfigurationError",
    "CheckpointError",
    "CheckpointMissingError",
    "CheckpointFormatError",
    "NavigationError",
    "MalformedURLError",
    "PersistenceError",
    "BrowserSessionError",
]
