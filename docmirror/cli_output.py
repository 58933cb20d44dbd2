"""Output and formatting helpers for the CLI."""

from __future__ import annotations

from typing import List, Sequence

from .fetcher import CrawlState
from .pipeline import PipelineResult, Stage
from .tree import LinkRecord

RULE = "=" * 50


def format_link_listing(links: Sequence[LinkRecord], heading: str) -> str:
    """Numbered list of links, as shown in dry-run mode."""
    lines: List[str] = [RULE, heading, RULE, f"Found {len(links)} link(s):", ""]
    for index, link in enumerate(links, 1):
        lines.append(f"{index}. {link.title}")
        lines.append(f"   {link.url}")
        lines.append("")
    lines.append(RULE)
    lines.append(f"Total: {len(links)} link(s)")
    return "\n".join(lines)


def format_crawl_summary(state: CrawlState) -> str:
    """Success/skip/failure tally plus every failed target."""
    lines = [
        RULE,
        "Fetch summary",
        f"Succeeded: {state.success_count}",
        f"Skipped:   {state.skipped_count}",
        f"Failed:    {state.failed_count}",
    ]
    if state.failed:
        lines.append("")
        lines.append("Failed pages:")
        for item in state.failed:
            lines.append(f"  - {item.title}: {item.url} ({item.error})")
    lines.append(RULE)
    return "\n".join(lines)


def format_result(result: PipelineResult) -> str:
    """Human-readable report for a finished run."""
    parts: List[str] = []

    if result.dry_run and result.stage is Stage.INDEX:
        parts.append(f"Dry run: the index would list {len(result.links)} page(s)")
    elif result.dry_run:
        parts.append(format_link_listing(result.links, "Dry run: links only, nothing fetched"))

    if result.crawl_state is not None:
        parts.append(format_crawl_summary(result.crawl_state))

    if result.stage is Stage.EXTRACT and not result.dry_run:
        if result.checkpoint is not None:
            parts.append(f"Extracted {result.checkpoint.total_count} link(s)")
        else:
            parts.append("No links found")

    if result.index_path is not None:
        parts.append(f"Index: {result.index_path}")

    return "\n\n".join(parts)
