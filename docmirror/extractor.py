"""Discover the navigation tree of a documentation page.

The supported layout renders the whole tree as a flat list of rows. Nesting is
only visible through the number of indentation markers in each row, and
collapsed branches are not in the DOM until their switcher is clicked. The
extractor therefore:

1. opens the start page and waits for the tree (with fallbacks),
2. clicks every collapsed switcher until a round clicks nothing,
3. reads each row as ``(level, href, text)`` and rebuilds the hierarchy.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlsplit

from .browser import RenderedPage, navigate
from .config import (
    COLLAPSED_SWITCHER_SELECTOR,
    FALLBACK_CONTAINER_SELECTORS,
    INDENT_SELECTOR,
    INDENT_UNIT_SELECTOR,
    NODE_CONTENT_SELECTOR,
    TREE_NODE_SELECTOR,
    TREE_READY_SELECTOR,
    TREE_ROOT_SELECTOR,
    ScraperSettings,
)
from .errors import NavigationError
from .tree import ROOT_TITLE, FlatRecord, NavNode, build_tree, compose_roots, count_links
from .urls import UrlScope, canonicalize_href, canonicalize_root

LOGGER = logging.getLogger(__name__)

UNTITLED = "untitled"
_GLYPHS = re.compile("[▶▼]")

EXPAND_COLLAPSED_JS = """
(selector) => {
  let count = 0;
  document.querySelectorAll(selector).forEach((el) => {
    try {
      el.click();
      count++;
    } catch (e) {}
  });
  return count;
}
"""

SCAN_TREE_JS = """
(sel) => {
  const root = document.querySelector(sel.root);
  if (!root) {
    return null;
  }
  const rows = [];
  root.querySelectorAll(sel.node).forEach((nodeEl) => {
    const wrapper = nodeEl.querySelector(sel.content);
    if (!wrapper) {
      return;
    }
    const indent = nodeEl.querySelector(sel.indent);
    const level = indent ? indent.querySelectorAll(sel.indentUnit).length : 0;
    const anchor = wrapper.querySelector('a[href]');
    rows.push({
      level: level,
      href: anchor ? anchor.getAttribute('href') : null,
      text: ((anchor || wrapper).textContent || '').trim(),
    });
  });
  return rows;
}
"""

SCAN_SELECTORS: Dict[str, str] = {
    "root": TREE_ROOT_SELECTOR,
    "node": TREE_NODE_SELECTOR,
    "content": NODE_CONTENT_SELECTOR,
    "indent": INDENT_SELECTOR,
    "indentUnit": INDENT_UNIT_SELECTOR,
}


def _clean_title(text: Optional[str]) -> str:
    return _GLYPHS.sub("", text or "").strip()


def _last_segment(url: str) -> str:
    return urlsplit(url).path.rstrip("/").rsplit("/", 1)[-1]


def rows_to_records(rows: Sequence[Dict[str, Any]], scope: UrlScope) -> List[FlatRecord]:
    """Convert raw scanned rows into FlatRecords, canonicalizing hrefs.

    A row whose href is rejected is kept as a folder label.
    """
    records: List[FlatRecord] = []
    for row in rows:
        try:
            level = max(0, int(row.get("level") or 0))
        except (TypeError, ValueError):
            level = 0
        text = _clean_title(row.get("text"))
        href = row.get("href")

        url = canonicalize_href(href, scope) if href else None
        if url:
            title = text or _last_segment(url) or UNTITLED
        else:
            title = text or UNTITLED
        records.append(FlatRecord(level=level, title=title, url=url))
    return records


async def wait_for_nav_tree(page: RenderedPage, settings: ScraperSettings) -> bool:
    """Poll for rendered tree rows, then try fallback containers.

    Returns:
        True if a tree (or fallback container) appeared. False means the
        caller proceeds with whatever the document holds.
    """
    LOGGER.info("Waiting for navigation tree...")
    found = False
    for attempt in range(1, settings.tree_poll_attempts + 1):
        try:
            nodes = await page.query_selector_all(TREE_READY_SELECTOR)
        except Exception as exc:
            LOGGER.debug("Tree poll %d failed: %s", attempt, exc)
            nodes = []
        if nodes:
            found = True
            break
        await asyncio.sleep(settings.tree_poll_interval)

    if found:
        LOGGER.info("Navigation tree rows rendered")
    else:
        LOGGER.warning(
            "No %s rows after %d attempts; trying fallback containers",
            TREE_READY_SELECTOR,
            settings.tree_poll_attempts,
        )
        for selector in FALLBACK_CONTAINER_SELECTORS:
            try:
                await page.wait_for_selector(
                    selector, timeout=settings.fallback_selector_timeout_ms
                )
            except Exception as exc:
                LOGGER.debug("Fallback selector %s not found: %s", selector, exc)
                continue
            LOGGER.info("Found fallback container: %s", selector)
            found = True
            break
        if not found:
            LOGGER.warning("No navigation container found; scanning the page as rendered")

    await asyncio.sleep(settings.tree_settle_delay)
    return found


async def expand_all(page: RenderedPage, settings: ScraperSettings) -> int:
    """Click collapsed switchers until a round expands nothing.

    Returns:
        Total number of clicks performed.
    """
    LOGGER.info("Expanding navigation tree...")
    total = 0
    for round_no in range(1, settings.max_expand_rounds + 1):
        try:
            clicked = int(
                await page.evaluate(EXPAND_COLLAPSED_JS, COLLAPSED_SWITCHER_SELECTOR) or 0
            )
        except Exception as exc:
            LOGGER.warning("Expansion round %d failed: %s", round_no, exc)
            break
        if clicked == 0:
            break
        total += clicked
        LOGGER.info("  expanded %d node(s)", clicked)
        await asyncio.sleep(settings.expand_round_delay)
    else:
        LOGGER.warning(
            "Stopped expanding after %d rounds; tree may be incomplete",
            settings.max_expand_rounds,
        )

    if total:
        LOGGER.info("Expanded %d node(s) in total", total)
    else:
        LOGGER.info("All nodes already expanded")
    await asyncio.sleep(settings.tree_settle_delay)
    return total


async def scan_flat_records(
    page: RenderedPage, scope: UrlScope
) -> Optional[List[FlatRecord]]:
    """Read every rendered row; ``None`` when the tree container is absent."""
    try:
        rows = await page.evaluate(SCAN_TREE_JS, SCAN_SELECTORS)
    except Exception as exc:
        raise NavigationError(f"Failed to scan navigation tree: {exc}") from exc
    if rows is None:
        return None
    return rows_to_records(rows, scope)


async def extract_tree(
    page: RenderedPage, root_url: str, settings: ScraperSettings
) -> NavNode:
    """Discover the tree below one start page.

    The returned root node carries the start URL itself; its children are the
    reconstructed navigation rows.
    """
    root = canonicalize_root(root_url)
    scope = UrlScope(
        base_url=root,
        path_filter=settings.path_filter,
        include_subdomains=settings.include_subdomains,
    )

    LOGGER.info("Opening start page: %s", root)
    try:
        await navigate(page, root, settings)
    except NavigationError as exc:
        LOGGER.warning("%s; scanning whatever has rendered", exc)

    await wait_for_nav_tree(page, settings)
    await expand_all(page, settings)

    records = await scan_flat_records(page, scope)
    if records is None:
        LOGGER.warning("No %s container on %s", TREE_ROOT_SELECTOR, root)
        return NavNode(title=ROOT_TITLE, url=root)

    tree = build_tree(records, title=ROOT_TITLE, url=root)
    LOGGER.info("Read %d row(s) from %s", len(records), root)
    return tree


async def extract_roots(
    page: RenderedPage, root_urls: Sequence[str], settings: ScraperSettings
) -> NavNode:
    """Run extraction for every start page and compose the results."""
    trees = [await extract_tree(page, url, settings) for url in root_urls]
    tree = compose_roots(trees)
    LOGGER.info("Found %d documentation link(s)", count_links(tree))
    return tree
