"""Render the browsable ``index.html`` for a mirrored documentation tree."""

from __future__ import annotations

import logging
from html import escape
from pathlib import Path
from typing import List
from urllib.parse import quote

from .errors import PersistenceError
from .tree import NavNode, count_links
from .urls import url_to_storage_path

LOGGER = logging.getLogger(__name__)

INDEX_FILENAME = "index.html"
INDENT_PX = 20

_PAGE_TEMPLATE = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width,initial-scale=1">
  <title>{title}</title>
  <style>
    body {{ font-family: system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial; max-width: 980px; margin: 24px auto; padding: 0 16px; }}
    h1 {{ font-size: 22px; margin: 0 0 12px; }}
    #q {{ width: 100%; padding: 10px 12px; border: 1px solid #ddd; border-radius: 8px; margin: 10px 0; }}
    ul {{ list-style: none; margin: 0; padding: 0; }}
    .tree-item {{ padding: 6px 0; border-bottom: 1px solid #f0f0f0; }}
    .tree-folder {{ padding: 8px 0 4px 0; font-weight: 600; color: #333; }}
    .tree-folder-title {{ display: block; }}
    .tree-link {{ text-decoration: none; color: #0366d6; }}
    .tree-link:hover {{ text-decoration: underline; }}
    .meta {{ color: #666; font-size: 12px; margin-bottom: 8px; }}
  </style>
</head>
<body>
  <h1>{title}</h1>
  <div class="meta">{count} page(s)</div>
  <input id="q" type="search" placeholder="Filter by keyword..."/>
  <ul id="list">{items}</ul>
  <script>
    const q = document.getElementById('q');
    const list = document.getElementById('list');
    q.addEventListener('input', () => {{
      const k = q.value.toLowerCase();
      for (const li of list.children) {{
        const link = li.querySelector('.tree-link');
        const folder = li.querySelector('.tree-folder-title');
        const text = (link ? link.textContent : (folder ? folder.textContent : '')).toLowerCase();
        li.style.display = text.includes(k) ? '' : 'none';
      }}
    }});
  </script>
</body>
</html>
"""


def _render_items(node: NavNode, level: int, out: List[str]) -> None:
    indent = level * INDENT_PX
    title = escape(node.title or "untitled")
    if node.url:
        href = escape(quote(url_to_storage_path(node.url), safe="/"), quote=True)
        out.append(
            f'<li class="tree-item" style="padding-left: {indent}px;">'
            f'<a href="{href}" class="tree-link">{title}</a></li>'
        )
    elif node.title and level > 0:
        out.append(
            f'<li class="tree-folder" style="padding-left: {indent}px;">'
            f'<span class="tree-folder-title">{title}</span></li>'
        )

    for child in node.children:
        _render_items(child, level + 1, out)


def render_index(tree: NavNode, *, title: str = "Documentation Index") -> str:
    """Render the tree as one self-contained HTML page.

    Links are relative to the output directory root, where the index lives.
    """
    items: List[str] = []
    _render_items(tree, 0, items)
    return _PAGE_TEMPLATE.format(
        title=escape(title),
        count=count_links(tree),
        items="\n    ".join(items),
    )


def write_index(
    tree: NavNode, output_dir: Path, *, title: str = "Documentation Index"
) -> Path:
    """Write (or overwrite) ``index.html`` at the output directory root."""
    path = Path(output_dir) / INDEX_FILENAME
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_index(tree, title=title), encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"Failed to write index {path}: {exc}") from exc
    LOGGER.info("Wrote index: %s", path)
    return path
