"""Navigation tree model and the level-based tree reconstruction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlsplit

ROOT_TITLE = "Root"
MULTI_ROOT_TITLE = "Multiple roots"


@dataclass(slots=True)
class NavNode:
    """One entry of the navigation hierarchy (a page, a folder, or both)."""

    title: str
    url: Optional[str] = None
    children: List["NavNode"] = field(default_factory=list)

    @property
    def pathname(self) -> Optional[str]:
        if not self.url:
            return None
        return urlsplit(self.url).path

    @property
    def is_folder(self) -> bool:
        return self.url is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "pathname": self.pathname,
            "children": [child.to_dict() for child in self.children],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NavNode":
        children = data.get("children") or []
        return cls(
            title=str(data.get("title") or ""),
            url=data.get("url") or None,
            children=[cls.from_dict(child) for child in children],
        )


@dataclass(slots=True)
class FlatRecord:
    """A rendered navigation row before its parent is known."""

    level: int
    title: str
    url: Optional[str] = None


@dataclass(slots=True)
class LinkRecord:
    """A fetchable target taken from the tree in pre-order."""

    url: str
    title: str
    pathname: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "title": self.title, "pathname": self.pathname}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LinkRecord":
        url = data.get("url")
        if not url or not isinstance(url, str):
            raise ValueError(f"Link entry without a URL: {data!r}")
        return cls(
            url=url,
            title=str(data.get("title") or ""),
            pathname=str(data.get("pathname") or urlsplit(url).path),
        )


def build_tree(
    records: Iterable[FlatRecord],
    *,
    title: str = ROOT_TITLE,
    url: Optional[str] = None,
) -> NavNode:
    """
    Rebuild the hierarchy from level-tagged rows in a single pass.

    A stack holds the open ancestor chain as ``(node, level)`` pairs. Before a
    row is placed, every ancestor whose level is ``>=`` the row's level is
    popped, so a row may sit any number of levels below the nearest remaining
    ancestor. Rows left without an ancestor become top-level children of the
    returned root.

    Args:
        records: Rows in document order.
        title: Title of the synthetic root node.
        url: Optional URL carried by the root node itself.

    Returns:
        The root node, with folder-only nodes that ended up empty removed.
    """
    root = NavNode(title=title, url=url)
    stack: List[Tuple[NavNode, int]] = []

    for record in records:
        node = NavNode(title=record.title, url=record.url)

        while stack and stack[-1][1] >= record.level:
            stack.pop()

        if stack:
            stack[-1][0].children.append(node)
        else:
            root.children.append(node)

        stack.append((node, record.level))

    root.children = prune_empty_folders(root.children)
    return root


def prune_empty_folders(nodes: List[NavNode]) -> List[NavNode]:
    """Drop folder nodes that have no URL and no surviving descendants."""
    kept: List[NavNode] = []
    for node in nodes:
        node.children = prune_empty_folders(node.children)
        if node.url is None and not node.children:
            continue
        kept.append(node)
    return kept


def iter_preorder(tree: NavNode) -> Iterable[Tuple[NavNode, int]]:
    """Yield ``(node, depth)`` for the whole tree, root first."""
    stack: List[Tuple[NavNode, int]] = [(tree, 0)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        for child in reversed(node.children):
            stack.append((child, depth + 1))


def flatten_tree(tree: NavNode) -> List[LinkRecord]:
    """Pre-order list of every URL-bearing node, folders skipped."""
    return [
        LinkRecord(url=node.url, title=node.title, pathname=node.pathname or "")
        for node, _ in iter_preorder(tree)
        if node.url
    ]


def flatten_records(tree: NavNode) -> List[FlatRecord]:
    """Turn the root's descendants back into level-tagged rows."""
    return [
        FlatRecord(level=depth - 1, title=node.title, url=node.url)
        for node, depth in iter_preorder(tree)
        if depth > 0
    ]


def count_links(tree: NavNode) -> int:
    return sum(1 for node, _ in iter_preorder(tree) if node.url)


def compose_roots(trees: List[NavNode]) -> NavNode:
    """Return the single tree as-is, or group several under one folder node."""
    if len(trees) == 1:
        return trees[0]
    return NavNode(title=MULTI_ROOT_TITLE, url=None, children=list(trees))


def tree_from_links(links: Iterable[LinkRecord]) -> NavNode:
    """Wrap a legacy flat link list as leaves of a folder root."""
    return NavNode(
        title=ROOT_TITLE,
        url=None,
        children=[NavNode(title=link.title, url=link.url) for link in links],
    )
