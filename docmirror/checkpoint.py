"""Link checkpoint shared by the extract, scrape and index stages.

File layout::

    {
      "extractedAt": "2024-05-01T08:00:00.000Z",
      "startUrl": ["https://example.com/doc/guide"],
      "total": 42,
      "tree": {"title": ..., "url": ..., "pathname": ..., "children": [...]},
      "links": [{"url": ..., "title": ..., "pathname": ...}, ...]
    }

Older checkpoints carry only ``links``. They load as a tree whose children are
the stored links, so later stages never branch on the schema revision.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .errors import CheckpointFormatError, CheckpointMissingError, PersistenceError
from .tree import LinkRecord, NavNode, flatten_tree, tree_from_links

LOGGER = logging.getLogger(__name__)

RUN_EXTRACT_HINT = "run the extract stage first (--stage extract)"


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Checkpoint:
    """In-memory form of the checkpoint, always tree-shaped."""

    extracted_at: str
    root_urls: List[str]
    tree: NavNode
    links: List[LinkRecord] = field(default_factory=list)
    legacy: bool = False

    @property
    def total_count(self) -> int:
        return len(self.links)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "extractedAt": self.extracted_at,
            "startUrl": list(self.root_urls),
            "total": self.total_count,
            "tree": self.tree.to_dict(),
            "links": [link.to_dict() for link in self.links],
        }


def build_checkpoint(
    tree: NavNode,
    root_urls: Sequence[str],
    *,
    extracted_at: Optional[str] = None,
) -> Checkpoint:
    return Checkpoint(
        extracted_at=extracted_at or _utc_timestamp(),
        root_urls=list(root_urls),
        tree=tree,
        links=flatten_tree(tree),
    )


def _as_url_list(value: Union[str, Sequence[str], None]) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


def checkpoint_from_dict(data: Any) -> Checkpoint:
    """Normalize either schema revision into a Checkpoint."""
    if not isinstance(data, dict):
        raise CheckpointFormatError("Checkpoint must be a JSON object")

    extracted_at = str(data.get("extractedAt") or "")
    root_urls = _as_url_list(data.get("startUrl"))

    try:
        if data.get("tree"):
            tree = NavNode.from_dict(data["tree"])
            checkpoint = Checkpoint(
                extracted_at=extracted_at,
                root_urls=root_urls,
                tree=tree,
                links=flatten_tree(tree),
            )
        elif isinstance(data.get("links"), list):
            links = [LinkRecord.from_dict(item) for item in data["links"]]
            checkpoint = Checkpoint(
                extracted_at=extracted_at,
                root_urls=root_urls,
                tree=tree_from_links(links),
                links=links,
                legacy=True,
            )
        else:
            raise CheckpointFormatError(
                f"Checkpoint holds neither a tree nor a link list; {RUN_EXTRACT_HINT}"
            )
    except (KeyError, TypeError, AttributeError, ValueError) as exc:
        raise CheckpointFormatError(f"Malformed checkpoint entry: {exc}") from exc

    stored_total = data.get("total")
    if stored_total is not None and stored_total != checkpoint.total_count:
        LOGGER.warning(
            "Checkpoint total %s does not match %d link(s) in the tree; using %d",
            stored_total,
            checkpoint.total_count,
            checkpoint.total_count,
        )
    return checkpoint


class LinkStore:
    """Reads and writes the checkpoint file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path).expanduser()

    def exists(self) -> bool:
        return self.path.is_file()

    def save(
        self,
        tree: NavNode,
        root_urls: Sequence[str],
        *,
        extracted_at: Optional[str] = None,
    ) -> Checkpoint:
        """Persist the tree and its flattened links.

        The file is written to a sibling temp file and renamed into place, so a
        reader never sees a half-written checkpoint.

        Raises:
            PersistenceError: If the checkpoint cannot be written.
        """
        checkpoint = build_checkpoint(tree, root_urls, extracted_at=extracted_at)
        payload = json.dumps(checkpoint.to_dict(), indent=2, ensure_ascii=False)
        tmp_path = self.path.with_name(self.path.name + ".tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as exc:
            raise PersistenceError(
                f"Failed to write checkpoint {self.path}: {exc}"
            ) from exc

        LOGGER.info("Saved %d link(s) to %s", checkpoint.total_count, self.path)
        return checkpoint

    def load(self) -> Checkpoint:
        """Read the checkpoint.

        Raises:
            CheckpointMissingError: If no checkpoint file exists.
            CheckpointFormatError: If the file cannot be parsed.
        """
        if not self.exists():
            raise CheckpointMissingError(
                f"Link checkpoint not found at {self.path}; {RUN_EXTRACT_HINT}"
            )

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise CheckpointFormatError(
                f"Checkpoint {self.path} is not valid JSON ({exc}); {RUN_EXTRACT_HINT}"
            ) from exc
        except OSError as exc:
            raise CheckpointMissingError(
                f"Cannot read checkpoint {self.path} ({exc}); {RUN_EXTRACT_HINT}"
            ) from exc

        checkpoint = checkpoint_from_dict(data)
        LOGGER.info("Loaded links from %s", self.path)
        LOGGER.info("  extracted at: %s", checkpoint.extracted_at or "unknown")
        LOGGER.info("  link count: %d", checkpoint.total_count)
        if checkpoint.legacy:
            LOGGER.info("  flat link list without tree (older checkpoint)")
        return checkpoint
