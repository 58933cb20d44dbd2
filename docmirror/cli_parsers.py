"""Argument parser construction for the docmirror command."""

from __future__ import annotations

import argparse
from typing import Callable, List, Optional

from .config import WAIT_UNTIL_CHOICES
from .pipeline import Stage

EPILOG = """\
Examples:
  # Discover, fetch and index in one browser session
  docmirror --start-url https://example.com/doc/guides/start

  # Only discover links (writes links.json)
  docmirror --stage extract --start-url https://example.com/doc/guides/start

  # List discovered links without fetching anything
  docmirror --stage extract --dry-run --start-url https://example.com/doc/a,https://example.com/doc/b

  # Fetch from the checkpoint, keeping pages saved by an earlier run
  docmirror --stage scrape --incremental -o output/

  # Rebuild index.html only (no network access)
  docmirror --stage index -o output/
"""


def _add_run_args(
    parser: argparse.ArgumentParser,
    add_auth_args: Callable[[argparse.ArgumentParser], None],
) -> None:
    parser.add_argument(
        "--stage",
        type=str,
        choices=[stage.value for stage in Stage],
        default=Stage.ALL.value,
        help="Stage to run (default: all)",
    )
    parser.add_argument(
        "--start-url",
        action="append",
        default=None,
        help="Start page URL; repeat or separate with commas for several roots "
             "(default: $DOCMIRROR_START_URL)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Output directory (default: $DOCMIRROR_OUTPUT_DIR or ./output)",
    )
    parser.add_argument(
        "--checkpoint",
        type=str,
        default=None,
        help="Link checkpoint file (default: $DOCMIRROR_CHECKPOINT or ./links.json)",
    )
    parser.add_argument(
        "--incremental",
        action="store_true",
        help="Keep existing files and skip pages that are already saved",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List links without fetching pages or writing the index",
    )

    scope_group = parser.add_argument_group("link scope")
    scope_group.add_argument(
        "--path-filter",
        type=str,
        default=None,
        help="Substring a link path must contain (default: /doc/)",
    )
    scope_group.add_argument(
        "--include-subdomains",
        action="store_true",
        help="Accept links on subdomains of the start URL's domain",
    )

    browser_group = parser.add_argument_group("browser")
    browser_group.add_argument(
        "--headful",
        action="store_true",
        help="Show the browser window",
    )
    browser_group.add_argument(
        "--wait-until",
        type=str,
        default=None,
        choices=list(WAIT_UNTIL_CHOICES),
        help="Page load event to wait for (default: networkidle)",
    )
    browser_group.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="Navigation timeout in milliseconds (default: 60000)",
    )
    browser_group.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Pause in seconds between page fetches (default: 0.5)",
    )
    browser_group.add_argument(
        "--index-title",
        type=str,
        default=None,
        help="Title of the generated index page",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    add_auth_args(parser)


def parse_run_args(
    argv: Optional[List[str]],
    add_auth_args: Callable[[argparse.ArgumentParser], None],
) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="docmirror",
        description=(
            "Mirror a documentation site whose page list lives in a "
            "collapsible navigation tree."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    _add_run_args(parser, add_auth_args)
    return parser.parse_args(argv)
