"""Authentication flags for the docmirror command."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .auth import AuthConfig, load_auth_from_env
from .errors import ConfigurationError


def _parse_cookies(value: str) -> List[Dict[str, Any]]:
    """Inline JSON (object or list) or a path to a JSON file."""
    text = value.strip()
    if not text.startswith(("[", "{")):
        path = Path(text).expanduser()
        if not path.is_file():
            raise ConfigurationError(
                f"--cookies is neither JSON nor an existing file: {value}"
            )
        text = path.read_text(encoding="utf-8")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid --cookies JSON: {exc}") from exc
    return parsed if isinstance(parsed, list) else [parsed]


def _parse_headers(values: List[str]) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for raw in values:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            logging.warning("Invalid header format (expected 'Key: Value'): %s", raw)
            continue
        headers[name.strip()] = value.strip()
    return headers


def build_cli_auth(
    args: argparse.Namespace,
    auth_loader: Callable[[], Optional[AuthConfig]] = load_auth_from_env,
) -> Optional[AuthConfig]:
    """AuthConfig from the auth flags; without any flag, from the environment.

    Raises:
        ConfigurationError: If ``--cookies`` cannot be parsed.
    """
    cookies_val = getattr(args, "cookies", None)
    header_vals = getattr(args, "header", None)
    headers = _parse_headers(header_vals) if header_vals else {}

    auth = AuthConfig(
        cookies=_parse_cookies(cookies_val) if cookies_val else None,
        headers=headers or None,
        storage_state=getattr(args, "storage_state", None),
        user_data_dir=getattr(args, "auth_profile", None),
    )
    if not auth.is_empty:
        return auth
    return auth_loader()


def add_auth_args(parser: argparse.ArgumentParser) -> None:
    """Add the ``authentication`` argument group."""
    auth_group = parser.add_argument_group("authentication")
    auth_group.add_argument(
        "--cookies",
        type=str,
        default=None,
        help='Cookies as JSON string or path to cookies JSON file. '
             'Example: \'[{"name":"sid","value":"abc","domain":".example.com","path":"/"}]\'',
    )
    auth_group.add_argument(
        "--header",
        action="append",
        default=None,
        help='Extra HTTP header sent with every request (can be repeated). '
             'Example: --header "Authorization: Bearer xyz"',
    )
    auth_group.add_argument(
        "--storage-state",
        type=str,
        default=None,
        help="Playwright storage state JSON exported from a logged-in browser",
    )
    auth_group.add_argument(
        "--auth-profile",
        type=str,
        default=None,
        help="Persistent Chromium profile directory to reuse between runs",
    )
