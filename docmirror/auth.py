"""Credentials for mirroring documentation behind a login.

An ``AuthConfig`` is turned into Playwright context options by
``build_context_options``; cookies are added by the browser session once the
context exists.

Example usage:

    from docmirror.auth import AuthConfig, build_context_options

    # Storage state exported from a logged-in browser
    options = build_context_options(AuthConfig(storage_state="./auth_state.json"))

    # Bearer token on every request
    options = build_context_options(AuthConfig(headers={"Authorization": "Bearer xyz"}))
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConfigurationError

LOGGER = logging.getLogger(__name__)

ENV_STORAGE_STATE = "DOCMIRROR_AUTH_STORAGE_STATE"
ENV_COOKIES_FILE = "DOCMIRROR_AUTH_COOKIES_FILE"
ENV_PROFILE = "DOCMIRROR_AUTH_PROFILE"


def _read_json(path: Path, what: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{what} {path} is not valid JSON: {exc}") from exc


@dataclass
class AuthConfig:
    """Session credentials; any combination of fields may be set.

    Attributes:
        cookies: Playwright cookie dicts (``name``, ``value`` plus ``domain``
            and ``path``, or ``url``).
        headers: Extra HTTP headers sent with every request.
        storage_state: Path to a Playwright storage state JSON file.
        storage_state_data: Storage state already loaded as a dict.
        user_data_dir: Persistent Chromium profile; replaces storage state.
    """

    cookies: Optional[List[Dict[str, Any]]] = None
    headers: Optional[Dict[str, str]] = None
    storage_state: Optional[str] = None
    storage_state_data: Optional[Dict[str, Any]] = None
    user_data_dir: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, f.name) for f in fields(self))

    def resolved_storage_state(self) -> Optional[Dict[str, Any]]:
        """Inline storage state if given, else the parsed storage state file.

        Raises:
            ConfigurationError: If the file is missing or not JSON.
        """
        if self.storage_state_data:
            return self.storage_state_data
        if not self.storage_state:
            return None

        path = Path(self.storage_state).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"Storage state file not found: {path}")
        data = _read_json(path, "Storage state")
        LOGGER.info("Loaded storage state from %s", path)
        return data


def build_context_options(auth: Optional[AuthConfig] = None) -> Dict[str, Any]:
    """Keyword arguments for ``browser.new_context`` derived from auth.

    Cookies are not part of the context options; the session adds them with
    ``context.add_cookies`` once the context exists.
    """
    if auth is None or auth.is_empty:
        return {}

    kwargs: Dict[str, Any] = {}

    if auth.headers:
        kwargs["extra_http_headers"] = dict(auth.headers)
        LOGGER.info("Auth: injecting %d custom header(s)", len(auth.headers))

    resolved_state = auth.resolved_storage_state()
    if resolved_state:
        kwargs["storage_state"] = resolved_state
        LOGGER.info("Auth: using storage state")

    return kwargs


def load_auth_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[AuthConfig]:
    """AuthConfig from ``DOCMIRROR_AUTH_*`` variables, or None when none is set.

    A cookies file that does not exist is logged and ignored.
    """
    env = os.environ if environ is None else environ
    auth = AuthConfig(
        storage_state=env.get(ENV_STORAGE_STATE) or None,
        user_data_dir=env.get(ENV_PROFILE) or None,
    )

    cookies_file = env.get(ENV_COOKIES_FILE)
    if cookies_file:
        path = Path(cookies_file).expanduser()
        if path.is_file():
            cookies = _read_json(path, "Cookies file")
            auth.cookies = cookies if isinstance(cookies, list) else [cookies]
            LOGGER.info("Loaded %d cookie(s) from %s", len(auth.cookies), path)
        else:
            LOGGER.warning("Cookies file not found: %s", path)

    if auth.is_empty and not cookies_file:
        return None
    return auth
