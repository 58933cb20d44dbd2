"""URL canonicalization and the URL -> local file mapping."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional
from urllib.parse import urldefrag, urljoin, urlsplit

import tldextract

from .errors import MalformedURLError

LOGGER = logging.getLogger(__name__)

DEFAULT_PATH_FILTER = "/doc/"
HTML_SUFFIX = ".html"
INDEX_NAME = "index"

_ILLEGAL_FILENAME_CHARS = re.compile(r'[<>:"|?*\\]')
_DEFAULT_PORTS = {"http": 80, "https": 443}

# bundled public suffix snapshot only, no network fetch
_TLD_EXTRACT = tldextract.TLDExtract(suffix_list_urls=())


@dataclass(frozen=True)
class UrlScope:
    """Which resolved URLs count as documentation pages of the site."""

    base_url: str
    path_filter: str = DEFAULT_PATH_FILTER
    include_subdomains: bool = False


def _normalize_host(host: Optional[str]) -> str:
    """Normalize hostname by removing port and lowercasing."""
    if not host:
        return ""
    return host.split(":")[0].lower()


@lru_cache(maxsize=256)
def _registrable_domain(host: str) -> Optional[str]:
    """Extract the registrable domain from a hostname."""
    if not host:
        return None
    extracted = _TLD_EXTRACT(host)
    if not extracted.domain or not extracted.suffix:
        return host
    return ".".join(part for part in (extracted.domain, extracted.suffix) if part)


def _origin(url: str) -> tuple[str, str, Optional[int]]:
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    try:
        port = parts.port
    except ValueError as exc:
        raise MalformedURLError(f"Invalid port in URL: {url}") from exc
    return scheme, _normalize_host(parts.hostname), port or _DEFAULT_PORTS.get(scheme)


def _same_site(candidate: str, scope: UrlScope) -> bool:
    cand_scheme, cand_host, cand_port = _origin(candidate)
    base_scheme, base_host, base_port = _origin(scope.base_url)
    if (cand_scheme, cand_host, cand_port) == (base_scheme, base_host, base_port):
        return True
    if not scope.include_subdomains or cand_scheme != base_scheme:
        return False
    registrable = _registrable_domain(base_host)
    return bool(registrable) and (
        cand_host == registrable or cand_host.endswith("." + registrable)
    )


def resolve_href(href: str, base_url: str) -> str:
    """
    Resolve an absolute, root-relative or document-relative href.

    Returns:
        The absolute URL with its fragment removed.

    Raises:
        MalformedURLError: If the href is empty or not an http(s) URL.
    """
    candidate = (href or "").strip()
    if not candidate:
        raise MalformedURLError("Empty href")

    try:
        resolved = urljoin(base_url, candidate)
    except ValueError as exc:
        raise MalformedURLError(f"Cannot resolve href {href!r}: {exc}") from exc

    resolved, _fragment = urldefrag(resolved)
    parts = urlsplit(resolved)
    if parts.scheme.lower() not in _DEFAULT_PORTS or not parts.hostname:
        raise MalformedURLError(f"Not an http(s) URL: {resolved}")
    return resolved


def canonicalize_href(href: str, scope: UrlScope) -> Optional[str]:
    """
    Canonicalize an href found on a page of ``scope.base_url``.

    Links to another origin, links outside the documentation path and links
    that cannot be resolved are dropped by returning ``None``.
    """
    try:
        resolved = resolve_href(href, scope.base_url)
        if not _same_site(resolved, scope):
            return None
    except MalformedURLError as exc:
        LOGGER.debug("Dropping href %r: %s", href, exc)
        return None

    if scope.path_filter and scope.path_filter not in urlsplit(resolved).path:
        return None
    return resolved


def canonicalize_root(url: str) -> str:
    """Canonical form of a user-supplied root URL (no scope filtering)."""
    return resolve_href(url, url)


def url_to_storage_path(url: str) -> str:
    """
    Map a canonical URL to a relative POSIX path below the output directory.

    ``/a/b`` maps to ``a/b.html``, ``/a/b/`` to ``a/b/index.html`` and the
    bare origin to ``index.html``. Paths already ending in ``.html`` keep
    their name, so the mapping is idempotent on its own output.
    """
    path = urlsplit(url).path if "://" in url else url
    path = path.lstrip("/")
    path = _ILLEGAL_FILENAME_CHARS.sub("_", path)
    # keep every file inside the output directory
    path = "/".join("_" if part in (".", "..") else part for part in path.split("/"))

    if not path:
        path = INDEX_NAME
    elif path.endswith("/"):
        path = path + INDEX_NAME

    if not path.endswith(HTML_SUFFIX):
        path = path + HTML_SUFFIX
    return path
