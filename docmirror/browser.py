"""Playwright browser session and the narrow page interface used by the stages."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, List, Optional, Protocol

from .auth import AuthConfig, build_context_options
from .config import ScraperSettings
from .errors import BrowserSessionError, NavigationError

LOGGER = logging.getLogger(__name__)

LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


class RenderedPage(Protocol):
    """The subset of Playwright's ``Page`` the extractor and fetcher rely on."""

    async def goto(self, url: str, *, wait_until: str, timeout: float) -> Any: ...

    async def wait_for_selector(self, selector: str, *, timeout: float) -> Any: ...

    async def query_selector_all(self, selector: str) -> List[Any]: ...

    async def evaluate(self, expression: str, arg: Any = None) -> Any: ...

    async def content(self) -> str: ...


async def navigate(page: RenderedPage, url: str, settings: ScraperSettings) -> None:
    """Open ``url`` and wait for the configured load state.

    Raises:
        NavigationError: If the page fails to load within the timeout.
    """
    try:
        await page.goto(
            url,
            wait_until=settings.wait_until,
            timeout=settings.navigation_timeout_ms,
        )
    except Exception as exc:
        raise NavigationError(f"Failed to load {url}: {exc}") from exc


@asynccontextmanager
async def open_browser_session(
    settings: ScraperSettings,
    auth: Optional[AuthConfig] = None,
) -> AsyncIterator[RenderedPage]:
    """Launch Chromium and yield one page shared by every stage of a run.

    Raises:
        BrowserSessionError: If Playwright is missing or the browser fails to start.
    """
    try:
        from playwright.async_api import async_playwright
    except ImportError as exc:
        raise BrowserSessionError(
            "Playwright is required for docmirror. "
            "Install it with: pip install playwright && playwright install chromium"
        ) from exc

    context_options = build_context_options(auth)
    viewport = {"width": settings.viewport_width, "height": settings.viewport_height}

    LOGGER.info("Starting browser (headless=%s)", settings.headless)
    async with async_playwright() as pw:
        browser = None
        try:
            if auth and auth.user_data_dir:
                profile_dir = Path(auth.user_data_dir).expanduser()
                profile_dir.mkdir(parents=True, exist_ok=True)
                context_options.pop("storage_state", None)
                context = await pw.chromium.launch_persistent_context(
                    user_data_dir=str(profile_dir),
                    headless=settings.headless,
                    args=LAUNCH_ARGS,
                    viewport=viewport,
                    user_agent=settings.user_agent,
                    **context_options,
                )
                LOGGER.info("Using persistent profile: %s", profile_dir)
            else:
                browser = await pw.chromium.launch(
                    headless=settings.headless,
                    args=LAUNCH_ARGS,
                )
                context = await browser.new_context(
                    viewport=viewport,
                    user_agent=settings.user_agent,
                    **context_options,
                )
        except Exception as exc:
            if browser is not None:
                await browser.close()
            raise BrowserSessionError(f"Failed to start browser: {exc}") from exc

        try:
            if auth and auth.cookies:
                await context.add_cookies(auth.cookies)
                LOGGER.info("Auth: injecting %d cookie(s)", len(auth.cookies))
            page = context.pages[0] if context.pages else await context.new_page()
            yield page
        finally:
            try:
                if browser is not None:
                    await browser.close()
                else:
                    await context.close()
            except Exception as exc:
                LOGGER.debug("Ignoring error while closing browser: %s", exc)
            LOGGER.info("Browser closed")
