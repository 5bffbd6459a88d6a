"""Playwright-powered browser session that never raises to its callers."""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from playwright.async_api import Browser, Error, Locator, Page, Playwright, async_playwright

from ..config import BrowserConfig
from ..models import Outcome
from .references import ElementReferenceResolver, references_in
from .result import BrowserResult, Failure, Success

LOGGER = logging.getLogger(__name__)

PlaywrightFactory = Callable[[], Awaitable[Playwright]]
SafeAction = Callable[[], Awaitable[Union[Outcome, str]]]

PAGE_NOT_INITIALIZED = "Page is not initialized, use start browser before"


async def _start_playwright() -> Playwright:
    return await async_playwright().start()


class BrowserSession:
    """Own a single Playwright browser/page pair.

    Every public operation returns an :class:`Outcome`; failures from Playwright or
    from a missing browser are reported as ``Error`` outcomes instead of raising so
    the model can react to them on its next turn. Mutating operations are expected
    to be serialised by the agent loop.
    """

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        playwright_factory: Optional[PlaywrightFactory] = None,
    ) -> None:
        self._config = config or BrowserConfig()
        self._playwright_factory = playwright_factory or _start_playwright
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None
        self.last_snapshot: Optional[str] = None
        self._page_hashes: dict[str, str] = {}
        self._references = ElementReferenceResolver(self)

    @property
    def page(self) -> Optional[Page]:
        return self._page

    @property
    def is_started(self) -> bool:
        return self._page is not None

    async def start_browser(self, headless: Optional[bool] = None) -> Outcome:
        """Launch a browser and open a page, replacing any existing pair."""

        async def _start() -> Outcome:
            if self._page is not None or self._browser is not None:
                LOGGER.info("Replacing running browser")
                await self._release_browser_and_page()
            if self._playwright is None:
                self._playwright = await self._playwright_factory()
            if self._playwright is None:
                raise RuntimeError("Failed to initialize Playwright")
            browser = await self._playwright.chromium.launch(**self._launch_options(headless))
            if browser is None:
                raise RuntimeError("Failed to launch browser")
            self._browser = browser
            self._page = await browser.new_page(**self._page_options())
            if self._config.timeout is not None:
                self._page.set_default_timeout(self._config.timeout * 1000)
            self.last_snapshot = None
            LOGGER.debug("Browser started (headless=%s)", self._headless(headless))
            return Outcome.success("Browser started")

        return await self.execute_safely("Error: Failed to start browser", _start)

    async def open_link(self, url: str) -> Outcome:
        """Navigate the current page to *url*."""

        async def _open() -> Outcome:
            page = self._page
            if page is None:
                raise RuntimeError(
                    "Page is not initialized, use startBrowser before opening a link"
                )
            LOGGER.info("Opening %s", url)
            await page.goto(url)
            return Outcome.success("Link opened")

        return await self.execute_safely(f"Error: Failed to open link {url}", _open)

    async def get_snapshot(self) -> Outcome:
        """Capture an ARIA snapshot of the page with element references."""

        async def _capture(page: Page) -> Outcome:
            snapshot = await self._aria_snapshot(page.locator("body"))
            if not snapshot:
                raise RuntimeError("Failed to capture page snapshot: empty snapshot returned")
            self.last_snapshot = snapshot
            LOGGER.debug("Captured snapshot with %d references", len(references_in(snapshot)))
            return Outcome.success(f"Snapshot captured\n{snapshot}")

        async def _snapshot() -> Outcome:
            page = await self.get_page()
            return await page.execute(_capture)

        return await self.execute_safely("Error: Failed to get page snapshot", _snapshot)

    async def close_browser(self) -> Outcome:
        """Release page, browser and Playwright, in that order."""

        async def _close() -> Outcome:
            try:
                await self._release_browser_and_page()
            finally:
                try:
                    playwright = self._playwright
                    if playwright is not None:
                        try:
                            await playwright.stop()
                        finally:
                            self._playwright = None
                finally:
                    self.last_snapshot = None
            LOGGER.debug("Browser closed")
            return Outcome.success("Browser closed")

        return await self.execute_safely("Error: Failed to close browser", _close)

    async def get_page(self) -> BrowserResult[Page]:
        """Return the active page, recording its content hash."""

        page = self._page
        if page is None:
            return Failure(PAGE_NOT_INITIALIZED)
        await self._record_hash(page)
        return Success(page)

    async def resolve_reference(self, ref: str) -> BrowserResult[Locator]:
        return await self._references.resolve(ref)

    async def is_changed(self, page: Page) -> bool:
        """Return True when *page* differs from the last recorded content for its URL."""

        recorded = self._page_hashes.get(page.url)
        if recorded is None:
            return False
        return recorded != await self.hash_of_page(page)

    @staticmethod
    async def hash_of_page(page: Page) -> str:
        content = await page.content()
        return hashlib.md5((content or "").encode("utf-8")).hexdigest()

    @staticmethod
    async def execute_safely(default_error: str, action: SafeAction) -> Outcome:
        """Run *action* and convert its result or any raised error into an outcome.

        Results that already carry a ``Success:``/``Warning:``/``Error:`` prefix pass
        through unchanged; anything else is reported as an error.
        """

        try:
            result = await action()
        except Exception as exc:
            LOGGER.debug("Browser action failed: %s", exc)
            return Outcome.normalize(str(exc), default_error)
        return Outcome.normalize(result, default_error)

    async def _release_browser_and_page(self) -> None:
        try:
            page = self._page
            if page is not None:
                try:
                    await page.close()
                finally:
                    self._page = None
        finally:
            browser = self._browser
            if browser is not None:
                try:
                    await browser.close()
                finally:
                    self._browser = None

    async def _record_hash(self, page: Page) -> None:
        try:
            self._page_hashes[page.url] = await self.hash_of_page(page)
        except Error as exc:
            LOGGER.debug("Could not hash page content for %s: %s", page.url, exc)

    @staticmethod
    async def _aria_snapshot(locator: Locator) -> str:
        try:
            return await locator.aria_snapshot(mode="ai")
        except TypeError:
            LOGGER.warning(
                'aria_snapshot(mode="ai") unsupported by this Playwright; snapshot has no element refs'
            )
            return await locator.aria_snapshot()

    def _headless(self, headless: Optional[bool]) -> bool:
        return self._config.headless if headless is None else headless

    def _launch_options(self, headless: Optional[bool]) -> dict[str, Any]:
        options: dict[str, Any] = {
            "headless": self._headless(headless),
            "args": [
                "--no-sandbox",
                "--disable-dev-shm-usage",
            ],
        }
        if self._config.channel:
            options["channel"] = self._config.channel
        return options

    def _page_options(self) -> dict[str, Any]:
        if self._config.viewport_width and self._config.viewport_height:
            return {
                "viewport": {
                    "width": self._config.viewport_width,
                    "height": self._config.viewport_height,
                }
            }
        return {}
