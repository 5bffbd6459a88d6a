"""Browser automation tools built on :class:`BrowserSession` and snapshot references."""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import Locator, Page
from pydantic import BaseModel, Field

from ..browser.session import BrowserSession
from ..models import Outcome
from .base import NoArguments, Tool, exit_tool

LOGGER = logging.getLogger(__name__)

SNAPSHOT_TOOL_NAME = "getSnapshot"
ALLOWED_SCHEMES = ("http://", "https://", "file://")

_REF_DESCRIPTION = (
    "Element ref from the page snapshot, Format: ```[ref=eNUMBER]```, "
    "example: ```[ref=e1]``` or ```[ref=e35]```"
)


class ClickArguments(BaseModel):
    x: int = Field(description="Horizontal page coordinate in CSS pixels")
    y: int = Field(description="Vertical page coordinate in CSS pixels")


class ClickByRefArguments(BaseModel):
    ref: str = Field(description=_REF_DESCRIPTION)


class TypeTextArguments(BaseModel):
    text: str = Field(description="Text to type into the focused element")


class NavigateArguments(BaseModel):
    url: str = Field(description="Absolute URL to open")


class BrowserToolset:
    """Tools for browser automation based on Playwright and snapshots.

    Arguments are validated before the browser is touched; everything else goes
    through :meth:`BrowserSession.execute_safely` so each call yields one outcome.
    """

    def __init__(self, session: BrowserSession, headless: Optional[bool] = None) -> None:
        self._session = session
        self._headless = headless

    @property
    def session(self) -> BrowserSession:
        return self._session

    async def start_browser(self) -> Outcome:
        return await self._session.execute_safely(
            "Error: Failed to start browser",
            lambda: self._session.start_browser(self._headless),
        )

    async def close_browser(self) -> Outcome:
        return await self._session.execute_safely(
            "Error: Failed to close browser",
            self._session.close_browser,
        )

    async def get_snapshot(self) -> Outcome:
        return await self._session.execute_safely(
            "Error: Failed to get page snapshot",
            self._session.get_snapshot,
        )

    async def click(self, x: int, y: int) -> Outcome:
        if x < 0 or y < 0:
            return Outcome.error("Invalid coordinates - x and y must be non-negative")

        async def _click(page: Page) -> Outcome:
            mouse = page.mouse
            if mouse is None:
                raise RuntimeError("Mouse interface is not available")
            await mouse.click(x, y)
            return Outcome.success(f"Clicked at coordinates ({x}, {y})")

        async def _run() -> Outcome:
            page = await self._session.get_page()
            return await page.execute(_click)

        return await self._session.execute_safely(
            f"Error: Failed to click at coordinates ({x}, {y})", _run
        )

    async def click_by_ref(self, ref: str) -> Outcome:
        if not ref or not ref.strip():
            return Outcome.error("Element reference cannot be null or empty")

        async def _click(locator: Locator) -> Outcome:
            visible = await locator.is_visible()
            try:
                await locator.click()
            except Exception as exc:
                reason = str(exc) or "Unknown error"
                if not visible:
                    return Outcome.warning(
                        f"Element {ref} is not visible, click may fail - {reason}"
                    )
                return Outcome.error(f"Failed to click on {ref} - {reason}")
            if not visible:
                return Outcome.warning(f"Element {ref} is not visible, click may fail")
            return Outcome.success(f"Clicked on element {ref}")

        async def _run() -> Outcome:
            locator = await self._session.resolve_reference(ref)
            return await locator.execute(_click)

        return await self._session.execute_safely(
            f"Error: Failed to click on element with reference {ref}", _run
        )

    async def type_text(self, text: str) -> Outcome:
        if not text:
            return Outcome.error("Text to type cannot be null or empty")

        async def _type(page: Page) -> Outcome:
            keyboard = page.keyboard
            if keyboard is None:
                raise RuntimeError("Keyboard interface is not available")
            try:
                await keyboard.type(text)
            except Exception as exc:
                return Outcome.error(f"Failed to type text - {str(exc) or 'Unknown error'}")
            return Outcome.success(f'Typed text "{text}"')

        async def _run() -> Outcome:
            page = await self._session.get_page()
            return await page.execute(_type)

        return await self._session.execute_safely(f"Error: Failed to type text: {text}", _run)

    async def navigate_to(self, url: str) -> Outcome:
        if not url or not url.strip():
            return Outcome.error("URL cannot be null or empty")

        outcome = await self._session.execute_safely(
            f"Error: Failed to navigate to URL: {url}",
            lambda: self._session.open_link(url),
        )
        if url.startswith(ALLOWED_SCHEMES):
            return outcome
        LOGGER.info("Navigating to %s without a recognised scheme", url)
        return Outcome.warning(
            "URL should start with http://, https://, or file:// - "
            f"attempting to navigate anyway. {outcome}"
        )

    def tools(self, include_exit: bool = True) -> list[Tool]:
        """Return the model-facing tool definitions backed by this toolset."""

        tools = [
            Tool(
                name="startBrowser",
                description="Start browser, use it before any other action",
                arguments=NoArguments,
                handler=lambda _: self.start_browser(),
            ),
            Tool(
                name="closeBrowser",
                description="Close the browser, use when you are done with the browser actions",
                arguments=NoArguments,
                handler=lambda _: self.close_browser(),
            ),
            Tool(
                name=SNAPSHOT_TOOL_NAME,
                description="Current page state snapshot with element refs",
                arguments=NoArguments,
                handler=lambda _: self.get_snapshot(),
            ),
            Tool(
                name="click",
                description="Click by coordinates",
                arguments=ClickArguments,
                handler=lambda args: self.click(args.x, args.y),
            ),
            Tool(
                name="clickByRef",
                description="Click on an element by its ref",
                arguments=ClickByRefArguments,
                handler=lambda args: self.click_by_ref(args.ref),
            ),
            Tool(
                name="typeText",
                description="Type text using the keyboard",
                arguments=TypeTextArguments,
                handler=lambda args: self.type_text(args.text),
            ),
            Tool(
                name="navigateTo",
                description="Open url",
                arguments=NavigateArguments,
                handler=lambda args: self.navigate_to(args.url),
            ),
        ]
        if include_exit:
            tools.append(exit_tool())
        return tools
