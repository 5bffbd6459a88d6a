import asyncio
import logging

import pytest

from fakes import FakePage, make_session

from browser_agent.browser.result import BrowserResult, Failure, Success
from browser_agent.browser.session import BrowserSession
from browser_agent.config import BrowserConfig
from browser_agent.models import Outcome, OutcomeKind


def test_start_browser_launches_browser_and_page():
    page = FakePage()
    session, playwright = make_session(
        page,
        config=BrowserConfig(headless=True, viewport_width=800, viewport_height=600, timeout=5),
    )

    outcome = asyncio.run(session.start_browser())

    assert str(outcome) == "Success: Browser started"
    assert session.page is page
    assert playwright.chromium.launches[0]["headless"] is True
    assert playwright.browsers[0].page_options == {"viewport": {"width": 800, "height": 600}}
    assert page.default_timeout == 5000


def test_start_browser_headless_argument_overrides_config():
    session, playwright = make_session(config=BrowserConfig(headless=True))

    asyncio.run(session.start_browser(headless=False))

    assert playwright.chromium.launches[0]["headless"] is False


def test_start_browser_replaces_existing_pair():
    first, second = FakePage(), FakePage()
    session, playwright = make_session(first, second)

    async def scenario() -> Outcome:
        await session.start_browser()
        return await session.start_browser()

    outcome = asyncio.run(scenario())

    assert outcome.kind is OutcomeKind.SUCCESS
    assert first.closed is True
    assert playwright.browsers[0].closed is True
    assert session.page is second
    assert len(playwright.chromium.launches) == 2


def test_start_browser_reports_launch_failure():
    session, playwright = make_session()
    playwright.chromium.launch_error = RuntimeError("Executable doesn't exist")

    outcome = asyncio.run(session.start_browser())

    assert str(outcome) == "Error: Executable doesn't exist"
    assert session.page is None


def test_open_link_requires_started_browser():
    session, _ = make_session()

    outcome = asyncio.run(session.open_link("https://example.com"))

    assert outcome.kind is OutcomeKind.ERROR
    assert outcome.detail.startswith("Page is not initialized")


def test_open_link_navigates_and_hashes_page_lazily():
    page = FakePage(html="<html>v1</html>")
    session, _ = make_session(page)

    async def scenario() -> tuple[Outcome, bool, bool]:
        await session.start_browser()
        opened = await session.open_link("https://example.com")
        await session.get_page()
        unchanged = await session.is_changed(page)
        page.html = "<html>v2</html>"
        changed = await session.is_changed(page)
        return opened, unchanged, changed

    opened, unchanged, changed = asyncio.run(scenario())

    assert str(opened) == "Success: Link opened"
    assert page.visited == ["https://example.com"]
    assert unchanged is False
    assert changed is True


def test_is_changed_is_false_for_unseen_url():
    page = FakePage()
    session, _ = make_session(page)

    assert asyncio.run(session.is_changed(page)) is False


def test_open_link_reports_navigation_error():
    page = FakePage()
    page.goto_error = RuntimeError("net::ERR_NAME_NOT_RESOLVED")
    session, _ = make_session(page)

    async def scenario() -> Outcome:
        await session.start_browser()
        return await session.open_link("https://nowhere.invalid")

    assert str(asyncio.run(scenario())) == "Error: net::ERR_NAME_NOT_RESOLVED"


def test_get_snapshot_requires_started_browser():
    session, _ = make_session()

    outcome = asyncio.run(session.get_snapshot())

    assert str(outcome) == "Error: Page is not initialized, use start browser before"
    assert session.last_snapshot is None


def test_get_snapshot_stores_last_snapshot():
    page = FakePage(snapshot='- button "Go" [ref=e1]')
    session, _ = make_session(page)

    async def scenario() -> Outcome:
        await session.start_browser()
        return await session.get_snapshot()

    outcome = asyncio.run(scenario())

    assert str(outcome) == 'Success: Snapshot captured\n- button "Go" [ref=e1]'
    assert session.last_snapshot == '- button "Go" [ref=e1]'
    assert page.locators[0].selector == "body"


def test_get_snapshot_carries_element_references():
    page = FakePage(snapshot='- heading "Example Domain" [level=1]\n- link "More information" [ref=e2]')
    session, _ = make_session(page)

    async def scenario():
        await session.start_browser()
        await session.get_snapshot()
        return await session.resolve_reference("[ref=e2]")

    locator = asyncio.run(scenario())

    assert session.last_snapshot is not None
    assert "[ref=e2]" in session.last_snapshot
    assert isinstance(locator, Success)
    assert locator.value.selector == "aria-ref=e2"


def test_get_snapshot_falls_back_on_playwright_without_mode(caplog):
    page = FakePage(snapshot='- link "More information" [ref=e2]')
    page.supports_mode = False
    session, _ = make_session(page)

    async def scenario() -> Outcome:
        await session.start_browser()
        return await session.get_snapshot()

    with caplog.at_level(logging.WARNING, logger="browser_agent.browser.session"):
        outcome = asyncio.run(scenario())

    assert outcome.kind is OutcomeKind.SUCCESS
    assert session.last_snapshot == '- link "More information"'
    assert any("unsupported" in record.getMessage() for record in caplog.records)


def test_get_snapshot_rejects_empty_capture():
    session, _ = make_session(FakePage(snapshot=""))

    async def scenario() -> Outcome:
        await session.start_browser()
        return await session.get_snapshot()

    outcome = asyncio.run(scenario())

    assert outcome.kind is OutcomeKind.ERROR
    assert "empty snapshot returned" in outcome.detail
    assert session.last_snapshot is None


def test_start_then_close_returns_to_uninitialized_state():
    page = FakePage(snapshot="- link [ref=e1]")
    session, playwright = make_session(page)

    async def scenario() -> tuple[Outcome, Outcome]:
        await session.start_browser()
        await session.get_snapshot()
        closed = await session.close_browser()
        reopened = await session.open_link("https://example.com")
        return closed, reopened

    closed, reopened = asyncio.run(scenario())

    assert str(closed) == "Success: Browser closed"
    assert page.closed is True
    assert playwright.browsers[0].closed is True
    assert playwright.stopped is True
    assert session.page is None
    assert session.last_snapshot is None
    assert reopened.kind is OutcomeKind.ERROR
    assert reopened.detail.startswith("Page is not initialized")


def test_close_browser_releases_remaining_handles_when_page_close_fails():
    page = FakePage()
    page.close_error = RuntimeError("Target page, context or browser has been closed")
    session, playwright = make_session(page)

    async def scenario() -> Outcome:
        await session.start_browser()
        return await session.close_browser()

    outcome = asyncio.run(scenario())

    assert outcome.kind is OutcomeKind.ERROR
    assert playwright.browsers[0].closed is True
    assert playwright.stopped is True
    assert session.page is None
    assert session.is_started is False


def test_close_browser_without_start_succeeds():
    session, _ = make_session()

    assert str(asyncio.run(session.close_browser())) == "Success: Browser closed"


def test_get_page_returns_failure_or_success():
    page = FakePage()
    session, _ = make_session(page)

    before = asyncio.run(session.get_page())
    asyncio.run(session.start_browser())
    after = asyncio.run(session.get_page())

    assert isinstance(before, Failure)
    assert before.error == "Page is not initialized, use start browser before"
    assert isinstance(after, Success)
    assert after.value is page


def test_execute_safely_passes_prefixed_results_through():
    async def warn() -> str:
        return "Warning: careful"

    outcome = asyncio.run(BrowserSession.execute_safely("Error: default", warn))

    assert str(outcome) == "Warning: careful"


def test_execute_safely_wraps_unprefixed_results_as_errors():
    async def plain() -> str:
        return "something odd"

    outcome = asyncio.run(BrowserSession.execute_safely("Error: default", plain))

    assert str(outcome) == "Error: something odd"


def test_execute_safely_uses_default_for_silent_exceptions():
    async def boom() -> str:
        raise RuntimeError()

    outcome = asyncio.run(BrowserSession.execute_safely("Error: Failed to open link", boom))

    assert str(outcome) == "Error: Failed to open link"


def test_execute_safely_keeps_prefixed_exception_messages():
    async def boom() -> str:
        raise RuntimeError("Warning: already formatted")

    outcome = asyncio.run(BrowserSession.execute_safely("Error: default", boom))

    assert str(outcome) == "Warning: already formatted"


def test_browser_result_is_abstract():
    with pytest.raises(TypeError):
        BrowserResult(None)  # type: ignore[abstract]
