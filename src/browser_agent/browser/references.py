"""Resolve snapshot reference tokens to Playwright locators."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from playwright.async_api import Locator

from .result import BrowserResult, Failure, Success

if TYPE_CHECKING:
    from .session import BrowserSession

LOGGER = logging.getLogger(__name__)

REFERENCE_PATTERN = re.compile(r"\[ref=(e\d+)\]")

SNAPSHOT_REQUIRED = "You need to run the `getSnapshot` tool first."
BLANK_REFERENCE = "Element reference cannot be null or empty."
REFERENCE_NOT_FOUND = (
    "The ref you provided is not found in the snapshot, get new page state with `getSnapshot`"
)
MALFORMED_REFERENCE = "Invalid reference format. Expected format: [ref=eNUMBER]"


def clean_reference(ref: str) -> str:
    """Strip the ``[ref=`` / ``]`` wrapper from a reference token."""

    cleaned = ref.strip()
    if cleaned.startswith("[ref="):
        cleaned = cleaned[len("[ref=") :]
    if cleaned.endswith("]"):
        cleaned = cleaned[:-1]
    return cleaned.strip()


def references_in(snapshot: str) -> list[str]:
    """Return the element ids annotated in *snapshot*, in order of appearance."""

    return REFERENCE_PATTERN.findall(snapshot)


class ElementReferenceResolver:
    """Translate ``[ref=eN]`` tokens from the latest snapshot into locators.

    Validation happens in a fixed order so the model always receives the same
    message for the same mistake: missing snapshot, blank token, token absent from
    the latest snapshot, malformed token, and finally a missing page.
    """

    def __init__(self, session: "BrowserSession") -> None:
        self._session = session

    async def resolve(self, ref: str) -> BrowserResult[Locator]:
        snapshot = self._session.last_snapshot
        if snapshot is None:
            return Failure(SNAPSHOT_REQUIRED)
        if not ref or not ref.strip():
            return Failure(BLANK_REFERENCE)
        if ref not in snapshot:
            return Failure(REFERENCE_NOT_FOUND)
        element_id = clean_reference(ref)
        if not element_id:
            return Failure(MALFORMED_REFERENCE)

        page = await self._session.get_page()
        if not isinstance(page, Success):
            error = page.error if isinstance(page, Failure) else "unknown"
            return Failure(f"Failed to get page: {error}, start browser before")
        LOGGER.debug("Resolving element reference %s", element_id)
        locator = page.value.locator(f"aria-ref={element_id}")
        if locator is None:
            return Failure(f"Failed to create locator for reference: {ref}")
        return Success(locator)
