"""Utilities for parsing JSON emitted by language models."""

from __future__ import annotations

import json
import logging
from typing import Any

LOGGER = logging.getLogger(__name__)


def extract_json_object(text: str) -> dict[str, Any]:
    """Extract the first JSON object found in *text* and return it as a dict."""

    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _strip_code_fence(cleaned)
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise ValueError("No JSON object found in LLM response")
    snippet = cleaned[start : end + 1]
    return json.loads(snippet)


def parse_tool_arguments(raw: Any) -> dict[str, Any]:
    """Turn tool-call arguments into a dict.

    Providers send either a mapping or a JSON string. Unparseable arguments become
    an empty mapping so the tool's own validation reports what is missing.
    """

    if raw is None:
        return {}
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        try:
            value = extract_json_object(raw)
        except ValueError:
            LOGGER.warning("Discarding unparseable tool arguments: %r", raw)
            return {}
    if not isinstance(value, dict):
        LOGGER.warning("Tool arguments are not an object: %r", raw)
        return {}
    return value


def _strip_code_fence(block: str) -> str:
    parts = block.split("```")
    if len(parts) >= 3:
        return parts[1]
    return block.strip("`")
