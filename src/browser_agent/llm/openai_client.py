"""LLM client for OpenAI-compatible chat completion endpoints with tool calling."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Sequence

import httpx

from ..config import LLMConfig
from ..models import AssistantReply, ChatMessage, MessageRole, ToolCall
from .base import LLMClient, LLMContext, with_paired_tool_results
from .json_parser import parse_tool_arguments

LOGGER = logging.getLogger(__name__)

_RESERVED_PARAMETERS = {"timeout", "temperature", "system_prompt"}


class OpenAIChatLLM(LLMClient):
    """Call an OpenAI-compatible chat completion API to obtain the next tool call."""

    def __init__(self, config: LLMConfig, client: Optional[httpx.AsyncClient] = None) -> None:
        if not config.model:
            raise ValueError("LLM model must be specified for OpenAIChatLLM")
        self._config = config
        headers = {"Content-Type": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url or "https://api.openai.com/v1",
            timeout=config.parameters.get("timeout", 60),
            headers=headers,
        )
        self._temperature = config.parameters.get("temperature", 0.0)

    async def complete(self, context: LLMContext) -> AssistantReply:
        payload: dict[str, Any] = {
            "model": self._config.model,
            "messages": self._build_messages(context.messages),
            "temperature": self._temperature,
        }
        if context.tools:
            payload["tools"] = [
                {"type": "function", "function": definition} for definition in context.tools
            ]
        payload.update(
            {
                k: v
                for k, v in self._config.parameters.items()
                if k not in _RESERVED_PARAMETERS
            }
        )
        response = await self._client.post("/chat/completions", json=payload)
        response.raise_for_status()
        data = response.json()
        try:
            message = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ValueError(f"Unexpected response format: {data}") from exc
        return self._parse_reply(message)

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _build_messages(messages: Sequence[ChatMessage]) -> list[dict[str, Any]]:
        serialized: list[dict[str, Any]] = []
        for message in with_paired_tool_results(messages):
            if message.role is MessageRole.TOOL:
                serialized.append(
                    {
                        "role": "tool",
                        "tool_call_id": message.tool_call_id,
                        "content": message.content or "",
                    }
                )
                continue
            item: dict[str, Any] = {"role": message.role.value, "content": message.content}
            if message.tool_calls:
                item["tool_calls"] = [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {
                            "name": call.name,
                            "arguments": json.dumps(call.arguments),
                        },
                    }
                    for call in message.tool_calls
                ]
            serialized.append(item)
        return serialized

    @staticmethod
    def _parse_reply(message: dict[str, Any]) -> AssistantReply:
        calls = []
        for raw in message.get("tool_calls") or []:
            function = raw.get("function") or {}
            calls.append(
                ToolCall(
                    id=raw.get("id") or f"call_{len(calls)}",
                    name=function.get("name", ""),
                    arguments=parse_tool_arguments(function.get("arguments")),
                )
            )
        content = message.get("content")
        if calls:
            LOGGER.debug("Model requested tools: %s", [call.name for call in calls])
        return AssistantReply(content=content, tool_calls=calls)
