"""LLM client for the Anthropic Messages API with tool use."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import httpx

from ..config import LLMConfig
from ..models import AssistantReply, ChatMessage, MessageRole, ToolCall
from .base import LLMClient, LLMContext, with_paired_tool_results
from .json_parser import parse_tool_arguments

LOGGER = logging.getLogger(__name__)

_API_VERSION = "2023-06-01"
_RESERVED_PARAMETERS = {"timeout", "temperature", "max_tokens", "system_prompt"}


class AnthropicChatLLM(LLMClient):
    """Call the Anthropic Messages API to obtain the next tool call."""

    def __init__(self, config: LLMConfig, client: Optional[httpx.AsyncClient] = None) -> None:
        if not config.model:
            raise ValueError("LLM model must be specified for AnthropicChatLLM")
        self._config = config
        headers = {
            "Content-Type": "application/json",
            "anthropic-version": config.parameters.get("api_version", _API_VERSION),
        }
        if config.api_key:
            headers["x-api-key"] = config.api_key
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url or "https://api.anthropic.com",
            timeout=config.parameters.get("timeout", 60),
            headers=headers,
        )
        self._temperature = config.parameters.get("temperature", 0.0)
        self._max_tokens = config.parameters.get("max_tokens", 4096)

    async def complete(self, context: LLMContext) -> AssistantReply:
        system, messages = self._build_messages(context.messages)
        payload: dict[str, Any] = {
            "model": self._config.model,
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
            "messages": messages,
        }
        if system:
            payload["system"] = system
        if context.tools:
            payload["tools"] = [
                {
                    "name": definition["name"],
                    "description": definition["description"],
                    "input_schema": definition["parameters"],
                }
                for definition in context.tools
            ]
        payload.update(
            {
                k: v
                for k, v in self._config.parameters.items()
                if k not in _RESERVED_PARAMETERS and k != "api_version"
            }
        )
        response = await self._client.post("/v1/messages", json=payload)
        response.raise_for_status()
        data = response.json()
        blocks = data.get("content")
        if not isinstance(blocks, list):
            raise ValueError(f"Unexpected response format: {data}")
        return self._parse_reply(blocks)

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _build_messages(
        messages: Sequence[ChatMessage],
    ) -> tuple[str, list[dict[str, Any]]]:
        system_parts: list[str] = []
        turns: list[dict[str, Any]] = []
        for message in with_paired_tool_results(messages):
            if message.role is MessageRole.SYSTEM:
                if message.content:
                    system_parts.append(message.content)
                continue
            if message.role is MessageRole.TOOL:
                role = "user"
                blocks: list[dict[str, Any]] = [
                    {
                        "type": "tool_result",
                        "tool_use_id": message.tool_call_id,
                        "content": message.content or "",
                    }
                ]
            else:
                role = message.role.value
                blocks = []
                if message.content:
                    blocks.append({"type": "text", "text": message.content})
                for call in message.tool_calls:
                    blocks.append(
                        {
                            "type": "tool_use",
                            "id": call.id,
                            "name": call.name,
                            "input": call.arguments,
                        }
                    )
            if not blocks:
                continue
            # The API expects alternating roles; consecutive turns are merged.
            if turns and turns[-1]["role"] == role:
                turns[-1]["content"].extend(blocks)
            else:
                turns.append({"role": role, "content": blocks})
        return "\n\n".join(system_parts), turns

    @staticmethod
    def _parse_reply(blocks: list[dict[str, Any]]) -> AssistantReply:
        texts: list[str] = []
        calls: list[ToolCall] = []
        for block in blocks:
            if block.get("type") == "text" and block.get("text"):
                texts.append(block["text"])
            elif block.get("type") == "tool_use":
                calls.append(
                    ToolCall(
                        id=block.get("id") or f"toolu_{len(calls)}",
                        name=block.get("name", ""),
                        arguments=parse_tool_arguments(block.get("input")),
                    )
                )
        if calls:
            LOGGER.debug("Model requested tools: %s", [call.name for call in calls])
        return AssistantReply(content="\n".join(texts) or None, tool_calls=calls)
