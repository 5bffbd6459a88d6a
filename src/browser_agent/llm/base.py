"""Base classes and utilities for LLM integrations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Sequence

from ..models import AssistantReply, ChatMessage, MessageRole

OMITTED_RESULT = "Success: Earlier snapshot omitted from history"


@dataclass
class LLMContext:
    """Information passed to the LLM on every turn."""

    messages: Sequence[ChatMessage]
    tools: Sequence[dict[str, Any]] = field(default_factory=list)


class LLMClient(ABC):
    """Abstract interface for LLM providers."""

    @abstractmethod
    async def complete(self, context: LLMContext) -> AssistantReply:
        """Return the model's next reply: a tool call or a plain assistant message.

        Transport failures propagate; the agent loop reports them as a failed run.
        """

    async def aclose(self) -> None:
        """Release network resources held by the client."""


def with_paired_tool_results(messages: Sequence[ChatMessage]) -> List[ChatMessage]:
    """Return *messages* with a placeholder result for every unanswered tool call.

    Compaction removes old snapshot results while keeping the calls that produced
    them; providers reject histories where a call has no result.
    """

    answered = {
        message.tool_call_id
        for message in messages
        if message.role is MessageRole.TOOL and message.tool_call_id
    }
    paired: List[ChatMessage] = []
    for message in messages:
        paired.append(message)
        for call in message.tool_calls:
            if call.id not in answered:
                paired.append(ChatMessage.tool_result(call, OMITTED_RESULT))
    return paired
