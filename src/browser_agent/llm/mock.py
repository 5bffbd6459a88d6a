"""Mock LLM clients for testing and offline use."""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterable

from ..models import AssistantReply
from .base import LLMClient, LLMContext


class ScriptedLLM(LLMClient):
    """Return replies from a predefined sequence."""

    def __init__(self, replies: Iterable[AssistantReply]) -> None:
        self._replies: Deque[AssistantReply] = deque(replies)
        self.requests: list[LLMContext] = []

    async def complete(self, context: LLMContext) -> AssistantReply:
        self.requests.append(
            LLMContext(messages=list(context.messages), tools=list(context.tools))
        )
        if not self._replies:
            raise RuntimeError("ScriptedLLM ran out of replies")
        return self._replies.popleft()
