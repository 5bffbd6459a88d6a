"""Conversation history kept between model requests."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional

from ..config import CompactionPolicy
from ..models import ChatMessage, MessageRole

LOGGER = logging.getLogger(__name__)


class ConversationHistory:
    """Ordered log of system, user, assistant and tool messages."""

    def __init__(self, messages: Optional[Iterable[ChatMessage]] = None) -> None:
        self._messages: List[ChatMessage] = list(messages or [])

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self._messages)

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)

    def extend(self, messages: Iterable[ChatMessage]) -> None:
        self._messages.extend(messages)

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    def tool_results(self, tool_name: str) -> List[ChatMessage]:
        return [
            message
            for message in self._messages
            if message.role is MessageRole.TOOL and message.tool_name == tool_name
        ]

    def drop_tool_results(self, tool_name: str, keep_last: int = 1) -> int:
        """Remove all but the newest *keep_last* results of *tool_name*.

        Histories holding two or fewer such results are left alone. Returns the
        number of removed messages.
        """

        count = len(self.tool_results(tool_name))
        if count <= 2:
            return 0
        remaining_to_skip = count - keep_last
        kept: List[ChatMessage] = []
        for message in self._messages:
            if (
                remaining_to_skip > 0
                and message.role is MessageRole.TOOL
                and message.tool_name == tool_name
            ):
                remaining_to_skip -= 1
                continue
            kept.append(message)
        removed = len(self._messages) - len(kept)
        self._messages = kept
        return removed


class HistoryCompactor:
    """Decide when to prune stale results of a high-volume tool and prune them."""

    def __init__(
        self,
        tool_name: str,
        policy: CompactionPolicy = CompactionPolicy.ALWAYS,
        threshold: int = 20,
    ) -> None:
        self._tool_name = tool_name
        self._policy = policy
        self._threshold = threshold

    def should_compact(self, history: ConversationHistory) -> bool:
        if self._policy is CompactionPolicy.ALWAYS:
            return True
        if self._policy is CompactionPolicy.THRESHOLD:
            return len(history) > self._threshold
        return False

    def compact(self, history: ConversationHistory) -> int:
        if not self.should_compact(history):
            return 0
        removed = history.drop_tool_results(self._tool_name)
        if removed:
            LOGGER.debug("Compacted %d %s results from history", removed, self._tool_name)
        return removed
