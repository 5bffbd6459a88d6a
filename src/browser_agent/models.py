"""Shared models used across the browser agent."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


class OutcomeKind(str, enum.Enum):
    """Prefix vocabulary understood by the language model."""

    SUCCESS = "Success"
    WARNING = "Warning"
    ERROR = "Error"


class Outcome(BaseModel):
    """Result of a browser or tool operation.

    Outcomes are rendered to ``"<Kind>: <detail>"`` text only when they are handed
    to the model; inside the package they stay structured.
    """

    kind: OutcomeKind
    detail: str = ""

    @classmethod
    def success(cls, detail: str) -> "Outcome":
        return cls(kind=OutcomeKind.SUCCESS, detail=detail)

    @classmethod
    def warning(cls, detail: str) -> "Outcome":
        return cls(kind=OutcomeKind.WARNING, detail=detail)

    @classmethod
    def error(cls, detail: str) -> "Outcome":
        return cls(kind=OutcomeKind.ERROR, detail=detail)

    @classmethod
    def parse(cls, text: str) -> Optional["Outcome"]:
        """Return the outcome encoded in *text*, or ``None`` if it has no known prefix."""

        for kind in OutcomeKind:
            prefix = f"{kind.value}:"
            if text.startswith(prefix):
                return cls(kind=kind, detail=text[len(prefix) :].lstrip(" "))
        return None

    @classmethod
    def normalize(cls, value: "Outcome | str | None", default_error: str = "Unknown error") -> "Outcome":
        """Coerce *value* into an outcome, treating unprefixed text as an error."""

        if isinstance(value, Outcome):
            return value
        if not value:
            return cls.parse(default_error) or cls.error(default_error)
        return cls.parse(value) or cls.error(value)

    @property
    def is_error(self) -> bool:
        return self.kind is OutcomeKind.ERROR

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.detail}"


class MessageRole(str, enum.Enum):
    """Roles of messages in the conversation log."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCall(BaseModel):
    """A request from the model to invoke a named tool."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ChatMessage(BaseModel):
    """A single entry of the conversation history."""

    role: MessageRole
    content: Optional[str] = None
    tool_calls: list[ToolCall] = Field(default_factory=list)
    tool_call_id: Optional[str] = None
    tool_name: Optional[str] = Field(
        default=None,
        description="Name of the tool that produced a tool-result message.",
    )

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: Optional[str] = None, tool_calls: Optional[list[ToolCall]] = None) -> "ChatMessage":
        return cls(role=MessageRole.ASSISTANT, content=content, tool_calls=list(tool_calls or []))

    @classmethod
    def tool_result(cls, call: ToolCall, content: str) -> "ChatMessage":
        return cls(
            role=MessageRole.TOOL,
            content=content,
            tool_call_id=call.id,
            tool_name=call.name,
        )

    @property
    def is_tool_call(self) -> bool:
        return self.role is MessageRole.ASSISTANT and bool(self.tool_calls)

    @property
    def is_tool_result(self) -> bool:
        return self.role is MessageRole.TOOL


class AssistantReply(BaseModel):
    """Response of the language model for one request."""

    content: Optional[str] = None
    tool_calls: list[ToolCall] = Field(default_factory=list)

    @property
    def is_tool_call(self) -> bool:
        return bool(self.tool_calls)

    def to_message(self) -> ChatMessage:
        return ChatMessage.assistant(self.content, self.tool_calls)


class RunStatus(str, enum.Enum):
    """How an agent run terminated."""

    FINISHED = "finished"
    ITERATION_LIMIT = "iteration_limit"
    FAILED = "failed"


class AgentRunResult(BaseModel):
    """Summary of a completed agent run."""

    status: RunStatus
    output: str
    iterations: int = 0
    tool_calls: list[str] = Field(default_factory=list, description="Executed tool names in order.")
    trace: list[str] = Field(default_factory=list, description="Visited loop states in order.")

    @property
    def succeeded(self) -> bool:
        return self.status is RunStatus.FINISHED


class NotificationLevel(str, enum.Enum):
    """Severity of notification events."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class NotificationEvent(BaseModel):
    """Event emitted to notify users about agent progress."""

    type: str
    message: str
    level: NotificationLevel = NotificationLevel.INFO
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
