"""Immutable per-run settings for the agent loop."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..config import AgentConfig, CompactionPolicy
from ..tools.base import Tool
from .prompts import DEFAULT_SYSTEM_PROMPT


@dataclass(frozen=True)
class AgentSettings:
    """Everything the loop needs to know about a run, fixed at construction."""

    tools: tuple[Tool, ...]
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    max_iterations: int = 50
    compaction_policy: CompactionPolicy = CompactionPolicy.ALWAYS
    compaction_threshold: int = 20
    require_tool_calls: bool = False
    close_browser_on_finish: bool = True

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")

    @classmethod
    def from_config(cls, config: AgentConfig, tools: Iterable[Tool]) -> "AgentSettings":
        return cls(
            tools=tuple(tools),
            system_prompt=config.system_prompt,
            max_iterations=config.max_iterations,
            compaction_policy=config.compaction_policy,
            compaction_threshold=config.compaction_threshold,
            require_tool_calls=config.require_tool_calls,
            close_browser_on_finish=config.close_browser_on_finish,
        )
