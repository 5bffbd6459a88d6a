"""Configuration models for the browser agent."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .agent.prompts import DEFAULT_SYSTEM_PROMPT


class CompactionPolicy(str, enum.Enum):
    """When snapshot results are pruned from the conversation history."""

    ALWAYS = "always"
    THRESHOLD = "threshold"
    NEVER = "never"


class LLMConfig(BaseModel):
    """Settings for the LLM provider."""

    provider: str = Field(default="openai")
    model: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class BrowserConfig(BaseModel):
    """Settings for the Playwright browser."""

    headless: bool = False
    channel: Optional[str] = Field(default=None, description="Chromium channel, e.g. 'chrome'.")
    viewport_width: Optional[int] = None
    viewport_height: Optional[int] = None
    timeout: Optional[float] = Field(
        default=None,
        description="Default timeout in seconds for page operations.",
    )


class NotificationConfig(BaseModel):
    """Notification channel settings."""

    channel: str = Field(default="console")
    options: dict[str, Any] = Field(default_factory=dict)


class TaskConfig(BaseModel):
    """Task definition provided by the user."""

    description: str


class AgentConfig(BaseSettings):
    """Top-level configuration for a single agent run."""

    model_config = SettingsConfigDict(
        env_prefix="BROWSER_AGENT_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        frozen=True,
    )

    task: Optional[TaskConfig] = None
    llm: LLMConfig = Field(default_factory=LLMConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    max_iterations: int = Field(default=50, ge=1)
    compaction_policy: CompactionPolicy = CompactionPolicy.ALWAYS
    compaction_threshold: int = Field(
        default=20,
        ge=0,
        description="Message count above which the threshold policy compacts history.",
    )
    require_tool_calls: bool = Field(
        default=False,
        description="Nudge the model back to tool use when it answers the task with plain text.",
    )
    close_browser_on_finish: bool = True


def load_config(
    path: Path | None = None,
    *,
    env_file: Path | None = None,
    **overrides: object,
) -> AgentConfig:
    """Load configuration from an optional YAML file, an env file and overrides."""

    data: dict[str, Any] = {}
    if path:
        import yaml

        data = yaml.safe_load(path.read_text()) or {}
    if overrides:
        _deep_update(data, overrides)
    settings_kwargs: dict[str, object] = {}
    if env_file is not None:
        settings_kwargs["_env_file"] = env_file
    config = AgentConfig(**data, **settings_kwargs)
    if not data:
        return config

    merged = config.model_dump(mode="python")
    _deep_update(merged, data)
    return AgentConfig.model_validate(merged)


def _deep_update(target: dict[str, Any], updates: Mapping[str, Any]) -> None:
    """Recursively merge ``updates`` into ``target`` in-place."""

    for key, value in updates.items():
        if (
            isinstance(value, Mapping)
            and isinstance(existing := target.get(key), Mapping)
        ):
            nested: dict[str, Any]
            if isinstance(existing, dict):
                nested = existing
            else:
                nested = dict(existing)
            _deep_update(nested, value)
            target[key] = nested
        else:
            target[key] = value
