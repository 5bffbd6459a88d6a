"""Factories for constructing components from configuration."""

from __future__ import annotations

from typing import Optional

from .agent.loop import AgentLoop
from .agent.settings import AgentSettings
from .browser.session import BrowserSession
from .config import AgentConfig, BrowserConfig, LLMConfig, NotificationConfig
from .llm.anthropic_client import AnthropicChatLLM
from .llm.base import LLMClient
from .llm.mock import ScriptedLLM
from .llm.openai_client import OpenAIChatLLM
from .models import AssistantReply
from .notifications.base import CompositeNotifier, ConsoleNotifier, Notifier, NullNotifier
from .tools.browser_tools import BrowserToolset


def build_llm(config: LLMConfig) -> LLMClient:
    provider = config.provider.lower()
    if provider in {"openai", "azure", "openai-compatible"}:
        return OpenAIChatLLM(config)
    if provider == "anthropic":
        return AnthropicChatLLM(config)
    if provider == "mock":
        replies = [
            AssistantReply.model_validate(item)
            for item in config.parameters.get("responses", [])
        ]
        return ScriptedLLM(replies)
    raise ValueError(f"Unsupported LLM provider: {config.provider}")


def build_browser(config: BrowserConfig) -> BrowserSession:
    return BrowserSession(config)


def build_notifier(config: NotificationConfig) -> Notifier:
    channels = [item.strip().lower() for item in config.channel.split(",") if item.strip()]
    notifiers = [_build_channel(channel, config) for channel in channels]
    if not notifiers:
        return NullNotifier()
    if len(notifiers) == 1:
        return notifiers[0]
    return CompositeNotifier(notifiers)


def build_toolset(session: BrowserSession, config: AgentConfig) -> BrowserToolset:
    return BrowserToolset(session, headless=config.browser.headless)


def build_agent(
    config: AgentConfig,
    llm: LLMClient,
    session: BrowserSession,
    notifier: Optional[Notifier] = None,
) -> AgentLoop:
    toolset = build_toolset(session, config)
    settings = AgentSettings.from_config(config, toolset.tools())
    return AgentLoop(settings, llm, session=session, notifier=notifier)


def _build_channel(channel: str, config: NotificationConfig) -> Notifier:
    if channel == "console":
        return ConsoleNotifier(show_data=bool(config.options.get("show_data", True)))
    if channel == "none":
        return NullNotifier()
    raise ValueError(f"Unsupported notification channel: {channel}")
