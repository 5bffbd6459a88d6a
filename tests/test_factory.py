import asyncio
from io import StringIO

import pytest
from rich.console import Console

from browser_agent.agent.loop import AgentLoop
from browser_agent.agent.settings import AgentSettings
from browser_agent.config import AgentConfig, LLMConfig, NotificationConfig
from browser_agent.factory import build_agent, build_browser, build_llm, build_notifier
from browser_agent.llm.anthropic_client import AnthropicChatLLM
from browser_agent.llm.mock import ScriptedLLM
from browser_agent.llm.openai_client import OpenAIChatLLM
from browser_agent.models import NotificationEvent, NotificationLevel
from browser_agent.notifications.base import (
    CompositeNotifier,
    ConsoleNotifier,
    NullNotifier,
)


def test_build_llm_providers():
    assert isinstance(build_llm(LLMConfig(provider="OpenAI", model="m")), OpenAIChatLLM)
    assert isinstance(build_llm(LLMConfig(provider="anthropic", model="m")), AnthropicChatLLM)
    mock = build_llm(
        LLMConfig(provider="mock", parameters={"responses": [{"content": "done"}]})
    )
    assert isinstance(mock, ScriptedLLM)


def test_build_llm_rejects_unknown_provider():
    with pytest.raises(ValueError, match="Unsupported LLM provider: carrier-pigeon"):
        build_llm(LLMConfig(provider="carrier-pigeon"))


def test_build_notifier_channels():
    assert isinstance(build_notifier(NotificationConfig(channel="console")), ConsoleNotifier)
    assert isinstance(build_notifier(NotificationConfig(channel="none")), NullNotifier)
    assert isinstance(build_notifier(NotificationConfig(channel="")), NullNotifier)
    assert isinstance(build_notifier(NotificationConfig(channel="console, none")), CompositeNotifier)
    with pytest.raises(ValueError):
        build_notifier(NotificationConfig(channel="pager"))


def test_build_agent_exposes_browser_tools():
    config = AgentConfig.model_validate({"llm": {"provider": "mock"}, "max_iterations": 5})
    agent = build_agent(config, ScriptedLLM([]), build_browser(config.browser))

    assert isinstance(agent, AgentLoop)
    assert agent.tools.names == [
        "startBrowser",
        "closeBrowser",
        "getSnapshot",
        "click",
        "clickByRef",
        "typeText",
        "navigateTo",
        "__exit__",
    ]


def test_settings_reject_non_positive_iteration_ceiling():
    with pytest.raises(ValueError):
        AgentSettings(tools=(), max_iterations=0)


def test_console_notifier_prints_message_and_data():
    buffer = StringIO()
    notifier = ConsoleNotifier(console=Console(file=buffer, width=120, color_system=None))

    notifier.notify(
        NotificationEvent(
            type="tool_call",
            message="Tool call: clickByRef [ref=e1]",
            level=NotificationLevel.INFO,
            data={"arguments": {"ref": "[ref=e1]"}},
        )
    )

    output = buffer.getvalue()
    assert "[INFO] Tool call: clickByRef [ref=e1]" in output
    assert "arguments" in output


def test_composite_notifier_fans_out():
    received: list[list[str]] = [[], []]

    class Recorder(NullNotifier):
        def __init__(self, sink: list[str]) -> None:
            self._sink = sink

        def notify(self, event: NotificationEvent) -> None:
            self._sink.append(event.type)

    composite = CompositeNotifier([Recorder(received[0]), Recorder(received[1])])
    composite.notify(NotificationEvent(type="task_started", message="go"))

    assert received == [["task_started"], ["task_started"]]


def test_build_agent_starts_browser_with_configured_headless_flag():
    from fakes import make_session

    from browser_agent.models import ToolCall

    config = AgentConfig.model_validate({"llm": {"provider": "mock"}, "browser": {"headless": True}})
    session, playwright = make_session()
    agent = build_agent(config, ScriptedLLM([]), session)

    outcome = asyncio.run(agent.tools.call(ToolCall(id="s", name="startBrowser")))

    assert str(outcome) == "Success: Browser started"
    assert playwright.chromium.launches[0]["headless"] is True
