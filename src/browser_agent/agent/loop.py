"""Turn-taking loop that alternates between the model and the browser tools."""

from __future__ import annotations

import enum
import logging
from typing import Optional

from ..browser.session import BrowserSession
from ..llm.base import LLMClient, LLMContext
from ..models import (
    AgentRunResult,
    AssistantReply,
    ChatMessage,
    NotificationEvent,
    NotificationLevel,
    Outcome,
    OutcomeKind,
    RunStatus,
    ToolCall,
)
from ..notifications.base import Notifier, NullNotifier
from ..tools.base import EXIT_TOOL_NAME, ToolRegistry
from ..tools.browser_tools import SNAPSHOT_TOOL_NAME
from .history import ConversationHistory, HistoryCompactor
from .prompts import tool_nudge
from .settings import AgentSettings

LOGGER = logging.getLogger(__name__)

SKIPPED_CALL = "Warning: Skipped - only one tool call per step is allowed"
EXIT_RESULT = "Chat finished"

_LEVELS = {
    OutcomeKind.SUCCESS: NotificationLevel.SUCCESS,
    OutcomeKind.WARNING: NotificationLevel.WARNING,
    OutcomeKind.ERROR: NotificationLevel.ERROR,
}


class AgentState(str, enum.Enum):
    """States of the agent control loop."""

    START = "start"
    REQUEST_MODEL = "request_model"
    NUDGE = "nudge"
    EXECUTE_TOOL = "execute_tool"
    COMPACT = "compact"
    SEND_TOOL_RESULT = "send_tool_result"
    FINISH = "finish"


class IterationLimitExceeded(RuntimeError):
    """Raised internally when the model request budget is spent."""


class AgentLoop:
    """Drive a task to completion by asking the model for one tool call per turn.

    Each model reply is either a tool call, which is executed and fed back, or a
    plain assistant message, which ends the run. A successful call of the exit
    tool also ends the run; a rejected one is reported back to the model. Every
    model request counts against ``max_iterations``; running out ends the run
    with :attr:`RunStatus.ITERATION_LIMIT`.
    """

    def __init__(
        self,
        settings: AgentSettings,
        llm: LLMClient,
        session: Optional[BrowserSession] = None,
        notifier: Optional[Notifier] = None,
        compactor: Optional[HistoryCompactor] = None,
    ) -> None:
        self._settings = settings
        self._llm = llm
        self._session = session
        self._notifier = notifier or NullNotifier()
        self._tools = ToolRegistry(settings.tools)
        self._compactor = compactor or HistoryCompactor(
            SNAPSHOT_TOOL_NAME,
            policy=settings.compaction_policy,
            threshold=settings.compaction_threshold,
        )
        self.history = ConversationHistory()

    @property
    def tools(self) -> ToolRegistry:
        return self._tools

    async def run(self, task: str) -> AgentRunResult:
        """Run the loop for *task* until a final answer or the iteration ceiling."""

        LOGGER.info("Starting agent for task: %s", task)
        self._notify("task_started", f"Starting task: {task}")
        self.history = ConversationHistory()
        if self._settings.system_prompt:
            self.history.append(ChatMessage.system(self._settings.system_prompt))
        self.history.append(ChatMessage.user(task))

        result = AgentRunResult(status=RunStatus.FAILED, output="")
        try:
            output = await self._drive(result)
        except IterationLimitExceeded as exc:
            LOGGER.warning("%s", exc)
            result.status = RunStatus.ITERATION_LIMIT
            result.output = str(exc)
            self._notify("iteration_limit", result.output, NotificationLevel.ERROR)
        except Exception as exc:
            LOGGER.exception("Unhandled agent error")
            result.status = RunStatus.FAILED
            result.output = str(exc) or exc.__class__.__name__
            self._notify("task_failed", result.output, NotificationLevel.ERROR)
        else:
            result.status = RunStatus.FINISHED
            result.output = output
            self._notify("task_finished", output or "Task completed", NotificationLevel.SUCCESS)
        finally:
            await self._release_browser()
        return result

    async def _drive(self, result: AgentRunResult) -> str:
        state = AgentState.START
        after_tool = False
        reply = AssistantReply()
        pending: list[ChatMessage] = []
        output = ""
        while True:
            result.trace.append(state.value)
            if state is AgentState.START:
                state = AgentState.REQUEST_MODEL
            elif state in (AgentState.REQUEST_MODEL, AgentState.NUDGE):
                if state is AgentState.NUDGE:
                    self.history.append(ChatMessage.user(tool_nudge(self._tools.names)))
                reply = await self._request_model(result)
                if reply.is_tool_call:
                    state = AgentState.EXECUTE_TOOL
                elif self._settings.require_tool_calls and not after_tool:
                    LOGGER.info("Model answered with plain text; asking for a tool call")
                    state = AgentState.NUDGE
                else:
                    output = reply.content or ""
                    state = AgentState.FINISH
            elif state is AgentState.EXECUTE_TOOL:
                call, *extra = reply.tool_calls
                result.tool_calls.append(call.name)
                outcome = await self._execute(call)
                pending = [ChatMessage.tool_result(call, str(outcome))]
                pending.extend(ChatMessage.tool_result(skipped, SKIPPED_CALL) for skipped in extra)
                if call.name == EXIT_TOOL_NAME and not outcome.is_error:
                    self.history.extend(pending)
                    output = outcome.detail or EXIT_RESULT
                    state = AgentState.FINISH
                else:
                    state = AgentState.COMPACT
            elif state is AgentState.COMPACT:
                self._compactor.compact(self.history)
                state = AgentState.SEND_TOOL_RESULT
            elif state is AgentState.SEND_TOOL_RESULT:
                self.history.extend(pending)
                pending = []
                after_tool = True
                state = AgentState.REQUEST_MODEL
            else:
                LOGGER.info("Agent finished after %d iterations", result.iterations)
                return output

    async def _request_model(self, result: AgentRunResult) -> AssistantReply:
        if result.iterations >= self._settings.max_iterations:
            raise IterationLimitExceeded(
                f"Maximum number of iterations ({self._settings.max_iterations}) exceeded"
            )
        result.iterations += 1
        reply = await self._llm.complete(
            LLMContext(messages=self.history.messages, tools=self._tools.definitions())
        )
        self.history.append(reply.to_message())
        if reply.content:
            LOGGER.debug("Model: %s", reply.content)
        return reply

    async def _execute(self, call: ToolCall) -> Outcome:
        LOGGER.info("Tool call: %s with args: %s", call.name, call.arguments)
        self._notify(
            "tool_call",
            f"Tool call: {call.name}",
            data={"arguments": call.arguments} if call.arguments else None,
        )
        if call.name == EXIT_TOOL_NAME and call.name not in self._tools:
            outcome = Outcome.success(str(call.arguments.get("result") or EXIT_RESULT))
        else:
            outcome = await self._tools.call(call)
        LOGGER.info("Result: %s -> %s", call.name, outcome.kind.value)
        self._notify(
            "tool_result",
            f"{call.name}: {_first_line(str(outcome))}",
            _LEVELS[outcome.kind],
        )
        return outcome

    async def _release_browser(self) -> None:
        if not self._settings.close_browser_on_finish or self._session is None:
            return
        outcome = await self._session.close_browser()
        LOGGER.debug("Closed browser after run: %s", outcome)

    def _notify(
        self,
        event_type: str,
        message: str,
        level: NotificationLevel = NotificationLevel.INFO,
        data: Optional[dict] = None,
    ) -> None:
        self._notifier.notify(
            NotificationEvent(type=event_type, message=message, level=level, data=data or {})
        )


def _first_line(text: str) -> str:
    return text.splitlines()[0] if text else text
