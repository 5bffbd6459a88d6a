"""Tool definitions exposed to the language model."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..models import Outcome, ToolCall

LOGGER = logging.getLogger(__name__)

EXIT_TOOL_NAME = "__exit__"


class NoArguments(BaseModel):
    """Argument model for tools that take no parameters."""

    model_config = ConfigDict(extra="ignore")


class ExitArguments(BaseModel):
    result: Optional[str] = Field(
        default=None,
        description="Final answer for the user, including all gathered information.",
    )


@dataclass(frozen=True)
class Tool:
    """A named, described callable with a typed argument model."""

    name: str
    description: str
    arguments: type[BaseModel]
    handler: Callable[[Any], Awaitable[Outcome]]

    def parameters_schema(self) -> dict[str, Any]:
        schema = self.arguments.model_json_schema()
        schema.pop("title", None)
        schema.pop("description", None)
        schema.setdefault("properties", {})
        return schema

    async def invoke(self, arguments: dict[str, Any]) -> Outcome:
        try:
            parsed = self.arguments.model_validate(arguments)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or 'arguments'}: {error['msg']}"
                for error in exc.errors()
            )
            return Outcome.error(f"Invalid arguments for {self.name} - {problems}")
        return await self.handler(parsed)


async def _finish(arguments: ExitArguments) -> Outcome:
    return Outcome.success(arguments.result or "Chat finished")


def exit_tool() -> Tool:
    """Return the termination tool recognised by the agent loop."""

    return Tool(
        name=EXIT_TOOL_NAME,
        description="Finish the task and return the final result to the user",
        arguments=ExitArguments,
        handler=_finish,
    )


class ToolRegistry:
    """Ordered collection of tools addressable by name."""

    def __init__(self, tools: Iterable[Tool]) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def definitions(self) -> list[dict[str, Any]]:
        """Describe every tool as ``name``/``description``/``parameters`` mappings."""

        return [
            {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters_schema(),
            }
            for tool in self._tools.values()
        ]

    async def call(self, call: ToolCall) -> Outcome:
        tool = self._tools.get(call.name)
        if tool is None:
            return Outcome.error(f"Unknown tool {call.name}")
        try:
            return Outcome.normalize(await tool.invoke(call.arguments))
        except Exception as exc:
            LOGGER.exception("Tool %s raised", call.name)
            return Outcome.error(f"Tool {call.name} failed - {str(exc) or 'Unknown error'}")
