"""Page-or-error carrier used between the session and the tools."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Generic, Optional, TypeVar, Union

from ..models import Outcome

T = TypeVar("T")

Action = Callable[[T], Awaitable[Union[Outcome, str]]]


class BrowserResult(ABC, Generic[T]):
    """Either a live Playwright object or the reason it is unavailable."""

    def __init__(self, value: Optional[T]) -> None:
        self._value = value

    @abstractmethod
    async def execute(self, action: Action[T]) -> Outcome:
        """Run *action* on the held value, converting any failure into an outcome."""


class Success(BrowserResult[T]):
    def __init__(self, value: T) -> None:
        super().__init__(value)

    @property
    def value(self) -> T:
        return self._value  # type: ignore[return-value]

    async def execute(self, action: Action[T]) -> Outcome:
        if self._value is None:
            return Outcome.error("Page or element is not initialized")
        try:
            result = await action(self._value)
        except Exception as exc:
            return Outcome.error(f"Error executing action: {str(exc) or 'Unknown error'}")
        return Outcome.normalize(result)


class Failure(BrowserResult[T]):
    def __init__(self, error: str) -> None:
        super().__init__(None)
        self.error = error

    async def execute(self, action: Action[T]) -> Outcome:
        return Outcome.normalize(self.error)
