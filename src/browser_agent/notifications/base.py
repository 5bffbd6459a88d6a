"""Notification channels for agent progress events."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from rich.console import Console

from ..models import NotificationEvent


class Notifier(ABC):
    """Interface for sending notifications about agent events."""

    @abstractmethod
    def notify(self, event: NotificationEvent) -> None:
        """Send a notification event."""


class ConsoleNotifier(Notifier):
    """Print events to the console using Rich."""

    def __init__(self, console: Optional[Console] = None, show_data: bool = True) -> None:
        self._console = console or Console()
        self._show_data = show_data

    def notify(self, event: NotificationEvent) -> None:
        style = {
            "info": "cyan",
            "warning": "yellow",
            "error": "red",
            "success": "green",
        }.get(event.level.value, "white")
        self._console.print(
            f"[{event.level.value.upper()}] {event.message}",
            style=style,
            markup=False,
        )
        if self._show_data and event.data:
            self._console.print(event.data, style="dim")


class NullNotifier(Notifier):
    """Discard all events."""

    def notify(self, event: NotificationEvent) -> None:
        return None


class CompositeNotifier(Notifier):
    """Fan-out notifier that propagates events to multiple notifiers."""

    def __init__(self, notifiers: Iterable[Notifier]) -> None:
        self._notifiers = list(notifiers)

    def notify(self, event: NotificationEvent) -> None:
        for notifier in self._notifiers:
            notifier.notify(event)
