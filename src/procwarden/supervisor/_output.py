"""Event sink implementations for the supervisor system.

This module provides concrete implementations of the EventSink protocol
for displaying restart events.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, final

from rich.console import Console
from rich.style import Style
from rich.text import Text

from ._models import RestartReason

if TYPE_CHECKING:
    from ._models import RestartEvent


@final
class ConsoleEventSink:
    """Event sink that writes formatted restart events to a console.

    Formats events as ``timestamp [name] REASON (pid=N) - message`` with
    color coding per reason; failed actions are shown in bold red.
    """

    __slots__ = ("_console", "_failure_style", "_reason_styles")

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the event sink.

        Args:
            console: Rich Console instance for output. If None, writes to stderr.
        """
        self._console = console or Console(stderr=True)
        self._failure_style = Style(color="red", bold=True)
        self._reason_styles: dict[RestartReason, Style] = {
            RestartReason.PROCESS_DOWN: Style(color="yellow", bold=True),
            RestartReason.FAULT_DETECTED: Style(color="magenta", bold=True),
            RestartReason.CONFLICT_RESOLVED: Style(color="cyan"),
        }

    async def write_event(self, event: RestartEvent) -> None:
        """Write a restart event.

        Args:
            event: The restart event to record.
        """
        style = (
            self._reason_styles.get(event.reason, Style())
            if event.succeeded
            else self._failure_style
        )

        text = Text()
        _ = text.append(event.timestamp, style=Style(dim=True))
        _ = text.append(" ")
        _ = text.append(f"[{event.process_name}]", style=Style(color="blue", bold=True))
        _ = text.append(" ")
        _ = text.append(event.reason.value.upper(), style=style)

        if not event.succeeded:
            _ = text.append(" FAILED", style=self._failure_style)

        if event.pid is not None:
            _ = text.append(f" (pid={event.pid})", style=Style(dim=True))

        if event.message:
            _ = text.append(f" - {event.message}", style=style)

        self._console.print(text)
