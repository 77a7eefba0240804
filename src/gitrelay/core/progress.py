"""User-facing feedback for CLI runs.

Design principles:
- Log lines print as they arrive, progress redraws in place
- Graceful degradation in non-TTY (CI, pipes): progress is dropped
- Suppress structlog console output while a status line is live

Usage::

    from gitrelay.core.progress import ConsoleSink, status

    status("Fetched origin", style="success")  # ✓ Fetched origin

    with ConsoleSink() as sink:
        run_command(invocation, sink=sink)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from types import TracebackType
from typing import TYPE_CHECKING

from rich.console import Console
from rich.status import Status
from rich.text import Text

from gitrelay.process.sink import OutputSink

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

# Console for status output
_console = Console(stderr=True)

# Style prefixes
_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}

# Suppresses console logging while a live status line is drawn
_suppress_console_logs = threading.local()


def is_console_suppressed() -> bool:
    """Check if console logging is currently suppressed."""
    return getattr(_suppress_console_logs, "active", False)


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Context manager to suppress structlog console output.

    Used while a status line is live to keep log lines from colliding
    with Rich's redraws. Logs are still written to file handlers.
    """
    _suppress_console_logs.active = True
    try:
        yield
    finally:
        _suppress_console_logs.active = False


class ConsoleSuppressingFilter(logging.Filter):
    """Filter that blocks console output when suppression is active."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: ARG002
        return not is_console_suppressed()


def _get_logger() -> BoundLogger:
    """Get logger lazily to respect runtime config."""
    from gitrelay.core.logging import get_logger

    return get_logger("progress")


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print a styled status message to stderr."""
    prefix = _STYLES.get(style, "")
    padding = " " * indent
    _console.print(f"{padding}{prefix}{message}", highlight=False)

    _get_logger().debug("status", message=message, style=style)


class ConsoleSink(OutputSink):
    """Renders a run on a Rich console.

    Log lines are printed verbatim. Progress updates drive a transient
    status line that is cleared when the sink is closed. Call from the
    owner thread only.

    Usage::

        with ConsoleSink(show_command=True) as sink:
            run_command(invocation, sink=sink)
    """

    def __init__(self, console: Console | None = None, *, show_command: bool = False) -> None:
        self._console = console or Console()
        self._show_command = show_command
        self._status: Status | None = None
        self._live = ExitStack()
        self._last_progress: str | None = None

    @property
    def last_progress(self) -> str | None:
        return self._last_progress

    def on_command(self, command_line: str) -> None:
        if self._show_command:
            self._console.print(Text(f"$ {command_line}", style="dim"))

    def on_line(self, text: str) -> None:
        self._console.print(Text(text.rstrip("\n")), highlight=False)

    def on_progress(self, text: str) -> None:
        self._last_progress = text
        if not self._console.is_terminal:
            return
        if self._status is None:
            self._live.enter_context(suppress_console_logs())
            self._status = self._live.enter_context(
                self._console.status(Text(text, style="cyan"), spinner="dots")
            )
        else:
            self._status.update(Text(text, style="cyan"))

    def close(self) -> None:
        self._status = None
        self._live.close()

    def __enter__(self) -> ConsoleSink:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
