"""Display sinks that receive classified process output."""

from __future__ import annotations


class OutputSink:
    """Receives output on the owner context. The base class discards everything.

    Set ``displays_full_output`` when the sink renders the raw process output
    on its own; log lines then only go to the transcript.
    """

    displays_full_output: bool = False

    def on_command(self, command_line: str) -> None:
        """Called once before launch with the command line being run."""

    def on_line(self, text: str) -> None:
        """Called for each log line (trailing newline kept)."""

    def on_progress(self, text: str) -> None:
        """Called for each progress update."""
