"""Background reader that turns process output into classified events."""

from __future__ import annotations

import codecs
import contextvars
import threading
from collections.abc import Callable
from functools import partial

import structlog

from gitrelay.config.constants import ANSI_ERASE_TO_EOL, PROGRESS_MARKERS
from gitrelay.git.executable import ProcessHandle
from gitrelay.process.context import OwnerContext
from gitrelay.process.models import OutputEvent, OutputKind
from gitrelay.process.sink import OutputSink
from gitrelay.process.transcript import Transcript

logger = structlog.get_logger()

EventListener = Callable[[OutputEvent], None]


def classify(chunk: str) -> OutputEvent:
    """Classify one chunk as a progress update or a log line.

    Progress text loses its line terminator. Line text loses every
    erase-to-end-of-line sequence and ends in ``\\n`` if it was terminated.
    """
    if any(marker in chunk for marker in PROGRESS_MARKERS):
        return OutputEvent(chunk.rstrip("\r\n"), OutputKind.PROGRESS)

    line = chunk.replace(ANSI_ERASE_TO_EOL, "")
    if line.endswith("\r\n"):
        line = line[:-2] + "\n"
    elif line.endswith("\r"):
        line = line[:-1] + "\n"
    return OutputEvent(line, OutputKind.LINE)


class ChunkSplitter:
    """Splits decoded text into chunks ending at ``\\n``, ``\\r\\n`` or a lone ``\\r``.

    git redraws progress with bare carriage returns, so ``\\r`` ends a chunk
    too. A trailing ``\\r`` is held back until the next feed shows whether a
    ``\\n`` follows.
    """

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, text: str) -> list[str]:
        buf = self._buffer + text
        chunks: list[str] = []
        start = 0
        i = 0
        n = len(buf)
        while i < n:
            ch = buf[i]
            if ch == "\r":
                if i + 1 == n:
                    break
                if buf[i + 1] == "\n":
                    i += 1
                chunks.append(buf[start : i + 1])
                start = i + 1
            elif ch == "\n":
                chunks.append(buf[start : i + 1])
                start = i + 1
            i += 1
        self._buffer = buf[start:]
        return chunks

    def flush(self) -> list[str]:
        rest, self._buffer = self._buffer, ""
        return [rest] if rest else []


class OutputPump:
    """Reads a process's merged output on a daemon thread.

    Lines are appended to the transcript as they arrive. Sink and listener
    callbacks, and finally ``on_exit(exit_code)``, are posted to the owner
    context. The exit is posted only after the pipe has been drained.
    """

    def __init__(
        self,
        handle: ProcessHandle,
        transcript: Transcript,
        sink: OutputSink,
        context: OwnerContext,
        *,
        on_exit: Callable[[int], None],
        listener: EventListener | None = None,
        chunk_size: int = 4096,
    ) -> None:
        self._handle = handle
        self._transcript = transcript
        self._sink = sink
        self._context = context
        self._on_exit = on_exit
        self._listener = listener
        self._chunk_size = chunk_size
        self._thread: threading.Thread | None = None
        self._drained = threading.Event()

    def start(self) -> None:
        if self._thread is not None:
            return
        # Reader log records carry the starting thread's run id.
        context = contextvars.copy_context()
        self._thread = threading.Thread(
            target=context.run,
            args=(self._run,),
            name=f"gitrelay-pump-{self._handle.pid}",
            daemon=True,
        )
        self._thread.start()

    def join(self, timeout: float | None = None) -> bool:
        """Wait until the output is drained and the exit posted.

        Returns False on timeout, or when called from the reader thread itself.
        """
        if threading.current_thread() is self._thread:
            return False
        return self._drained.wait(timeout)

    def _run(self) -> None:
        try:
            try:
                self._drain()
            except (OSError, ValueError) as e:
                # Pipe torn down under us, typically by a kill.
                logger.debug("output_read_failed", pid=self._handle.pid, error=str(e))

            exit_code = self._handle.wait()
            logger.debug("output_drained", pid=self._handle.pid, exit_code=exit_code)
            self._context.post(partial(self._on_exit, exit_code))
        finally:
            self._drained.set()

    def _drain(self) -> None:
        stream = self._handle.stdout
        if stream is None:
            return

        decoder = codecs.getincrementaldecoder(self._handle.encoding)(errors="replace")
        splitter = ChunkSplitter()
        with stream:
            while data := stream.read1(self._chunk_size):  # type: ignore[attr-defined]
                for chunk in splitter.feed(decoder.decode(data)):
                    self._dispatch(chunk)

        for chunk in splitter.feed(decoder.decode(b"", final=True)) + splitter.flush():
            self._dispatch(chunk)

    def _dispatch(self, chunk: str) -> None:
        event = classify(chunk)
        if event.kind is OutputKind.LINE:
            self._transcript.append(event.text)
        self._context.post(partial(self._deliver, event))

    def _deliver(self, event: OutputEvent) -> None:
        if event.kind is OutputKind.PROGRESS:
            self._sink.on_progress(event.text)
        elif not self._sink.displays_full_output:
            self._sink.on_line(event.text)

        if self._listener is not None:
            self._listener(event)
