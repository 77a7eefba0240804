"""Append-only output log shared by the reader thread and the caller."""

from __future__ import annotations

import threading


class Transcript:
    """Ordered log of output text.

    The reader thread appends while callers read snapshots; entries are never
    modified or removed.
    """

    def __init__(self) -> None:
        self._entries: list[str] = []
        self._lock = threading.Lock()

    def append(self, text: str) -> None:
        with self._lock:
            self._entries.append(text)

    def snapshot(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._entries)

    def text(self) -> str:
        return "".join(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
