"""Data models for process execution."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from gitrelay.config.constants import ABORTED_SENTINEL
from gitrelay.git.errors import UnsupportedInputError

if TYPE_CHECKING:
    from gitrelay.git.runners import GitCommandRunner


class OutputKind(Enum):
    """Classification of an output chunk."""

    PROGRESS = "progress"
    LINE = "line"


@dataclass(frozen=True, slots=True)
class OutputEvent:
    """One chunk of process output."""

    text: str
    kind: OutputKind

    @property
    def is_progress(self) -> bool:
        return self.kind is OutputKind.PROGRESS


@dataclass
class CommandInvocation:
    """Everything needed to launch one command.

    ``program`` of None means the configured git command. Only an empty or
    absent ``input`` is accepted.
    """

    arguments: str = ""
    working_dir: str | os.PathLike[str] | None = None
    program: str | None = None
    input: str | None = None
    env: dict[str, str] = field(default_factory=dict)
    arguments_filter: Callable[[str], str] | None = None
    encoding: str | None = None

    def __post_init__(self) -> None:
        if self.input:
            raise UnsupportedInputError()

    @classmethod
    def for_runner(
        cls,
        runner: GitCommandRunner,
        arguments: str = "",
        *,
        env: dict[str, str] | None = None,
        encoding: str | None = None,
    ) -> CommandInvocation:
        """Invocation that runs ``arguments`` the way ``runner`` would."""
        return cls(
            arguments=arguments,
            working_dir=runner.executable.working_dir,
            program=runner.executable.program,
            env=dict(env or {}),
            arguments_filter=runner.arguments_filter,
            encoding=encoding,
        )


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Final verdict of a finalized run."""

    success: bool
    exit_code: int | None
    aborted: bool
    output: str

    @property
    def status_text(self) -> str:
        """``"Aborted"`` for a cancelled run, the transcript otherwise."""
        return ABORTED_SENTINEL if self.aborted else self.output


def is_operation_aborted(status_text: str) -> bool:
    """Return True if ``status_text`` is the abort sentinel (line endings ignored)."""
    return status_text.strip("\r\n") == ABORTED_SENTINEL


@dataclass(frozen=True, slots=True)
class CleanupResult:
    """Outcome of an advisory cleanup step. Never raised."""

    ok: bool
    reason: str | None = None

    @classmethod
    def success(cls) -> CleanupResult:
        return cls(ok=True)

    @classmethod
    def failed(cls, reason: str) -> CleanupResult:
        return cls(ok=False, reason=reason)
