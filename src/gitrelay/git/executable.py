"""Process creation for git and wsl.exe."""

from __future__ import annotations

import ntpath
import os
import shlex
import subprocess
import threading
from collections.abc import Callable, Mapping
from enum import Enum
from typing import IO

import psutil
import structlog

from gitrelay.config.constants import WSL_LAUNCHER_NAME, WSL_LAUNCHER_SUBDIR
from gitrelay.git.errors import SpawnError

logger = structlog.get_logger()

ProgramProvider = Callable[[], str]


class CachedResolver:
    """Thread-safe value computed on first ``resolve()`` and reused afterwards.

    Concurrent first callers block on the lock; the computation runs once.
    """

    def __init__(self, compute: ProgramProvider) -> None:
        self._compute = compute
        self._lock = threading.Lock()
        self._value: str | None = None

    def resolve(self) -> str:
        value = self._value
        if value is None:
            with self._lock:
                if self._value is None:
                    self._value = self._compute()
                value = self._value
        return value

    __call__ = resolve

    @property
    def is_resolved(self) -> bool:
        return self._value is not None

    def reset(self) -> None:
        """Forget the cached value. Useful for testing."""
        with self._lock:
            self._value = None


def default_wsl_launcher() -> str:
    r"""Return ``%WINDIR%\sysnative\wsl.exe``."""
    windir = os.environ.get("WINDIR") or os.environ.get("SystemRoot") or "C:\\Windows"
    return ntpath.join(windir, WSL_LAUNCHER_SUBDIR, WSL_LAUNCHER_NAME)


WSL_LAUNCHER = CachedResolver(default_wsl_launcher)
"""Process-wide launcher path. The Windows folder does not move while we run."""


def display_command(program: str, arguments: str | None) -> str:
    """Command line as shown to the user: program double-quoted if it has spaces."""
    shown = f'"{program}"' if " " in program else program
    return f"{shown} {arguments}" if arguments else shown


def build_command(program: str, arguments: str) -> str | list[str]:
    """Turn a program and an argument string into something Popen accepts.

    Windows takes the command line as a single string, which preserves the
    quoting the argument filter produced. POSIX needs an argv, split the way
    a shell would.
    """
    if os.name == "nt":
        line = subprocess.list2cmdline([program])
        return f"{line} {arguments}" if arguments else line
    return [program, *shlex.split(arguments)]


class ProcessState(Enum):
    """Observable state of a spawned process."""

    RUNNING = "running"
    EXITED = "exited"
    KILLED = "killed"


class ProcessHandle:
    """A live git (or wsl.exe) process."""

    def __init__(self, popen: subprocess.Popen[bytes], *, command_line: str, encoding: str) -> None:
        self._popen = popen
        self._killed = False
        self.command_line = command_line
        self.encoding = encoding

    @property
    def pid(self) -> int:
        return self._popen.pid

    @property
    def stdout(self) -> IO[bytes] | None:
        """Merged stdout/stderr pipe, or None when output is not redirected."""
        return self._popen.stdout

    @property
    def returncode(self) -> int | None:
        return self._popen.returncode

    @property
    def state(self) -> ProcessState:
        if self._killed:
            return ProcessState.KILLED
        if self._popen.poll() is None:
            return ProcessState.RUNNING
        return ProcessState.EXITED

    def poll(self) -> int | None:
        return self._popen.poll()

    def wait(self, timeout: float | None = None) -> int:
        return self._popen.wait(timeout=timeout)

    def kill_tree(self) -> None:
        """Hard-kill the process and everything it forked, children first.

        Processes that already exited are skipped. Other psutil errors
        (e.g. AccessDenied) propagate to the caller.
        """
        if self._popen.poll() is not None:
            return

        try:
            root = psutil.Process(self._popen.pid)
            children = root.children(recursive=True)
        except psutil.NoSuchProcess:
            return

        for proc in [*reversed(children), root]:
            try:
                proc.kill()
            except psutil.NoSuchProcess:
                continue
        self._killed = True
        logger.debug("process_tree_killed", pid=self.pid, descendants=len(children))


class Executable:
    """A program bound to a working directory and an argument filter."""

    def __init__(
        self,
        program_provider: ProgramProvider,
        working_dir: str | os.PathLike[str] | None,
        arguments_filter: Callable[[str], str] | None = None,
        *,
        default_encoding: str = "utf-8",
    ) -> None:
        self._program_provider = program_provider
        self._working_dir = working_dir
        self._arguments_filter = arguments_filter
        self._default_encoding = default_encoding

    @property
    def working_dir(self) -> str | os.PathLike[str] | None:
        return self._working_dir

    @property
    def program(self) -> str:
        return self._program_provider()

    def filter_arguments(self, arguments: str | None) -> str:
        raw = arguments or ""
        return self._arguments_filter(raw) if self._arguments_filter else raw

    def command_line(self, arguments: str | None = None) -> str:
        """Full command line that start() would run, for display."""
        return display_command(self.program, self.filter_arguments(arguments))

    def start(
        self,
        arguments: str | None = None,
        *,
        create_window: bool = False,
        redirect_input: bool = False,
        redirect_output: bool = False,
        encoding: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessHandle:
        """Spawn the program.

        With ``redirect_output`` stderr is merged into a binary stdout pipe
        so progress and log lines arrive in one ordered stream.

        Raises:
            SpawnError: If the process cannot be created.
        """
        program = self._program_provider()
        filtered = self.filter_arguments(arguments)
        encoding = encoding or self._default_encoding
        command_line = display_command(program, filtered)

        logger.info(
            "process_starting",
            program=program,
            arguments=filtered,
            working_dir=str(self._working_dir) if self._working_dir else None,
        )

        creationflags = 0 if create_window else getattr(subprocess, "CREATE_NO_WINDOW", 0)
        try:
            popen = subprocess.Popen(
                build_command(program, filtered),
                cwd=self._working_dir,
                stdin=subprocess.PIPE if redirect_input else subprocess.DEVNULL,
                stdout=subprocess.PIPE if redirect_output else None,
                stderr=subprocess.STDOUT if redirect_output else None,
                env={**os.environ, **env} if env else None,
                creationflags=creationflags,
            )
        except (OSError, ValueError) as e:
            logger.warning("process_spawn_failed", program=program, error=str(e))
            raise SpawnError(program, str(e)) from e

        logger.debug("process_spawned", pid=popen.pid, command_line=command_line)
        return ProcessHandle(popen, command_line=command_line, encoding=encoding)
