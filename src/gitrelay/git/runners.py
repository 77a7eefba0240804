"""Command runners: where and how a git command line gets executed.

A runner owns an ``Executable`` and the argument filter for its environment.
Callers pick one with ``create_command_runner`` and otherwise treat native and
WSL execution the same way.
"""

from __future__ import annotations

import os
import shutil
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path

from gitrelay.config.models import GitRelayConfig
from gitrelay.git.arguments import WslArgumentFilter
from gitrelay.git.executable import (
    WSL_LAUNCHER,
    CachedResolver,
    Executable,
    ProcessHandle,
    ProgramProvider,
)
from gitrelay.git.translation import TranslationContext


class GitCommandRunner(ABC):
    """Runs git commands for one working directory."""

    def __init__(self, default_encoding: str = "utf-8") -> None:
        self._default_encoding = default_encoding

    @property
    @abstractmethod
    def executable(self) -> Executable: ...

    @abstractmethod
    def arguments_filter(self, arguments: str) -> str: ...

    @property
    def working_dir(self) -> str:
        return str(self.executable.working_dir)

    def run_detached(
        self,
        arguments: str | None = None,
        *,
        create_window: bool = False,
        redirect_input: bool = False,
        redirect_output: bool = False,
        encoding: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessHandle:
        """Start git without waiting for it."""
        if encoding is None and redirect_output:
            encoding = self._default_encoding
        return self.executable.start(
            arguments,
            create_window=create_window,
            redirect_input=redirect_input,
            redirect_output=redirect_output,
            encoding=encoding,
            env=env,
        )


class NativeGitCommandRunner(GitCommandRunner):
    """Runs the host's git directly."""

    def __init__(
        self,
        working_dir: str | os.PathLike[str],
        *,
        command: str = "git",
        default_encoding: str = "utf-8",
    ) -> None:
        super().__init__(default_encoding)
        self._resolver = CachedResolver(lambda: shutil.which(command) or command)
        self._executable = Executable(
            self._resolver, working_dir, default_encoding=default_encoding
        )

    @property
    def executable(self) -> Executable:
        return self._executable

    def arguments_filter(self, arguments: str) -> str:
        return arguments


class WslGitCommandRunner(GitCommandRunner):
    """Runs git inside a WSL distro through wsl.exe."""

    def __init__(
        self,
        context: TranslationContext,
        *,
        launcher: ProgramProvider = WSL_LAUNCHER,
        tool: str = "git",
        default_encoding: str = "utf-8",
    ) -> None:
        super().__init__(default_encoding)
        self._context = context
        self._filter = WslArgumentFilter(context, tool=tool)
        self._executable = Executable(
            launcher,
            context.host_working_dir,
            self._filter,
            default_encoding=default_encoding,
        )

    @classmethod
    def try_create(
        cls,
        working_dir: str | os.PathLike[str] | None,
        *,
        launcher: ProgramProvider = WSL_LAUNCHER,
        tool: str = "git",
        default_encoding: str = "utf-8",
    ) -> WslGitCommandRunner | None:
        """Return a runner if ``working_dir`` lies inside a distro, else None."""
        context = TranslationContext.try_from_host_path(
            None if working_dir is None else os.fspath(working_dir)
        )
        if context is None:
            return None
        return cls(context, launcher=launcher, tool=tool, default_encoding=default_encoding)

    @property
    def context(self) -> TranslationContext:
        return self._context

    @property
    def executable(self) -> Executable:
        return self._executable

    def arguments_filter(self, arguments: str) -> str:
        return self._filter(arguments)


def create_command_runner(
    working_dir: str | os.PathLike[str],
    config: GitRelayConfig | None = None,
) -> GitCommandRunner:
    """Pick the WSL runner for ``\\\\wsl$\\`` directories, the native one otherwise."""
    config = config or GitRelayConfig()

    launcher: ProgramProvider = WSL_LAUNCHER
    if config.wsl.launcher_path:
        launcher_path = config.wsl.launcher_path
        launcher = lambda: launcher_path  # noqa: E731

    wsl_runner = WslGitCommandRunner.try_create(
        working_dir,
        launcher=launcher,
        tool=config.wsl.tool,
        default_encoding=config.git.encoding,
    )
    if wsl_runner is not None:
        return wsl_runner

    return NativeGitCommandRunner(
        Path(working_dir),
        command=config.git.command,
        default_encoding=config.git.encoding,
    )
