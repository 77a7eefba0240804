"""Test fixtures for process module.

Processes under test are Python scripts run with the current interpreter,
standing in for git.
"""

from __future__ import annotations

import itertools
import shlex
import sys
import textwrap
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from gitrelay.config.models import GitRelayConfig, ProcessConfig
from gitrelay.process.models import CommandInvocation
from gitrelay.process.sink import OutputSink

ScriptFactory = Callable[..., CommandInvocation]


class RecordingSink(OutputSink):
    """Sink that records every callback and the thread it ran on."""

    def __init__(self, *, full_output: bool = False) -> None:
        self.displays_full_output = full_output
        self.commands: list[str] = []
        self.lines: list[str] = []
        self.progress: list[str] = []
        self.threads: set[int] = set()

    def on_command(self, command_line: str) -> None:
        self.threads.add(threading.get_ident())
        self.commands.append(command_line)

    def on_line(self, text: str) -> None:
        self.threads.add(threading.get_ident())
        self.lines.append(text)

    def on_progress(self, text: str) -> None:
        self.threads.add(threading.get_ident())
        self.progress.append(text)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def config() -> GitRelayConfig:
    """Config with short timeouts and lock release on (harmless outside a repo)."""
    return GitRelayConfig(process=ProcessConfig(kill_timeout_sec=5.0))


@pytest.fixture
def python_script(tmp_path: Path) -> ScriptFactory:
    """Build an invocation that runs the given Python source."""
    counter = itertools.count()

    def make(source: str, **kwargs: Any) -> CommandInvocation:
        script = tmp_path / f"script_{next(counter)}.py"
        script.write_text(textwrap.dedent(source), encoding="utf-8")
        return CommandInvocation(
            arguments=shlex.quote(str(script)),
            working_dir=tmp_path,
            program=sys.executable,
            **kwargs,
        )

    return make


@pytest.fixture
def full_output_sink() -> RecordingSink:
    return RecordingSink(full_output=True)
