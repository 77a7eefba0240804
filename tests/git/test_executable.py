"""Tests for process creation and the cached launcher path."""

from __future__ import annotations

import os
import shlex
import sys
import threading
import time
from collections.abc import Callable
from pathlib import Path

import psutil
import pytest

from gitrelay.git.errors import SpawnError
from gitrelay.git.executable import (
    CachedResolver,
    Executable,
    ProcessState,
    build_command,
    default_wsl_launcher,
    display_command,
)

posix_only = pytest.mark.skipif(os.name == "nt", reason="POSIX argv splitting")


def python_executable(
    working_dir: Path, arguments_filter: Callable[[str], str] | None = None
) -> Executable:
    return Executable(lambda: sys.executable, working_dir, arguments_filter)


def _wait_dead(pid: int, timeout: float = 10.0) -> bool:
    """True once ``pid`` is gone or a zombie nobody has reaped yet."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            if psutil.Process(pid).status() == psutil.STATUS_ZOMBIE:
                return True
        except psutil.NoSuchProcess:
            return True
        time.sleep(0.05)
    return False


class TestCachedResolver:
    """Once-computed value tests."""

    def test_computes_on_first_resolve(self) -> None:
        calls: list[int] = []
        resolver = CachedResolver(lambda: calls.append(1) or "value")

        assert resolver.is_resolved is False
        assert resolver.resolve() == "value"
        assert resolver() == "value"
        assert resolver.is_resolved is True
        assert len(calls) == 1

    def test_reset_recomputes(self) -> None:
        values = iter(["first", "second"])
        resolver = CachedResolver(lambda: next(values))

        assert resolver() == "first"
        resolver.reset()
        assert resolver() == "second"

    def test_concurrent_first_calls_compute_once(self) -> None:
        """Racing callers all see the same value and compute runs once."""
        calls: list[int] = []
        start = threading.Barrier(16)

        def compute() -> str:
            calls.append(1)
            time.sleep(0.05)
            return f"value-{len(calls)}"

        resolver = CachedResolver(compute)
        results: list[str] = []
        lock = threading.Lock()

        def worker() -> None:
            start.wait()
            value = resolver.resolve()
            with lock:
                results.append(value)

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert results == ["value-1"] * 16


class TestDefaultWslLauncher:
    """wsl.exe location tests."""

    def test_uses_windir(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WINDIR", "D:\\Win")
        assert default_wsl_launcher() == "D:\\Win\\sysnative\\wsl.exe"

    def test_falls_back_to_default_windows_dir(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("WINDIR", raising=False)
        monkeypatch.delenv("SystemRoot", raising=False)
        assert default_wsl_launcher() == "C:\\Windows\\sysnative\\wsl.exe"


class TestDisplayCommand:
    """Command line display tests."""

    def test_program_and_arguments(self) -> None:
        assert display_command("git", "status -s") == "git status -s"

    def test_program_with_space_is_quoted(self) -> None:
        result = display_command("C:\\Program Files\\Git\\git.exe", "status")
        assert result == '"C:\\Program Files\\Git\\git.exe" status'

    @pytest.mark.parametrize("arguments", [None, ""])
    def test_program_only(self, arguments: str | None) -> None:
        assert display_command("git", arguments) == "git"


class TestBuildCommand:
    """Popen argument construction tests."""

    @posix_only
    def test_posix_splits_like_a_shell(self) -> None:
        assert build_command("git", "commit -m 'two words'") == ["git", "commit", "-m", "two words"]

    @posix_only
    def test_posix_empty_arguments(self) -> None:
        assert build_command("git", "") == ["git"]

    @pytest.mark.skipif(os.name != "nt", reason="Windows command line string")
    def test_windows_keeps_argument_string(self) -> None:
        assert build_command("C:\\Program Files\\git.exe", "-d x") == '"C:\\Program Files\\git.exe" -d x'


class TestExecutable:
    """Executable tests."""

    def test_filter_arguments_applies_filter(self, tmp_path: Path) -> None:
        executable = python_executable(tmp_path, lambda args: f"-d X -- {args}")

        assert executable.filter_arguments("status") == "-d X -- status"
        assert executable.filter_arguments(None) == "-d X -- "

    def test_filter_arguments_without_filter(self, tmp_path: Path) -> None:
        executable = python_executable(tmp_path)
        assert executable.filter_arguments(None) == ""
        assert executable.filter_arguments("log") == "log"

    def test_command_line_uses_filtered_arguments(self, tmp_path: Path) -> None:
        executable = Executable(lambda: "wsl.exe", tmp_path, lambda args: f"-d U -- git {args}")
        assert executable.command_line("status") == "wsl.exe -d U -- git status"

    def test_program_is_resolved_lazily(self, tmp_path: Path) -> None:
        calls: list[int] = []
        executable = Executable(lambda: calls.append(1) or "git", tmp_path)

        assert calls == []
        assert executable.program == "git"
        assert calls == [1]

    @posix_only
    def test_start_captures_merged_output(self, tmp_path: Path) -> None:
        executable = python_executable(tmp_path)
        script = "import sys; print('out'); sys.stdout.flush(); print('err', file=sys.stderr)"

        handle = executable.start(f'-c "{script}"', redirect_output=True)
        assert handle.stdout is not None
        output = handle.stdout.read().decode()
        exit_code = handle.wait(timeout=10)

        assert exit_code == 0
        assert "out" in output
        assert "err" in output
        assert handle.state is ProcessState.EXITED
        assert handle.encoding == "utf-8"

    @posix_only
    def test_start_runs_in_working_dir(self, tmp_path: Path) -> None:
        handle = python_executable(tmp_path).start(
            '-c "import os; print(os.getcwd())"', redirect_output=True
        )
        assert handle.stdout is not None
        output = handle.stdout.read().decode().strip()
        handle.wait(timeout=10)

        assert Path(output).resolve() == tmp_path.resolve()

    @posix_only
    def test_start_merges_environment_overrides(self, tmp_path: Path) -> None:
        handle = python_executable(tmp_path).start(
            "-c \"import os; print(os.environ['GITRELAY_TEST_VAR'])\"",
            redirect_output=True,
            env={"GITRELAY_TEST_VAR": "relayed"},
        )
        assert handle.stdout is not None
        output = handle.stdout.read().decode().strip()
        handle.wait(timeout=10)

        assert output == "relayed"

    @posix_only
    def test_start_without_redirect_has_no_stdout(self, tmp_path: Path) -> None:
        handle = python_executable(tmp_path).start('-c "pass"')
        handle.wait(timeout=10)
        assert handle.stdout is None

    def test_start_missing_program_raises_spawn_error(self, tmp_path: Path) -> None:
        executable = Executable(lambda: str(tmp_path / "no-such-git"), tmp_path)

        with pytest.raises(SpawnError) as exc_info:
            executable.start("status", redirect_output=True)

        assert exc_info.value.program == str(tmp_path / "no-such-git")
        assert "Failed to start" in str(exc_info.value)

    def test_start_missing_working_dir_raises_spawn_error(self, tmp_path: Path) -> None:
        executable = python_executable(tmp_path / "missing")

        with pytest.raises(SpawnError):
            executable.start('-c "pass"')


class TestProcessHandle:
    """Process handle kill tests."""

    @posix_only
    def test_kill_tree_kills_running_process(self, tmp_path: Path) -> None:
        handle = python_executable(tmp_path).start(
            '-c "import time; time.sleep(60)"', redirect_output=True
        )
        assert handle.state is ProcessState.RUNNING

        handle.kill_tree()
        exit_code = handle.wait(timeout=10)

        assert exit_code != 0
        assert handle.state is ProcessState.KILLED

    @posix_only
    def test_kill_tree_kills_children(self, tmp_path: Path) -> None:
        child_pid_file = tmp_path / "child.pid"
        script = tmp_path / "parent.py"
        script.write_text(
            "import subprocess, sys, time\n"
            "child = subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(60)'])\n"
            f"open({str(child_pid_file) + '.tmp'!r}, 'w').write(str(child.pid))\n"
            f"import os; os.replace({str(child_pid_file) + '.tmp'!r}, {str(child_pid_file)!r})\n"
            "time.sleep(60)\n"
        )
        handle = python_executable(tmp_path).start(shlex.quote(str(script)), redirect_output=True)

        deadline = time.monotonic() + 10
        while not child_pid_file.exists() or not child_pid_file.read_text():
            assert time.monotonic() < deadline
            time.sleep(0.05)
        child_pid = int(child_pid_file.read_text())

        handle.kill_tree()
        handle.wait(timeout=10)
        assert _wait_dead(child_pid)

    @posix_only
    def test_kill_tree_after_exit_is_noop(self, tmp_path: Path) -> None:
        handle = python_executable(tmp_path).start('-c "pass"', redirect_output=True)
        handle.wait(timeout=10)

        handle.kill_tree()

        assert handle.state is ProcessState.EXITED
        assert handle.returncode == 0
