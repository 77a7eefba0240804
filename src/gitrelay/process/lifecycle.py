"""Process lifecycle: start, stream, exit or abort, finalize exactly once."""

from __future__ import annotations

import subprocess
import threading
from collections.abc import Callable
from enum import Enum
from functools import partial
from typing import Any
from uuid import uuid4

import structlog

from gitrelay.config.constants import ABORTED_EXIT_CODE, SPAWN_FAILED_EXIT_CODE
from gitrelay.config.models import GitRelayConfig
from gitrelay.core.errors import InternalError
from gitrelay.core.logging import clear_run_id, set_run_id
from gitrelay.git.errors import LifecycleError, SpawnError
from gitrelay.git.executable import Executable, ProcessHandle, display_command
from gitrelay.git.locks import release_index_locks
from gitrelay.process.context import ImmediateContext, OwnerContext, QueueContext
from gitrelay.process.models import CleanupResult, CommandInvocation, ProcessResult
from gitrelay.process.policy import DefaultExitPolicy, ExitPolicy
from gitrelay.process.pump import EventListener, OutputPump
from gitrelay.process.sink import OutputSink
from gitrelay.process.transcript import Transcript

logger = structlog.get_logger()

FinalizedCallback = Callable[[ProcessResult], None]


class LifecycleState(Enum):
    """Controller state."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    EXITED = "exited"
    ABORTED = "aborted"
    FINALIZED = "finalized"


class LifecycleController:
    """Drives one command from launch to a single success/error verdict.

    State machine::

        NOT_STARTED -> RUNNING -> EXITED | ABORTED -> FINALIZED

    Exit handling runs once, whichever of natural exit and abort gets there
    first. The exit policy may reinterpret the verdict or take over
    finalization, in which case the policy owner calls ``done()``.

    The default ``ImmediateContext`` runs sink callbacks on the reader
    thread, so a slow sink slows the read. Pass a ``QueueContext`` or an
    ``AsyncioContext`` to keep sink work off the reader.
    """

    def __init__(
        self,
        invocation: CommandInvocation,
        *,
        sink: OutputSink | None = None,
        context: OwnerContext | None = None,
        policy: ExitPolicy | None = None,
        config: GitRelayConfig | None = None,
        listener: EventListener | None = None,
    ) -> None:
        self._invocation = invocation
        self._sink = sink or OutputSink()
        self._context = context or ImmediateContext()
        self._policy = policy or DefaultExitPolicy()
        self._config = config or GitRelayConfig()
        self._listener = listener

        self._transcript = Transcript()
        self._lock = threading.Lock()
        self._state = LifecycleState.NOT_STARTED
        self._handle: ProcessHandle | None = None
        self._pump: OutputPump | None = None
        self._aborted = False
        self._exit_handled = False
        self._exit_code: int | None = None
        self._result: ProcessResult | None = None
        self._finalized = threading.Event()
        self._on_finalized: list[FinalizedCallback] = []
        self._run_id = uuid4().hex[:12]
        self._log = logger.bind(run_id=self._run_id)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def transcript(self) -> Transcript:
        return self._transcript

    @property
    def handle(self) -> ProcessHandle | None:
        return self._handle

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def exit_code(self) -> int | None:
        return self._exit_code

    @property
    def result(self) -> ProcessResult | None:
        return self._result

    @property
    def program(self) -> str:
        return self._invocation.program or self._config.git.command

    def is_finalized(self) -> bool:
        return self._finalized.is_set()

    def error_occurred(self) -> bool:
        """True once finalized with an error verdict."""
        return self._result is not None and not self._result.success

    def add_finalized_callback(self, callback: FinalizedCallback) -> None:
        """Register a callback run on the owner context when the run finalizes."""
        self._on_finalized.append(callback)

    # =========================================================================
    # Transitions
    # =========================================================================

    def start(self) -> None:
        """Launch the process and begin streaming its output.

        A spawn failure is not raised: the error goes to the transcript and
        the run exits with code 1 through the normal exit path.

        Raises:
            LifecycleError: If called more than once.
        """
        with self._lock:
            if self._state is not LifecycleState.NOT_STARTED:
                raise LifecycleError("start", self._state.value)
            self._state = LifecycleState.RUNNING

        set_run_id(self._run_id)
        try:
            self._launch()
        finally:
            clear_run_id()

    def _launch(self) -> None:
        invocation = self._invocation
        program = self.program
        executable = Executable(
            lambda: program,
            invocation.working_dir,
            invocation.arguments_filter,
            default_encoding=self._config.git.encoding,
        )

        self._context.post(
            partial(self._sink.on_command, display_command(program, invocation.arguments))
        )
        try:
            handle = executable.start(
                invocation.arguments,
                redirect_output=True,
                encoding=invocation.encoding,
                env=invocation.env,
            )
        except SpawnError as e:
            message = "\n" + str(e)
            self._transcript.append(message)
            if not self._sink.displays_full_output:
                self._context.post(partial(self._sink.on_line, message))
            self._context.post(partial(self._handle_exit, SPAWN_FAILED_EXIT_CODE))
            return

        pump = OutputPump(
            handle,
            self._transcript,
            self._sink,
            self._context,
            on_exit=self._handle_exit,
            listener=self._listener,
            chunk_size=self._config.process.read_chunk_size,
        )
        with self._lock:
            self._handle = handle
            self._pump = pump
            aborted_during_spawn = self._aborted

        self._log.info("process_started", pid=handle.pid, program=program)
        if aborted_during_spawn:
            # abort() ran before there was anything to kill.
            self._run_cleanup()

        pump.start()

    def abort(self) -> bool:
        """Kill the running process and clean up after it.

        Waits, up to ``process.kill_timeout_sec``, for the reader to drain
        what the process wrote before it died, so the verdict carries the
        full transcript.

        Returns:
            True if this call aborted the run, False if it was not running.
        """
        with self._lock:
            if self._state is not LifecycleState.RUNNING:
                return False
            self._state = LifecycleState.ABORTED
            self._aborted = True
            handle = self._handle
            pump = self._pump

        self._log.info("process_aborted", pid=handle.pid if handle else None)
        self._run_cleanup()

        exit_code = ABORTED_EXIT_CODE
        if handle is not None:
            try:
                exit_code = handle.wait(timeout=self._config.process.kill_timeout_sec)
            except subprocess.TimeoutExpired:
                self._log.warning("process_not_reaped", pid=handle.pid)

        # Output already in the pipe belongs to the transcript.
        if pump is not None and not pump.join(self._config.process.kill_timeout_sec):
            self._log.warning("output_not_drained", pid=handle.pid if handle else None)

        self._context.post(partial(self._handle_exit, exit_code))
        return True

    def advisory_cleanup(self) -> CleanupResult:
        """Kill the process tree and release index locks, best effort.

        Failures are collected into the result and never raised.
        """
        reasons: list[str] = []

        if self._handle is not None:
            try:
                self._handle.kill_tree()
            except Exception as e:
                reasons.append(f"kill failed: {e}")

        working_dir = self._invocation.working_dir
        if self._config.process.release_index_lock and working_dir is not None:
            try:
                release_index_locks(
                    working_dir,
                    include_submodules=self._config.process.include_submodules,
                )
            except Exception as e:
                reasons.append(f"index lock release failed: {e}")

        if reasons:
            return CleanupResult.failed("; ".join(reasons))
        return CleanupResult.success()

    def _run_cleanup(self) -> None:
        cleanup = self.advisory_cleanup()
        if not cleanup.ok:
            self._log.warning("cleanup_failed", reason=cleanup.reason)

    def done(self, success: bool) -> bool:
        """Finalize with the given verdict. Only the first call has any effect.

        Returns:
            True if this call finalized the run.
        """
        with self._lock:
            if self._state is LifecycleState.FINALIZED:
                return False
            self._state = LifecycleState.FINALIZED
            result = ProcessResult(
                success=success,
                exit_code=self._exit_code,
                aborted=self._aborted,
                output=self._transcript.text(),
            )
            self._result = result

        self._log.info(
            "process_finalized",
            success=success,
            exit_code=result.exit_code,
            aborted=result.aborted,
        )
        for callback in self._on_finalized:
            self._context.post(partial(callback, result))
        self._finalized.set()
        return True

    def wait(self, timeout: float | None = None) -> ProcessResult | None:
        """Block until finalized. Do not call from the thread draining a QueueContext."""
        self._finalized.wait(timeout)
        return self._result

    # =========================================================================
    # Exit handling (owner context)
    # =========================================================================

    def _handle_exit(self, exit_code: int) -> None:
        with self._lock:
            if self._exit_handled:
                return
            self._exit_handled = True
            self._exit_code = exit_code
            if self._state is LifecycleState.RUNNING:
                self._state = LifecycleState.EXITED

        self._log.info("process_exited", exit_code=exit_code, aborted=self._aborted)

        try:
            is_error = exit_code != 0
            decision = self._policy.decide(exit_code, is_error)
            is_error = decision.is_error
            if decision.handled:
                self._log.debug("finalization_deferred", is_error=is_error)
                return
        except Exception:
            self._log.exception("exit_policy_failed")
            is_error = True

        self.done(not is_error)


def run_command(
    invocation: CommandInvocation,
    *,
    sink: OutputSink | None = None,
    policy: ExitPolicy | None = None,
    config: GitRelayConfig | None = None,
    listener: EventListener | None = None,
    timeout: float | None = None,
) -> ProcessResult:
    """Run ``invocation`` to completion, using the calling thread as owner.

    On timeout the run is aborted and its verdict returned.

    Raises:
        InternalError: If the run does not finalize even after aborting
            (e.g. a policy deferred finalization and never called ``done()``).
    """
    config = config or GitRelayConfig()
    context = QueueContext()
    controller = LifecycleController(
        invocation,
        sink=sink,
        context=context,
        policy=policy,
        config=config,
        listener=listener,
    )
    controller.start()

    if not context.run_until(controller.is_finalized, timeout):
        logger.warning("process_timeout", timeout=timeout)
        controller.abort()
        context.run_until(controller.is_finalized, config.process.kill_timeout_sec)

    if controller.result is None:
        raise InternalError.timeout(f"{controller.program} did not finalize")
    return controller.result


def read_output(invocation: CommandInvocation, **kwargs: Any) -> str:
    """Run ``invocation`` and return its status text (transcript or ``"Aborted"``)."""
    return run_command(invocation, **kwargs).status_text
