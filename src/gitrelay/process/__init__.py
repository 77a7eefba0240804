"""Process supervision: output streaming, exit policies, lifecycle."""

from gitrelay.process.context import (
    AsyncioContext,
    ImmediateContext,
    OwnerContext,
    QueueContext,
)
from gitrelay.process.lifecycle import (
    LifecycleController,
    LifecycleState,
    read_output,
    run_command,
)
from gitrelay.process.models import (
    CleanupResult,
    CommandInvocation,
    OutputEvent,
    OutputKind,
    ProcessResult,
    is_operation_aborted,
)
from gitrelay.process.policy import (
    CallbackExitPolicy,
    DefaultExitPolicy,
    ExitDecision,
    ExitPolicy,
    IgnoreExitCodesPolicy,
)
from gitrelay.process.sink import OutputSink
from gitrelay.process.transcript import Transcript

__all__ = [
    # Owner contexts
    "OwnerContext",
    "ImmediateContext",
    "QueueContext",
    "AsyncioContext",
    # Lifecycle
    "LifecycleController",
    "LifecycleState",
    "run_command",
    "read_output",
    # Models
    "CommandInvocation",
    "CleanupResult",
    "OutputEvent",
    "OutputKind",
    "ProcessResult",
    "is_operation_aborted",
    # Exit policies
    "ExitPolicy",
    "ExitDecision",
    "DefaultExitPolicy",
    "IgnoreExitCodesPolicy",
    "CallbackExitPolicy",
    # Output
    "OutputSink",
    "Transcript",
]
