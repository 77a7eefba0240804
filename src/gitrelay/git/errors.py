"""Execution layer error types."""


class GitRelayError(Exception):
    """Base error for command translation and process execution."""

    pass


class TranslationError(GitRelayError):
    """Working directory is not a usable ``\\\\wsl$\\<distro>\\`` path."""

    def __init__(self, path: str | None, reason: str) -> None:
        super().__init__(f"Cannot translate {path!r}: {reason}")
        self.path = path
        self.reason = reason


class SpawnError(GitRelayError):
    """The OS refused to create the process."""

    def __init__(self, program: str, reason: str) -> None:
        super().__init__(f"Failed to start {program}: {reason}")
        self.program = program
        self.reason = reason


class UnsupportedInputError(GitRelayError, NotImplementedError):
    """Writing to the process's standard input is not supported."""

    def __init__(self) -> None:
        super().__init__("Feeding standard input to a git process is not supported")


class LifecycleError(GitRelayError):
    """Controller used out of order (e.g. started twice)."""

    def __init__(self, operation: str, state: str) -> None:
        super().__init__(f"Cannot {operation}: controller is {state}")
        self.operation = operation
        self.state = state
