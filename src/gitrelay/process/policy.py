"""Exit policies: how an exit code becomes a verdict."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ExitDecision:
    """Result of ExitPolicy.decide().

    ``handled`` defers finalization: the policy owner calls
    ``LifecycleController.done()`` itself later.
    """

    handled: bool
    is_error: bool


class ExitPolicy(ABC):
    """Reinterprets an exit before the run is finalized."""

    @abstractmethod
    def decide(self, exit_code: int, is_error: bool) -> ExitDecision: ...


class DefaultExitPolicy(ExitPolicy):
    """Non-zero is an error; finalize immediately."""

    def decide(self, exit_code: int, is_error: bool) -> ExitDecision:  # noqa: ARG002
        return ExitDecision(handled=False, is_error=is_error)


class IgnoreExitCodesPolicy(ExitPolicy):
    """Treat some non-zero codes as success (e.g. ``git diff --exit-code`` returning 1)."""

    def __init__(self, codes: Iterable[int]) -> None:
        self._codes = frozenset(codes)

    def decide(self, exit_code: int, is_error: bool) -> ExitDecision:
        return ExitDecision(handled=False, is_error=is_error and exit_code not in self._codes)


ExitCallback = Callable[[int, bool], ExitDecision | tuple[bool, bool]]


class CallbackExitPolicy(ExitPolicy):
    """Adapts a plain function returning ``(handled, is_error)``."""

    def __init__(self, callback: ExitCallback) -> None:
        self._callback = callback

    def decide(self, exit_code: int, is_error: bool) -> ExitDecision:
        result = self._callback(exit_code, is_error)
        if isinstance(result, ExitDecision):
            return result
        handled, new_is_error = result
        return ExitDecision(handled=bool(handled), is_error=bool(new_is_error))
