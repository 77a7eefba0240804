"""gitrelay error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 9xxx: Internal

Process and translation failures live in ``gitrelay.git.errors``; those are
raised and caught inside the execution layer and never need a wire form.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Internal (9xxx)
    INTERNAL_TIMEOUT = 9002


@dataclass(frozen=True, slots=True)
class GitRelayCodedError(Exception):
    """Base error with structured context for CLI and log output."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(GitRelayCodedError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class InternalError(GitRelayCodedError):
    """Internal/unexpected errors."""

    @classmethod
    def timeout(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_TIMEOUT,
            message=f"Timed out: {reason}",
            retryable=True,
            details=details,
        )
