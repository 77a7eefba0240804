"""Core module exports."""

from gitrelay.core.errors import (
    ConfigError,
    ErrorCode,
    GitRelayCodedError,
    InternalError,
)
from gitrelay.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "ErrorCode",
    "GitRelayCodedError",
    "ConfigError",
    "InternalError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
