"""Config module exports."""

from gitrelay.config.loader import GitRelaySettings, load_config
from gitrelay.config.models import (
    GitConfig,
    GitRelayConfig,
    LoggingConfig,
    ProcessConfig,
    WslConfig,
)

__all__ = [
    "load_config",
    "GitRelayConfig",
    "GitRelaySettings",
    "GitConfig",
    "WslConfig",
    "ProcessConfig",
    "LoggingConfig",
]
