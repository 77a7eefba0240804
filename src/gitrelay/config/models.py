"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (GITRELAY__SECTION__KEY)
3. Repo YAML (.gitrelay/config.yaml)
4. Global YAML (~/.config/gitrelay/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    GITRELAY__<SECTION>__<KEY>=<VALUE>

Examples:
    GITRELAY__LOGGING__LEVEL=DEBUG
    GITRELAY__GIT__COMMAND=/usr/local/bin/git
    GITRELAY__WSL__LAUNCHER_PATH=C:\\Windows\\System32\\wsl.exe
    GITRELAY__PROCESS__KILL_TIMEOUT_SEC=10
"""

import codecs
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from gitrelay.config.constants import MAX_READ_CHUNK_SIZE

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        GITRELAY__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. Process lifecycle events are logged at INFO/DEBUG.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class GitConfig(BaseModel):
    """Native git invocation.

    Env vars:
        GITRELAY__GIT__COMMAND: git executable name or path
        GITRELAY__GIT__ENCODING: Default output encoding
    """

    command: str = Field(
        default="git",
        description="git executable. Bare names are resolved on PATH once per process.",
    )
    encoding: str = Field(
        default="utf-8",
        description="Encoding used to decode redirected output when the caller gives none.",
    )

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError as e:
            raise ValueError(f"Unknown encoding: {v}") from e
        return v


class WslConfig(BaseModel):
    """WSL launcher settings.

    Env vars:
        GITRELAY__WSL__LAUNCHER_PATH: Override the resolved wsl.exe path
        GITRELAY__WSL__TOOL: Tool invoked inside the distro
    """

    launcher_path: str | None = Field(
        default=None,
        description="Explicit wsl.exe path. Default: %WINDIR%\\sysnative\\wsl.exe.",
    )
    tool: str = Field(
        default="git",
        description="Program run inside the distro by the launcher.",
    )


class ProcessConfig(BaseModel):
    """Process lifecycle settings.

    Env vars:
        GITRELAY__PROCESS__KILL_TIMEOUT_SEC: Wait after killing before giving up
        GITRELAY__PROCESS__RELEASE_INDEX_LOCK: Remove index.lock on abort
        GITRELAY__PROCESS__INCLUDE_SUBMODULES: Also clear submodule locks
    """

    kill_timeout_sec: float = Field(
        default=5.0,
        description="Seconds to wait for a killed process to be reaped.",
    )
    release_index_lock: bool = Field(
        default=True,
        description="Delete a leftover .git/index.lock after an abort. "
        "RISK: another git process on the same repo may lose its lock.",
    )
    include_submodules: bool = Field(
        default=True,
        description="Also delete index.lock files of initialized submodules.",
    )
    read_chunk_size: int = Field(
        default=4096,
        description="Bytes requested per read from the process output pipe.",
    )

    @field_validator("kill_timeout_sec")
    @classmethod
    def validate_kill_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"kill_timeout_sec must be positive, got {v}")
        return v

    @field_validator("read_chunk_size")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        if not (1 <= v <= MAX_READ_CHUNK_SIZE):
            raise ValueError(f"read_chunk_size must be 1-{MAX_READ_CHUNK_SIZE}, got {v}")
        return v


class GitRelayConfig(BaseModel):
    """Root configuration model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    wsl: WslConfig = Field(default_factory=WslConfig)
    process: ProcessConfig = Field(default_factory=ProcessConfig)
