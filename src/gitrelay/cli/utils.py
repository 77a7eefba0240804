"""CLI utilities."""

import os
import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path

import click

from gitrelay.config.loader import load_config
from gitrelay.config.models import GitRelayConfig
from gitrelay.core.errors import ConfigError
from gitrelay.git.translation import is_wsl_path


def join_arguments(arguments: Sequence[str]) -> str:
    """Join CLI arguments into one command-line string for the host platform."""
    if os.name == "nt":
        return subprocess.list2cmdline(arguments)
    return shlex.join(arguments)


def resolve_directory(directory: str | None) -> str:
    """Return the working directory to run in.

    ``\\\\wsl$\\`` paths are kept as given; anything else must exist locally.
    """
    if directory is None:
        return str(Path.cwd())
    if is_wsl_path(directory):
        return directory

    path = Path(directory)
    if not path.is_dir():
        raise click.ClickException(f"Not a directory: {directory}")
    return str(path.resolve())


def load_cli_config(directory: str) -> GitRelayConfig:
    """Load config for ``directory``, turning config errors into CLI errors."""
    repo_root = None if is_wsl_path(directory) else Path(directory)
    try:
        return load_config(repo_root)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
