"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
These are protocol constraints of git, wsl.exe and the host path convention.

For configurable values, see models.py (GitConfig, WslConfig, ProcessConfig).
"""

# =============================================================================
# WSL Path Convention
# =============================================================================

WSL_EXPLORER_PREFIX = "\\\\wsl$\\"
"""Host-side UNC marker in front of every distro path (``\\\\wsl$\\``)."""

WSL_LAUNCHER_NAME = "wsl.exe"
"""Launcher binary, looked up under ``%WINDIR%\\sysnative``."""

WSL_LAUNCHER_SUBDIR = "sysnative"
"""Folder that bypasses WOW64 redirection when a 32-bit host spawns wsl.exe."""

MIN_DISTRO_NAME_LENGTH = 2
"""Shortest distro identifier accepted between the marker and the next separator."""

# =============================================================================
# Git Arguments
# =============================================================================

DIRECTORY_FLAG = "-C"
"""Flag whose following token is passed through untranslated."""

LONG_ARGUMENT_PATTERN = r"^--(?:[a-zA-Z0-9_-]+)="
"""``--key=`` prefix whose value gets re-quoted for the guest shell."""

# =============================================================================
# Output Classification
# =============================================================================

PROGRESS_MARKERS = ("%", "remote: Counting objects")
"""Substrings that mark a chunk as a progress update rather than a log line."""

ANSI_ERASE_TO_EOL = "\x1b[K"
"""Erase-to-end-of-line sequence git appends to remote sideband lines."""

# =============================================================================
# Lifecycle
# =============================================================================

ABORTED_SENTINEL = "Aborted"
"""Status text reported for a user-initiated abort."""

ABORTED_EXIT_CODE = -1
"""Exit code used when an aborted process could not be reaped in time."""

SPAWN_FAILED_EXIT_CODE = 1
"""Exit code synthesized when the OS refuses to create the process."""

INDEX_LOCK_NAME = "index.lock"
"""Lock file git leaves in the git dir when interrupted mid-write."""

MAX_READ_CHUNK_SIZE = 1024 * 1024
"""Upper bound for ProcessConfig.read_chunk_size."""
