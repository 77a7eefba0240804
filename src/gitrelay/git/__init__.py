"""Git command execution: path translation, argument filtering, launching."""

from gitrelay.git.arguments import ArgumentsFilter, WslArgumentFilter, split_arguments
from gitrelay.git.errors import (
    GitRelayError,
    LifecycleError,
    SpawnError,
    TranslationError,
    UnsupportedInputError,
)
from gitrelay.git.executable import (
    WSL_LAUNCHER,
    CachedResolver,
    Executable,
    ProcessHandle,
    ProcessState,
)
from gitrelay.git.locks import release_index_locks
from gitrelay.git.quoting import normalize_long_option, standardize_quotes
from gitrelay.git.runners import (
    GitCommandRunner,
    NativeGitCommandRunner,
    WslGitCommandRunner,
    create_command_runner,
)
from gitrelay.git.translation import (
    TranslationContext,
    extract_identifier,
    is_wsl_path,
    translate_working_dir,
)

__all__ = [
    # Errors
    "GitRelayError",
    "LifecycleError",
    "SpawnError",
    "TranslationError",
    "UnsupportedInputError",
    # Translation
    "TranslationContext",
    "extract_identifier",
    "is_wsl_path",
    "translate_working_dir",
    "normalize_long_option",
    "standardize_quotes",
    # Arguments
    "ArgumentsFilter",
    "WslArgumentFilter",
    "split_arguments",
    # Execution
    "WSL_LAUNCHER",
    "CachedResolver",
    "Executable",
    "ProcessHandle",
    "ProcessState",
    "release_index_locks",
    # Runners
    "GitCommandRunner",
    "NativeGitCommandRunner",
    "WslGitCommandRunner",
    "create_command_runner",
]
