"""Index lock release after an interrupted git process."""

from __future__ import annotations

import os
from pathlib import Path

import pygit2
import structlog

from gitrelay.config.constants import INDEX_LOCK_NAME

logger = structlog.get_logger()


def _remove_lock(git_dir: str) -> Path | None:
    lock = Path(git_dir) / INDEX_LOCK_NAME
    if not lock.exists():
        return None
    lock.unlink(missing_ok=True)
    logger.info("index_lock_released", path=str(lock))
    return lock


def release_index_locks(
    working_dir: str | os.PathLike[str],
    *,
    include_submodules: bool = True,
) -> list[Path]:
    """Delete ``index.lock`` left behind by a killed git process.

    Looks up the repository containing ``working_dir`` and, optionally, every
    initialized submodule. Directories outside a repository are ignored.

    Returns:
        Lock files that were removed.

    Raises:
        OSError: If a lock exists but cannot be deleted.
        pygit2.GitError: If the repository cannot be opened.
    """
    git_dir = pygit2.discover_repository(os.fspath(working_dir))
    if git_dir is None:
        return []

    released: list[Path] = []
    repo = pygit2.Repository(git_dir)
    if (lock := _remove_lock(repo.path)) is not None:
        released.append(lock)

    if include_submodules and not repo.is_bare:
        for name in repo.listall_submodules():
            submodule = repo.submodules.get(name)
            if submodule is None:
                continue
            try:
                sub_repo = submodule.open()
            except pygit2.GitError:
                # Not initialized: no index, no lock.
                continue
            if (lock := _remove_lock(sub_repo.path)) is not None:
                released.append(lock)

    return released
