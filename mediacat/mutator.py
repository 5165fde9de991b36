"""Filesystem mutations used by the relocator.

:class:`LocalMutator` performs real moves and permission changes.
:class:`DryRunMutator` only logs what would happen, one shell-style
line per operation, and never touches the disk.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections import deque
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class Mutator(Protocol):
    """Operations the relocator needs from the filesystem."""

    def exists(self, path: Path) -> bool:
        """Return whether *path* exists."""
        ...

    def mkdir(self, path: Path) -> None:
        """Create *path* and any missing parents."""
        ...

    def move(self, source: Path, destination: Path) -> None:
        """Move *source* to the full destination path *destination*."""
        ...

    def chmod(self, path: Path, mode: int) -> None:
        """Apply *mode* to *path* and everything below it."""
        ...

    def chown(self, path: Path, owner: str) -> None:
        """Apply an ``owner:group`` string to *path* and everything below it."""
        ...


def split_owner(owner: str) -> tuple[str | int | None, str | int | None]:
    """Split ``owner:group`` into parts usable by :func:`shutil.chown`.

    Empty parts become None; numeric parts become ids.
    """
    user, _, group = owner.partition(":")

    def _part(value: str) -> str | int | None:
        if not value:
            return None
        return int(value) if value.isdigit() else value

    return _part(user), _part(group)


def _walk_tree(path: Path):
    yield path
    if path.is_dir() and not path.is_symlink():
        for root, dirs, files in os.walk(path):
            for name in dirs + files:
                yield Path(root) / name


class LocalMutator:
    """Applies operations to the real filesystem."""

    def exists(self, path: Path) -> bool:
        return path.exists()

    def mkdir(self, path: Path) -> None:
        logger.debug("Creating %s", path)
        path.mkdir(parents=True, exist_ok=True)

    def move(self, source: Path, destination: Path) -> None:
        logger.debug("Moving %s -> %s", source, destination)
        shutil.move(str(source), str(destination))

    def chmod(self, path: Path, mode: int) -> None:
        for item in _walk_tree(path):
            if item.is_symlink():
                continue
            os.chmod(item, mode)
        logger.debug("Applied mode %o to %s", mode, path)

    def chown(self, path: Path, owner: str) -> None:
        user, group = split_owner(owner)
        for item in _walk_tree(path):
            if item.is_symlink():
                continue
            shutil.chown(item, user=user, group=group)
        logger.debug("Applied owner %s to %s", owner, path)


class DryRunMutator:
    """Logs planned operations instead of performing them.

    ``exists`` still consults the real filesystem, which is read-only.
    The most recent planned lines are also kept in :attr:`planned`.
    """

    def __init__(self, keep: int = 1000) -> None:
        self.planned: deque[str] = deque(maxlen=keep)

    def _plan(self, line: str) -> None:
        self.planned.append(line)
        logger.info("[dry-run] %s", line)

    def exists(self, path: Path) -> bool:
        return path.exists()

    def mkdir(self, path: Path) -> None:
        self._plan(f"mkdir -p {path}")

    def move(self, source: Path, destination: Path) -> None:
        self._plan(f"mv {source} {destination}")

    def chmod(self, path: Path, mode: int) -> None:
        self._plan(f"chmod -R {mode:o} {path}")

    def chown(self, path: Path, owner: str) -> None:
        self._plan(f"chown -R {owner} {path}")
