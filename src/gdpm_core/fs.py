"""Filesystem collaborator used by the project session and the sync engine."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Protocol

from .errors import FileSystemError


class FileSystem(Protocol):
    """Every filesystem access of gdpm-core goes through this interface."""

    def copy_tree(self, src: Path, dst: Path) -> None: ...

    def remove_tree(self, path: Path) -> None: ...

    def rename(self, src: Path, dst: Path) -> None: ...

    def list_dir(self, path: Path) -> list[str]: ...

    def exists(self, path: Path) -> bool: ...

    def is_dir(self, path: Path) -> bool: ...

    def read_text(self, path: Path) -> str: ...

    def write_text(self, path: Path, text: str) -> None: ...


class LocalFileSystem:
    """FileSystem backed by the local disk."""

    def copy_tree(self, src: Path, dst: Path) -> None:
        """Copy the contents of directory *src* into *dst*, merging over it."""
        if not os.path.isdir(src):
            raise FileSystemError(f"source is not a directory: {src}")
        try:
            shutil.copytree(src, dst, dirs_exist_ok=True)
        except (OSError, shutil.Error) as exc:
            raise FileSystemError(f"failed to copy {src} to {dst}: {exc}") from exc

    def remove_tree(self, path: Path) -> None:
        try:
            shutil.rmtree(path)
        except OSError as exc:
            raise FileSystemError(f"failed to remove {path}: {exc}") from exc

    def rename(self, src: Path, dst: Path) -> None:
        """Move *src* to *dst*, which must not exist."""
        try:
            os.rename(src, dst)
        except OSError as exc:
            raise FileSystemError(f"failed to move {src} to {dst}: {exc}") from exc

    def list_dir(self, path: Path) -> list[str]:
        try:
            return os.listdir(path)
        except OSError as exc:
            raise FileSystemError(f"failed to list {path}: {exc}") from exc

    def exists(self, path: Path) -> bool:
        return os.path.exists(path)

    def is_dir(self, path: Path) -> bool:
        return os.path.isdir(path)

    def read_text(self, path: Path) -> str:
        try:
            with open(path, encoding="utf-8", newline="") as fh:
                return fh.read()
        except OSError as exc:
            raise FileSystemError(f"failed to read {path}: {exc}") from exc

    def write_text(self, path: Path, text: str) -> None:
        """Write *text* to *path* with a single atomic replace.

        An existing file keeps its permission bits; a new one gets the
        default mode for the current umask.
        """
        directory = os.path.dirname(os.path.abspath(path))
        try:
            fd, tmp = tempfile.mkstemp(dir=directory, prefix=".gdpm-", suffix=".tmp")
        except OSError as exc:
            raise FileSystemError(f"failed to write {path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
                fh.write(text)
            if os.path.exists(path):
                shutil.copymode(path, tmp)
            else:
                os.chmod(tmp, 0o666 & ~_current_umask())
            os.replace(tmp, path)
        except OSError as exc:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise FileSystemError(f"failed to write {path}: {exc}") from exc


def _current_umask() -> int:
    # os.umask can only be read by setting it
    mask = os.umask(0)
    os.umask(mask)
    return mask
