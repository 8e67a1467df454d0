"""Filesystem query capability used by the resolver and project detector."""

import os
from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    """Minimal read-only filesystem interface."""

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def read_text(self, path: str) -> str: ...


class LocalFileSystem:
    """FileSystem backed by the local disk.

    Existence checks never raise: any OS error counts as "does not exist".
    """

    def exists(self, path: str) -> bool:
        try:
            return os.path.exists(path)
        except (OSError, ValueError):
            return False

    def is_dir(self, path: str) -> bool:
        try:
            return os.path.isdir(path)
        except (OSError, ValueError):
            return False

    def read_text(self, path: str) -> str:
        return Path(path).read_text(encoding="utf-8", errors="replace")
