"""Working-directory inference from process command lines."""

import os
import re

from .filesystem import FileSystem, LocalFileSystem

_QUOTED = re.compile(r'"([^"]+)"|\'([^\']+)\'')
_QUOTE_CHARS = "'\"`"


class WorkingDirectoryResolver:
    """Infer the project directory a process runs from.

    Rules are applied in priority order, first match wins:

    1. A workspace root appearing in the command line (case-insensitive)
    2. An extra workspace path appearing in the command line; relative
       entries are resolved against the first workspace root
    3. The first quoted absolute path that exists on the filesystem
    4. For each absolute path token, the nearest existing directory
       walking upward from the token (the filesystem root excluded)

    Relative paths in a command line depend on the working directory of
    the process, which is unknown, so they never resolve.
    """

    def __init__(
        self,
        workspace_roots: list[str] | None = None,
        extra_paths: list[str] | None = None,
        filesystem: FileSystem | None = None,
    ) -> None:
        """Initialize resolver.

        Args:
            workspace_roots: Open workspace root directories
            extra_paths: Additional workspace paths (absolute or relative)
            filesystem: Filesystem query capability
        """
        self.workspace_roots = [r for r in (workspace_roots or []) if r]
        self.extra_paths = [p for p in (extra_paths or []) if p]
        self.fs = filesystem or LocalFileSystem()

    def extra_candidates(self) -> list[str]:
        """Extra workspace paths resolved against the first workspace root.

        Relative entries are dropped when there is no workspace root.
        """
        candidates = []
        for extra in self.extra_paths:
            if os.path.isabs(extra):
                candidates.append(extra)
            elif self.workspace_roots:
                candidates.append(os.path.join(self.workspace_roots[0], extra))
        return candidates

    def resolve(self, command_line: str | None) -> str | None:
        """Resolve the working directory for a command line.

        Args:
            command_line: Raw process command line

        Returns:
            Directory path, or None if no rule matches
        """
        if not command_line:
            return None
        lower = command_line.lower()

        for root in self.workspace_roots:
            if root.lower() in lower:
                return root

        for candidate in self.extra_candidates():
            if candidate.lower() in lower:
                return candidate

        for match in _QUOTED.finditer(command_line):
            candidate = (match.group(1) or match.group(2) or "").strip()
            if os.path.isabs(candidate) and self._exists(candidate):
                return candidate

        for token in command_line.split():
            path = token.strip(_QUOTE_CHARS)
            if not os.path.isabs(path):
                continue
            found = self._nearest_directory(path)
            if found:
                return found

        return None

    def _nearest_directory(self, path: str) -> str | None:
        current = path
        while current:
            parent = os.path.dirname(current)
            if parent == current:
                # Reached the filesystem root
                return None
            if self._is_dir(current):
                return current
            current = parent
        return None

    def _exists(self, path: str) -> bool:
        try:
            return self.fs.exists(path)
        except OSError:
            return False

    def _is_dir(self, path: str) -> bool:
        try:
            return self.fs.is_dir(path)
        except OSError:
            return False
