"""Shared data types for the port discovery engine."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Category(str, Enum):
    """Automatic classification of a listening port."""

    DEV = "dev"
    SYSTEM = "system"


class PortStatus(str, Enum):
    """Lifecycle status relative to the previous snapshot."""

    NEW = "new"
    CHANGED = "changed"
    STABLE = "stable"


class HistoryAction(str, Enum):
    """Kind of transition recorded in the history log."""

    STARTED = "started"
    STOPPED = "stopped"
    CHANGED = "changed"


class FilterMode(str, Enum):
    """Mutually exclusive view filters."""

    NONE = "none"
    FAVORITES = "favorites"
    DEV = "dev"
    WORKSPACE = "workspace"


class GroupBy(str, Enum):
    """Grouping dimension for the hierarchical view."""

    PORT = "port"
    PROCESS = "process"
    GROUP = "group"
    CATEGORY = "category"
    WORKSPACE = "workspace"


class ViewMode(str, Enum):
    """Hierarchical (tree) or flat (list) view."""

    TREE = "tree"
    LIST = "list"


@dataclass(frozen=True)
class ListeningSocket:
    """A raw listening socket as reported by a scanning backend."""

    port: int
    pid: int  # 0 when the owner is unknown
    process_name: str
    command_line: str = ""


@dataclass(frozen=True)
class ProjectInfo:
    """Project detected at a process working directory."""

    name: str  # Base name of the directory
    path: str
    framework: str


@dataclass(frozen=True)
class PortRecord:
    """One observed listening socket and its owning process."""

    port: int
    pid: int
    process_name: str
    command_line: str
    category: Category
    is_favorite: bool = False
    project: ProjectInfo | None = None
    workspace_folder: str | None = None
    status: PortStatus | None = None
    first_seen: datetime | None = None
    last_seen: datetime | None = None

    @property
    def key(self) -> tuple[int, int]:
        """Identity of the record within a single scan."""
        return (self.port, self.pid)


@dataclass(frozen=True)
class HistoryEntry:
    """An append-only history log entry."""

    port: int
    pid: int
    process_name: str
    timestamp: datetime
    action: HistoryAction
    details: str | None = None
