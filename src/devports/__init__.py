"""Devports - listening port discovery and classification for development machines."""

__version__ = "0.1.0"

from .classifier import classify, merge_port_labels
from .config import Settings, load_settings
from .db import Database
from .detection import detect_project
from .engine import PortEngine
from .grouping import View, ViewState, build_view
from .models import (
    Category,
    FilterMode,
    GroupBy,
    HistoryEntry,
    PortRecord,
    ProjectInfo,
    ViewMode,
)
from .scanner import PortScanner, ScanError
from .snapshot import Snapshot, SnapshotStore
from .system import ProcessKillError
from .workdir import WorkingDirectoryResolver

__all__ = [
    "__version__",
    "classify",
    "merge_port_labels",
    "Settings",
    "load_settings",
    "Database",
    "detect_project",
    "PortEngine",
    "View",
    "ViewState",
    "build_view",
    "Category",
    "FilterMode",
    "GroupBy",
    "HistoryEntry",
    "PortRecord",
    "ProjectInfo",
    "ViewMode",
    "PortScanner",
    "ScanError",
    "Snapshot",
    "SnapshotStore",
    "ProcessKillError",
    "WorkingDirectoryResolver",
]
