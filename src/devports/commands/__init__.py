"""Command modules for devports CLI."""

from .analytics import analytics
from .config import config
from .favorite import favorite
from .history import history
from .kill import kill
from .scan import scan
from .watch import watch

__all__ = [
    "analytics",
    "config",
    "favorite",
    "history",
    "kill",
    "scan",
    "watch",
]
