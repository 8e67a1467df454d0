"""Usage analytics over the current snapshot and history."""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from .models import Category, HistoryEntry, PortRecord


@dataclass
class PortUsage:
    """How often a port shows up in history."""

    port: int
    count: int
    label: str


@dataclass
class PortAnalytics:
    """Aggregated statistics for reporting."""

    total_ports: int
    active_dev: int
    system_ports: int
    favorite_count: int
    most_used_ports: list[PortUsage]
    recent_activity: list[HistoryEntry]  # Newest first

    @property
    def dev_share(self) -> float:
        """Fraction of ports classified dev (0.0 when there are none)."""
        return self.active_dev / self.total_ports if self.total_ports else 0.0


def compute_analytics(
    records: Sequence[PortRecord],
    history: Sequence[HistoryEntry],
    top: int = 10,
    recent: int = 10,
) -> PortAnalytics:
    """Compute analytics from current records and the history log.

    Args:
        records: Current snapshot records
        history: History entries, oldest first
        top: Number of most-used ports to report
        recent: Number of recent history entries to report

    Returns:
        PortAnalytics
    """
    return PortAnalytics(
        total_ports=len(records),
        active_dev=sum(1 for r in records if r.category == Category.DEV),
        system_ports=sum(1 for r in records if r.category == Category.SYSTEM),
        favorite_count=sum(1 for r in records if r.is_favorite),
        most_used_ports=most_used_ports(records, history, top),
        recent_activity=list(reversed(history[-recent:])) if recent else [],
    )


def most_used_ports(
    records: Sequence[PortRecord], history: Sequence[HistoryEntry], top: int = 10
) -> list[PortUsage]:
    """Rank ports by history occurrences; live ports count at least once."""
    counts = Counter(entry.port for entry in history)
    labels: dict[int, str] = {}
    for record in records:
        counts.setdefault(record.port, 1)
        if record.project:
            labels[record.port] = record.project.framework
        else:
            labels[record.port] = record.process_name or "Unknown"

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [
        PortUsage(port=port, count=count, label=labels.get(port, "Unknown"))
        for port, count in ranked[:top]
    ]
