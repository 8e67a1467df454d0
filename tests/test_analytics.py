"""Tests for analytics."""

from datetime import datetime, timedelta

from devports.analytics import compute_analytics, most_used_ports
from devports.models import Category, HistoryAction, HistoryEntry, PortRecord, ProjectInfo

T0 = datetime(2026, 1, 1, 9, 0, 0)


def _entry(port, minutes):
    return HistoryEntry(
        port=port,
        pid=1,
        process_name="node",
        timestamp=T0 + timedelta(minutes=minutes),
        action=HistoryAction.STARTED,
    )


def test_compute_analytics_totals():
    """Test current status counters."""
    records = [
        PortRecord(3000, 1, "node", "", Category.DEV, is_favorite=True),
        PortRecord(5432, 2, "postgres", "", Category.SYSTEM),
        PortRecord(8000, 3, "python3", "", Category.DEV),
    ]

    stats = compute_analytics(records, [])

    assert stats.total_ports == 3
    assert stats.active_dev == 2
    assert stats.system_ports == 1
    assert stats.favorite_count == 1
    assert round(stats.dev_share, 2) == 0.67


def test_compute_analytics_empty():
    """Test analytics with nothing observed."""
    stats = compute_analytics([], [])
    assert stats.total_ports == 0
    assert stats.dev_share == 0.0
    assert stats.most_used_ports == []
    assert stats.recent_activity == []


def test_most_used_ports_ranking():
    """Test ranking by history count with labels from live records."""
    history = [_entry(3000, 0), _entry(3000, 1), _entry(3000, 2), _entry(8000, 3)]
    records = [
        PortRecord(
            3000, 1, "node", "", Category.DEV,
            project=ProjectInfo("app", "/home/u/app", "Next.js"),
        ),
        PortRecord(5173, 2, "node", "", Category.DEV),
    ]

    usage = most_used_ports(records, history)

    assert [(u.port, u.count) for u in usage] == [(3000, 3), (5173, 1), (8000, 1)]
    assert usage[0].label == "Next.js"
    assert usage[1].label == "node"
    assert usage[2].label == "Unknown"


def test_recent_activity_newest_first():
    """Test that recent activity is limited and reversed."""
    history = [_entry(1000 + i, i) for i in range(15)]
    stats = compute_analytics([], history)
    assert len(stats.recent_activity) == 10
    assert stats.recent_activity[0].port == 1014
