"""Search, filtering and grouping of port records into views."""

import os
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from .models import Category, FilterMode, GroupBy, PortRecord, ViewMode

FAVORITES_KEY = "favorites"
DEV_KEY = "dev"
SYSTEM_KEY = "system"
UNGROUPED_KEY = "__ungrouped"
OUTSIDE_KEY = "__outside__"
UNKNOWN_PROCESS_LABEL = "Unknown"


class ViewState(str, Enum):
    """Why a view has (or lacks) content."""

    OK = "ok"
    NOT_SCANNED = "not_scanned"  # No scan published yet
    NO_PORTS = "no_ports"  # The scan found nothing
    NO_MATCHES = "no_matches"  # Search or filter removed everything


PLACEHOLDERS: dict[ViewState, str] = {
    ViewState.NOT_SCANNED: "Click refresh to load ports",
    ViewState.NO_PORTS: "No listening ports found",
    ViewState.NO_MATCHES: "No ports match current filter",
}


@dataclass(frozen=True)
class Group:
    """A bucket of records in the hierarchical view."""

    key: str
    label: str
    records: tuple[PortRecord, ...]

    @property
    def count(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class View:
    """Result of applying search, filter and grouping to a record list."""

    state: ViewState
    records: tuple[PortRecord, ...] = ()  # Filtered flat list, sorted
    groups: tuple[Group, ...] = ()  # Empty in list mode
    mode: ViewMode = ViewMode.TREE

    @property
    def placeholder(self) -> str | None:
        return PLACEHOLDERS.get(self.state)

    def group(self, key: str) -> Group | None:
        return next((g for g in self.groups if g.key == key), None)


def matches_search(record: PortRecord, term: str) -> bool:
    """Case-insensitive match on port, process, project name and command line."""
    if not term:
        return True
    term = term.lower()
    project_name = record.project.name if record.project else ""
    return (
        term in str(record.port)
        or term in (record.process_name or "").lower()
        or term in project_name.lower()
        or term in (record.command_line or "").lower()
    )


def matches_filter(record: PortRecord, mode: FilterMode) -> bool:
    if mode == FilterMode.FAVORITES:
        return record.is_favorite
    if mode == FilterMode.DEV:
        return record.category == Category.DEV
    if mode == FilterMode.WORKSPACE:
        return bool(record.workspace_folder)
    return True


def filter_records(
    records: Iterable[PortRecord],
    search_term: str = "",
    filter_mode: FilterMode = FilterMode.NONE,
) -> list[PortRecord]:
    """Apply search then filter mode, sorted by port and pid.

    Args:
        records: Records to filter
        search_term: Substring to search for (empty matches everything)
        filter_mode: Filter applied after the search

    Returns:
        Matching records
    """
    return sorted(
        (
            r
            for r in records
            if matches_search(r, search_term) and matches_filter(r, filter_mode)
        ),
        key=lambda r: (r.port, r.pid),
    )


def _group_by_category(records: Sequence[PortRecord], **_: object) -> list[Group]:
    buckets = [
        (FAVORITES_KEY, "Favorites", [r for r in records if r.is_favorite]),
        (
            DEV_KEY,
            "Dev Servers",
            [r for r in records if not r.is_favorite and r.category == Category.DEV],
        ),
        (
            SYSTEM_KEY,
            "System",
            [r for r in records if not r.is_favorite and r.category == Category.SYSTEM],
        ),
    ]
    return [Group(key, label, tuple(members)) for key, label, members in buckets]


def _group_by_process(records: Sequence[PortRecord], **_: object) -> list[Group]:
    buckets: dict[str, list[PortRecord]] = {}
    for record in records:
        label = record.process_name or UNKNOWN_PROCESS_LABEL
        buckets.setdefault(label, []).append(record)
    return [Group(label, label, tuple(members)) for label, members in buckets.items()]


def _group_by_custom_group(
    records: Sequence[PortRecord],
    groups: Mapping[str, Sequence[int]] | None = None,
    **_: object,
) -> list[Group]:
    groups = groups or {}
    result = []
    grouped: set[int] = set()
    for name, ports in groups.items():
        port_set = set(ports)
        grouped |= port_set
        result.append(Group(name, name, tuple(r for r in records if r.port in port_set)))
    result.append(
        Group(
            UNGROUPED_KEY,
            "Ungrouped",
            tuple(r for r in records if r.port not in grouped),
        )
    )
    return result


def _group_by_workspace(records: Sequence[PortRecord], **_: object) -> list[Group]:
    buckets: dict[str, list[PortRecord]] = {}
    for record in records:
        buckets.setdefault(record.workspace_folder or OUTSIDE_KEY, []).append(record)
    return [
        Group(
            key,
            "Outside Workspace"
            if key == OUTSIDE_KEY
            else os.path.basename(os.path.normpath(key)) or key,
            tuple(members),
        )
        for key, members in buckets.items()
    ]


GroupingStrategy = Callable[..., list[Group]]

GROUPING_STRATEGIES: dict[GroupBy, GroupingStrategy] = {
    GroupBy.CATEGORY: _group_by_category,
    GroupBy.PORT: _group_by_category,
    GroupBy.PROCESS: _group_by_process,
    GroupBy.GROUP: _group_by_custom_group,
    GroupBy.WORKSPACE: _group_by_workspace,
}


def group_records(
    records: Sequence[PortRecord],
    group_by: GroupBy,
    groups: Mapping[str, Sequence[int]] | None = None,
) -> list[Group]:
    """Bucket records by the grouping dimension, dropping empty buckets.

    Args:
        records: Filtered, sorted records
        group_by: Grouping dimension
        groups: Custom groups (name → ports), used for GroupBy.GROUP

    Returns:
        Non-empty groups in display order
    """
    strategy = GROUPING_STRATEGIES[group_by]
    return [g for g in strategy(records, groups=groups) if g.records]


def build_view(
    records: Iterable[PortRecord],
    search_term: str = "",
    filter_mode: FilterMode = FilterMode.NONE,
    group_by: GroupBy = GroupBy.CATEGORY,
    view_mode: ViewMode = ViewMode.TREE,
    groups: Mapping[str, Sequence[int]] | None = None,
    scanned: bool = True,
) -> View:
    """Build a view over a record list without mutating it.

    Args:
        records: Current snapshot records
        search_term: Search term
        filter_mode: Filter mode
        group_by: Grouping dimension (ignored in list mode)
        view_mode: Tree (grouped) or list (flat)
        groups: Custom groups for GroupBy.GROUP
        scanned: Whether a scan has been published yet

    Returns:
        View with its state, flat records and groups
    """
    records = list(records)
    if not records:
        state = ViewState.NO_PORTS if scanned else ViewState.NOT_SCANNED
        return View(state=state, mode=view_mode)

    filtered = filter_records(records, search_term, filter_mode)
    if not filtered:
        return View(state=ViewState.NO_MATCHES, mode=view_mode)

    if view_mode == ViewMode.LIST:
        return View(state=ViewState.OK, records=tuple(filtered), mode=view_mode)

    return View(
        state=ViewState.OK,
        records=tuple(filtered),
        groups=tuple(group_records(filtered, group_by, groups)),
        mode=view_mode,
    )
