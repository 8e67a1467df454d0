"""Tests for search, filtering and grouping."""

from devports.grouping import (
    DEV_KEY,
    FAVORITES_KEY,
    OUTSIDE_KEY,
    SYSTEM_KEY,
    UNGROUPED_KEY,
    ViewState,
    build_view,
    filter_records,
    group_records,
)
from devports.models import (
    Category,
    FilterMode,
    GroupBy,
    PortRecord,
    ProjectInfo,
    ViewMode,
)


def _record(port, pid=1, name="node", category=Category.DEV, favorite=False, cmd="", folder=None, project=None):
    return PortRecord(
        port=port,
        pid=pid,
        process_name=name,
        command_line=cmd,
        category=category,
        is_favorite=favorite,
        workspace_folder=folder,
        project=project,
    )


RECORDS = [
    _record(
        3000,
        cmd="node /home/u/app/node_modules/.bin/next dev",
        folder="/home/u/app",
        project=ProjectInfo("app", "/home/u/app", "Next.js"),
    ),
    _record(8000, 11, "python3", favorite=True, cmd="python3 manage.py runserver", folder="/home/u/api"),
    _record(5432, 12, "postgres", Category.SYSTEM, cmd="/usr/lib/postgresql/bin/postgres"),
    _record(22, 13, "sshd", Category.SYSTEM, favorite=True),
    _record(631, 14, "", Category.SYSTEM),
]


def test_search_matches_fields():
    """Test search on port, process, project name and command line."""
    assert [r.port for r in filter_records(RECORDS, "543")] == [5432]
    assert [r.port for r in filter_records(RECORDS, "PYTHON")] == [8000]
    assert [r.port for r in filter_records(RECORDS, "app")] == [3000]
    assert [r.port for r in filter_records(RECORDS, "runserver")] == [8000]
    assert filter_records(RECORDS, "zzz-nothing") == []


def test_search_is_monotonic():
    """Test that a non-empty term never yields more than the empty term."""
    everything = filter_records(RECORDS, "")
    for term in ("0", "node", "sys", "usr", "x"):
        assert len(filter_records(RECORDS, term)) <= len(everything)


def test_filter_modes():
    """Test each filter mode."""
    assert [r.port for r in filter_records(RECORDS, filter_mode=FilterMode.FAVORITES)] == [22, 8000]
    assert [r.port for r in filter_records(RECORDS, filter_mode=FilterMode.DEV)] == [3000, 8000]
    assert [r.port for r in filter_records(RECORDS, filter_mode=FilterMode.WORKSPACE)] == [3000, 8000]
    assert len(filter_records(RECORDS, filter_mode=FilterMode.NONE)) == len(RECORDS)


def test_filter_applies_after_search():
    """Test that search and filter combine."""
    result = filter_records(RECORDS, "s", FilterMode.FAVORITES)
    assert [r.port for r in result] == [22, 8000]


def test_group_by_category_partitions():
    """Test that category buckets partition the records."""
    groups = group_records(filter_records(RECORDS), GroupBy.CATEGORY)

    assert [g.key for g in groups] == [FAVORITES_KEY, DEV_KEY, SYSTEM_KEY]
    assert [r.port for r in groups[0].records] == [22, 8000]
    assert [r.port for r in groups[1].records] == [3000]
    assert [r.port for r in groups[2].records] == [631, 5432]
    assert sum(g.count for g in groups) == len(RECORDS)

    seen = [r.key for g in groups for r in g.records]
    assert len(seen) == len(set(seen))


def test_group_by_port_matches_category():
    """Test that port grouping uses the category buckets."""
    by_port = group_records(filter_records(RECORDS), GroupBy.PORT)
    by_category = group_records(filter_records(RECORDS), GroupBy.CATEGORY)
    assert by_port == by_category


def test_group_by_category_omits_empty_buckets():
    """Test that empty buckets are dropped."""
    groups = group_records([_record(3000)], GroupBy.CATEGORY)
    assert [g.key for g in groups] == [DEV_KEY]


def test_group_by_process():
    """Test one bucket per process name with an Unknown fallback."""
    records = filter_records(RECORDS + [_record(3001, 20)])
    groups = group_records(records, GroupBy.PROCESS)

    counts = {g.label: g.count for g in groups}
    assert counts == {"sshd": 1, "Unknown": 1, "node": 2, "python3": 1, "postgres": 1}


def test_group_by_custom_group():
    """Test custom groups plus the Ungrouped bucket."""
    records = [_record(8000), _record(4321, 2)]
    groups = group_records(records, GroupBy.GROUP, {"Backend": [5000, 8000], "Empty": [1]})

    assert [g.key for g in groups] == ["Backend", UNGROUPED_KEY]
    assert [r.port for r in groups[0].records] == [8000]
    assert groups[1].label == "Ungrouped"
    assert [r.port for r in groups[1].records] == [4321]


def test_group_by_custom_group_without_groups():
    """Test that everything is ungrouped without configured groups."""
    groups = group_records([_record(8000)], GroupBy.GROUP, None)
    assert [g.key for g in groups] == [UNGROUPED_KEY]


def test_group_by_workspace():
    """Test workspace buckets plus Outside Workspace."""
    groups = group_records(filter_records(RECORDS), GroupBy.WORKSPACE)

    labels = {g.key: g.label for g in groups}
    assert labels[OUTSIDE_KEY] == "Outside Workspace"
    assert labels["/home/u/app"] == "app"
    assert labels["/home/u/api"] == "api"
    assert {g.key: g.count for g in groups}[OUTSIDE_KEY] == 3


def test_build_view_states():
    """Test placeholders for unscanned, empty and filtered-out views."""
    assert build_view([], scanned=False).state == ViewState.NOT_SCANNED
    empty = build_view([], scanned=True)
    assert empty.state == ViewState.NO_PORTS
    assert empty.placeholder == "No listening ports found"

    filtered = build_view(RECORDS, search_term="zzz")
    assert filtered.state == ViewState.NO_MATCHES
    assert filtered.placeholder == "No ports match current filter"

    ok = build_view(RECORDS)
    assert ok.state == ViewState.OK
    assert ok.placeholder is None


def test_build_view_list_mode_bypasses_grouping():
    """Test that list mode returns a flat sorted list."""
    view = build_view(RECORDS, view_mode=ViewMode.LIST)
    assert view.groups == ()
    assert [r.port for r in view.records] == [22, 631, 3000, 5432, 8000]


def test_build_view_is_idempotent():
    """Test that identical arguments give identical views."""
    args = dict(search_term="o", filter_mode=FilterMode.NONE, group_by=GroupBy.PROCESS)
    assert build_view(RECORDS, **args) == build_view(RECORDS, **args)


def test_build_view_does_not_mutate_records():
    """Test that views never change the input records."""
    before = list(RECORDS)
    build_view(RECORDS, search_term="node", group_by=GroupBy.WORKSPACE)
    assert RECORDS == before
