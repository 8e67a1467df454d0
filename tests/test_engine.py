"""Tests for the port discovery engine."""

import asyncio

import pytest

from devports.config import Settings
from devports.console import DiagnosticLog
from devports.engine import PortEngine
from devports.grouping import DEV_KEY, SYSTEM_KEY, ViewState
from devports.models import Category, FilterMode, GroupBy, ListeningSocket, PortStatus
from devports.system import ProcessKillError

from fakes import FakeFallback, FakeFileSystem, FakePrimary


def _sock(port, pid=1, name="node", cmd=""):
    return ListeningSocket(port=port, pid=pid, process_name=name, command_line=cmd)


class SlowPrimary(FakePrimary):
    """Primary backend that takes a while to answer."""

    async def listening_sockets(self):
        await asyncio.sleep(0.05)
        return await super().listening_sockets()


class BrokenScanner:
    """Scanner whose scan raises unexpectedly."""

    def __init__(self):
        self.diagnostics = DiagnosticLog()

    async def scan(self):
        raise RuntimeError("backend exploded")


def test_label_override_is_dev(make_engine):
    """Test that a labeled port is dev without other hints."""
    engine = make_engine(
        [_sock(3000, cmd="node dist/main.js")],
        settings=Settings(port_labels={3000: "X"}),
        roots=[],
    )

    snapshot = asyncio.run(engine.scan())

    assert snapshot.records[0].category == Category.DEV


def test_plain_node_is_system(make_engine):
    """Test that a runtime without dev hints or workspace tie-in is system."""
    engine = make_engine([_sock(9100, cmd="node server.js")], roots=[])

    snapshot = asyncio.run(engine.scan())

    assert snapshot.records[0].category == Category.SYSTEM
    assert snapshot.records[0].project is None


def test_non_dev_process_is_system(make_engine):
    """Test that an unrecognized process stays system in strict mode too."""
    engine = make_engine(
        [_sock(9200, name="svchost.exe", cmd="C:\\Windows\\svchost.exe -k /home/u/app")],
        settings=Settings(strict_workspace=True),
    )

    snapshot = asyncio.run(engine.scan())

    assert snapshot.records[0].category == Category.SYSTEM


def test_workspace_process_gets_project(make_engine):
    """Test working directory resolution and framework detection."""
    engine = make_engine([_sock(9300, cmd="node /home/u/app/server.js")])

    snapshot = asyncio.run(engine.scan())

    record = snapshot.records[0]
    assert record.category == Category.DEV
    assert record.workspace_folder == "/home/u/app"
    assert record.project is not None
    assert record.project.name == "app"
    assert record.project.framework == "Next.js"


def test_dev_command_outside_workspace_gets_project(make_engine):
    """Test token-walk resolution for a dev server outside the roots."""
    engine = make_engine(
        [_sock(5000, 7, "python3", "python3 /home/u/api/app.py --reload")], roots=[]
    )

    record = asyncio.run(engine.scan()).records[0]

    assert record.workspace_folder == "/home/u/api"
    assert record.project.framework == "Flask"


def test_system_records_skip_detection(make_engine):
    """Test that system records never get a project."""
    engine = make_engine([_sock(5432, 3, "postgres", "/home/u/app/pg")], roots=[])

    record = asyncio.run(engine.scan()).records[0]

    assert record.category == Category.SYSTEM
    assert record.project is None


def test_detection_failure_is_diagnosed(make_engine):
    """Test that a broken manifest never aborts the scan."""
    fs = FakeFileSystem(files={"/home/u/app/package.json": "{not json"})
    engine = make_engine(
        [_sock(3000, cmd="node /home/u/app/server.js"), _sock(8000, 2, "python3")],
        filesystem=fs,
    )

    snapshot = asyncio.run(engine.scan())

    assert len(snapshot.records) == 2
    assert all(r.project is None for r in snapshot.records)
    sources = [d.source for d in engine.diagnostics]
    assert "detection" in sources


def test_fallback_backend_records(make_engine):
    """Test that fallback rows flow through classification."""
    engine = make_engine(
        primary=FakePrimary(error=PermissionError("denied")),
        fallback=FakeFallback([_sock(5173, 4, "node", "node vite")]),
    )

    snapshot = asyncio.run(engine.scan())

    assert snapshot.backend == "netstat"
    assert snapshot.records[0].category == Category.DEV


def test_failed_scan_publishes_empty_snapshot(make_engine):
    """Test that a total scan failure yields an empty, scanned snapshot."""
    engine = make_engine(
        primary=FakePrimary(error=OSError("no psutil")),
        fallback=FakeFallback(error=OSError("no tools")),
    )

    snapshot = asyncio.run(engine.scan())

    assert snapshot.empty
    assert snapshot.backend is None
    assert engine.last_outcome.failed
    assert engine.current_view().state == ViewState.NO_PORTS


def test_scan_is_single_flight(make_engine):
    """Test that overlapping scans share one backend call."""
    primary = SlowPrimary([_sock(3000)])
    engine = make_engine(primary=primary)

    async def scenario():
        results = await asyncio.gather(engine.scan(), engine.scan(), engine.scan())
        assert not engine.scanning
        await engine.scan()
        return results

    results = asyncio.run(scenario())

    assert results[0] is results[1] is results[2]
    assert primary.calls == 2


def test_show_only_workspace(make_engine):
    """Test the workspace-only socket filter."""
    engine = make_engine(
        [_sock(3000, cmd="node /home/u/app/server.js"), _sock(22, 2, "sshd", "/usr/sbin/sshd")],
        settings=Settings(show_only_workspace=True),
    )

    snapshot = asyncio.run(engine.scan())

    assert [r.port for r in snapshot.records] == [3000]


def test_show_only_workspace_without_roots(make_engine):
    """Test that the workspace filter is inactive without paths."""
    engine = make_engine(
        [_sock(3000), _sock(22, 2, "sshd")],
        settings=Settings(show_only_workspace=True),
        roots=[],
    )

    assert len(asyncio.run(engine.scan()).records) == 2


def test_hide_system_processes_keeps_favorites(make_engine, mock_db):
    """Test that hidden system ports still show when favorited."""
    mock_db.add_favorite(22)
    engine = make_engine(
        [_sock(3000), _sock(22, 2, "sshd"), _sock(631, 3, "cupsd")],
        settings=Settings(show_system_processes=False),
    )

    snapshot = asyncio.run(engine.scan())

    assert sorted(r.port for r in snapshot.records) == [22, 3000]


def test_current_view_groups(make_engine):
    """Test the default category view and the filter state."""
    engine = make_engine([_sock(3000), _sock(631, 3, "cupsd")])
    assert engine.current_view().state == ViewState.NOT_SCANNED

    asyncio.run(engine.scan())
    view = engine.current_view()
    assert [g.key for g in view.groups] == [DEV_KEY, SYSTEM_KEY]

    engine.set_filter(FilterMode.DEV)
    assert [r.port for r in engine.current_view().records] == [3000]

    engine.set_search_term("cups")
    assert engine.current_view().state == ViewState.NO_MATCHES
    assert engine.current_view(search_term="", filter_mode=FilterMode.NONE).records


def test_current_view_custom_groups(make_engine):
    """Test grouping by custom groups through the engine."""
    engine = make_engine(
        [_sock(8000, 1, "python3"), _sock(4321, 2, "java")],
        settings=Settings(group_by=GroupBy.GROUP, groups={"Backend": [5000, 8000]}),
    )
    asyncio.run(engine.scan())

    view = engine.current_view()

    assert [r.port for r in view.group("Backend").records] == [8000]
    assert [r.port for r in view.groups[-1].records] == [4321]


def test_toggle_favorite_updates_snapshot(make_engine):
    """Test that favorites toggle on the held records."""
    engine = make_engine([_sock(3000), _sock(3000, 2)])
    asyncio.run(engine.scan())

    assert engine.toggle_favorite(3000)
    assert all(r.is_favorite for r in engine.snapshot.records)
    assert not engine.toggle_favorite(3000)
    assert not any(r.is_favorite for r in engine.snapshot.records)


def test_rescan_tracks_status_and_history(make_engine):
    """Test lifecycle status and history across scans."""
    primary = FakePrimary([_sock(3000)])
    engine = make_engine(primary=primary)
    asyncio.run(engine.scan())

    primary.sockets = [_sock(3000), _sock(5173, 2)]
    snapshot = asyncio.run(engine.scan())

    status = {r.port: r.status for r in snapshot.records}
    assert status == {3000: PortStatus.STABLE, 5173: PortStatus.NEW}
    assert [e.port for e in engine.history()] == [5173]
    assert engine.analytics().total_ports == 2


def test_auto_refresh_cycles(make_engine):
    """Test that auto-refresh scans on every tick."""
    primary = FakePrimary([_sock(3000)])
    engine = make_engine(primary=primary)
    seen = []

    asyncio.run(engine.run_auto_refresh(interval=0.01, on_snapshot=seen.append, max_cycles=3))

    assert primary.calls == 3
    assert len(seen) == 3


def test_auto_refresh_disabled(make_engine):
    """Test that a zero interval never scans."""
    primary = FakePrimary([_sock(3000)])
    engine = make_engine(primary=primary)

    asyncio.run(engine.run_auto_refresh())

    assert primary.calls == 0


def test_auto_refresh_survives_failures(mock_db, fake_fs):
    """Test that a failing tick is diagnosed and the loop goes on."""
    engine = PortEngine(db=mock_db, scanner=BrokenScanner(), filesystem=fake_fs)

    asyncio.run(engine.run_auto_refresh(interval=0.01, max_cycles=2))

    assert [d.source for d in engine.diagnostics] == ["engine", "engine"]


def test_start_and_stop_auto_refresh(make_engine):
    """Test the background refresh task."""
    primary = FakePrimary([_sock(3000)])
    engine = make_engine(primary=primary)

    async def scenario():
        task = engine.start_auto_refresh(interval=0.01)
        await asyncio.sleep(0.05)
        engine.stop_auto_refresh()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert primary.calls >= 1


def test_kill_process_invalid_pid(make_engine):
    """Test that invalid PIDs are rejected before any rescan."""
    primary = FakePrimary([_sock(3000)])
    engine = make_engine(primary=primary)

    with pytest.raises(ProcessKillError, match="Invalid PID"):
        asyncio.run(engine.kill_process(0))

    assert primary.calls == 0
