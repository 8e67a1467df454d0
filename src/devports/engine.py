"""Port discovery engine: scan, classify, detect, publish, view."""

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import replace

from .analytics import PortAnalytics, compute_analytics
from .classifier import classify, merge_port_labels
from .config import Settings
from .console import debug, warning
from .db import Database
from .detection import detect_project
from .filesystem import FileSystem, LocalFileSystem
from .grouping import View, build_view
from .models import Category, FilterMode, GroupBy, HistoryEntry, PortRecord, ViewMode
from .scanner import PortScanner, ScanOutcome, filter_workspace_sockets
from .snapshot import ScanDiff, Snapshot, SnapshotStore
from .system import terminate_process
from .workdir import WorkingDirectoryResolver

WorkspaceRootsProvider = Callable[[], Iterable[str]]
SnapshotCallback = Callable[[Snapshot], None]


class PortEngine:
    """Owns one scan pipeline and its snapshot.

    At most one scan runs at a time: callers arriving while a scan is in
    flight join it instead of starting another.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        db: Database | None = None,
        scanner: PortScanner | None = None,
        filesystem: FileSystem | None = None,
        workspace_roots: WorkspaceRootsProvider | None = None,
        max_detections: int = 8,
    ) -> None:
        """Initialize engine.

        Args:
            settings: Engine settings (defaults if None)
            db: Database for favorites and history
            scanner: Port scanner (psutil with command-line fallback by default)
            filesystem: Filesystem capability for resolution and detection
            workspace_roots: Provider of open workspace roots; defaults to
                settings.workspace_roots
            max_detections: Maximum concurrent project detections
        """
        self.settings = settings or Settings()
        self.scanner = scanner or PortScanner()
        self.diagnostics = self.scanner.diagnostics
        self.fs = filesystem or LocalFileSystem()
        self.store = SnapshotStore(db or Database(), self.settings.history_limit)
        self._workspace_roots = workspace_roots or (lambda: self.settings.workspace_roots)
        self.max_detections = max(1, max_detections)

        self.filter_mode = self.settings.filter_mode
        self.search_term = ""
        self.last_outcome: ScanOutcome | None = None
        self.last_diff: ScanDiff | None = None

        self._scan_task: asyncio.Task[Snapshot] | None = None
        self._refresh_task: asyncio.Task[None] | None = None

    @property
    def snapshot(self) -> Snapshot:
        return self.store.snapshot

    @property
    def scanning(self) -> bool:
        return self._scan_task is not None and not self._scan_task.done()

    def workspace_roots(self) -> list[str]:
        return [root for root in self._workspace_roots() if root]

    async def scan(self) -> Snapshot:
        """Scan listening ports and publish a new snapshot.

        Returns:
            The published snapshot
        """
        if self.scanning:
            debug("Scan already in progress, joining it")
        else:
            self._scan_task = asyncio.create_task(self._run_scan())
        assert self._scan_task is not None
        return await asyncio.shield(self._scan_task)

    async def _run_scan(self) -> Snapshot:
        outcome = await self.scanner.scan()
        self.last_outcome = outcome
        for message in outcome.warnings:
            warning(message)

        roots = self.workspace_roots()
        resolver = WorkingDirectoryResolver(roots, self.settings.workspace_paths, self.fs)

        sockets = outcome.sockets
        if self.settings.show_only_workspace:
            sockets = filter_workspace_sockets(
                sockets, roots + self.settings.workspace_paths
            )

        labels = merge_port_labels(self.settings.port_labels)
        records = [
            PortRecord(
                port=sock.port,
                pid=sock.pid,
                process_name=sock.process_name,
                command_line=sock.command_line,
                category=classify(
                    sock.port,
                    sock.process_name,
                    sock.command_line,
                    labels=labels,
                    workspace_roots=roots,
                    strict_workspace=self.settings.strict_workspace,
                ),
                workspace_folder=resolver.resolve(sock.command_line),
            )
            for sock in sockets
        ]
        records = await self._attach_projects(records)

        if not self.settings.show_system_processes:
            records = [
                r
                for r in records
                if r.category == Category.DEV or self.store.is_favorite(r.port)
            ]

        self.last_diff = self.store.publish(
            records, outcome.backend, record_history=not outcome.failed
        )
        debug(
            f"Scan complete via {outcome.backend or 'no backend'}: "
            f"{len(self.snapshot.records)} ports"
        )
        return self.snapshot

    async def _attach_projects(self, records: list[PortRecord]) -> list[PortRecord]:
        """Detect projects for dev records, bounded and in parallel."""
        semaphore = asyncio.Semaphore(self.max_detections)

        def on_error(path: str, exc: BaseException) -> None:
            self.diagnostics.record("detection", f"Project detection failed in {path}", exc)

        async def attach(record: PortRecord) -> PortRecord:
            if record.category != Category.DEV or not record.workspace_folder:
                return record
            async with semaphore:
                project = await asyncio.to_thread(
                    detect_project, record.workspace_folder, self.fs, on_error
                )
            return replace(record, project=project) if project else record

        return list(await asyncio.gather(*(attach(r) for r in records)))

    def current_view(
        self,
        search_term: str | None = None,
        filter_mode: FilterMode | None = None,
        group_by: GroupBy | None = None,
        view_mode: ViewMode | None = None,
    ) -> View:
        """Build a view of the current snapshot.

        Arguments left as None fall back to the engine state and settings.
        """
        return build_view(
            self.snapshot.records,
            search_term=self.search_term if search_term is None else search_term,
            filter_mode=self.filter_mode if filter_mode is None else filter_mode,
            group_by=self.settings.group_by if group_by is None else group_by,
            view_mode=self.settings.view_mode if view_mode is None else view_mode,
            groups=self.settings.groups,
            scanned=self.snapshot.scanned,
        )

    def set_filter(self, mode: FilterMode) -> None:
        self.filter_mode = mode

    def set_search_term(self, term: str) -> None:
        self.search_term = term or ""

    def toggle_favorite(self, port: int) -> bool:
        """Toggle a port's favorite flag.

        Returns:
            True if the port is now a favorite
        """
        return self.store.toggle_favorite(port)

    def history(self, limit: int | None = None) -> list[HistoryEntry]:
        return self.store.history(limit)

    def analytics(self, top: int = 10) -> PortAnalytics:
        return compute_analytics(self.snapshot.records, self.store.history(), top=top)

    async def kill_process(self, pid: int, rescan: bool = True) -> str:
        """Terminate a process, then rescan.

        Raises:
            ProcessKillError: If the process cannot be terminated
        """
        name = terminate_process(pid)
        if rescan:
            await self.scan()
        return name

    async def run_auto_refresh(
        self,
        interval: float | None = None,
        on_snapshot: SnapshotCallback | None = None,
        max_cycles: int | None = None,
    ) -> None:
        """Rescan periodically until cancelled.

        Ticks never overlap: the next sleep starts only after the scan of
        the previous tick finished.

        Args:
            interval: Seconds between scans; defaults to settings.auto_refresh,
                0 disables
            on_snapshot: Called after every published snapshot
            max_cycles: Stop after this many scans (None for forever)
        """
        interval = self.settings.auto_refresh if interval is None else interval
        if interval <= 0:
            return

        cycles = 0
        while True:
            try:
                snapshot = await self.scan()
            except Exception as e:
                self.diagnostics.record("engine", "Scheduled scan failed", e)
                warning(f"Scheduled scan failed: {e}")
            else:
                if on_snapshot is not None:
                    on_snapshot(snapshot)
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                return
            await asyncio.sleep(interval)

    def start_auto_refresh(
        self, interval: float | None = None, on_snapshot: SnapshotCallback | None = None
    ) -> asyncio.Task[None]:
        """Start the auto-refresh loop in the background, replacing any running one."""
        self.stop_auto_refresh()
        self._refresh_task = asyncio.create_task(
            self.run_auto_refresh(interval, on_snapshot)
        )
        return self._refresh_task

    def stop_auto_refresh(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
        self._refresh_task = None
