"""Test fixtures and configuration."""

import tempfile
from pathlib import Path

import pytest

from devports.config import Settings
from devports.db import Database
from devports.engine import PortEngine
from devports.models import ListeningSocket
from devports.scanner import PortScanner

from fakes import FakeFallback, FakeFileSystem, FakePrimary


@pytest.fixture
def temp_dir():
    """Temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_db(temp_dir):
    """Database instance for tests."""
    db_path = temp_dir / "test.db"
    return Database(db_path)


@pytest.fixture
def fake_fs():
    """Filesystem with a Next.js app and a Flask api under /home/u."""
    return FakeFileSystem(
        files={
            "/home/u/app/package.json": '{"dependencies": {"next": "14.0.0", "react": "18.2.0"}}',
            "/home/u/app/server.js": "",
            "/home/u/api/requirements.txt": "Flask==3.0\nrequests\n",
            "/home/u/api/app.py": "",
        }
    )


@pytest.fixture
def make_engine(mock_db, fake_fs):
    """Factory for engines wired to fake backends and the fake filesystem."""

    def factory(
        sockets: list[ListeningSocket] | None = None,
        settings: Settings | None = None,
        roots: list[str] | None = None,
        primary=None,
        fallback=None,
        filesystem=None,
    ) -> PortEngine:
        scanner = PortScanner(
            primary=primary or FakePrimary(sockets),
            fallback=fallback or FakeFallback(),
            process_lookup=None,
        )
        workspace_roots = ["/home/u/app"] if roots is None else roots
        return PortEngine(
            settings=settings or Settings(),
            db=mock_db,
            scanner=scanner,
            filesystem=filesystem or fake_fs,
            workspace_roots=lambda: workspace_roots,
        )

    return factory
