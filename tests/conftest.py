# cheatsync Test Fixtures
# Pytest fixtures for cheatsync tests

import tempfile
from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import yaml

from cheatsync.sync.snapshot import App, CheatSheet, Note, Shortcut, Snapshot


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("CHEATSYNC_CONFIG", raising=False)
    monkeypatch.delenv("CHEATSYNC_API_KEY", raising=False)
    return home


@pytest.fixture
def data_dir(temp_dir: Path) -> Path:
    """Local data directory (not created yet)."""
    return temp_dir / "data"


@pytest.fixture
def t0() -> datetime:
    """Fixed reference time."""
    return datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_note(t0: datetime) -> Callable[..., Note]:
    """Factory for notes updated at t0 unless told otherwise."""

    def factory(note_id: str = "n1", content: str = "content", **kwargs) -> Note:
        kwargs.setdefault("title", f"Note {note_id}")
        kwargs.setdefault("created_at", t0 - timedelta(days=1))
        kwargs.setdefault("updated_at", t0)
        return Note(id=note_id, content=content, **kwargs)

    return factory


@pytest.fixture
def make_cheat_sheet(t0: datetime) -> Callable[..., CheatSheet]:
    """Factory for cheat sheets updated at t0 unless told otherwise."""

    def factory(sheet_id: str = "cs1", **kwargs) -> CheatSheet:
        kwargs.setdefault("name", f"Sheet {sheet_id}")
        kwargs.setdefault("app", App(name="vim"))
        kwargs.setdefault("created_at", t0 - timedelta(days=1))
        kwargs.setdefault("updated_at", t0)
        return CheatSheet(id=sheet_id, **kwargs)

    return factory


@pytest.fixture
def sample_app() -> App:
    """A custom app definition with shortcuts."""
    return App(
        name="tmux",
        description="Terminal multiplexer",
        categories=["terminal", "sessions"],
        shortcuts=[
            Shortcut(keys="Ctrl+b d", description="Detach", category="sessions", tags=["basic"]),
            Shortcut(keys="Ctrl+b c", description="New window", category="windows"),
        ],
        metadata={"homepage": "https://github.com/tmux/tmux", "license": "ISC"},
        version="3.4",
    )


@pytest.fixture
def sample_snapshot(t0: datetime, make_note, make_cheat_sheet, sample_app: App) -> Snapshot:
    """Snapshot with one item of every kind."""
    return Snapshot(
        timestamp=t0,
        device_id="a" * 32,
        apps=[sample_app],
        notes=[make_note("n1", "first", tags=["b", "a"]), make_note("n2", "second")],
        cheat_sheets=[make_cheat_sheet("cs1", tags=["vim"])],
    )


@pytest.fixture
def sample_config(temp_dir: Path) -> dict:
    """Create sample configuration dict."""
    return {
        "data_dir": str(temp_dir / "data"),
        "backend": {
            "endpoint": "https://sync.example.com/api/",
            "api_key": "secret-token",
            "timeout": 10,
        },
        "auto_sync": {"enabled": True, "interval_minutes": 5},
        "merge_mode": "snapshot",
        "output": {"verbose": False, "colored": False},
    }


@pytest.fixture
def config_file(temp_home: Path, sample_config: dict) -> Path:
    """Create a configuration file."""
    config_dir = temp_home / ".config" / "cheatsync"
    config_dir.mkdir(parents=True)
    config_path = config_dir / "config.yaml"

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(sample_config, f, default_flow_style=False)

    return config_path
