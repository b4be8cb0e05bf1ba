# cheatsync Local Store
# Whole-collection JSON files for notes, app definitions and cheat sheets

import json
from pathlib import Path
from typing import Any, Callable, TypeVar

from cheatsync.sync.conflicts import SyncValue
from cheatsync.sync.errors import LocalStoreError
from cheatsync.sync.snapshot import App, CheatSheet, Note, Snapshot
from cheatsync.utils.paths import atomic_write

APPS_FILE = "apps.json"
NOTES_FILE = "notes.json"
CHEAT_SHEETS_FILE = "cheat_sheets.json"

T = TypeVar("T")


class LocalStore:
    """
    Local replica kept as one JSON array per collection.

    Collections are always read and written whole. A missing file is an
    empty collection; an unreadable or corrupt one is an error.
    """

    def __init__(self, data_dir: Path):
        """
        Initialize local store.

        Args:
            data_dir: Directory holding the collection files.
        """
        self.data_dir = data_dir

    @property
    def apps_path(self) -> Path:
        return self.data_dir / APPS_FILE

    @property
    def notes_path(self) -> Path:
        return self.data_dir / NOTES_FILE

    @property
    def cheat_sheets_path(self) -> Path:
        return self.data_dir / CHEAT_SHEETS_FILE

    def _load(self, path: Path, factory: Callable[[dict[str, Any]], T]) -> list[T]:
        if not path.exists():
            return []
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise LocalStoreError(f"Failed to read {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise LocalStoreError(f"Corrupt collection file {path}: {e}") from e

        if data is None:
            return []
        if not isinstance(data, list):
            raise LocalStoreError(f"Corrupt collection file {path}: expected a JSON array")
        try:
            return [factory(entry) for entry in data]
        except (AttributeError, TypeError, ValueError) as e:
            raise LocalStoreError(f"Corrupt collection file {path}: {e}") from e

    def _save(self, path: Path, items: list) -> None:
        content = json.dumps([item.to_dict() for item in items], indent=2, ensure_ascii=False)
        try:
            atomic_write(path, content + "\n")
        except OSError as e:
            raise LocalStoreError(f"Failed to write {path}: {e}") from e

    def load_apps(self) -> list[App]:
        return self._load(self.apps_path, App.from_dict)

    def load_notes(self) -> list[Note]:
        return self._load(self.notes_path, Note.from_dict)

    def load_cheat_sheets(self) -> list[CheatSheet]:
        return self._load(self.cheat_sheets_path, CheatSheet.from_dict)

    def save_apps(self, apps: list[App]) -> None:
        self._save(self.apps_path, apps)

    def save_notes(self, notes: list[Note]) -> None:
        self._save(self.notes_path, notes)

    def save_cheat_sheets(self, cheat_sheets: list[CheatSheet]) -> None:
        self._save(self.cheat_sheets_path, cheat_sheets)

    def load_into(self, snapshot: Snapshot) -> Snapshot:
        """Fill a snapshot's collections from disk."""
        snapshot.apps = self.load_apps()
        snapshot.notes = self.load_notes()
        snapshot.cheat_sheets = self.load_cheat_sheets()
        return snapshot

    def save_snapshot(self, snapshot: Snapshot) -> None:
        """Rewrite every collection file from a snapshot."""
        self.save_apps(snapshot.apps)
        self.save_notes(snapshot.notes)
        self.save_cheat_sheets(snapshot.cheat_sheets)

    def put_item(self, value: SyncValue) -> None:
        """Insert or replace one note or cheat sheet by ID."""
        if isinstance(value, Note):
            self.save_notes(_replace_by_key(self.load_notes(), value))
        elif isinstance(value, CheatSheet):
            self.save_cheat_sheets(_replace_by_key(self.load_cheat_sheets(), value))
        else:
            raise TypeError(f"Unsupported item type: {type(value).__name__}")


def _replace_by_key(items: list, value) -> list:
    result = []
    replaced = False
    for item in items:
        if item.key == value.key:
            result.append(value)
            replaced = True
        else:
            result.append(item)
    if not replaced:
        result.append(value)
    return result
