# cheatsync Snapshot Model
# Notes, app definitions, cheat sheets and the snapshot bundle exchanged with backends

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

SNAPSHOT_VERSION = "1.0"

# Zero time some backends send for "never"
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an RFC 3339 timestamp.

    Accepts a trailing ``Z``, naive values (taken as UTC) and datetimes.
    The zero time ``0001-01-01T00:00:00Z`` and empty values map to None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    if parsed == _ZERO_TIME:
        return None
    return parsed


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime as RFC 3339, or None."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


@dataclass
class Shortcut:
    """A single keyboard shortcut."""

    keys: str
    description: str = ""
    category: str = ""
    tags: list[str] = field(default_factory=list)
    platform: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "keys": self.keys,
            "description": self.description,
            "category": self.category,
            "tags": list(self.tags),
        }
        if self.platform:
            data["platform"] = self.platform
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Shortcut":
        return cls(
            keys=data.get("keys", ""),
            description=data.get("description", ""),
            category=data.get("category", ""),
            tags=list(data.get("tags") or []),
            platform=data.get("platform", ""),
        )


@dataclass
class App:
    """A custom application definition with its shortcuts."""

    name: str
    description: str = ""
    categories: list[str] = field(default_factory=list)
    shortcuts: list[Shortcut] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)
    version: str = ""

    @property
    def key(self) -> str:
        """Stable key used for matching across replicas."""
        return self.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "categories": list(self.categories),
            "shortcuts": [s.to_dict() for s in self.shortcuts],
            "metadata": dict(self.metadata),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "App":
        return cls(
            name=data.get("name", ""),
            description=data.get("description", ""),
            categories=list(data.get("categories") or []),
            shortcuts=[Shortcut.from_dict(s) for s in data.get("shortcuts") or []],
            metadata=dict(data.get("metadata") or {}),
            version=data.get("version", ""),
        )


@dataclass
class Note:
    """A personal note, optionally attached to an app."""

    id: str
    title: str = ""
    content: str = ""
    app_name: str = ""
    category: str = ""
    tags: list[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_favorite: bool = False
    shortcuts: list[Shortcut] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.id

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "app_name": self.app_name,
            "category": self.category,
            "tags": list(self.tags),
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
            "is_favorite": self.is_favorite,
        }
        if self.shortcuts:
            data["shortcuts"] = [s.to_dict() for s in self.shortcuts]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Note":
        return cls(
            id=data.get("id", ""),
            title=data.get("title", ""),
            content=data.get("content", ""),
            app_name=data.get("app_name", ""),
            category=data.get("category", ""),
            tags=list(data.get("tags") or []),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
            is_favorite=bool(data.get("is_favorite", False)),
            shortcuts=[Shortcut.from_dict(s) for s in data.get("shortcuts") or []],
        )


@dataclass
class CheatSheet:
    """A cheat sheet downloaded from an online repository."""

    id: str
    name: str = ""
    description: str = ""
    app: App = field(default_factory=lambda: App(name=""))
    repository: str = ""
    downloads: int = 0
    rating: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    tags: list[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.id

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "app": self.app.to_dict(),
            "repository": self.repository,
            "downloads": self.downloads,
            "rating": self.rating,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CheatSheet":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            description=data.get("description", ""),
            app=App.from_dict(data.get("app") or {}),
            repository=data.get("repository", ""),
            downloads=int(data.get("downloads") or 0),
            rating=float(data.get("rating") or 0.0),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
            tags=list(data.get("tags") or []),
        )


@dataclass
class Snapshot:
    """
    Complete exported state of one replica.

    The checksum covers every other field and must be recomputed before the
    snapshot is pushed or persisted.
    """

    version: str = SNAPSHOT_VERSION
    timestamp: Optional[datetime] = None
    device_id: str = ""
    apps: list[App] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
    cheat_sheets: list[CheatSheet] = field(default_factory=list)
    checksum: str = ""

    @classmethod
    def empty(cls) -> "Snapshot":
        """Snapshot of a backend that holds no data yet."""
        return cls(version="")

    @property
    def is_empty(self) -> bool:
        return not (self.apps or self.notes or self.cheat_sheets)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "version": self.version,
            "timestamp": format_timestamp(self.timestamp),
            "device_id": self.device_id,
            "apps": [a.to_dict() for a in self.apps],
            "notes": [n.to_dict() for n in self.notes],
            "cheat_sheets": [c.to_dict() for c in self.cheat_sheets],
            "checksum": self.checksum,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "Snapshot":
        """Create from dictionary."""
        if not data:
            return cls.empty()
        return cls(
            version=data.get("version", ""),
            timestamp=parse_timestamp(data.get("timestamp")),
            device_id=data.get("device_id", ""),
            apps=[App.from_dict(a) for a in data.get("apps") or []],
            notes=[Note.from_dict(n) for n in data.get("notes") or []],
            cheat_sheets=[CheatSheet.from_dict(c) for c in data.get("cheat_sheets") or []],
            checksum=data.get("checksum", ""),
        )
