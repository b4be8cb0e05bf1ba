# cheatsync Conflicts
# Conflict detection between replicas and per-item resolution policies

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from cheatsync.sync.snapshot import (
    CheatSheet,
    Note,
    Shortcut,
    Snapshot,
    format_timestamp,
    parse_timestamp,
    utcnow,
)

SyncValue = Union[Note, CheatSheet]

REMOTE_BANNER = "\n\n--- Remote Version ---\n\n"


class ItemType(str, Enum):
    """Kinds of items that can conflict."""

    NOTE = "note"
    CHEAT_SHEET = "cheat_sheet"


class Resolution(str, Enum):
    """How a conflict is settled."""

    KEEP_LOCAL = "keep_local"
    KEEP_REMOTE = "keep_remote"
    MERGE = "merge"
    SKIP = "skip"

    @property
    def code(self) -> int:
        """Integer code used on the wire."""
        return _RESOLUTION_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> "Resolution":
        for resolution, value in _RESOLUTION_CODES.items():
            if value == code:
                return resolution
        raise ValueError(f"Unknown resolution code: {code}")


_RESOLUTION_CODES = {
    Resolution.KEEP_LOCAL: 0,
    Resolution.KEEP_REMOTE: 1,
    Resolution.MERGE: 2,
    Resolution.SKIP: 3,
}

_VALUE_TYPES: dict[ItemType, type] = {
    ItemType.NOTE: Note,
    ItemType.CHEAT_SHEET: CheatSheet,
}


@dataclass
class ConflictItem:
    """
    Two diverging versions of the same logical item.

    Matched by stable ID; ``timestamp`` is when the divergence was detected.
    """

    type: ItemType
    id: str
    local: SyncValue
    remote: SyncValue
    timestamp: datetime = field(default_factory=utcnow)

    @property
    def local_updated(self) -> Optional[datetime]:
        return self.local.updated_at

    @property
    def remote_updated(self) -> Optional[datetime]:
        return self.remote.updated_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "id": self.id,
            "local": self.local.to_dict(),
            "remote": self.remote.to_dict(),
            "timestamp": format_timestamp(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConflictItem":
        item_type = ItemType(data["type"])
        value_type = _VALUE_TYPES[item_type]
        return cls(
            type=item_type,
            id=data["id"],
            local=value_type.from_dict(data.get("local") or {}),
            remote=value_type.from_dict(data.get("remote") or {}),
            timestamp=parse_timestamp(data.get("timestamp")) or utcnow(),
        )


def _diverging(item_type: ItemType, local: list, remote: list, detected_at: datetime) -> list[ConflictItem]:
    remote_by_id = {item.key: item for item in remote}
    conflicts: list[ConflictItem] = []

    for local_item in local:
        remote_item = remote_by_id.get(local_item.key)
        if remote_item is None:
            continue
        if local_item.updated_at != remote_item.updated_at:
            conflicts.append(
                ConflictItem(
                    type=item_type,
                    id=local_item.key,
                    local=local_item,
                    remote=remote_item,
                    timestamp=detected_at,
                )
            )

    return conflicts


def detect_conflicts(local: Optional[Snapshot], remote: Optional[Snapshot]) -> list[ConflictItem]:
    """
    Find items present in both snapshots whose update times differ.

    Skew in either direction counts. Items present on one side only are not
    conflicts; the merge step reconciles them.

    Args:
        local: Local snapshot.
        remote: Remote snapshot.

    Returns:
        Conflicts ordered notes first, then cheat sheets, in local order.
    """
    if local is None or remote is None:
        return []

    detected_at = utcnow()
    conflicts = _diverging(ItemType.NOTE, local.notes, remote.notes, detected_at)
    conflicts.extend(_diverging(ItemType.CHEAT_SHEET, local.cheat_sheets, remote.cheat_sheets, detected_at))
    return conflicts


def _is_after(a: Optional[datetime], b: Optional[datetime]) -> bool:
    if a is None:
        return False
    if b is None:
        return True
    return a > b


def merge_tags(local: list[str], remote: list[str]) -> list[str]:
    """Union of two tag lists, sorted."""
    return sorted(set(local) | set(remote))


def merge_shortcuts(local: list[Shortcut], remote: list[Shortcut]) -> list[Shortcut]:
    """Union of shortcuts keyed by their key combination; local wins on duplicates."""
    merged = {s.keys: s for s in local}
    for shortcut in remote:
        merged.setdefault(shortcut.keys, shortcut)
    return list(merged.values())


def merge_notes(local: Note, remote: Note) -> Note:
    """
    Combine two versions of a note.

    Content is concatenated under a remote banner, tags and shortcuts are
    unioned and the favorite flag is OR'd. Title, app and category come from
    whichever side was updated later.
    """
    newer = remote if _is_after(remote.updated_at, local.updated_at) else local
    return Note(
        id=local.id,
        title=newer.title,
        content=f"{local.content}{REMOTE_BANNER}{remote.content}",
        app_name=newer.app_name,
        category=newer.category,
        tags=merge_tags(local.tags, remote.tags),
        created_at=local.created_at,
        updated_at=utcnow(),
        is_favorite=local.is_favorite or remote.is_favorite,
        shortcuts=merge_shortcuts(local.shortcuts, remote.shortcuts),
    )


def merge_cheat_sheets(local: CheatSheet, remote: CheatSheet) -> CheatSheet:
    """Combine two versions of a cheat sheet, mirroring ``merge_notes``."""
    newer = remote if _is_after(remote.updated_at, local.updated_at) else local
    return replace(
        newer,
        id=local.id,
        description=f"{local.description}{REMOTE_BANNER}{remote.description}",
        created_at=local.created_at,
        updated_at=utcnow(),
        tags=merge_tags(local.tags, remote.tags),
    )


def resolve_conflict(conflict: ConflictItem, resolution: Resolution) -> Optional[SyncValue]:
    """
    Apply a resolution policy to one conflict.

    Args:
        conflict: The diverging pair.
        resolution: Policy to apply.

    Returns:
        The surviving value, or None for ``skip`` (conflict stays pending).
    """
    if resolution == Resolution.KEEP_LOCAL:
        return conflict.local
    if resolution == Resolution.KEEP_REMOTE:
        return conflict.remote
    if resolution == Resolution.MERGE:
        if conflict.type == ItemType.NOTE:
            return merge_notes(conflict.local, conflict.remote)
        return merge_cheat_sheets(conflict.local, conflict.remote)
    if resolution == Resolution.SKIP:
        return None
    raise ValueError(f"Unknown resolution: {resolution}")


def determine_auto_resolution(conflict: ConflictItem) -> Resolution:
    """
    Last-writer-wins.

    Keep local when its update time is strictly later; otherwise keep remote.
    Equal timestamps keep local.
    """
    if _is_after(conflict.local_updated, conflict.remote_updated):
        return Resolution.KEEP_LOCAL
    if conflict.local_updated == conflict.remote_updated:
        return Resolution.KEEP_LOCAL
    return Resolution.KEEP_REMOTE


def auto_resolve(conflicts: list[ConflictItem]) -> list[tuple[ConflictItem, Resolution]]:
    """Pick the last-writer-wins resolution for every conflict."""
    return [(conflict, determine_auto_resolution(conflict)) for conflict in conflicts]
