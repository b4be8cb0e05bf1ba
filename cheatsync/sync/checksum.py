# cheatsync Snapshot Checksum
# Canonical, order-independent snapshot digests

import json
from typing import Any

from cheatsync.sync.errors import ChecksumError
from cheatsync.sync.snapshot import Snapshot
from cheatsync.utils.hashing import content_hash


def _shortcut_key(shortcut: dict[str, Any]) -> tuple[str, str]:
    return (shortcut.get("keys", ""), shortcut.get("platform", ""))


def _canonical_shortcuts(shortcuts: list[dict[str, Any]]) -> list[dict[str, Any]]:
    result = [{**s, "tags": sorted(s.get("tags") or [])} for s in shortcuts]
    return sorted(result, key=_shortcut_key)


def _canonical_app(app: dict[str, Any]) -> dict[str, Any]:
    return {
        **app,
        "categories": sorted(app.get("categories") or []),
        "shortcuts": _canonical_shortcuts(app.get("shortcuts") or []),
    }


def _canonical_note(note: dict[str, Any]) -> dict[str, Any]:
    return {
        **note,
        "tags": sorted(note.get("tags") or []),
        "shortcuts": _canonical_shortcuts(note.get("shortcuts") or []),
    }


def _canonical_cheat_sheet(sheet: dict[str, Any]) -> dict[str, Any]:
    return {
        **sheet,
        "tags": sorted(sheet.get("tags") or []),
        "app": _canonical_app(sheet.get("app") or {}),
    }


def canonical_bytes(snapshot: Snapshot) -> bytes:
    """
    Serialize a snapshot into a stable byte form.

    The checksum field is left out, collections are sorted by their stable
    key and set-like lists (tags, categories, shortcuts) are sorted, so two
    snapshots holding the same values always serialize identically.

    Raises:
        ChecksumError: If the snapshot holds values JSON cannot encode.
    """
    try:
        data = snapshot.to_dict()
        data.pop("checksum", None)
        data["apps"] = sorted(
            (_canonical_app(a) for a in data["apps"]),
            key=lambda a: str(a.get("name", "")),
        )
        data["notes"] = sorted(
            (_canonical_note(n) for n in data["notes"]),
            key=lambda n: str(n.get("id", "")),
        )
        data["cheat_sheets"] = sorted(
            (_canonical_cheat_sheet(c) for c in data["cheat_sheets"]),
            key=lambda c: str(c.get("id", "")),
        )
        return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError, AttributeError) as e:
        raise ChecksumError(f"failed to serialize snapshot: {e}") from e


def calculate_checksum(snapshot: Snapshot) -> str:
    """
    Calculate the integrity checksum of a snapshot.

    Returns:
        SHA-256 hex digest of the canonical serialization.

    Raises:
        ChecksumError: If the snapshot cannot be serialized.
    """
    return content_hash(canonical_bytes(snapshot))


def with_checksum(snapshot: Snapshot) -> Snapshot:
    """Recompute and store the checksum on a snapshot, returning it."""
    snapshot.checksum = calculate_checksum(snapshot)
    return snapshot


def verify_checksum(snapshot: Snapshot) -> bool:
    """Check that a snapshot's stored checksum matches its contents."""
    return bool(snapshot.checksum) and snapshot.checksum == calculate_checksum(snapshot)
