# cheatsync Utilities Module
# Helper functions for path handling and content hashing

from cheatsync.utils.hashing import content_hash, truncated_digest
from cheatsync.utils.paths import atomic_write, ensure_dir

__all__ = [
    # Paths
    "ensure_dir",
    "atomic_write",
    # Hashing
    "content_hash",
    "truncated_digest",
]
