# cheatsync Device Identity
# Stable per-installation identifier stored beside the local data

import socket
import time
from pathlib import Path

from cheatsync.utils.hashing import truncated_digest
from cheatsync.utils.paths import ensure_dir

DEVICE_ID_FILE = ".device_id"
DEVICE_ID_BYTES = 16


def generate_device_id() -> str:
    """Derive a new identity from the host name and a nanosecond timestamp."""
    data = f"{socket.gethostname()}-{time.time_ns()}"
    return truncated_digest(data, DEVICE_ID_BYTES)


def get_or_create_device_id(storage_dir: Path) -> str:
    """
    Return the device identity stored in ``storage_dir``, creating it once.

    An existing identity file is returned verbatim. Otherwise a new identity
    is generated, written and returned.

    Args:
        storage_dir: Local data directory (created if missing).

    Returns:
        32-character hex device identity.

    Raises:
        OSError: If the directory or the identity file cannot be written.
    """
    device_file = storage_dir / DEVICE_ID_FILE

    if device_file.is_file():
        return device_file.read_text(encoding="utf-8")

    device_id = generate_device_id()
    ensure_dir(storage_dir)
    device_file.write_text(device_id, encoding="utf-8")
    return device_id
