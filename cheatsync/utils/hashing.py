# cheatsync Hashing Utilities
# Content hashing for integrity checks and identifiers

import hashlib


def content_hash(content: str | bytes, *, algorithm: str = "sha256") -> str:
    """
    Calculate hash of content.

    Args:
        content: String or bytes content.
        algorithm: Hash algorithm (default sha256).

    Returns:
        Hex digest of hash.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    hasher = hashlib.new(algorithm)
    hasher.update(content)
    return hasher.hexdigest()


def truncated_digest(content: str | bytes, size: int, *, algorithm: str = "sha256") -> str:
    """
    Hash content and hex-encode the first ``size`` bytes of the digest.

    Args:
        content: String or bytes content.
        size: Number of digest bytes to keep.
        algorithm: Hash algorithm (default sha256).

    Returns:
        Hex string of length ``2 * size``.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    return hashlib.new(algorithm, content).digest()[:size].hex()
