"""Content digests for widget assets."""

import hashlib
from pathlib import Path

# Read size for streaming large binary assets
CHUNK_SIZE = 64 * 1024


def hash_file(file_path: Path) -> str:
    """Compute the SHA-256 digest of a file without loading it in memory.

    Args:
        file_path: File to hash

    Returns:
        Lowercase hex digest

    Raises:
        OSError: If the file cannot be opened or read
    """
    digest = hashlib.sha256()
    with Path(file_path).open("rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def hash_bytes(data: bytes) -> str:
    """Compute the SHA-256 digest of in-memory content."""
    return hashlib.sha256(data).hexdigest()
