"""
File digests and sizes for uploaded archives.
"""

import hashlib
import os
from pathlib import Path

from .errors import StorageError


CHUNK_SIZE = 1024 * 1024


def checksum_file(path: str | Path, algorithm: str = "sha256", chunk_size: int = CHUNK_SIZE) -> str:
    """
    Stream a file through a hash function.

    Args:
        path: Local file to hash
        algorithm: hashlib algorithm name (default sha256)
        chunk_size: Bytes read per iteration

    Returns:
        Full hex digest

    Raises:
        StorageError: if the file cannot be read
    """
    digest = hashlib.new(algorithm)
    try:
        with open(path, "rb") as fh:
            for chunk in iter(lambda: fh.read(chunk_size), b""):
                digest.update(chunk)
    except OSError as exc:
        raise StorageError(f"Could not hash {path}: {exc}") from exc
    return digest.hexdigest()


def get_file_size(path: str | Path) -> int:
    try:
        return os.stat(path).st_size
    except OSError as exc:
        raise StorageError(f"Could not stat {path}: {exc}") from exc


def get_dir_size(path: str | Path) -> int:
    """Total size in bytes of all regular files under a directory."""
    total = 0
    for entry in Path(path).rglob("*"):
        if entry.is_file() and not entry.is_symlink():
            total += entry.stat().st_size
    return total
