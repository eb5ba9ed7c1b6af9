"""
File Operation Utilities

Provides hashing, collision-free naming and application data directory
helpers shared by the move engine and the journal.

Author: AutoDrop Project
License: MIT
"""

import os
import sys
import hashlib
from pathlib import Path
from typing import Optional, TYPE_CHECKING

from .logger import get_logger

if TYPE_CHECKING:
    from ..core.cancellation import CancellationToken

logger = get_logger(__name__)

APP_DIR_NAME = "AutoDrop"


def get_default_data_dir() -> Path:
    """
    Get the per-user application data directory.

    Uses %APPDATA% on Windows, otherwise $XDG_DATA_HOME or ~/.local/share.

    Returns:
        Directory path (not created)
    """
    override = os.getenv("AUTODROP_DATA_DIR")
    if override:
        return Path(os.path.expanduser(override))

    if sys.platform == "win32" and os.getenv("APPDATA"):
        return Path(os.environ["APPDATA"]) / APP_DIR_NAME

    xdg_data = os.getenv("XDG_DATA_HOME")
    base = Path(xdg_data) if xdg_data else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME.lower()


def is_blank(value: Optional[str]) -> bool:
    """True for None, empty or whitespace-only strings."""
    return value is None or not str(value).strip()


def path_exists(path: str) -> bool:
    """True if the path is an existing file or directory."""
    return os.path.isfile(path) or os.path.isdir(path)


def calculate_file_hash(
    file_path: str,
    algorithm: str = "sha256",
    chunk_size: int = 8192,
    cancel: Optional["CancellationToken"] = None
) -> str:
    """
    Calculate hash of a file.

    Reads the file in fixed-size chunks and checks the cancellation token
    before every chunk.

    Args:
        file_path: Path to the file
        algorithm: Hash algorithm (md5, sha1, sha256, etc.)
        chunk_size: Size of chunks to read (bytes)
        cancel: Optional cancellation token

    Returns:
        Lowercase hexadecimal hash string

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If algorithm is unsupported
        OperationCancelledError: If the token is cancelled
    """
    if cancel is not None:
        cancel.raise_if_cancelled()

    if not os.path.isfile(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")

    try:
        hash_func = hashlib.new(algorithm)
    except ValueError:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")

    with open(file_path, 'rb') as f:
        while True:
            if cancel is not None:
                cancel.raise_if_cancelled()
            chunk = f.read(chunk_size)
            if not chunk:
                break
            hash_func.update(chunk)

    return hash_func.hexdigest()


def get_unique_path(destination_folder: str, name: str) -> str:
    """
    Get a path inside destination_folder that does not exist yet.

    Appends " (n)" before the extension, increasing n until the name is
    free: "a.txt" -> "a (1).txt" -> "a (2).txt".

    Args:
        destination_folder: Folder the item goes to
        name: File or folder name

    Returns:
        Collision-free path
    """
    candidate = os.path.join(destination_folder, name)
    if not path_exists(candidate):
        return candidate

    stem, suffix = os.path.splitext(name)
    counter = 1
    while True:
        candidate = os.path.join(destination_folder, f"{stem} ({counter}){suffix}")
        if not path_exists(candidate):
            logger.debug(f"Generated unique name: {os.path.basename(candidate)}")
            return candidate
        counter += 1


def ensure_directory(directory: str) -> bool:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        directory: Directory path

    Returns:
        True if directory exists or was created
    """
    try:
        Path(directory).mkdir(parents=True, exist_ok=True)
        return True
    except OSError as e:
        logger.error(f"Failed to create directory {directory}: {e}")
        return False
