"""Content fingerprints for move detection.

A fingerprint is MD5 over the decimal file size, the first `window` bytes
and, for files larger than the window, the last `window` bytes. It never
depends on the path, so a renamed or relocated file keeps its fingerprint.
It is not an integrity checksum.
"""
import hashlib
import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 16 * 1024


def calculate_fingerprint(file_path: Union[str, Path], window: int = DEFAULT_WINDOW) -> str:
    """Fingerprint a file without reading all of it.

    Returns an empty string if the file is missing or unreadable; callers
    must treat that as "unavailable", never as a match key.
    """
    path = Path(file_path)
    try:
        size = path.stat().st_size
        with open(path, "rb") as f:
            head = f.read(window)
            tail = b""
            if size > window:
                f.seek(size - window)
                tail = f.read(window)
    except OSError as e:
        logger.warning(f"Failed to fingerprint {path}: {e}")
        return ""

    digest = hashlib.md5()
    digest.update(str(size).encode("ascii"))
    digest.update(head)
    if size > window:
        digest.update(tail)
    return digest.hexdigest()
