"""Celery background tasks."""
from tunevault.tasks.library import rescan_library, sweep_missing_hashes

__all__ = [
    "rescan_library",
    "sweep_missing_hashes",
]
