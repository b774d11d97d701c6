"""Ingestion and reconciliation services."""
from tunevault.services.fingerprint import calculate_fingerprint
from tunevault.services.folders import FolderResolver
from tunevault.services.cascade import StatusCascade
from tunevault.services.catalog import CatalogReconciler
from tunevault.services.scanner import LibraryScanner, ScanProfile
from tunevault.services.importer import (
    ImportAlreadyRunningError,
    ImportMode,
    ImportTask,
    ImportTaskManager,
    LibraryImporter,
    TaskStatus,
)
from tunevault.services.hash_sweeper import HashSweeper

__all__ = [
    "calculate_fingerprint",
    "FolderResolver",
    "StatusCascade",
    "CatalogReconciler",
    "LibraryScanner",
    "ScanProfile",
    "ImportAlreadyRunningError",
    "ImportMode",
    "ImportTask",
    "ImportTaskManager",
    "LibraryImporter",
    "TaskStatus",
    "HashSweeper",
]
