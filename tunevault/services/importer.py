"""Bulk import runs and their progress tracking."""
import logging
import threading
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from tunevault.integrations.metadata import ScanRecord
from tunevault.models import (
    Album,
    Artist,
    Folder,
    Playlist,
    Track,
    playlist_tracks,
    user_album_history,
    user_album_likes,
    user_audiobook_history,
    user_audiobook_likes,
    user_track_history,
    user_track_likes,
)
from tunevault.models.enums import MediaType
from tunevault.services.catalog import CatalogReconciler
from tunevault.services.fingerprint import DEFAULT_WINDOW, calculate_fingerprint
from tunevault.services.folders import FolderResolver
from tunevault.services.scanner import LibraryScanner, ScanProfile
from tunevault.utils.paths import LibraryRoots

logger = logging.getLogger(__name__)


class TaskStatus(str, Enum):
    """Import task lifecycle."""
    INITIALIZING = "INITIALIZING"
    PARSING = "PARSING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class ImportMode(str, Enum):
    INCREMENTAL = "incremental"
    FULL = "full"  # Purges the catalog first


class ImportAlreadyRunningError(Exception):
    """An import is already initializing or parsing."""
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Import task {task_id} is still running")


@dataclass
class ImportTask:
    """Progress of one import run, polled by callers."""
    id: str
    mode: ImportMode = ImportMode.INCREMENTAL
    status: TaskStatus = TaskStatus.INITIALIZING
    message: Optional[str] = None
    total: Optional[int] = None
    current: Optional[int] = None
    current_file_name: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self.status in (TaskStatus.INITIALIZING, TaskStatus.PARSING)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "status": self.status.value,
            "message": self.message,
            "total": self.total,
            "current": self.current,
            "currentFileName": self.current_file_name,
            "mode": self.mode.value,
        }


def purge_library(db: Session) -> None:
    """Delete the whole catalog and every user row that references it.

    Runs as one transaction: either everything is gone or nothing is.
    """
    logger.info("Starting full library cleanup...")
    try:
        for table in (
            user_track_history,
            user_track_likes,
            user_audiobook_history,
            user_audiobook_likes,
            user_album_history,
            user_album_likes,
            playlist_tracks,
        ):
            db.execute(table.delete())
        for model in (Playlist, Track, Album, Artist, Folder):
            db.query(model).delete(synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.expunge_all()
    logger.info("Full library cleanup completed.")


class LibraryImporter:
    """Runs one import over the music and audiobook roots."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        roots: LibraryRoots,
        scanner: LibraryScanner,
        unknown_label: str = "Unknown",
        fingerprint_window: int = DEFAULT_WINDOW
    ):
        self.session_factory = session_factory
        self.roots = roots
        self.scanner = scanner
        self.unknown_label = unknown_label
        self.fingerprint_window = fingerprint_window

    def run(self, task: ImportTask, on_progress: Optional[Callable[[ImportTask], None]] = None) -> ImportTask:
        """Execute the run described by `task`, updating it in place.

        Never raises: a failure leaves the task FAILED with a message.
        """
        def notify():
            if on_progress is not None:
                on_progress(task)

        db = self.session_factory()
        try:
            if task.mode == ImportMode.FULL:
                purge_library(db)

            resolver = FolderResolver()
            reconciler = CatalogReconciler(db, self.roots, self.unknown_label)

            task.total = (
                self.scanner.count_files(self.roots.music)
                + self.scanner.count_files(self.roots.audiobook)
            )
            task.current = 0
            task.status = TaskStatus.PARSING
            notify()
            logger.info(f"Import {task.id} ({task.mode.value}): {task.total} files to process")

            def process(record: ScanRecord, media_type: str, root: Path):
                task.current_file_name = record.title or Path(record.path).name
                try:
                    folder_id = resolver.resolve(db, record.path, root, media_type)
                    file_hash = calculate_fingerprint(record.path, self.fingerprint_window)
                    reconciler.reconcile(record, media_type, root, folder_id, file_hash)
                except Exception:
                    db.rollback()
                    raise
                finally:
                    task.current += 1
                    notify()

            self.scanner.scan(
                self.roots.music,
                ScanProfile.MUSIC,
                lambda record: process(record, MediaType.MUSIC.value, self.roots.music),
            )
            self.scanner.scan(
                self.roots.audiobook,
                ScanProfile.AUDIOBOOK,
                lambda record: process(record, MediaType.AUDIOBOOK.value, self.roots.audiobook),
            )

            task.status = TaskStatus.SUCCESS
            logger.info(f"Import {task.id} finished: {task.current}/{task.total} files")
        except Exception as e:
            logger.exception(f"Import {task.id} failed: {e}")
            db.rollback()
            task.status = TaskStatus.FAILED
            task.message = str(e)
        finally:
            db.close()
            notify()
        return task


class ImportTaskManager:
    """Starts import runs in the background and keeps their status.

    Only one run may be INITIALIZING or PARSING at a time; a second
    `create_task` call is rejected with ImportAlreadyRunningError.
    """

    def __init__(
        self,
        importer: LibraryImporter,
        on_complete: Optional[Callable[[ImportTask], None]] = None
    ):
        self.importer = importer
        self.on_complete = on_complete
        self.tasks: Dict[str, ImportTask] = {}
        self._threads: Dict[str, threading.Thread] = {}
        self._lock = threading.Lock()

    def create_task(self, mode: str = ImportMode.INCREMENTAL.value) -> str:
        with self._lock:
            running = self.get_running_task()
            if running is not None:
                raise ImportAlreadyRunningError(running.id)

            task = ImportTask(id=str(uuid.uuid4()), mode=ImportMode(mode))
            self.tasks[task.id] = task
            thread = threading.Thread(
                target=self._run,
                args=(task,),
                name=f"import-{task.id[:8]}",
                daemon=True,
            )
            self._threads[task.id] = thread
            thread.start()

        logger.info(f"Created import task {task.id} ({task.mode.value})")
        return task.id

    def get_task(self, task_id: str) -> Optional[ImportTask]:
        return self.tasks.get(task_id)

    def get_running_task(self) -> Optional[ImportTask]:
        return next((task for task in self.tasks.values() if task.is_running), None)

    def wait(self, task_id: str, timeout: Optional[float] = None) -> Optional[ImportTask]:
        """Block until the task's thread exits (or the timeout passes)."""
        thread = self._threads.get(task_id)
        if thread is not None:
            thread.join(timeout)
        return self.get_task(task_id)

    def _run(self, task: ImportTask) -> None:
        self.importer.run(task)
        if task.status == TaskStatus.SUCCESS and self.on_complete is not None:
            try:
                self.on_complete(task)
            except Exception as e:
                logger.error(f"Post-import hook failed for task {task.id}: {e}")
