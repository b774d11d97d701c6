"""Live filesystem watcher for the library roots.

Run as standalone process: python -m tunevault.watcher
"""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, Optional, Set, Tuple

from sqlalchemy.orm import Session
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from tunevault.services.catalog import CatalogReconciler
from tunevault.services.fingerprint import DEFAULT_WINDOW, calculate_fingerprint
from tunevault.services.folders import FolderResolver
from tunevault.services.scanner import LibraryScanner, ScanProfile
from tunevault.models.enums import MediaType
from tunevault.utils.paths import LibraryRoots

logger = logging.getLogger(__name__)

ADD = "add"
CHANGE = "change"
UNLINK = "unlink"
UNLINK_DIR = "unlink_dir"


def coalesce(previous: str, current: str) -> str:
    """Merge two events for one path seen inside the debounce window."""
    if previous == ADD and current == CHANGE:
        return ADD
    if previous == UNLINK and current in (ADD, CHANGE):
        return ADD
    return current


class LibraryEventHandler(FileSystemEventHandler):
    """Forwards watchdog events to the watcher.

    Files inside a created directory, or one moved between watched paths,
    arrive as their own events. A directory that is deleted, or moved out
    of every root, only reports itself, so its tracks are trashed by path
    prefix.
    """

    def __init__(self, watcher: "LibraryWatcher"):
        super().__init__()
        self.watcher = watcher

    def on_created(self, event):
        if not event.is_directory:
            self.watcher.notify(ADD, event.src_path)

    def on_modified(self, event):
        if not event.is_directory:
            self.watcher.notify(CHANGE, event.src_path)

    def on_deleted(self, event):
        if event.is_directory:
            self.watcher.notify_directory_removed(event.src_path)
        else:
            self.watcher.notify(UNLINK, event.src_path)

    def on_moved(self, event):
        if event.is_directory:
            if self.watcher.roots.locate(event.dest_path) is None:
                self.watcher.notify_directory_removed(event.src_path)
            return
        self.watcher.notify(UNLINK, event.src_path)
        self.watcher.notify(ADD, event.dest_path)


class LibraryWatcher:
    """Keeps the catalog in sync with add/change/unlink events.

    Events arrive on watchdog's thread and are handed to the asyncio loop.
    Each path has at most one pending event; a new event for the same path
    restarts its quiet period, so a file still being copied is only
    processed once writes stop. Handlers run one at a time on a worker
    thread so the loop keeps accepting events while a file is parsed.
    """

    def __init__(
        self,
        roots: LibraryRoots,
        scanner: LibraryScanner,
        session_factory: Callable[[], Session],
        debounce_seconds: float = 2.0,
        use_polling: bool = False,
        unknown_label: str = "Unknown",
        fingerprint_window: int = DEFAULT_WINDOW
    ):
        self.roots = roots
        self.scanner = scanner
        self.session_factory = session_factory
        self.debounce_seconds = debounce_seconds
        self.use_polling = use_polling
        self.unknown_label = unknown_label
        self.fingerprint_window = fingerprint_window
        self.resolver = FolderResolver()
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.observer = None
        self._pending: Dict[str, Tuple[str, asyncio.TimerHandle]] = {}
        self._inflight: Set[asyncio.Future] = set()
        self._executor: Optional[ThreadPoolExecutor] = None

    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        """Start observing every configured root that exists."""
        self.loop = loop or self.loop or asyncio.get_event_loop()
        self.observer = PollingObserver() if self.use_polling else Observer()
        handler = LibraryEventHandler(self)

        watched = []
        for root in (self.roots.music, self.roots.audiobook):
            if root.is_dir():
                self.observer.schedule(handler, str(root), recursive=True)
                watched.append(str(root))

        self.observer.start()
        logger.info(f"Starting file watcher on: {', '.join(watched) or '(no existing roots)'}")
        return self.observer

    def stop(self):
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None
        for _, handle in self._pending.values():
            handle.cancel()
        self._pending.clear()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def rearm(self):
        """Restart observation after an import rewrote the catalog.

        Cached folder ids may point at purged rows, so the cache is dropped.
        Pending events are kept. Callable from any thread.
        """
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None
        self.resolver = FolderResolver()
        self.start()

    def notify(self, kind: str, file_path: str):
        """Queue an event. Safe to call from any thread."""
        if not self.scanner.is_audio_file(file_path) or self.roots.locate(file_path) is None:
            return
        if self.loop is None or self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self._debounce, kind, str(file_path))

    def notify_directory_removed(self, directory: str):
        """Queue the removal of a whole directory. Safe to call from any thread."""
        if self.roots.locate(directory) is None:
            return
        if self.loop is None or self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self._debounce, UNLINK_DIR, str(directory))

    def busy(self) -> bool:
        """True while an event is waiting out its quiet period or being handled."""
        return bool(self._pending or self._inflight)

    def _debounce(self, kind: str, file_path: str):
        previous = self._pending.pop(file_path, None)
        if previous is not None:
            previous_kind, handle = previous
            handle.cancel()
            kind = coalesce(previous_kind, kind)
        handle = self.loop.call_later(self.debounce_seconds, self._fire, file_path)
        self._pending[file_path] = (kind, handle)

    def _fire(self, file_path: str):
        pending = self._pending.pop(file_path, None)
        if pending is None:
            return
        future = self.loop.run_in_executor(self._get_executor(), self.dispatch, pending[0], file_path)
        self._inflight.add(future)
        future.add_done_callback(self._inflight.discard)

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="watcher")
        return self._executor

    def dispatch(self, kind: str, file_path: str):
        handler = {
            ADD: self.handle_add,
            CHANGE: self.handle_change,
            UNLINK: self.handle_unlink,
            UNLINK_DIR: self.handle_unlink_directory,
        }[kind]
        logger.info(f"[Watcher] File {kind}: {file_path}")
        try:
            handler(file_path)
        except Exception as e:
            logger.error(f"[Watcher] Failed to handle {kind} for {file_path}: {e}")

    def handle_add(self, file_path: str):
        """Resurrect a moved track by fingerprint, or ingest a new file."""
        located = self.roots.locate(file_path)
        path = Path(file_path)
        if located is None or not path.is_file():
            return
        root, media_type = located

        db = self.session_factory()
        try:
            reconciler = CatalogReconciler(db, self.roots, self.unknown_label)
            url = self.roots.to_url(path, media_type)
            file_hash = calculate_fingerprint(path, self.fingerprint_window)
            folder_id = self.resolver.resolve(db, path, root, media_type)

            if reconciler.find_active(url) is None:
                candidate = reconciler.find_move_candidate(file_hash)
                if candidate is not None:
                    reconciler.resurrect(candidate, url, folder_id)
                    return

            record = self.scanner.parse(path, self._profile(media_type))
            if record is None:
                return
            reconciler.reconcile(record, media_type, root, folder_id, file_hash)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def handle_change(self, file_path: str):
        """Refresh an edited file's tags in place."""
        located = self.roots.locate(file_path)
        path = Path(file_path)
        if located is None or not path.is_file():
            return
        _, media_type = located

        record = self.scanner.parse(path, self._profile(media_type))
        if record is None:
            return

        db = self.session_factory()
        try:
            reconciler = CatalogReconciler(db, self.roots, self.unknown_label)
            track = reconciler.find_active(self.roots.to_url(path, media_type))
            if track is not None:
                file_hash = calculate_fingerprint(path, self.fingerprint_window)
                reconciler.refresh_metadata(track, record, file_hash)
                return
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        # Never seen this file (its add was missed); ingest it now
        self.handle_add(file_path)

    def handle_unlink(self, file_path: str):
        """Trash the track that lived at `file_path`."""
        located = self.roots.locate(file_path)
        if located is None:
            return
        _, media_type = located

        db = self.session_factory()
        try:
            reconciler = CatalogReconciler(db, self.roots, self.unknown_label)
            reconciler.trash(self.roots.to_url(file_path, media_type))
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def handle_unlink_directory(self, directory: str):
        """Trash every track that lived under a removed directory."""
        located = self.roots.locate(directory)
        if located is None:
            return
        _, media_type = located

        db = self.session_factory()
        try:
            reconciler = CatalogReconciler(db, self.roots, self.unknown_label)
            reconciler.trash_directory(self.roots.to_url(directory, media_type))
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @staticmethod
    def _profile(media_type: str) -> ScanProfile:
        if media_type == MediaType.AUDIOBOOK.value:
            return ScanProfile.AUDIOBOOK
        return ScanProfile.MUSIC


def build_watcher(settings=None, session_factory=None) -> LibraryWatcher:
    """Watcher configured from application settings."""
    from tunevault.config import settings as default_settings
    from tunevault.database import SessionLocal
    from tunevault.dependencies import get_roots, get_scanner

    settings = settings or default_settings
    return LibraryWatcher(
        roots=get_roots(settings),
        scanner=get_scanner(settings),
        session_factory=session_factory or SessionLocal,
        debounce_seconds=settings.watch_debounce_seconds,
        use_polling=settings.watch_use_polling,
        unknown_label=settings.unknown_label,
        fingerprint_window=settings.fingerprint_window_bytes,
    )


async def run_watcher(settings=None, scan_first: bool = False):
    """Sweep missing hashes shortly after start, then watch until cancelled.

    With `scan_first`, an incremental import runs in the background and the
    watcher is re-armed once it succeeds.
    """
    from tunevault.config import settings as default_settings
    from tunevault.database import init_db
    from tunevault.dependencies import get_hash_sweeper, get_importer
    from tunevault.services.importer import ImportTaskManager

    settings = settings or default_settings
    init_db()

    sweeper = get_hash_sweeper(settings)
    timer = sweeper.start_deferred(settings.hash_sweep_delay_seconds)

    watcher = build_watcher(settings)
    watcher.start(asyncio.get_running_loop())

    if scan_first:
        manager = ImportTaskManager(get_importer(settings), on_complete=lambda task: watcher.rearm())
        manager.create_task()

    try:
        while True:
            await asyncio.sleep(1)
    except asyncio.CancelledError:
        pass
    finally:
        timer.cancel()
        watcher.stop()


if __name__ == "__main__":
    from tunevault.logging_config import setup_logging

    setup_logging()
    try:
        asyncio.run(run_watcher())
    except KeyboardInterrupt:
        logger.info("Watcher stopped")
