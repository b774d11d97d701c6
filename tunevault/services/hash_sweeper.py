"""Backfill of content fingerprints for tracks that lack one."""
import logging
import threading
from typing import Callable

from sqlalchemy.orm import Session

from tunevault.services.catalog import tracks_missing_hash
from tunevault.services.fingerprint import DEFAULT_WINDOW, calculate_fingerprint
from tunevault.utils.paths import LibraryRoots

logger = logging.getLogger(__name__)


class HashSweeper:
    """Computes and stores fingerprints for ACTIVE tracks without one.

    Repairs rows created before fingerprinting existed or whose hash
    computation failed. Safe to run any number of times.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        roots: LibraryRoots,
        fingerprint_window: int = DEFAULT_WINDOW
    ):
        self.session_factory = session_factory
        self.roots = roots
        self.fingerprint_window = fingerprint_window

    def run(self) -> dict:
        stats = {"checked": 0, "updated": 0, "missing": 0, "errors": 0}
        db = self.session_factory()
        try:
            tracks = tracks_missing_hash(db).all()
            if not tracks:
                return stats

            logger.info(f"Found {len(tracks)} tracks without hash. Starting generation...")

            for track in tracks:
                stats["checked"] += 1
                try:
                    local = self.roots.to_local(track.path)
                    if local is None or not local.is_file():
                        logger.warning(f"File not found for track {track.id} ({track.name}): {local or track.path}")
                        stats["missing"] += 1
                        continue

                    file_hash = calculate_fingerprint(local, self.fingerprint_window)
                    if file_hash:
                        track.file_hash = file_hash
                        db.commit()
                        stats["updated"] += 1
                except Exception as e:
                    logger.error(f"Error generating hash for track {track.id}: {e}")
                    db.rollback()
                    stats["errors"] += 1

            logger.info(
                f"Finished generating missing hashes: {stats['updated']} updated, "
                f"{stats['missing']} missing, {stats['errors']} errors"
            )
            return stats
        finally:
            db.close()

    def run_safely(self) -> dict:
        """Run the sweep; any failure is logged instead of raised."""
        try:
            return self.run()
        except Exception as e:
            logger.error(f"Failed to generate missing hashes: {e}")
            return {"error": str(e)}

    def start_deferred(self, delay: float) -> threading.Timer:
        """Schedule one sweep `delay` seconds from now on a daemon timer."""
        timer = threading.Timer(delay, self.run_safely)
        timer.name = "hash-sweeper"
        timer.daemon = True
        timer.start()
        logger.info(f"Missing-hash sweep scheduled in {delay:.0f}s")
        return timer
