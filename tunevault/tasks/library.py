"""Library maintenance tasks for Celery."""
import logging
import uuid

from celery import shared_task

from tunevault.config import settings
from tunevault.database import init_db

logger = logging.getLogger(__name__)


@shared_task(name="tunevault.tasks.library.rescan_library", bind=True)
def rescan_library(self, mode: str = "incremental"):
    """Run one import over both library roots.

    Progress is published as PROGRESS task state so callers can poll it
    through the result backend.
    """
    from tunevault.dependencies import get_importer
    from tunevault.services.importer import ImportMode, ImportTask

    init_db()
    task = ImportTask(id=self.request.id or str(uuid.uuid4()), mode=ImportMode(mode))

    def publish(progress: ImportTask):
        self.update_state(state="PROGRESS", meta=progress.to_dict())

    get_importer(settings).run(task, on_progress=publish)
    logger.info(f"Rescan {task.id} ended with {task.status.value}")
    return task.to_dict()


@shared_task(name="tunevault.tasks.library.sweep_missing_hashes")
def sweep_missing_hashes():
    """Fill in fingerprints for ACTIVE tracks that have none."""
    from tunevault.dependencies import get_hash_sweeper

    init_db()
    return get_hash_sweeper(settings).run_safely()
