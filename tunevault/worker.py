"""Celery worker configuration.

Run worker: celery -A tunevault.worker worker -l info -Q library
Run beat: celery -A tunevault.worker beat -l info
"""
from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging as celery_setup_logging

from tunevault.config import settings
from tunevault.logging_config import setup_logging

celery_app = Celery(
    "tunevault",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "tunevault.tasks.library",
    ]
)

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    task_routes={
        "tunevault.tasks.library.*": {"queue": "library"},
    },

    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # A rescan walks the whole library; never prefetch a second one
    worker_prefetch_multiplier=1,
    worker_concurrency=1,

    result_expires=3600,

    beat_schedule={
        # Incremental rescan daily at 3 AM
        "rescan-library": {
            "task": "tunevault.tasks.library.rescan_library",
            "schedule": crontab(hour=3, minute=0),
            "kwargs": {"mode": "incremental"},
            "options": {"queue": "library"}
        },

        # Backfill fingerprints daily at 4 AM
        "sweep-missing-hashes": {
            "task": "tunevault.tasks.library.sweep_missing_hashes",
            "schedule": crontab(hour=4, minute=0),
            "options": {"queue": "library"}
        },
    }
)


@celery_setup_logging.connect
def configure_worker_logging(loglevel=None, logfile=None, **kwargs):
    """Use the application's log format in workers instead of Celery's."""
    setup_logging(level=loglevel, log_path=logfile or None)
