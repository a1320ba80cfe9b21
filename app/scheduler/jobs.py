"""
app/scheduler/jobs.py

APScheduler-based housekeeping for the import task registry.

Schedule
--------
  purge_expired_import_tasks: every ASSET_IMPORT_PURGE_INTERVAL_SECONDS

Lifecycle
---------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down on app shutdown. The scheduler is wired
into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import get_asset_import_settings
from app.services.import_task_registry import ImportTaskRegistry, get_import_task_registry

logger = logging.getLogger(__name__)


def run_purge_expired_import_tasks(registry: ImportTaskRegistry | None = None) -> int:
    """
    Evict terminal import tasks older than the configured TTL.
    """

    target = registry or get_import_task_registry()
    try:
        evicted = target.purge_expired()
    except Exception:
        logger.exception("Scheduler: purge_expired_import_tasks failed")
        return 0
    logger.debug("Scheduler: purge_expired_import_tasks evicted=%d", evicted)
    return evicted


def build_scheduler(registry: ImportTaskRegistry | None = None) -> BackgroundScheduler:
    """
    Build and register all periodic jobs.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    """

    settings = get_asset_import_settings()
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        run_purge_expired_import_tasks,
        trigger="interval",
        seconds=settings.purge_interval_seconds,
        kwargs={"registry": registry},
        id="purge_expired_import_tasks",
        name="Evict expired import tasks",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    return scheduler
