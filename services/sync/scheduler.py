"""Periodic sync and maintenance using APScheduler.

Usage:
    scheduler = SyncScheduler()
    scheduler.start()   # inside a running event loop

    # On shutdown:
    scheduler.stop()
"""

from typing import Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import SessionLocal
from services.sync.maintenance import purge_stale_records
from services.sync.service import SyncService
from shared.utils import config, setup_logging

logger = setup_logging("sync-scheduler")

DEFAULT_INTERVAL_MINUTES = 60


class SyncScheduler:
    """Runs the time-gated sync check and store maintenance on an interval."""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        interval_minutes: int | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._interval_minutes = interval_minutes or int(
            config.get_setting("scheduler.interval_minutes", DEFAULT_INTERVAL_MINUTES)
        )
        self._scheduler: AsyncIOScheduler | None = None
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start(self) -> None:
        if self._is_running:
            logger.warning("Scheduler already running")
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(minutes=self._interval_minutes),
            id="catalog_sync",
            name="Catalog sync and maintenance",
            replace_existing=True,
            max_instances=1,
        )
        self._scheduler.start()
        self._is_running = True
        logger.info(f"Sync scheduler started, interval {self._interval_minutes} minutes")

    def stop(self) -> None:
        if self._scheduler and self._is_running:
            self._scheduler.shutdown(wait=False)
            self._is_running = False
            logger.info("Sync scheduler stopped")

    async def run_once(self) -> dict[str, int | None]:
        """One pass: sync whatever is due, then purge stale records."""
        db = self._session_factory()
        try:
            results = await SyncService(db).sync_if_needed()
            try:
                purge_stale_records(db)
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Maintenance failed: {e}")
            return results
        finally:
            db.close()
