"""Background scheduler for periodic sync"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from boardsync.config import settings
from boardsync.models.base import SessionLocal
from boardsync.services.errors import SyncInProgressError
from boardsync.services.sync_service import SyncService

logger = logging.getLogger(__name__)

JOB_ID = "sync_all"


class SyncScheduler:
    """Scheduler for the periodic global sync run"""

    def __init__(self):
        self.scheduler = BackgroundScheduler()

    def start(self):
        """Start the scheduler"""
        self.scheduler.start()
        logger.info("Sync scheduler started")
        self.schedule(settings.sync_interval_minutes)

    def stop(self):
        """Stop the scheduler"""
        self.scheduler.shutdown()
        logger.info("Sync scheduler stopped")

    def schedule(self, interval_minutes: int):
        """(Re)schedule the sync job"""
        if self.scheduler.get_job(JOB_ID) is not None:
            self.scheduler.remove_job(JOB_ID)

        # A single global cursor: never let two runs overlap.
        self.scheduler.add_job(
            func=self._sync_job,
            trigger=IntervalTrigger(minutes=interval_minutes),
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        logger.info(f"Scheduled sync every {interval_minutes} minutes")

    def _sync_job(self):
        """Job function running one sync"""
        db = SessionLocal()
        try:
            logger.info("Running scheduled sync")
            result = SyncService(db).run()
            logger.info(f"Scheduled sync completed: {result}")
        except SyncInProgressError:
            logger.info("Skipping scheduled sync: a run is already in progress")
        except Exception as e:
            logger.error(f"Scheduled sync failed: {e}")
        finally:
            db.close()


# Global scheduler instance
scheduler = SyncScheduler()
