import logging
from datetime import datetime
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from epg_updater.config import settings
from epg_updater.services.epg_store import get_epg_store
from epg_updater.utils.timezone import utc_now


logger = logging.getLogger(__name__)


class EPGScheduler:
    """Scheduler for periodic removal of programs that have already ended"""

    def __init__(self):
        self.scheduler: AsyncIOScheduler | None = None

    async def _purge_job(self) -> None:
        """Background job that deletes historical programs on every channel"""
        logger.info("Scheduled EPG purge triggered")
        try:
            await get_epg_store().purge_historical_programs(utc_now())
        except Exception as e:
            logger.error(f"Exception in scheduled purge: {e}", exc_info=True)

    def start(self) -> None:
        """Start the scheduler with the purge job"""
        if self.scheduler and self.scheduler.running:
            logger.warning("Scheduler already running")
            return

        try:
            trigger = CronTrigger.from_crontab(settings.epg_purge_cron)
        except (ValueError, KeyError) as exc:
            logger.error("Invalid cron expression '%s': %s", settings.epg_purge_cron, exc)
            raise

        self.scheduler = AsyncIOScheduler(timezone='UTC')
        self.scheduler.add_job(
            self._purge_job,
            trigger=trigger,
            id='epg_purge',
            max_instances=1,
            coalesce=True,
            misfire_grace_time=settings.epg_purge_misfire_grace_sec
        )

        self.scheduler.start()
        next_time = self.get_next_run_time()
        logger.info(
            "Scheduler started. Next purge: %s",
            next_time.isoformat() if next_time else "unknown"
        )

    def shutdown(self) -> None:
        """Shutdown the scheduler"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")
            self.scheduler = None

    def get_next_run_time(self) -> datetime | None:
        """Get next scheduled purge time"""
        if not self.scheduler:
            return None
        job = self.scheduler.get_job('epg_purge')
        return job.next_run_time if job else None


epg_scheduler = EPGScheduler()
