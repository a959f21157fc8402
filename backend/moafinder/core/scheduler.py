import logging
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from moafinder.config import Settings

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()
_session_factory: Any = None
_settings: Settings | None = None


async def _archive_expired_events() -> None:
    """Job: archive approved events whose expiry date has passed."""
    try:
        async with _session_factory() as db:
            from moafinder.events.service import archive_expired_events

            count = await archive_expired_events(db, _settings.today())
            if count > 0:
                logger.info("Archived %d expired events", count)
    except Exception:
        logger.exception("Error archiving expired events")


def setup_scheduler(session_factory: Any, settings: Settings) -> None:
    """Register the periodic jobs and start the scheduler."""
    global _session_factory, _settings
    _session_factory = session_factory
    _settings = settings

    if not settings.archive_expired_events:
        logger.info("Background scheduler disabled")
        return

    scheduler.add_job(
        _archive_expired_events,
        CronTrigger(hour=3, minute=0, timezone=settings.timezone),
        id="archive_expired_events",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Background scheduler started with %d jobs", len(scheduler.get_jobs()))


def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")
