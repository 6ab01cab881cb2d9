"""Background scheduler for the notification poll and flow session cleanup.

Uses APScheduler to recompute every user's notices on a fixed interval.
The job shares nothing with request handling; it may run while writes
are in flight and simply sees whatever state the store has.
"""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from lifegoals.config import settings
from lifegoals.database import get_store
from lifegoals.services.notification_service import notifications
from lifegoals.sessions import flow_sessions

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


async def _run_notification_poll() -> None:
    """Refresh the notice snapshot for every user with active goals."""
    try:
        store = await get_store()
        count = await notifications.poll(store)
        logger.info("Notification poll: refreshed %d users", count)
    except Exception:
        logger.exception("Notification poll failed")


def start_scheduler() -> None:
    """Start the background scheduler if enabled."""
    global _scheduler
    if not settings.enable_scheduler:
        logger.info("Scheduler disabled")
        return

    _scheduler = AsyncIOScheduler()
    _scheduler.add_job(
        _run_notification_poll,
        trigger=IntervalTrigger(seconds=settings.notification_poll_seconds),
        id="notification_poll",
        max_instances=1,
        coalesce=True,
    )
    _scheduler.add_job(
        flow_sessions.purge_expired,
        trigger=IntervalTrigger(minutes=settings.session_purge_minutes),
        id="flow_session_purge",
        max_instances=1,
        coalesce=True,
    )
    _scheduler.start()
    logger.info(
        "Background scheduler started - notifications every %ds",
        settings.notification_poll_seconds,
    )


def stop_scheduler() -> None:
    """Stop the background scheduler."""
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("Background scheduler stopped")
