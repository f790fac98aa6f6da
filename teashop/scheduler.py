"""
Scheduler for background housekeeping

Uses APScheduler to purge expired sign-in sessions at a fixed interval.
"""
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from teashop.models.base import get_db
from teashop.services import auth_service
from teashop.config import get_settings
from teashop.utils.logger import log

settings = get_settings()
scheduler = AsyncIOScheduler()


async def purge_expired_sessions():
    """Delete sessions past their expiry"""
    try:
        db = next(get_db())
        try:
            removed = auth_service.cleanup_expired(db)
        finally:
            db.close()
        if removed:
            log.info(f"Purged {removed} expired sessions")
    except Exception as e:
        log.error(f"Session cleanup error: {str(e)}")


def start_scheduler():
    """Register jobs and start the scheduler"""
    scheduler.add_job(
        purge_expired_sessions,
        trigger=IntervalTrigger(minutes=settings.session_cleanup_minutes),
        id="purge_expired_sessions",
        name="Purge expired sessions",
        replace_existing=True,
    )
    scheduler.start()
    log.info(f"Scheduler started: session cleanup every {settings.session_cleanup_minutes} minutes")


def stop_scheduler():
    """Stop the scheduler"""
    if scheduler.running:
        scheduler.shutdown()
        log.info("Scheduler stopped")
