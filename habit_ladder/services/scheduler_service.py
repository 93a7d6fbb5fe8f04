"""
Background scheduler for ledger maintenance.
Handles:
- Resetting weekly points on the weekly boundary
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from habit_ladder import config
from habit_ladder.database import SessionLocal
from habit_ladder.services.progression_service import ProgressionService

logger = logging.getLogger("habit_ladder.scheduler")

scheduler = AsyncIOScheduler()

WEEKLY_RESET_JOB_ID = "weekly_points_reset"


async def run_weekly_reset():
    """Job: zero weekly points on every ledger"""
    db = SessionLocal()
    try:
        count = ProgressionService(db).reset_all_weekly_points()
        logger.info(f"Weekly reset finished: {count} ledgers")
    except Exception as e:
        logger.error(f"Scheduler Error (Weekly Reset): {e}")
    finally:
        db.close()


def build_weekly_trigger(day_of_week: str = None, hour: int = None) -> CronTrigger:
    """Cron trigger firing at the start of the configured weekday hour"""
    return CronTrigger(
        day_of_week=day_of_week or config.WEEKLY_RESET_DAY,
        hour=config.WEEKLY_RESET_HOUR if hour is None else hour,
        minute=0
    )


def start_scheduler():
    """Start the scheduler with the weekly reset job"""
    if not config.WEEKLY_RESET_ENABLED:
        logger.info("Weekly reset disabled, scheduler not started")
        return

    if not scheduler.running:
        scheduler.add_job(
            run_weekly_reset,
            build_weekly_trigger(),
            id=WEEKLY_RESET_JOB_ID,
            replace_existing=True
        )
        scheduler.start()
        logger.info(">>> APScheduler STARTED <<<")
        logger.info(f"Scheduled jobs: {[job.id for job in scheduler.get_jobs()]}")


def stop_scheduler():
    """Stop the scheduler"""
    if scheduler.running:
        scheduler.shutdown()
