"""
Weekly reminder job.

Every Monday morning (tracking timezone) the job resolves the reminder
run for the previous week and then delivers reminders for its targets.
Resolution reuses a completed run when one exists, so a restarted or
manually re-triggered cycle never creates a second run for the week and
delivery's cooldown keeps it from messaging the same users twice.
"""

import asyncio
import time

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import settings
from app.features.tracking.pipeline.time_windows import DateInput
from app.features.tracking.services.delivery import reminder_delivery_service
from app.features.tracking.services.reminder_engine import reminder_engine
from app.infrastructure.observability.logging import get_logger, log_job_run

logger = get_logger(__name__)

JOB_ID = "weekly_reminders"
MISFIRE_GRACE_SECONDS = 3600
KEEPALIVE_SECONDS = 3600


async def run_weekly_reminders(week_start_date: DateInput | None = None) -> dict:
    """
    Resolve the week's reminder run and deliver its reminders.

    Raises whatever the engine raises; nothing is sent when the run
    could not be resolved.
    """
    started = time.perf_counter()
    computation = await reminder_engine.get_or_compute_run(week_start_date)
    run = computation.run

    report = await reminder_delivery_service.deliver_reminders(run.week_start_date, computation.targets)

    result = {
        "run_id": run.id,
        "run_status": run.status.value,
        "total_targets": run.total_targets,
        **report.to_dict(),
    }
    log_job_run(JOB_ID, succeeded=True, duration_ms=(time.perf_counter() - started) * 1000, **result)
    return result


async def _scheduled_cycle() -> None:
    started = time.perf_counter()
    try:
        await run_weekly_reminders()
    except Exception as e:
        # The scheduler must survive a failed cycle; the next Monday retries
        log_job_run(
            JOB_ID,
            succeeded=False,
            duration_ms=(time.perf_counter() - started) * 1000,
            error=str(e),
            error_type=type(e).__name__,
        )


def build_reminder_scheduler() -> AsyncIOScheduler:
    tz = settings.tracking_tz()
    scheduler = AsyncIOScheduler(timezone=tz)
    scheduler.add_job(
        _scheduled_cycle,
        CronTrigger(
            day_of_week=settings.REMINDER_DAY_OF_WEEK,
            hour=settings.REMINDER_HOUR,
            minute=settings.REMINDER_MINUTE,
            timezone=tz,
        ),
        id=JOB_ID,
        replace_existing=True,
        coalesce=True,
        max_instances=1,
        misfire_grace_time=MISFIRE_GRACE_SECONDS,
    )
    return scheduler


async def start_reminder_scheduler() -> None:
    """Run the weekly reminder schedule until the process is stopped."""
    scheduler = build_reminder_scheduler()
    scheduler.start()
    logger.info(
        "Weekly reminder scheduler started",
        day_of_week=settings.REMINDER_DAY_OF_WEEK,
        hour=settings.REMINDER_HOUR,
        minute=settings.REMINDER_MINUTE,
        timezone=settings.TRACKING_TIMEZONE,
    )

    try:
        while True:
            await asyncio.sleep(KEEPALIVE_SECONDS)
    finally:
        scheduler.shutdown(wait=False)
        logger.info("Weekly reminder scheduler stopped")
