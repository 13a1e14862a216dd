"""APScheduler setup for the periodic outage check and the morning summary."""

import asyncio
import logging

from apscheduler.schedulers.background import BackgroundScheduler

from outage_notifier.config import settings

logger = logging.getLogger(__name__)

_scheduler: BackgroundScheduler | None = None


def _run_poll_cycle():
    from outage_notifier.services.monitor import get_monitor
    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(get_monitor().run_cycle())
    except Exception as e:
        logger.error("Outage check job failed: %s", e)
    finally:
        loop.close()


def _run_daily_summary():
    from outage_notifier.services.monitor import get_monitor
    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(get_monitor().send_daily_summary())
    except Exception as e:
        logger.error("Daily summary job failed: %s", e)
    finally:
        loop.close()


def start_scheduler():
    global _scheduler
    _scheduler = BackgroundScheduler(timezone=settings.timezone)

    _scheduler.add_job(
        _run_poll_cycle,
        "interval",
        minutes=settings.poll_interval,
        id="outage_check",
        name="Outage status check",
        max_instances=1,
        coalesce=True,
    )

    if settings.daily_summary_enabled:
        _scheduler.add_job(
            _run_daily_summary,
            "cron",
            hour=settings.daily_summary_hour,
            minute=settings.daily_summary_minute,
            id="daily_summary",
            name="Morning outage summary",
            max_instances=1,
        )

    _scheduler.start()
    logger.info(
        "Scheduler started: outage check every %d min, daily summary %s",
        settings.poll_interval,
        f"at {settings.daily_summary_hour:02d}:{settings.daily_summary_minute:02d}"
        if settings.daily_summary_enabled else "disabled",
    )


def stop_scheduler():
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
        _scheduler = None
