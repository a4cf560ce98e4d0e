"""
Task Scheduler for the Movers Bot

Runs the scrape once per trading day at SCHEDULE_TIME (Eastern Time),
inside the pre-market session.

CRITICAL: The schedule library uses LOCAL machine time, not timezone-aware
times. ET times are converted to local machine time before scheduling.
"""

import logging
import time
import traceback
from datetime import datetime
from typing import Callable

import schedule

from movers_bot.config import SCHEDULE_TIME
from movers_bot.utils import ET, _parse_time_string, is_trading_day

logger = logging.getLogger('movers_bot.scheduler')

WEEKDAYS = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday')
CHECK_INTERVAL_SECONDS = 30


def et_to_local_time(et_hour: int, et_minute: int) -> str:
    """
    Convert an ET time to local machine time.

    Args:
        et_hour: Hour in Eastern Time (0-23)
        et_minute: Minute (0-59)

    Returns:
        String in HH:MM format for local time
    """
    now_et = datetime.now(ET)
    target_et = now_et.replace(hour=et_hour, minute=et_minute, second=0, microsecond=0)
    target_local = target_et.astimezone().replace(tzinfo=None)

    local_time_str = target_local.strftime("%H:%M")
    logger.debug(f"ET {et_hour:02d}:{et_minute:02d} -> Local {local_time_str}")
    return local_time_str


def safe_execute(job: Callable[[], object]) -> bool:
    """
    Run one scheduled scrape, never letting a failure kill the loop.

    Returns:
        True if the job ran and completed
    """
    logger.info(f"Scheduled execution triggered at {datetime.now(ET)}")

    if not is_trading_day():
        logger.info("Not a trading day - skipping")
        return False

    try:
        job()
        return True
    except Exception as e:
        logger.critical(f"Scheduled scrape failed: {e}")
        logger.critical(traceback.format_exc())
        return False


def schedule_jobs(job: Callable[[], object], et_time: str = SCHEDULE_TIME) -> list:
    """Register job for every weekday at et_time; returns the schedule jobs."""
    schedule.clear()

    et_hour, et_minute = _parse_time_string(et_time)
    local_time = et_to_local_time(et_hour, et_minute)
    logger.info(f"Execution time: {et_time} ET = {local_time} local")

    for day in WEEKDAYS:
        getattr(schedule.every(), day).at(local_time).do(safe_execute, job)

    return schedule.get_jobs()


def run_scheduler(job: Callable[[], object], et_time: str = SCHEDULE_TIME):
    """
    Main scheduling loop. Blocks until interrupted.

    Args:
        job: Zero-argument callable performing one full run
        et_time: "HH:MM" in Eastern Time
    """
    logger.info("=" * 60)
    logger.info("MOVERS BOT SCHEDULER STARTING")
    logger.info(f"Current time (ET): {datetime.now(ET)}")
    logger.info(f"Current time (Local): {datetime.now()}")
    logger.info("=" * 60)

    for scheduled in schedule_jobs(job, et_time):
        logger.info(f"  - {scheduled}")
    logger.info(f"Next run: {schedule.next_run()}")
    logger.info("Scheduler is running. Press Ctrl+C to stop.")

    while True:
        try:
            schedule.run_pending()
            time.sleep(CHECK_INTERVAL_SECONDS)
        except KeyboardInterrupt:
            logger.info("Scheduler stopped by user")
            break
