"""
Utility Functions for the Movers Bot
"""

import os
import re
import logging
from datetime import date, datetime, timedelta
from typing import Optional

import pytz

from movers_bot.config import LOG_FILE, PREMARKET_OPEN, PREMARKET_CLOSE

# Timezone
ET = pytz.timezone('US/Eastern')

logger = logging.getLogger('movers_bot.utils')


def setup_logging(log_level='INFO', log_file=LOG_FILE):
    """Configure logging for the bot"""
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    return logging.getLogger('movers_bot')


def clean_text(text: Optional[str]) -> str:
    """Trim a cell/label text; absent values become an empty string."""
    if text is None:
        return ''
    return text.strip()


def slugify(name: str) -> str:
    """Make a step or stage name safe for use in a file name."""
    slug = re.sub(r'[^A-Za-z0-9_-]+', '_', name.strip()).strip('_')
    return slug or 'snapshot'


def _parse_time_string(time_str: str) -> tuple:
    """Parse "HH:MM" into (hour, minute)."""
    parts = time_str.split(":")
    return int(parts[0]), int(parts[1])


def _nth_weekday(year: int, month: int, weekday: int, n: int) -> date:
    """n-th given weekday (Monday = 0) of a month; n = -1 means the last one."""
    if n < 0:
        following = date(year + month // 12, month % 12 + 1, 1)
        last = following - timedelta(days=1)
        return last - timedelta(days=(last.weekday() - weekday) % 7)
    first = date(year, month, 1)
    return first + timedelta(days=(weekday - first.weekday()) % 7 + 7 * (n - 1))


def _easter(year: int) -> date:
    """Gregorian Easter Sunday (anonymous computus)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    g = (8 * b + 13) // 25
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    w = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 19 * w) // 433
    month = (h + w - 7 * m + 90) // 25
    day = (h + w - 7 * m + 33 * month + 19) % 32
    return date(year, month, day)


def _observed(day: date) -> date:
    """Saturday holidays close the Friday before, Sunday ones the Monday after."""
    if day.weekday() == 5:
        return day - timedelta(days=1)
    if day.weekday() == 6:
        return day + timedelta(days=1)
    return day


def market_holidays(year: int) -> set:
    """NYSE full-day closures for a year."""
    holidays = {
        _nth_weekday(year, 1, 0, 3),                # MLK Day
        _nth_weekday(year, 2, 0, 3),                # Presidents' Day
        _easter(year) - timedelta(days=2),          # Good Friday
        _nth_weekday(year, 5, 0, -1),               # Memorial Day
        _observed(date(year, 7, 4)),                # Independence Day
        _nth_weekday(year, 9, 0, 1),                # Labor Day
        _nth_weekday(year, 11, 3, 4),               # Thanksgiving
        _observed(date(year, 12, 25)),              # Christmas
    }
    # New Year's Day on a Saturday is not made up on Dec 31
    new_year = date(year, 1, 1)
    if new_year.weekday() != 5:
        holidays.add(_observed(new_year))
    if year >= 2022:
        holidays.add(_observed(date(year, 6, 19)))  # Juneteenth
    return holidays


def is_trading_day(day=None):
    """Check if given date is a trading day (excludes weekends and holidays)"""
    if day is None:
        day = datetime.now(ET).date()

    # Weekend check
    if day.weekday() >= 5:  # Saturday = 5, Sunday = 6
        return False

    return day not in market_holidays(day.year)


def is_premarket_hours(now=None):
    """Check if the US pre-market session (4:00 - 9:30 AM ET) is running"""
    if now is None:
        now = datetime.now(ET)
    elif now.tzinfo is None:
        now = ET.localize(now)
    else:
        now = now.astimezone(ET)

    if not is_trading_day(now.date()):
        return False

    open_h, open_m = _parse_time_string(PREMARKET_OPEN)
    close_h, close_m = _parse_time_string(PREMARKET_CLOSE)
    session_open = now.replace(hour=open_h, minute=open_m, second=0, microsecond=0)
    session_close = now.replace(hour=close_h, minute=close_m, second=0, microsecond=0)

    return session_open <= now < session_close


class Diagnostics:
    """
    Best-effort screenshots keyed by stage name.

    A missing browser, a full disk or a disabled setting only costs the
    picture; capture() never raises.
    """

    def __init__(self, driver, directory: str, enabled: bool = True):
        self.driver = driver
        self.directory = directory
        self.enabled = enabled
        self.captured = []

    def capture(self, stage: str) -> str:
        """
        Take a screenshot for the given stage.

        Args:
            stage: Name of the checkpoint or failure point

        Returns:
            Full path to the screenshot file, or "" when nothing was written
        """
        if not self.enabled:
            return ""

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = os.path.join(self.directory, f"{slugify(stage)}_{timestamp}.png")

        try:
            os.makedirs(self.directory, exist_ok=True)
            self.driver.screenshot(filepath)
            self.captured.append(filepath)
            logger.info(f"Screenshot saved: {filepath}")
            return filepath
        except Exception as e:
            logger.warning(f"Screenshot '{stage}' failed: {e}")
            return ""
