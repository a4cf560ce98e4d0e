from __future__ import annotations

from datetime import date, datetime

import pytest

from movers_bot.utils import ET, Diagnostics, clean_text, is_premarket_hours, is_trading_day, market_holidays, slugify


@pytest.mark.parametrize(
    "moment, expected",
    [
        (datetime(2026, 10, 19, 3, 59), False),
        (datetime(2026, 10, 19, 4, 0), True),
        (datetime(2026, 10, 19, 9, 29), True),
        (datetime(2026, 10, 19, 9, 30), False),
        (datetime(2026, 10, 17, 8, 0), False),   # Saturday
        (datetime(2026, 12, 25, 8, 0), False),   # Christmas
    ],
)
def test_premarket_window(moment: datetime, expected: bool) -> None:
    assert is_premarket_hours(ET.localize(moment)) is expected


def test_premarket_accepts_naive_eastern_time() -> None:
    assert is_premarket_hours(datetime(2026, 10, 20, 6, 15)) is True


@pytest.mark.parametrize(
    "day",
    [
        date(2026, 4, 3),    # Good Friday
        date(2026, 7, 3),    # July 4th on a Saturday
        date(2026, 11, 26),  # Thanksgiving
        date(2027, 3, 26),   # Good Friday
        date(2027, 7, 5),    # July 4th on a Sunday
        date(2027, 12, 24),  # Christmas on a Saturday
        date(2028, 1, 17),   # MLK Day
        date(2030, 5, 27),   # Memorial Day
    ],
)
def test_market_holidays_are_closed_in_any_year(day: date) -> None:
    assert is_trading_day(day) is False


def test_saturday_new_year_keeps_dec_31_open() -> None:
    assert date(2027, 12, 31) not in market_holidays(2027) | market_holidays(2028)
    assert is_trading_day(date(2027, 12, 31)) is True


def test_closure_count_per_year() -> None:
    assert len(market_holidays(2026)) == 10
    assert len(market_holidays(2028)) == 9


def test_text_helpers() -> None:
    assert clean_text(None) == ""
    assert clean_text("  +12.5% \n") == "+12.5%"
    assert slugify("filter change %") == "filter_change"
    assert slugify("///") == "snapshot"


def test_diagnostics_never_raise(driver, caplog) -> None:
    driver.screenshot_error = OSError("disk full")
    diagnostics = Diagnostics(driver, "shots")

    assert diagnostics.capture("dashboard_timeout") == ""
    assert "disk full" in caplog.text
    assert diagnostics.captured == []


def test_disabled_diagnostics_skip_the_driver(driver) -> None:
    assert Diagnostics(driver, "shots", enabled=False).capture("anything") == ""
    assert driver.screenshots == []


def test_diagnostics_name_files_by_stage(driver) -> None:
    path = Diagnostics(driver, "shots").capture("movers empty/table")

    assert path.startswith("shots/movers_empty_table_")
    assert path.endswith(".png")
    assert driver.screenshots == [path]
