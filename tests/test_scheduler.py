from __future__ import annotations

import pytest
import schedule

from movers_bot import scheduler


@pytest.fixture(autouse=True)
def _clear_schedule():
    yield
    schedule.clear()


def test_one_job_per_weekday() -> None:
    jobs = scheduler.schedule_jobs(lambda: None, "08:30")

    assert len(jobs) == 5
    assert sorted(job.start_day for job in jobs) == sorted(scheduler.WEEKDAYS)


def test_safe_execute_skips_non_trading_days(monkeypatch) -> None:
    ran = []
    monkeypatch.setattr(scheduler, "is_trading_day", lambda: False)

    assert scheduler.safe_execute(lambda: ran.append(1)) is False
    assert ran == []


def test_safe_execute_survives_failures(monkeypatch, caplog) -> None:
    monkeypatch.setattr(scheduler, "is_trading_day", lambda: True)

    def _fail():
        raise RuntimeError("browser crashed")

    assert scheduler.safe_execute(_fail) is False
    assert "browser crashed" in caplog.text


def test_et_to_local_time_format() -> None:
    local = scheduler.et_to_local_time(8, 30)

    hours, minutes = local.split(":")
    assert len(hours) == 2 and len(minutes) == 2
    assert minutes == "30"
