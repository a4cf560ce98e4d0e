from __future__ import annotations

from movers_bot import popups
from movers_bot.popups import DISMISS_POPUP_JS, PopupDismisser


def test_dismisses_once_and_waits(driver) -> None:
    driver.on_script(DISMISS_POPUP_JS, "close")
    dismisser = PopupDismisser(settle=0.25)

    assert dismisser.dismiss(driver) is True
    assert driver.pauses == [0.25]
    assert len(driver.script_calls(DISMISS_POPUP_JS)) == 1
    assert dismisser.dismissed_count == 1


def test_nothing_to_dismiss_is_a_no_op(driver) -> None:
    dismisser = PopupDismisser()

    assert dismisser.dismiss(driver) is False
    assert dismisser.dismiss(driver) is False
    assert driver.pauses == []
    assert dismisser.dismissed_count == 0


def test_scan_passes_the_fixed_indicators(driver) -> None:
    PopupDismisser().dismiss(driver)

    (arg,) = driver.script_calls(DISMISS_POPUP_JS)
    assert arg == {"texts": ["Close", "DONE"], "classFragment": "close-icon", "ctaText": "In Workspace"}


def test_scan_errors_are_reported_as_nothing_dismissed(driver, caplog) -> None:
    def _explode(_arg):
        raise RuntimeError("Execution context was destroyed")

    driver.on_script(DISMISS_POPUP_JS, _explode)

    with caplog.at_level("DEBUG", logger=popups.logger.name):
        assert PopupDismisser().dismiss(driver) is False
    assert "Popup scan failed" in caplog.text
