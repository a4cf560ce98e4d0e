from __future__ import annotations

import pytest

from movers_bot.auth import AuthenticationStep
from movers_bot.config import (
    BENZINGA_LOGIN_URL, DASHBOARD_MARKER, EMAIL_SELECTOR, LOGIN_BUTTON_SELECTORS, Credentials
)
from movers_bot.errors import AuthenticationError, AuthTimeoutError, ConfigError
from movers_bot.utils import Diagnostics


def test_login_fills_form_and_waits_for_dashboard(logged_in_driver, credentials) -> None:
    AuthenticationStep(logged_in_driver).run(credentials)

    assert logged_in_driver.calls[0] == ("navigate", BENZINGA_LOGIN_URL)
    assert logged_in_driver.typed == {"email": "trader@example.com", "password": "s3cret"}
    assert logged_in_driver.clicked == ["login_button"]
    assert ("wait_for", DASHBOARD_MARKER) in logged_in_driver.calls


def test_dashboard_timeout_is_fatal_with_snapshot(logged_in_driver, credentials) -> None:
    logged_in_driver.present.discard(DASHBOARD_MARKER)
    diagnostics = Diagnostics(logged_in_driver, "shots")

    with pytest.raises(AuthTimeoutError):
        AuthenticationStep(logged_in_driver, diagnostics).run(credentials)

    assert len(logged_in_driver.screenshots) == 1
    assert "dashboard_timeout_" in logged_in_driver.screenshots[0]


def test_navigation_wait_timeout_is_tolerated(logged_in_driver, credentials) -> None:
    logged_in_driver.load_state_timeout = True

    AuthenticationStep(logged_in_driver).run(credentials)

    assert ("wait_for", DASHBOARD_MARKER) in logged_in_driver.calls


def test_submit_falls_back_to_second_button(logged_in_driver, credentials) -> None:
    logged_in_driver.elements.pop(LOGIN_BUTTON_SELECTORS[0])
    logged_in_driver.add(LOGIN_BUTTON_SELECTORS[1], "legacy_button")

    AuthenticationStep(logged_in_driver).run(credentials)

    assert logged_in_driver.clicked == ["legacy_button"]


def test_missing_email_field_raises(logged_in_driver, credentials) -> None:
    logged_in_driver.elements.pop(EMAIL_SELECTOR)

    with pytest.raises(AuthenticationError, match="email field"):
        AuthenticationStep(logged_in_driver).run(credentials)

    assert ("wait_for", DASHBOARD_MARKER) not in logged_in_driver.calls


def test_blank_credentials_are_rejected_before_navigation(driver) -> None:
    with pytest.raises(ConfigError):
        AuthenticationStep(driver).run(Credentials(username="", password="x"))

    assert driver.calls == []
