"""
Benzinga Pro login.

Login is the one fatal step of the run: without a session nothing
downstream means anything, so every failure here raises.
"""

import logging

from movers_bot.config import (
    BENZINGA_LOGIN_URL, EMAIL_SELECTOR, PASSWORD_SELECTOR, LOGIN_BUTTON_SELECTORS,
    DASHBOARD_MARKER, DASHBOARD_TIMEOUT, LOGIN_NAVIGATION_TIMEOUT, ELEMENT_TIMEOUT,
    PAGE_LOAD_TIMEOUT, Credentials
)
from movers_bot.errors import AuthenticationError, AuthTimeoutError, ConfigError, DriverTimeoutError, LocatorActionError
from movers_bot.locators import LocatorChain, click, css, fill, text_scan

logger = logging.getLogger('movers_bot.auth')

ANY_EMAIL_FIELD = f'{EMAIL_SELECTOR}, input[name="email"], input[placeholder*="email" i]'


def email_chain(username: str) -> LocatorChain:
    return LocatorChain("email_field", [
        css(EMAIL_SELECTOR, fill(username)),
        css('input[name="email"]', fill(username)),
        css('input[placeholder*="email" i]', fill(username)),
    ])


def password_chain(password: str) -> LocatorChain:
    return LocatorChain("password_field", [
        css(PASSWORD_SELECTOR, fill(password), name="css:password"),
        css('input[name="password"]', fill(password), name="css:name=password"),
    ])


def submit_chain() -> LocatorChain:
    strategies = [css(selector, click()) for selector in LOGIN_BUTTON_SELECTORS]
    strategies.append(text_scan('button', 'Log In', exact=False, action=click()))
    return LocatorChain("login_button", strategies)


class AuthenticationStep:
    """
    Fill the login form, submit, and wait for the dashboard sidebar.

    Usage:
        AuthenticationStep(driver, diagnostics).run(load_credentials())
    """

    def __init__(self, driver, diagnostics=None, login_url: str = BENZINGA_LOGIN_URL,
                 dashboard_timeout: float = DASHBOARD_TIMEOUT,
                 navigation_timeout: float = LOGIN_NAVIGATION_TIMEOUT):
        self.driver = driver
        self.diagnostics = diagnostics
        self.login_url = login_url
        self.dashboard_timeout = dashboard_timeout
        self.navigation_timeout = navigation_timeout

    def run(self, credentials: Credentials):
        """
        Log in with the given credentials.

        Raises:
            ConfigError: a credential is empty
            AuthenticationError: the form could not be filled or submitted
            AuthTimeoutError: the dashboard never appeared
        """
        if not credentials.username or not credentials.password:
            raise ConfigError("Username and password must both be non-empty")

        logger.info("Navigating to login page...")
        try:
            self.driver.navigate(self.login_url, wait_until="networkidle", timeout=PAGE_LOAD_TIMEOUT)
        except DriverTimeoutError as e:
            self._snapshot('login_page_timeout')
            raise AuthenticationError(f"Login page did not load: {e}") from e

        logger.info("Entering credentials...")
        try:
            self.driver.wait_for(ANY_EMAIL_FIELD, timeout=ELEMENT_TIMEOUT)
        except DriverTimeoutError:
            logger.warning("Email field did not appear in time, trying fallbacks anyway")

        self._require(email_chain(credentials.username), 'login_error_email')
        self._require(password_chain(credentials.password), 'login_error_password')

        logger.info("Logging in...")
        self._require(submit_chain(), 'login_error_submit')

        try:
            self.driver.wait_for_load_state("domcontentloaded", timeout=self.navigation_timeout)
        except DriverTimeoutError as e:
            logger.info(f"Navigation wait timed out or skipped, proceeding to find dashboard... {e}")

        logger.info("Waiting for Dashboard...")
        try:
            self.driver.wait_for(DASHBOARD_MARKER, timeout=self.dashboard_timeout)
        except DriverTimeoutError as e:
            logger.error("Timeout waiting for dashboard sidebar. Snapshotting...")
            self._snapshot('dashboard_timeout')
            raise AuthTimeoutError(
                f"Dashboard marker '{DASHBOARD_MARKER}' not visible after {self.dashboard_timeout}s"
            ) from e

        logger.info("LOGIN CHECKPOINT PASSED: dashboard sidebar visible")

    def _require(self, chain: LocatorChain, stage: str):
        try:
            strategy = chain.run(self.driver)
        except LocatorActionError as e:
            self._snapshot(stage)
            raise AuthenticationError(str(e)) from e
        if strategy is None:
            self._snapshot(stage)
            raise AuthenticationError(f"Could not find {chain.name.replace('_', ' ')}")

    def _snapshot(self, stage: str):
        if self.diagnostics is not None:
            self.diagnostics.capture(stage)
