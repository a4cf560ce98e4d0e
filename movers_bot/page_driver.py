"""
Page driver for the Movers bot.

Every step of the workflow talks to the browser through the small PageDriver
surface below, never to Playwright directly. PlaywrightDriver is the real
implementation; tests substitute an in-memory fake.
"""

import logging
from typing import Any, List, Optional, Union

from playwright.sync_api import sync_playwright, Page, Browser, BrowserContext, ElementHandle
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from movers_bot.config import (
    HEADLESS_MODE, SLOW_MO, VIEWPORT, BROWSER_ARGS,
    PAGE_LOAD_TIMEOUT, ELEMENT_TIMEOUT
)
from movers_bot.errors import DriverTimeoutError

logger = logging.getLogger('movers_bot.driver')

Target = Union[str, Any]

# Text match over the elements of a selector. Runs in the page so a single
# round trip covers hundreds of candidates.
_FIND_BY_TEXT_JS = """
([selector, text, exact]) => {
    const els = Array.from(document.querySelectorAll(selector));
    return els.find(el => {
        const t = (el.innerText || '').trim();
        return exact ? t === text : t.includes(text);
    }) || null;
}
"""


def _ms(seconds: float) -> float:
    return seconds * 1000


class PageDriver:
    """
    Capability interface the workflow is written against.

    Targets are either a CSS selector string or a handle previously returned
    by query()/query_text()/wait_for().
    """

    def navigate(self, url: str, wait_until: str = "networkidle", timeout: float = PAGE_LOAD_TIMEOUT):
        raise NotImplementedError

    def wait_for(self, selector: str, timeout: float = ELEMENT_TIMEOUT):
        """Wait for selector to be attached; raise DriverTimeoutError on expiry."""
        raise NotImplementedError

    def wait_for_function(self, js: str, arg: Any = None, timeout: float = ELEMENT_TIMEOUT):
        """Poll js in the page until truthy; raise DriverTimeoutError on expiry."""
        raise NotImplementedError

    def wait_for_load_state(self, state: str = "domcontentloaded", timeout: float = PAGE_LOAD_TIMEOUT):
        raise NotImplementedError

    def evaluate(self, js: str, arg: Any = None) -> Any:
        raise NotImplementedError

    def query(self, selector: str) -> List[Any]:
        raise NotImplementedError

    def query_text(self, selector: str, text: str, exact: bool = True) -> Optional[Any]:
        raise NotImplementedError

    def click(self, target: Target):
        raise NotImplementedError

    def type(self, target: Target, text: str):
        """Replace the value of an input with text."""
        raise NotImplementedError

    def pause(self, seconds: float):
        raise NotImplementedError

    def screenshot(self, path: str):
        raise NotImplementedError

    def close(self):
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class PlaywrightDriver(PageDriver):
    """
    PageDriver backed by a Playwright Chromium page (sync API).

    Usage:
        with PlaywrightDriver.launch(headless=False) as driver:
            driver.navigate(BENZINGA_LOGIN_URL)
    """

    def __init__(self, page: Page, playwright=None, browser: Browser = None,
                 context: BrowserContext = None):
        self.page = page
        self.playwright = playwright
        self.browser = browser
        self.context = context
        self.closed = False

    @classmethod
    def launch(cls, headless: bool = None, slow_mo: int = SLOW_MO) -> 'PlaywrightDriver':
        """
        Start Chromium and open a single page.

        Args:
            headless: Override config.HEADLESS_MODE
            slow_mo: Milliseconds of delay Playwright inserts between actions

        Returns:
            A driver owning the whole browser process
        """
        if headless is None:
            headless = HEADLESS_MODE

        logger.info(f"Starting browser (headless={headless})...")
        playwright = sync_playwright().start()
        try:
            browser = playwright.chromium.launch(
                headless=headless,
                slow_mo=slow_mo,
                args=BROWSER_ARGS,
            )
            context = browser.new_context(viewport=VIEWPORT)
            page = context.new_page()
        except Exception:
            playwright.stop()
            raise

        page.set_default_timeout(_ms(ELEMENT_TIMEOUT))
        page.set_default_navigation_timeout(_ms(PAGE_LOAD_TIMEOUT))

        logger.info("Browser started successfully")
        return cls(page, playwright=playwright, browser=browser, context=context)

    def navigate(self, url: str, wait_until: str = "networkidle", timeout: float = PAGE_LOAD_TIMEOUT):
        logger.info(f"Navigating to {url} (wait_until={wait_until})")
        try:
            self.page.goto(url, wait_until=wait_until, timeout=_ms(timeout))
        except PlaywrightTimeoutError as e:
            raise DriverTimeoutError(f"Navigation to {url} timed out after {timeout}s") from e

    def wait_for(self, selector: str, timeout: float = ELEMENT_TIMEOUT):
        try:
            return self.page.wait_for_selector(selector, state="attached", timeout=_ms(timeout))
        except PlaywrightTimeoutError as e:
            raise DriverTimeoutError(f"'{selector}' not found within {timeout}s") from e

    def wait_for_function(self, js: str, arg: Any = None, timeout: float = ELEMENT_TIMEOUT):
        try:
            return self.page.wait_for_function(js, arg=arg, timeout=_ms(timeout))
        except PlaywrightTimeoutError as e:
            raise DriverTimeoutError(f"Page condition not met within {timeout}s") from e

    def wait_for_load_state(self, state: str = "domcontentloaded", timeout: float = PAGE_LOAD_TIMEOUT):
        try:
            self.page.wait_for_load_state(state, timeout=_ms(timeout))
        except PlaywrightTimeoutError as e:
            raise DriverTimeoutError(f"Load state '{state}' not reached within {timeout}s") from e

    def evaluate(self, js: str, arg: Any = None) -> Any:
        return self.page.evaluate(js, arg)

    def query(self, selector: str) -> List[ElementHandle]:
        return self.page.query_selector_all(selector)

    def query_text(self, selector: str, text: str, exact: bool = True) -> Optional[ElementHandle]:
        handle = self.page.evaluate_handle(_FIND_BY_TEXT_JS, [selector, text, exact])
        element = handle.as_element()
        if element is None:
            handle.dispose()
        return element

    def click(self, target: Target):
        if isinstance(target, str):
            self.page.click(target)
        else:
            target.click()

    def type(self, target: Target, text: str):
        if isinstance(target, str):
            self.page.fill(target, text)
        else:
            target.fill(text)

    def pause(self, seconds: float):
        if seconds > 0:
            self.page.wait_for_timeout(_ms(seconds))

    def screenshot(self, path: str):
        self.page.screenshot(path=path)

    def close(self):
        """Release page, context, browser and Playwright. Safe to call twice."""
        if self.closed:
            return
        self.closed = True

        logger.info("Closing browser...")
        for name, resource, method in (
            ('context', self.context, 'close'),
            ('browser', self.browser, 'close'),
            ('playwright', self.playwright, 'stop'),
        ):
            if resource is None:
                continue
            try:
                getattr(resource, method)()
            except Exception as e:
                logger.warning(f"Error closing {name}: {e}")
        logger.info("Browser closed")
