"""
Movers scrape workflow.

The run:
1. Log in (fatal on failure)
2. Open the Movers tool from the dashboard sidebar
3. Apply filters (each best-effort)
4. Final popup sweep
5. Wait for grid rows, or give up with an empty result
6. Scroll the grid so virtualized rows render, then reconcile rows
7. Write the JSON result

One browser session is opened per run and closed exactly once, whichever
way the run ends.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from movers_bot.auth import AuthenticationStep
from movers_bot.config import (
    MOVERS_SIDEBAR_SELECTOR, DASHBOARD_MARKER, MOVERS_TOOL_LABEL, GRID_ROW_SELECTOR,
    GRID_VIEWPORT_SELECTOR, GRID_SCROLL_OFFSET, ROWS_TIMEOUT, ELEMENT_TIMEOUT,
    TOOL_OPEN_SETTLE, GRID_RENDER_SETTLE, NO_MATCH_NOTE, OUTPUT_FILE,
    SCREENSHOT_DIR, SCREENSHOTS_ENABLED, Credentials
)
from movers_bot.errors import DriverTimeoutError, LocatorActionError, ToolNotFoundError
from movers_bot.filters import FilterPipeline, build_default_steps
from movers_bot.grid import GridRowReconciler
from movers_bot.locators import LocatorChain, click, css, script
from movers_bot.page_driver import PlaywrightDriver
from movers_bot.popups import PopupDismisser
from movers_bot.results import ResultSink, RunResult
from movers_bot.utils import Diagnostics, is_premarket_hours

logger = logging.getLogger('movers_bot.workflow')

# Sidebar entries are icon tiles; the label only shows in their text.
OPEN_TOOL_BY_TEXT_JS = """
({sidebar, label}) => {
    const root = document.querySelector(sidebar);
    if (!root) return false;
    const tile = Array.from(root.children).find(el => (el.innerText || '').includes(label));
    if (!tile) return false;
    tile.click();
    return true;
}
"""

SCROLL_GRID_JS = """
({viewport, offset}) => {
    const scrollable = document.querySelector(viewport);
    if (scrollable) {
        scrollable.scrollTo(0, offset);
        return true;
    }
    window.scrollBy(0, offset / 2);
    return false;
}
"""


def movers_tool_chain() -> LocatorChain:
    return LocatorChain("open_movers", [
        css(MOVERS_SIDEBAR_SELECTOR, click()),
        script("sidebar_text", OPEN_TOOL_BY_TEXT_JS, {'sidebar': DASHBOARD_MARKER, 'label': MOVERS_TOOL_LABEL}),
    ])


class MoversScraper:
    """
    Drives one logged-out page to a RunResult.

    Usage:
        with PlaywrightDriver.launch() as driver:
            result = MoversScraper(driver).run(credentials)
    """

    def __init__(self, driver, diagnostics: Diagnostics = None, dismisser: PopupDismisser = None,
                 steps=None, rows_timeout: float = ROWS_TIMEOUT):
        self.driver = driver
        self.diagnostics = diagnostics or Diagnostics(driver, SCREENSHOT_DIR, enabled=False)
        self.dismisser = dismisser or PopupDismisser()
        self.steps = steps if steps is not None else build_default_steps()
        self.rows_timeout = rows_timeout

    def run(self, credentials: Credentials) -> RunResult:
        AuthenticationStep(self.driver, self.diagnostics).run(credentials)

        self.open_movers_tool()

        FilterPipeline(
            self.driver, self.steps,
            dismisser=self.dismisser,
            diagnostics=self.diagnostics,
        ).run()

        self.dismisser.dismiss(self.driver)

        logger.info("Waiting for Movers data table...")
        if not self.wait_for_rows():
            logger.info("No data rows found matching the filter criteria. Returning empty result set.")
            self.diagnostics.capture('movers_empty_table')
            return RunResult(records=[], note=NO_MATCH_NOTE)

        logger.info("Extracting data...")
        self.scroll_grid()
        records = GridRowReconciler(self.driver).extract()
        logger.info(f"Found {len(records)} stocks matching all filter criteria.")
        return RunResult(records=records)

    def open_movers_tool(self):
        """
        Click the Movers tile in the dashboard sidebar.

        Raises:
            ToolNotFoundError: neither the positional selector nor the text scan worked
        """
        logger.info("Opening Movers tool...")
        try:
            self.driver.wait_for(MOVERS_SIDEBAR_SELECTOR, timeout=ELEMENT_TIMEOUT)
        except DriverTimeoutError:
            logger.info("Movers icon selector not found, trying fallback text search...")

        try:
            strategy = movers_tool_chain().run(self.driver)
        except LocatorActionError as e:
            self.diagnostics.capture('movers_tool_error')
            raise ToolNotFoundError(str(e)) from e

        if strategy is None:
            self.diagnostics.capture('movers_tool_not_found')
            raise ToolNotFoundError("Could not find Movers icon")

        logger.info(f"Movers tool opened via {strategy}")
        # Filter controls mount asynchronously after the tool window opens
        self.driver.pause(TOOL_OPEN_SETTLE)

    def wait_for_rows(self) -> bool:
        try:
            self.driver.wait_for(GRID_ROW_SELECTOR, timeout=self.rows_timeout)
            return True
        except DriverTimeoutError:
            return False

    def scroll_grid(self):
        """Scroll the grid viewport so the virtualized rows get rendered."""
        self.driver.evaluate(SCROLL_GRID_JS, {'viewport': GRID_VIEWPORT_SELECTOR, 'offset': GRID_SCROLL_OFFSET})
        self.driver.pause(GRID_RENDER_SETTLE)


def run_scrape(credentials: Credentials, output_path: str = OUTPUT_FILE, headless: bool = None,
               screenshots: bool = SCREENSHOTS_ENABLED,
               driver_factory: Optional[Callable[..., object]] = None) -> RunResult:
    """
    One complete run: browser session, scrape, JSON file.

    Args:
        credentials: Benzinga login
        output_path: Where the JSON result goes
        headless: Override config.HEADLESS_MODE
        screenshots: Write diagnostic screenshots
        driver_factory: Callable returning a PageDriver (defaults to PlaywrightDriver.launch)

    Returns:
        The RunResult that was written
    """
    factory = driver_factory or PlaywrightDriver.launch

    logger.info("=" * 60)
    logger.info(f"MOVERS SCRAPE START: {datetime.now()}")
    logger.info("=" * 60)
    if not is_premarket_hours():
        logger.warning("Running outside the pre-market session; PreMarket movers may be stale or empty")

    with factory(headless=headless) as driver:
        diagnostics = Diagnostics(driver, SCREENSHOT_DIR, enabled=screenshots)
        result = MoversScraper(driver, diagnostics).run(credentials)

    ResultSink(output_path).write(result)

    logger.info("=" * 60)
    logger.info(f"MOVERS SCRAPE COMPLETE: {len(result.records)} records")
    logger.info("=" * 60)
    return result
