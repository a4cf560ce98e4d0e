from __future__ import annotations

from typing import Any, Callable

import pytest

from movers_bot.auth import ANY_EMAIL_FIELD
from movers_bot.config import (
    DASHBOARD_MARKER, EMAIL_SELECTOR, GRID_ROW_SELECTOR, LOGIN_BUTTON_SELECTORS,
    MOVERS_SIDEBAR_SELECTOR, PASSWORD_SELECTOR, Credentials
)
from movers_bot.errors import DriverTimeoutError
from movers_bot.page_driver import PageDriver


class FakeElement:
    def __init__(self, name: str, error: Exception | None = None) -> None:
        self.name = name
        self.error = error

    def __repr__(self) -> str:
        return f"FakeElement({self.name!r})"


class FakeDriver(PageDriver):
    """In-memory PageDriver: selectors, texts and scripts are canned."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.elements: dict[str, list[FakeElement]] = {}
        self.text_elements: dict[tuple[str, str], FakeElement] = {}
        self.scripts: dict[str, Any] = {}
        self.present: set[str] = set()
        self.conditions: dict[str, bool] = {}
        self.clicked: list[str] = []
        self.typed: dict[str, str] = {}
        self.pauses: list[float] = []
        self.screenshots: list[str] = []
        self.screenshot_error: Exception | None = None
        self.load_state_timeout = False
        self.close_count = 0

    def add(self, selector: str, name: str | None = None, error: Exception | None = None) -> FakeElement:
        element = FakeElement(name or selector, error)
        self.elements.setdefault(selector, []).append(element)
        return element

    def add_text(self, selector: str, text: str, error: Exception | None = None) -> FakeElement:
        element = FakeElement(f"{selector}={text}", error)
        self.text_elements[(selector, text)] = element
        return element

    def on_script(self, js: str, handler: Callable[[Any], Any] | Any) -> None:
        self.scripts[js] = handler

    def script_calls(self, js: str) -> list[Any]:
        return [arg for method, (script, arg) in self._evaluations() if script == js]

    def _evaluations(self):
        return [(m, a) for m, a in self.calls if m == "evaluate"]

    # PageDriver --------------------------------------------------------
    def navigate(self, url, wait_until="networkidle", timeout=None):
        self.calls.append(("navigate", url))

    def wait_for(self, selector, timeout=None):
        self.calls.append(("wait_for", selector))
        if selector in self.present:
            return FakeElement(selector)
        raise DriverTimeoutError(f"'{selector}' not found")

    def wait_for_function(self, js, arg=None, timeout=None):
        self.calls.append(("wait_for_function", arg))
        if self.conditions.get(js):
            return True
        raise DriverTimeoutError("condition not met")

    def wait_for_load_state(self, state="domcontentloaded", timeout=None):
        self.calls.append(("wait_for_load_state", state))
        if self.load_state_timeout:
            raise DriverTimeoutError("load state")

    def evaluate(self, js, arg=None):
        self.calls.append(("evaluate", (js, arg)))
        handler = self.scripts.get(js)
        if callable(handler):
            return handler(arg)
        return handler

    def query(self, selector):
        self.calls.append(("query", selector))
        return list(self.elements.get(selector, []))

    def query_text(self, selector, text, exact=True):
        self.calls.append(("query_text", (selector, text)))
        return self.text_elements.get((selector, text))

    def click(self, target):
        self.calls.append(("click", target))
        if isinstance(target, FakeElement) and target.error:
            raise target.error
        self.clicked.append(target.name if isinstance(target, FakeElement) else target)

    def type(self, target, text):
        self.calls.append(("type", target))
        if isinstance(target, FakeElement) and target.error:
            raise target.error
        self.typed[target.name if isinstance(target, FakeElement) else target] = text

    def pause(self, seconds):
        self.pauses.append(seconds)

    def screenshot(self, path):
        if self.screenshot_error:
            raise self.screenshot_error
        self.screenshots.append(path)

    def close(self):
        self.close_count += 1


def make_logged_in_driver() -> FakeDriver:
    """A driver on which login and opening the Movers tool both succeed."""
    driver = FakeDriver()
    driver.present.update({ANY_EMAIL_FIELD, DASHBOARD_MARKER, MOVERS_SIDEBAR_SELECTOR})
    driver.add(EMAIL_SELECTOR, "email")
    driver.add(PASSWORD_SELECTOR, "password")
    driver.add(LOGIN_BUTTON_SELECTORS[0], "login_button")
    driver.add(MOVERS_SIDEBAR_SELECTOR, "movers_tile")
    return driver


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def logged_in_driver() -> FakeDriver:
    return make_logged_in_driver()


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(username="trader@example.com", password="s3cret")


@pytest.fixture
def rows_driver(logged_in_driver: FakeDriver) -> FakeDriver:
    logged_in_driver.present.add(GRID_ROW_SELECTOR)
    return logged_in_driver
