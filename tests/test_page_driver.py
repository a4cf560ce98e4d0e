from __future__ import annotations

from movers_bot.page_driver import PlaywrightDriver


class _Resource:
    def __init__(self, log: list, name: str, error: Exception | None = None) -> None:
        self.log = log
        self.name = name
        self.error = error

    def _release(self) -> None:
        self.log.append(self.name)
        if self.error:
            raise self.error

    close = _release
    stop = _release


def test_close_releases_everything_even_when_one_step_fails(caplog) -> None:
    released: list = []
    driver = PlaywrightDriver(
        page=None,
        context=_Resource(released, "context", RuntimeError("connection reset")),
        browser=_Resource(released, "browser"),
        playwright=_Resource(released, "playwright"),
    )

    driver.close()

    assert released == ["context", "browser", "playwright"]
    assert "connection reset" in caplog.text


def test_close_is_idempotent() -> None:
    released: list = []
    driver = PlaywrightDriver(page=None, browser=_Resource(released, "browser"))

    driver.close()
    driver.close()

    assert released == ["browser"]
