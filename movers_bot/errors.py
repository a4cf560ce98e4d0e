"""
Exception hierarchy for the Movers bot.

Only the errors below are allowed to end a run. Everything else the
workflow meets (a filter control that cannot be found, a row without a
ticker) degrades to a smaller result instead of raising.
"""


class MoversBotError(Exception):
    """Base class for all bot errors."""


class ConfigError(MoversBotError):
    """Required configuration (credentials) is missing."""


class DriverTimeoutError(MoversBotError):
    """A bounded wait on the page expired."""


class AuthenticationError(MoversBotError):
    """Login could not be completed."""


class AuthTimeoutError(AuthenticationError):
    """The dashboard marker never appeared after submitting credentials."""


class ToolNotFoundError(MoversBotError):
    """The Movers tool could not be opened from the dashboard."""


class LocatorActionError(MoversBotError):
    """An element was found but acting on it raised."""

    def __init__(self, chain: str, strategy: str, cause: Exception):
        super().__init__(f"[{chain}] action via '{strategy}' failed: {cause}")
        self.chain = chain
        self.strategy = strategy
        self.cause = cause


class FilterApplicationError(MoversBotError):
    """A mandatory filter step could not be applied."""

    def __init__(self, step: str, reason: str = ""):
        message = f"Mandatory filter step '{step}' failed"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.step = step
