"""
Locator strategies and chains.

Benzinga Pro renders its controls with generated class names that drift
between releases, so no control is addressed by a single selector. A
LocatorChain holds alternatives in descending specificity (attribute
selector, then text-content scan, then a structural script) and uses the
first one that finds its element.

A chain that finds nothing returns None. Only an action that blows up after
its element was found is raised, as LocatorActionError.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from movers_bot.errors import LocatorActionError

logger = logging.getLogger('movers_bot.locators')

Finder = Callable[[Any], Any]
Action = Callable[[Any, Any], None]


@dataclass
class LocatorStrategy:
    """
    One way of finding (and optionally acting on) a UI target.

    find(driver) returns a truthy handle when the target exists and a falsy
    value when it does not. action(driver, handle) performs the click/type.
    """
    name: str
    find: Finder
    action: Optional[Action] = None


class LocatorChain:
    """Ordered strategies for one logical UI target; first success wins."""

    def __init__(self, name: str, strategies: List[LocatorStrategy]):
        self.name = name
        self.strategies = list(strategies)

    def run(self, driver) -> Optional[str]:
        """
        Try each strategy in order against the current page.

        Args:
            driver: PageDriver for the live page

        Returns:
            Name of the strategy that succeeded, or None if none matched

        Raises:
            LocatorActionError: a strategy matched but its action raised
        """
        for strategy in self.strategies:
            try:
                handle = strategy.find(driver)
            except Exception as e:
                logger.debug(f"[{self.name}] find via '{strategy.name}' raised: {e}")
                continue

            if not handle:
                logger.debug(f"[{self.name}] no match via '{strategy.name}'")
                continue

            if strategy.action is not None:
                try:
                    strategy.action(driver, handle)
                except Exception as e:
                    raise LocatorActionError(self.name, strategy.name, e) from e

            logger.debug(f"[{self.name}] matched via '{strategy.name}'")
            return strategy.name

        logger.debug(f"[{self.name}] all {len(self.strategies)} strategies failed")
        return None

    def __repr__(self):
        return f"LocatorChain({self.name!r}, {[s.name for s in self.strategies]})"


# =============================================================================
# ACTIONS
# =============================================================================
def click() -> Action:
    def _click(driver, handle):
        driver.click(handle)
    return _click


def fill(text: str) -> Action:
    def _fill(driver, handle):
        driver.type(handle, text)
    return _fill


# =============================================================================
# STRATEGY BUILDERS
# =============================================================================
def css(selector: str, action: Optional[Action] = None, name: str = None) -> LocatorStrategy:
    """First element matching a CSS/attribute selector."""
    def _find(driver):
        handles = driver.query(selector)
        return handles[0] if handles else None
    return LocatorStrategy(name or f"css:{selector}", _find, action)


def text_scan(selector: str, text: str, exact: bool = True,
              action: Optional[Action] = None, name: str = None) -> LocatorStrategy:
    """First element under selector whose trimmed text equals (or contains) text."""
    def _find(driver):
        return driver.query_text(selector, text, exact)
    mode = "=" if exact else "~"
    return LocatorStrategy(name or f"text:{selector}{mode}{text}", _find, action)


def script(name: str, js: str, arg: Any = None) -> LocatorStrategy:
    """
    Structural fallback evaluated in the page.

    The script performs its own action and returns truthy when it found its
    target, falsy when it did not. Finding and acting happen in one page
    call, so a script that throws counts as "not found". A script that fails
    after it has already clicked or typed must catch that itself and return
    {error: message}; the chain then raises LocatorActionError.
    """
    def _find(driver):
        return driver.evaluate(js, arg)

    def _check(driver, result):
        if isinstance(result, dict) and result.get('error'):
            raise RuntimeError(result['error'])

    return LocatorStrategy(f"script:{name}", _find, _check)
