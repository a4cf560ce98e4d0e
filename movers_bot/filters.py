"""
Filter Pipeline for the Movers tool

Applies the screening filters one control group at a time:
1. Movers type: Gainers
2. Session: PreMarket
3. Change % greater than 10 (ag-Grid Filters side panel)
4. Volume: Custom, min 100K
5. Price: Custom, $1 - $20

Every step is best-effort. A control that cannot be found is logged and
skipped, and extraction still runs on whatever the grid shows. Steps never
depend on each other's DOM changes, so any subset can be skipped safely.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from movers_bot.config import (
    FILTER_TYPE_LABEL, FILTER_SESSION_LABEL, CHANGE_PERCENT_MIN,
    VOLUME_MIN, PRICE_MIN, PRICE_MAX, STEP_SETTLE, SHORT_STEP_SETTLE, FINAL_SETTLE
)
from movers_bot.errors import DriverTimeoutError, FilterApplicationError, LocatorActionError
from movers_bot.locators import LocatorChain, LocatorStrategy, click, css, fill, script, text_scan
from movers_bot.popups import PopupDismisser

logger = logging.getLogger('movers_bot.filters')

RADIO_LABEL_SELECTOR = 'label.ant-radio-button-wrapper'

# =============================================================================
# PAGE SCRIPTS
# =============================================================================
# Any <label> with exactly this text; exact match keeps "Gainers" from
# hitting "Gainers & Losers". Clicks the label and its radio input.
SELECT_RADIO_JS = """
(labelText) => {
    const label = Array.from(document.querySelectorAll('label'))
        .find(l => (l.innerText || '').trim() === labelText);
    if (!label) return false;
    label.click();
    const input = label.querySelector('input');
    if (input) input.click();
    return true;
}
"""

RADIO_CHECKED_JS = """
(labelText) => Array.from(document.querySelectorAll('label.ant-radio-button-wrapper'))
    .some(l => (l.innerText || '').trim() === labelText && String(l.className).includes('checked'))
"""

# Opens the ag-Grid "Filters" side panel when needed, expands the column's
# group, sets operator and value, then restores the panel state. A failure
# after the first click comes back as {error} instead of a thrown exception.
COLUMN_FILTER_JS = """
async ({header, operator, value}) => {
    const sleep = ms => new Promise(r => setTimeout(r, ms));
    const setValue = (el, v) => {
        el.value = v;
        el.dispatchEvent(new Event('input', { bubbles: true }));
        el.dispatchEvent(new Event('change', { bubbles: true }));
    };
    const sideButton = () => Array.from(document.querySelectorAll('div')).find(d =>
        (d.innerText || '').trim() === 'Filters' && String(d.className).includes('ag-side-button'));
    const findGroup = () => Array.from(document.querySelectorAll('.ag-filter-toolpanel-group-wrapper'))
        .find(g => (g.innerText || '').includes(header));

    let opened = false;
    let acted = false;
    try {
        if (!findGroup()) {
            const button = sideButton();
            if (!button) return false;
            button.click();
            opened = acted = true;
            await sleep(1000);
        }
        const group = findGroup();
        if (!group) return false;

        const title = group.querySelector('.ag-filter-toolpanel-group-title-bar');
        if (title && !group.classList.contains('ag-filter-toolpanel-group-level-0-expanded')) {
            title.click();
            acted = true;
            await sleep(500);
        }

        const container = group.querySelector('.ag-filter-toolpanel-instance') || group;
        const input = container.querySelector('input[aria-label="Filter Value"]');
        if (!input) return false;
        acted = true;
        const select = container.querySelector('select');
        if (select) setValue(select, operator);
        setValue(input, value);
        await sleep(1000);
        return true;
    } catch (e) {
        if (!acted) throw e;
        return { error: String((e && e.message) || e) };
    } finally {
        if (opened) {
            const button = sideButton();
            if (button) button.click();
        }
    }
}
"""

# Clicks the "Custom" preset of a quick-filter section and fills its inputs
# in order. depth is how many <div> ancestors are checked for the section
# label when deciding whether an element belongs to the section. Errors
# after the first click come back as {error}.
CUSTOM_RANGE_JS = """
async ({customSection, section, inputSelector, values, depth}) => {
    const sleep = ms => new Promise(r => setTimeout(r, ms));
    const setValue = (el, v) => {
        el.value = v;
        el.dispatchEvent(new Event('input', { bubbles: true }));
        el.dispatchEvent(new Event('change', { bubbles: true }));
    };
    const inSection = (el, label) => {
        let node = el.closest('div');
        for (let i = 0; node && i < depth; i++) {
            if ((node.innerText || '').includes(label)) return true;
            node = node.parentElement ? node.parentElement.closest('div') : null;
        }
        return false;
    };

    const custom = Array.from(document.querySelectorAll('label')).find(l =>
        (l.innerText || '').trim() === 'Custom' && inSection(l, customSection));
    let acted = false;
    try {
        if (custom) {
            custom.click();
            acted = true;
            await sleep(500);
        }

        const inputs = Array.from(document.querySelectorAll(inputSelector)).filter(i => inSection(i, section));
        if (inputs.length < values.length) return false;
        acted = true;
        values.forEach((v, i) => setValue(inputs[i], v));
        return true;
    } catch (e) {
        if (!acted) throw e;
        return { error: String((e && e.message) || e) };
    }
}
"""


# =============================================================================
# DATA TYPES
# =============================================================================
@dataclass
class FilterStep:
    """
    One filter control group.

    settle_js (optional) is polled after the action until truthy, bounded by
    settle_delay; without it the step just waits settle_delay.
    """
    name: str
    strategies: List[LocatorStrategy]
    settle_delay: float = STEP_SETTLE
    mandatory: bool = False
    settle_js: Optional[str] = None
    settle_arg: Any = None

    @property
    def chain(self) -> LocatorChain:
        return LocatorChain(self.name, self.strategies)


@dataclass
class PipelineReport:
    """What the pipeline managed to apply."""
    applied: List[Tuple[str, str]] = field(default_factory=list)  # (step, strategy)
    skipped: List[str] = field(default_factory=list)

    @property
    def all_applied(self) -> bool:
        return not self.skipped


# =============================================================================
# DEFAULT STEPS
# =============================================================================
def radio_step(name: str, label: str) -> FilterStep:
    """Segmented radio button (Movers type / session) selected by exact label text."""
    return FilterStep(
        name=name,
        strategies=[
            text_scan(RADIO_LABEL_SELECTOR, label, exact=True, action=click()),
            script(f"{name}_any_label", SELECT_RADIO_JS, label),
        ],
        settle_delay=STEP_SETTLE,
        settle_js=RADIO_CHECKED_JS,
        settle_arg=label,
    )


def change_percent_step(minimum: str = CHANGE_PERCENT_MIN) -> FilterStep:
    return FilterStep(
        name="change_percent",
        strategies=[
            script("change_percent_toolpanel", COLUMN_FILTER_JS,
                   {'header': 'Change %', 'operator': 'greaterThan', 'value': minimum}),
            script("change_percent_loose", COLUMN_FILTER_JS,
                   {'header': 'Change', 'operator': 'greaterThan', 'value': minimum}),
        ],
        settle_delay=STEP_SETTLE,
    )


def volume_step(minimum: str = VOLUME_MIN) -> FilterStep:
    def _args(depth):
        return {'customSection': 'Volume', 'section': 'Volume',
                'inputSelector': 'input[placeholder="0"]', 'values': [minimum], 'depth': depth}

    return FilterStep(
        name="volume_min",
        strategies=[
            css('input[aria-label*="Volume" i][aria-label*="Min" i]', fill(minimum)),
            script("volume_custom", CUSTOM_RANGE_JS, _args(1)),
            script("volume_custom_wide", CUSTOM_RANGE_JS, _args(2)),
        ],
        settle_delay=SHORT_STEP_SETTLE,
    )


def price_step(minimum: str = PRICE_MIN, maximum: str = PRICE_MAX) -> FilterStep:
    def _args(depth):
        return {'customSection': 'Price', 'section': 'Price ($)',
                'inputSelector': 'input', 'values': [minimum, maximum], 'depth': depth}

    return FilterStep(
        name="price_range",
        strategies=[
            script("price_custom", CUSTOM_RANGE_JS, _args(1)),
            script("price_custom_wide", CUSTOM_RANGE_JS, _args(2)),
        ],
        settle_delay=STEP_SETTLE,
    )


def build_default_steps() -> List[FilterStep]:
    """The screening filters, in the order they are applied."""
    return [
        radio_step("type_gainers", FILTER_TYPE_LABEL),
        radio_step("session_premarket", FILTER_SESSION_LABEL),
        change_percent_step(),
        volume_step(),
        price_step(),
    ]


# =============================================================================
# PIPELINE
# =============================================================================
class FilterPipeline:
    """
    Runs FilterSteps strictly in sequence against one page.

    Usage:
        pipeline = FilterPipeline(driver, build_default_steps(), diagnostics=diag)
        report = pipeline.run()
    """

    def __init__(self, driver, steps: List[FilterStep], dismisser: PopupDismisser = None,
                 diagnostics=None, final_settle: float = FINAL_SETTLE):
        self.driver = driver
        self.steps = list(steps)
        self.dismisser = dismisser or PopupDismisser()
        self.diagnostics = diagnostics
        self.final_settle = final_settle

    def run(self) -> PipelineReport:
        """
        Apply every step once, then wait for the grid to settle.

        Returns:
            PipelineReport of applied and skipped steps

        Raises:
            FilterApplicationError: a mandatory step failed
        """
        logger.info(f"Applying {len(self.steps)} filters...")
        report = PipelineReport()

        for step in self.steps:
            strategy = self._run_step(step)
            if strategy:
                report.applied.append((step.name, strategy))
            else:
                report.skipped.append(step.name)

        logger.info(
            f"Filters applied: {[name for name, _ in report.applied] or 'none'}"
            f"{'; skipped: ' + str(report.skipped) if report.skipped else ''}"
        )
        logger.info(f"Waiting up to {self.final_settle}s for the grid to refresh...")
        self.driver.pause(self.final_settle)
        return report

    def _run_step(self, step: FilterStep) -> Optional[str]:
        self.dismisser.dismiss(self.driver)
        logger.info(f"[{step.name}] Applying...")

        try:
            strategy = step.chain.run(self.driver)
        except LocatorActionError as e:
            if step.mandatory:
                raise FilterApplicationError(step.name, str(e)) from e
            logger.warning(f"[{step.name}] Action failed, skipping filter: {e}")
            self._snapshot(f"filter_{step.name}_failed")
            return None

        if strategy is None:
            if step.mandatory:
                self._snapshot(f"filter_{step.name}_failed")
                raise FilterApplicationError(step.name, "no locator strategy matched")
            logger.warning(f"[{step.name}] Could not find filter control, continuing without it")
            self._snapshot(f"filter_{step.name}_failed")
            return None

        self._settle(step)
        self._snapshot(f"filter_{step.name}")
        logger.info(f"[{step.name}] SUCCESS via {strategy}")
        return strategy

    def _settle(self, step: FilterStep):
        if step.settle_js is None:
            self.driver.pause(step.settle_delay)
            return
        try:
            self.driver.wait_for_function(step.settle_js, step.settle_arg, timeout=step.settle_delay)
        except DriverTimeoutError:
            logger.debug(f"[{step.name}] settle condition not met within {step.settle_delay}s")

    def _snapshot(self, stage: str):
        if self.diagnostics is not None:
            self.diagnostics.capture(stage)
