"""
Popup dismissal between workflow steps.

Benzinga Pro throws up onboarding prompts, "what's new" dialogs and
window-placement questions at unpredictable moments. The dismisser makes a
single pass over the page and clicks the first thing that looks like a way
out. It never loops; callers interleave it between real actions.
"""

import logging

from movers_bot.config import POPUP_SETTLE

logger = logging.getLogger('movers_bot.popups')

# Exact button texts, a class-name fragment and the onboarding CTA that
# answers "open in workspace or new window?". Order is priority.
DISMISS_TEXTS = ['Close', 'DONE']
DISMISS_CLASS_FRAGMENT = 'close-icon'
ONBOARDING_CTA_TEXT = 'In Workspace'

DISMISS_POPUP_JS = """
({texts, classFragment, ctaText}) => {
    const candidates = Array.from(document.querySelectorAll('button, div[role="button"], span'));
    const closeTarget = candidates.find(el => {
        const text = (el.innerText || '').trim();
        const cls = typeof el.className === 'string' ? el.className : '';
        return texts.includes(text) || cls.includes(classFragment);
    });
    if (closeTarget) {
        closeTarget.click();
        return 'close';
    }

    const cta = Array.from(document.querySelectorAll('button'))
        .find(b => (b.innerText || '').includes(ctaText));
    if (cta) {
        cta.click();
        return 'onboarding';
    }
    return null;
}
"""


class PopupDismisser:
    """Single-pass, at-most-one-click overlay dismissal."""

    def __init__(self, settle: float = POPUP_SETTLE):
        self.settle = settle
        self.dismissed_count = 0

    def dismiss(self, driver) -> bool:
        """
        Click the first dismiss indicator on the page, if any.

        Args:
            driver: PageDriver for the live page

        Returns:
            True if something was clicked
        """
        logger.debug("Checking for popups...")
        try:
            kind = driver.evaluate(DISMISS_POPUP_JS, {
                'texts': DISMISS_TEXTS,
                'classFragment': DISMISS_CLASS_FRAGMENT,
                'ctaText': ONBOARDING_CTA_TEXT,
            })
        except Exception as e:
            logger.debug(f"Popup scan failed: {e}")
            return False

        if not kind:
            return False

        self.dismissed_count += 1
        logger.info(f"Dismissed popup #{self.dismissed_count} ({kind})")
        driver.pause(self.settle)
        return True
