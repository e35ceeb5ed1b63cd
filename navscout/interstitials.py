"""
Interstitial dismissal: best-effort removal of one cookie / consent
overlay so it does not intercept later hovers and clicks.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .page_driver import DriverError

logger = logging.getLogger(__name__)

CONSENT_SELECTORS: List[str] = [
    # Text buttons
    'button:has-text("Accept")',
    'button:has-text("Accept All")',
    'button:has-text("Accept all")',
    'button:has-text("Got it")',
    'button:has-text("I agree")',
    'button:has-text("OK")',
    # Buttons inside cookie / consent containers
    '[id*="cookie"] button',
    '[class*="cookie"] button',
    '[id*="consent"] button',
    '[class*="consent"] button',
]


async def dismiss_interstitials(
    driver,
    *,
    selectors: Optional[Sequence[str]] = None,
    visible_timeout_ms: int = 500,
    click_timeout_ms: int = 1000,
    settle_ms: int = 500,
) -> Optional[str]:
    """Click the first visible consent button, at most one per call.

    Returns the selector that was dismissed, or None.  Never raises for
    a missing or unclickable banner: absence is the normal case.
    """
    for selector in selectors or CONSENT_SELECTORS:
        try:
            button = driver.locate(selector).first
            if not await button.is_visible(timeout=visible_timeout_ms):
                continue
            await button.click(timeout=click_timeout_ms)
            await driver.wait(settle_ms)
        except DriverError:
            continue
        logger.debug(f"[COOKIE] Dismissed via: {selector}")
        return selector
    return None
