"""
Page Driver
===========
The capability boundary between the discovery engine and Playwright.

Every DOM read and interaction the engine performs goes through one
``PageDriver`` wrapping a single Playwright ``Page``:

  - ``navigate``          load a URL, return the HTTP status (or None)
  - ``query_elements``    read ``{href, text}`` for every match of a scope
  - ``locate``            a Playwright ``Locator`` for hover / click / count
  - ``scroll_to_bottom``  scroll the window to the end of the document
  - ``wait``              fixed settle delay
  - ``close``             release the page

The engine never evaluates page scripts other than the read-only query
and the scroll below.  Tests substitute an in-memory page with the same
methods.
"""

from __future__ import annotations

import logging
from typing import List, NamedTuple, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

logger = logging.getLogger(__name__)

# Raised by every Playwright call that fails (TimeoutError is a subclass).
DriverError = PlaywrightError

DEFAULT_SCOPE = 'a[href]'

# Read-only query evaluated in page context
_QUERY_ELEMENTS_JS = """(selector) => {
    const anchors = Array.from(document.querySelectorAll(selector));
    return anchors.map(a => ({
        href: a.getAttribute('href') || '',
        text: (a.textContent || '').trim().replace(/\\s+/g, ' '),
    }));
}"""

_SCROLL_TO_BOTTOM_JS = "() => window.scrollTo(0, document.body.scrollHeight)"


class ElementRecord(NamedTuple):
    """Fixed record returned by a DOM query."""
    href: str
    text: str


class PageDriver:
    """Explicit browsing capabilities over one Playwright page."""

    def __init__(self, page: Page):
        self.page = page

    @property
    def url(self) -> str:
        return self.page.url

    async def navigate(
        self,
        url: str,
        *,
        wait_until: str = "domcontentloaded",
        timeout_ms: int = 30000,
    ) -> Optional[int]:
        """Load ``url``.  Returns the response status, None when the
        navigation produced no response (same-document navigations)."""
        response = await self.page.goto(url, wait_until=wait_until, timeout=timeout_ms)
        return response.status if response is not None else None

    async def query_elements(self, scope: str = DEFAULT_SCOPE) -> List[ElementRecord]:
        """Read href + collapsed text of every element matching ``scope``."""
        raw = await self.page.evaluate(_QUERY_ELEMENTS_JS, scope)
        return [
            ElementRecord(href=item.get('href') or '', text=item.get('text') or '')
            for item in (raw or [])
        ]

    def locate(self, selector: str) -> Locator:
        return self.page.locator(selector)

    async def scroll_to_bottom(self) -> None:
        await self.page.evaluate(_SCROLL_TO_BOTTOM_JS)

    async def wait(self, duration_ms: int) -> None:
        await self.page.wait_for_timeout(duration_ms)

    async def title(self) -> str:
        return await self.page.title()

    async def content(self) -> str:
        return await self.page.content()

    async def close(self) -> None:
        """Close the page; a page that is already gone is not an error."""
        try:
            await self.page.close()
        except DriverError as e:
            logger.debug(f"[PAGE] Close failed: {e}")
