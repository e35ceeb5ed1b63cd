"""
In-memory stand-ins for a browser page and session.

``FakePage`` implements the ``PageDriver`` surface over a list of
anchors.  Each anchor carries the set of scope selectors it matches, so
``query_elements('nav a')`` returns exactly the anchors tagged with
``'nav a'`` (and ``'a[href]'`` returns every anchor).  Interactive
elements are registered per selector and may mutate the page when
hovered or clicked, e.g. to reveal a dropdown.
"""

from typing import Callable, Dict, List, Optional

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from navscout.page_driver import DEFAULT_SCOPE, ElementRecord

NAV = ('nav a', '[role="navigation"] a')
FOOTER = ('footer a',)


class FakeAnchor:
    def __init__(self, href: str, text: str = "", scopes=()):
        self.href = href
        self.text = text
        self.scopes = set(scopes)


class FakeElement:
    def __init__(
        self,
        text: str = "",
        *,
        visible: bool = True,
        on_hover: Optional[Callable] = None,
        on_click: Optional[Callable] = None,
        hover_error: Optional[Exception] = None,
        click_error: Optional[Exception] = None,
    ):
        self.text = text
        self.visible = visible
        self.on_hover = on_hover
        self.on_click = on_click
        self.hover_error = hover_error
        self.click_error = click_error
        self.hovers = 0
        self.clicks = 0


class FakeLocator:
    def __init__(self, page: "FakePage", elements: List[FakeElement]):
        self.page = page
        self.elements = elements

    async def count(self) -> int:
        return len(self.elements)

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self.page, self.elements[index:index + 1])

    @property
    def first(self) -> "FakeLocator":
        return self.nth(0)

    def _element(self) -> FakeElement:
        if not self.elements:
            raise PlaywrightTimeout("Timeout exceeded: element not found")
        return self.elements[0]

    async def is_visible(self, timeout=None) -> bool:
        return bool(self.elements) and self.elements[0].visible

    async def text_content(self, timeout=None) -> str:
        return self._element().text

    async def hover(self, timeout=None) -> None:
        el = self._element()
        el.hovers += 1
        if el.hover_error is not None:
            raise el.hover_error
        if el.on_hover:
            el.on_hover(self.page)

    async def click(self, timeout=None) -> None:
        el = self._element()
        el.clicks += 1
        if el.click_error is not None:
            raise el.click_error
        if el.on_click:
            el.on_click(self.page, el)


class FakePage:
    """Drop-in for ``PageDriver`` with a scripted DOM."""

    def __init__(
        self,
        *,
        status: Optional[int] = 200,
        nav_error: Optional[Exception] = None,
        title: str = "",
        html: str = "<html><body></body></html>",
        routes: Optional[Dict[str, dict]] = None,
    ):
        self.url = ""
        self.status = status
        self.nav_error = nav_error
        self.page_title = title
        self.html = html
        self.routes = routes or {}
        self.anchors: List[FakeAnchor] = []
        self.elements: Dict[str, List[FakeElement]] = {}
        self.failing_scopes = set()
        self.scroll_error: Optional[Exception] = None
        self.scrolled = False
        self.closed = False
        self.waits: List[int] = []
        self.navigations: List[str] = []

    # -- DOM setup ------------------------------------------------------
    def add_anchor(self, href: str, text: str = "", scopes=()) -> FakeAnchor:
        anchor = FakeAnchor(href, text, scopes)
        self.anchors.append(anchor)
        return anchor

    def add_element(self, selector: str, element: FakeElement) -> FakeElement:
        self.elements.setdefault(selector, []).append(element)
        return element

    def remove_anchors(self, hrefs) -> None:
        hrefs = set(hrefs)
        self.anchors = [a for a in self.anchors if a.href not in hrefs]

    # -- PageDriver surface --------------------------------------------
    async def navigate(self, url, *, wait_until="domcontentloaded", timeout_ms=30000):
        self.navigations.append(url)
        if self.nav_error is not None:
            raise self.nav_error
        route = self.routes.get(url, {})
        self.url = route.get('final_url', url)
        self.page_title = route.get('title', self.page_title)
        self.html = route.get('html', self.html)
        for href, text in route.get('anchors', []):
            self.add_anchor(href, text)
        return route.get('status', self.status)

    async def query_elements(self, scope=DEFAULT_SCOPE):
        if scope in self.failing_scopes:
            raise PlaywrightError(f"SyntaxError: '{scope}' is not a valid selector")
        return [
            ElementRecord(a.href, a.text)
            for a in self.anchors
            if scope == DEFAULT_SCOPE or scope in a.scopes
        ]

    def locate(self, selector):
        return FakeLocator(self, self.elements.get(selector, []))

    async def scroll_to_bottom(self):
        if self.scroll_error is not None:
            raise self.scroll_error
        self.scrolled = True

    async def wait(self, duration_ms):
        self.waits.append(duration_ms)

    async def title(self):
        return self.page_title

    async def content(self):
        return self.html

    async def close(self):
        self.closed = True


class FakeSession:
    """Hands out a new page per call, built by ``factory``."""

    def __init__(self, factory: Callable[[], FakePage] = FakePage):
        self.factory = factory
        self.pages: List[FakePage] = []

    async def new_page(self):
        page = self.factory()
        self.pages.append(page)
        return page


@pytest.fixture
def page():
    return FakePage()


@pytest.fixture
def session():
    return FakeSession()
