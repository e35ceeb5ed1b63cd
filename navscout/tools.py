"""
Research Tools
==============
The four capabilities a research loop can invoke:

  - ``search-for-page``     keyword search over a page's links
  - ``scrape-url``          page content as Markdown
  - ``explore-navigation``  hidden-navigation discovery (see ``navigation``)
  - ``write-report``        persist the final Markdown report

Every browser tool takes its own page from the shared ``BrowserSession``
and closes it on every exit path; page failures come back inside the
result record rather than as exceptions.  ``TOOLS`` publishes the input
contracts and ``dispatch_tool`` validates and runs a call by name.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Comment
from markdownify import markdownify

from .models import DiscoveryReport, PageMatch, ScrapeResult, SearchResult
from .navigation import DEFAULT_MAX_LINKS, NavigationConfig, discover_navigation
from .utils import clean_text, resolve_href

logger = logging.getLogger(__name__)

# Tags that never carry readable content
_STRIP_TAGS = ('script', 'style', 'noscript', 'template', 'svg', 'canvas', 'iframe')


class ToolInputError(ValueError):
    """A tool was called with missing or invalid arguments."""


@dataclass
class ToolConfig:
    """Limits shared by the page-reading tools."""
    wait_until: str = "domcontentloaded"
    navigation_timeout_ms: int = 30000
    load_settle_ms: int = 2000
    max_content_chars: int = 15000
    max_matches: int = 10
    report_path: str = "report.md"


# ---------------------------------------------------------------------------
# scrape-url
# ---------------------------------------------------------------------------

def html_to_markdown(html: str) -> str:
    """Readable Markdown from raw HTML; tables come out as pipe tables."""
    soup = BeautifulSoup(html or "", "html.parser")
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()
    for tag in _STRIP_TAGS:
        for element in soup.find_all(tag):
            element.decompose()

    markdown = markdownify(str(soup), heading_style="ATX", bullets="-")
    # Collapse the blank-line runs left behind by layout markup
    return re.sub(r'\n{3,}', '\n\n', markdown).strip()


async def scrape_url(session, url: str, *, config: Optional[ToolConfig] = None) -> ScrapeResult:
    """Visit ``url`` and return its content as Markdown."""
    config = config or ToolConfig()
    driver = await session.new_page()
    try:
        logger.info(f"[SCRAPE] Navigating to {url}")
        status = await driver.navigate(
            url, wait_until=config.wait_until, timeout_ms=config.navigation_timeout_ms
        )
        if status is not None and status >= 400:
            return ScrapeResult(url=url, content=f"Page returned HTTP {status}")

        # JS-rendered content settles after DOMContentLoaded
        await driver.wait(config.load_settle_ms)

        title = await driver.title()
        markdown = html_to_markdown(await driver.content())
        truncated = len(markdown) > config.max_content_chars
        if truncated:
            markdown = markdown[:config.max_content_chars]

        logger.info(f"[SCRAPE] Done: {len(markdown)} chars{' (truncated)' if truncated else ''}")
        return ScrapeResult(url=url, title=title, content=markdown, truncated=truncated)
    except Exception as e:
        logger.info(f"[SCRAPE] Error on {url}: {e}")
        return ScrapeResult(url=url, content=f"Navigation error: {e}")
    finally:
        await driver.close()


# ---------------------------------------------------------------------------
# search-for-page
# ---------------------------------------------------------------------------

def match_links(records, base_url: str, keyword: str, max_matches: int = 10) -> List[PageMatch]:
    """Links whose resolved URL or text contains ``keyword`` (case-insensitive)."""
    kw = keyword.lower()
    seen = set()
    matches: List[PageMatch] = []
    for href, text in records:
        href = (href or "").strip()
        if not href or href.startswith('#') or href.lower().startswith(('javascript:', 'mailto:')):
            continue
        resolved = resolve_href(href, base_url)
        if resolved is None or resolved in seen:
            continue
        text = clean_text(text)
        if kw in resolved.lower() or kw in text.lower():
            seen.add(resolved)
            matches.append(PageMatch(url=resolved, link_text=text))
            if len(matches) >= max_matches:
                break
    return matches


async def search_for_page(
    session, base_url: str, keyword: str, *, config: Optional[ToolConfig] = None
) -> SearchResult:
    """Scan every link on ``base_url`` for ``keyword``."""
    config = config or ToolConfig()
    result = SearchResult(base_url=base_url, keyword=keyword)
    driver = await session.new_page()
    try:
        logger.info(f'[SEARCH] Scanning {base_url} for "{keyword}"')
        await driver.navigate(
            base_url, wait_until=config.wait_until, timeout_ms=config.navigation_timeout_ms
        )
        # JS-rendered nav links appear after DOMContentLoaded
        await driver.wait(config.load_settle_ms)

        records = await driver.query_elements()
        result.matches = match_links(records, driver.url or base_url, keyword, config.max_matches)
        logger.info(f"[SEARCH] Found {len(result.matches)} match(es)")
    except Exception as e:
        logger.info(f"[SEARCH] Error on {base_url}: {e}")
    finally:
        await driver.close()
    return result


# ---------------------------------------------------------------------------
# explore-navigation
# ---------------------------------------------------------------------------

async def explore_navigation(
    session,
    url: str,
    max_links: int = DEFAULT_MAX_LINKS,
    *,
    config: Optional[NavigationConfig] = None,
) -> DiscoveryReport:
    """Run one discovery on its own page; the page is always closed."""
    driver = await session.new_page()
    try:
        return await discover_navigation(driver, url, max_links, config=config)
    finally:
        await driver.close()


async def explore_many(
    session,
    urls: Sequence[str],
    max_links: int = DEFAULT_MAX_LINKS,
    *,
    concurrency: int = 3,
    config: Optional[NavigationConfig] = None,
) -> List[DiscoveryReport]:
    """Explore several pages concurrently, one isolated page per URL.

    Reports come back in the order of ``urls``.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _one(url: str) -> DiscoveryReport:
        async with semaphore:
            return await explore_navigation(session, url, max_links, config=config)

    return list(await asyncio.gather(*(_one(u) for u in urls)))


# ---------------------------------------------------------------------------
# write-report
# ---------------------------------------------------------------------------

def write_report(content: str, path: str = "report.md") -> Dict[str, Any]:
    """Write the Markdown report; relative paths land in the working directory."""
    file_path = Path(path).resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content, encoding="utf-8")
    logger.info(f"[REPORT] Report written to {file_path}")
    return {'file_path': str(file_path), 'success': True}


# ---------------------------------------------------------------------------
# Tool contracts
# ---------------------------------------------------------------------------

TOOLS: List[Dict[str, Any]] = [
    {
        "name": "search-for-page",
        "description": (
            "Navigates to a base URL and discovers sub-pages by scanning all <a> links on the page. "
            "Filters links whose href or visible text contains the keyword (case-insensitive). "
            "Use this BEFORE scrape-url to find the correct URL for a topic like 'pricing', 'features', or 'docs'."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "baseUrl": {"type": "string", "format": "uri",
                            "description": "The homepage or base URL to scan for links"},
                "keyword": {"type": "string",
                            "description": "Keyword to search for in link hrefs and text (e.g. 'pricing', 'features')"},
            },
            "required": ["baseUrl", "keyword"],
        },
    },
    {
        "name": "scrape-url",
        "description": (
            "Visits a URL using the browser session, extracts the page content, and returns it as clean markdown. "
            "Use this after you have confirmed the URL exists (via search-for-page or a known homepage)."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "url": {"type": "string", "format": "uri", "description": "The full URL to scrape"},
            },
            "required": ["url"],
        },
    },
    {
        "name": "explore-navigation",
        "description": (
            "Explores a website's navigation by hovering over menus and clicking hamburger buttons to discover "
            "links hidden behind JavaScript interactions. Use this as a FALLBACK when search-for-page returns "
            "0 results; it's slower but can find links that aren't in the static HTML."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "url": {"type": "string", "format": "uri",
                        "description": "The URL to explore for navigation links"},
                "maxLinks": {"type": "integer", "minimum": 1, "default": DEFAULT_MAX_LINKS,
                             "description": "Maximum total links to return (default 50)"},
            },
            "required": ["url"],
        },
    },
    {
        "name": "write-report",
        "description": (
            "Writes the final competitive intelligence report to report.md in the current working directory. "
            "Call this exactly once at the end, after all research is complete."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "content": {"type": "string", "description": "The full markdown report content to write"},
            },
            "required": ["content"],
        },
    },
]


def _require_url(arguments: Dict[str, Any], key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ToolInputError(f"'{key}' is required")
    parsed = urlsplit(value.strip())
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ToolInputError(f"'{key}' must be an absolute http(s) URL, got {value!r}")
    return value.strip()


def _require_text(arguments: Dict[str, Any], key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value:
        raise ToolInputError(f"'{key}' must be a non-empty string")
    return value


def _optional_positive_int(arguments: Dict[str, Any], key: str, default: int) -> int:
    value = arguments.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ToolInputError(f"'{key}' must be a positive integer, got {value!r}")
    return value


async def dispatch_tool(
    session,
    name: str,
    arguments: Dict[str, Any],
    *,
    tool_config: Optional[ToolConfig] = None,
    nav_config: Optional[NavigationConfig] = None,
) -> Dict[str, Any]:
    """Validate ``arguments`` against the named contract and run the tool."""
    arguments = arguments or {}
    tool_config = tool_config or ToolConfig()

    if name == "search-for-page":
        result = await search_for_page(
            session,
            _require_url(arguments, "baseUrl"),
            _require_text(arguments, "keyword"),
            config=tool_config,
        )
        return result.to_dict()
    if name == "scrape-url":
        result = await scrape_url(session, _require_url(arguments, "url"), config=tool_config)
        return result.to_dict()
    if name == "explore-navigation":
        report = await explore_navigation(
            session,
            _require_url(arguments, "url"),
            _optional_positive_int(arguments, "maxLinks", DEFAULT_MAX_LINKS),
            config=nav_config,
        )
        return report.to_dict()
    if name == "write-report":
        return write_report(_require_text(arguments, "content"), tool_config.report_path)

    raise ToolInputError(f"Unknown tool {name!r}")
