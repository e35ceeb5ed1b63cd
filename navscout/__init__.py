"""
navscout
Competitor research over a real browser: finds navigation links hidden
behind hover menus, hamburger toggles and footers, searches and scrapes
topic pages, and writes a Markdown report.

CLI Usage:
    python -m navscout explore <url> [<url> ...] [options]
    python -m navscout search <url> <keyword>
    python -m navscout scrape <url>
    python -m navscout research <url> [<url> ...]
"""

from .models import Link, LinkSet, Section, DiscoveryReport, PageMatch, SearchResult, ScrapeResult
from .links import collect_links, diff_links, links_from_records
from .interstitials import dismiss_interstitials
from .navigation import NavigationConfig, LinkBudget, discover_navigation
from .page_driver import PageDriver, ElementRecord
from .session import BrowserSession, SessionConfig, SessionError
from .tools import (
    TOOLS,
    ToolConfig,
    ToolInputError,
    dispatch_tool,
    explore_many,
    explore_navigation,
    scrape_url,
    search_for_page,
    write_report,
)
from .run_config import ResearchRunConfig

__all__ = [
    # Models
    'Link',
    'LinkSet',
    'Section',
    'DiscoveryReport',
    'PageMatch',
    'SearchResult',
    'ScrapeResult',
    # Discovery engine
    'collect_links',
    'diff_links',
    'links_from_records',
    'dismiss_interstitials',
    'NavigationConfig',
    'LinkBudget',
    'discover_navigation',
    # Browser
    'PageDriver',
    'ElementRecord',
    'BrowserSession',
    'SessionConfig',
    'SessionError',
    # Tools
    'TOOLS',
    'ToolConfig',
    'ToolInputError',
    'dispatch_tool',
    'explore_many',
    'explore_navigation',
    'scrape_url',
    'search_for_page',
    'write_report',
    'ResearchRunConfig',
]

__version__ = '1.0.0'
