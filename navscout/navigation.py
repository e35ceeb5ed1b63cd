"""
Navigation Discovery Engine
===========================
Finds every navigable link a visitor could reach from one page,
including links that only render after an interaction.

Phases, run strictly in order against a single page:

  1. **navigate**     load the page and let client-side rendering settle
  2. **dismiss**      click away one cookie / consent overlay
  3. **baseline**     full-page link snapshot (comparison floor)
  4. **primary nav**  links inside nav-shaped regions  -> "Primary Nav"
  5. **hover**        hover menu items, diff snapshots  -> "Dropdown: <item>"
  6. **hamburger**    open one menu toggle, diff        -> "Mobile/Hamburger Menu"
  7. **footer**       scroll down, footer-shaped links  -> "Footer"

All phases draw from one ``LinkBudget``.  Only a failed navigation ends
a run early; a failing phase step is recorded in ``report.errors`` and a
failing candidate element is skipped without a record.  The caller
always gets a ``DiscoveryReport`` back, never an exception.

This module does NOT own the page lifecycle: the caller opens the page
and closes it (see ``tools.explore_navigation``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .interstitials import dismiss_interstitials
from .links import collect_links, diff_links, links_from_records
from .models import DiscoveryReport, Link, LinkSet, Section
from .page_driver import DriverError, PageDriver
from .utils import clean_link_text

logger = logging.getLogger(__name__)

DEFAULT_MAX_LINKS = 50

PRIMARY_NAV_LABEL = "Primary Nav"
HAMBURGER_LABEL = "Mobile/Hamburger Menu"
FOOTER_LABEL = "Footer"


# ---------------------------------------------------------------------------
# Selector catalogue
# ---------------------------------------------------------------------------
NAV_LINK_SCOPES: List[str] = [
    'nav a',
    '[role="navigation"] a',
    'header a',
    'header ul a',
    '.navbar a',
    '.nav a',
    '[class*="nav"] a',
]

HOVER_TARGET_SCOPES: List[str] = [
    'nav > ul > li',
    'nav > div > ul > li',
    '[role="navigation"] > ul > li',
    'header nav li',
    '.navbar li:has(ul), .navbar li:has([class*="dropdown"])',
    '[class*="nav"] > ul > li',
    'nav button',
    'header button',
]

MENU_TOGGLE_SELECTORS: List[str] = [
    'button[aria-label*="menu" i]',
    'button[aria-label*="navigation" i]',
    '[class*="hamburger"]',
    '[class*="menu-toggle"]',
    '[class*="mobile-menu"]',
    '[class*="nav-toggle"]',
    'button:has(.hamburger)',
    'button[class*="burger"]',
    '[aria-controls*="nav"]',
    '[aria-controls*="menu"]',
]

FOOTER_LINK_SCOPES: List[str] = [
    'footer a',
    '[role="contentinfo"] a',
    '[class*="footer"] a',
]


# ---------------------------------------------------------------------------
# Configuration & run state
# ---------------------------------------------------------------------------

@dataclass
class NavigationConfig:
    """Timeouts, settle delays and selector lists for one discovery run."""
    max_links: int = DEFAULT_MAX_LINKS

    # Navigate
    wait_until: str = "domcontentloaded"
    navigation_timeout_ms: int = 30000
    load_settle_ms: int = 2000
    dismiss_interstitials: bool = True

    # Hover
    max_hover_items_per_scope: int = 15
    hover_timeout_ms: int = 2000
    hover_settle_ms: int = 800        # dropdown animation
    item_text_timeout_ms: int = 1000
    hover_label_chars: int = 50

    # Hamburger
    toggle_visible_timeout_ms: int = 1000
    toggle_click_timeout_ms: int = 3000
    toggle_settle_ms: int = 1500      # menu slide-in
    toggle_close_timeout_ms: int = 1000
    toggle_close_settle_ms: int = 500

    # Footer
    footer_settle_ms: int = 1500

    nav_link_scopes: List[str] = field(default_factory=lambda: list(NAV_LINK_SCOPES))
    hover_target_scopes: List[str] = field(default_factory=lambda: list(HOVER_TARGET_SCOPES))
    menu_toggle_selectors: List[str] = field(default_factory=lambda: list(MENU_TOGGLE_SELECTORS))
    footer_link_scopes: List[str] = field(default_factory=lambda: list(FOOTER_LINK_SCOPES))


@dataclass
class LinkBudget:
    """Run-wide cap on accepted links, shared by every phase."""
    limit: int
    consumed: int = 0

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.consumed)

    @property
    def exhausted(self) -> bool:
        return self.remaining == 0

    def take(self, candidates: Sequence[Link]) -> List[Link]:
        """Accept at most ``remaining`` candidates and charge for them."""
        accepted = list(candidates[:self.remaining])
        self.consumed += len(accepted)
        return accepted


@dataclass
class _DiscoveryRun:
    driver: PageDriver
    base_url: str
    config: NavigationConfig
    budget: LinkBudget
    report: DiscoveryReport
    primary_nav: LinkSet = field(default_factory=dict)

    def emit(self, label: str, candidates: Sequence[Link]) -> Optional[Section]:
        """Add a section for whatever part of ``candidates`` the budget allows."""
        links = self.budget.take(candidates)
        if not links:
            return None
        section = Section(label=label, links=tuple(links))
        self.report.add_section(section)
        logger.debug(f"[EXPLORE-NAV] {label}: {len(links)} link(s)")
        return section


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def discover_navigation(
    driver,
    url: str,
    max_links: Optional[int] = None,
    *,
    config: Optional[NavigationConfig] = None,
) -> DiscoveryReport:
    """
    Run every discovery phase against ``url`` on an open page.

    Args:
        driver:    ``PageDriver`` (or compatible) owning one isolated page.
        url:       Absolute URL of the page to explore.
        max_links: Link budget for the run (defaults to ``config.max_links``).
        config:    Timeouts and selector lists.

    Returns:
        ``DiscoveryReport``; on a failed navigation it has no sections and
        exactly one error.
    """
    config = config or NavigationConfig()
    if max_links is None:
        max_links = config.max_links
    if max_links < 1:
        raise ValueError(f"max_links must be a positive integer, got {max_links}")

    report = DiscoveryReport(target_url=url)
    logger.info(f"[EXPLORE-NAV] Navigating to {url}")

    try:
        status = await driver.navigate(
            url,
            wait_until=config.wait_until,
            timeout_ms=config.navigation_timeout_ms,
        )
        if status is not None and status >= 400:
            report.add_error(f"Page returned HTTP {status}")
            logger.info(f"[EXPLORE-NAV] {url} returned HTTP {status}")
            return report
    except Exception as e:
        report.add_error(str(e) or type(e).__name__)
        logger.info(f"[EXPLORE-NAV] Error on {url}: {e}")
        return report

    run = _DiscoveryRun(
        driver=driver,
        base_url=getattr(driver, 'url', None) or url,
        config=config,
        budget=LinkBudget(limit=max_links),
        report=report,
    )

    try:
        await driver.wait(config.load_settle_ms)
        if config.dismiss_interstitials:
            await dismiss_interstitials(driver)
        await _take_baseline(run)
        await _scan_primary_nav(run)
        await _explore_hover_menus(run)
        await _explore_menu_toggle(run)
        await _scan_footer(run)
    except Exception as e:
        # Engine boundary: keep partial progress, report the failure
        logger.error(f"[EXPLORE-NAV] Discovery aborted on {url}: {e}", exc_info=True)
        report.add_error(f"Discovery aborted: {e}")

    logger.info(
        f"[EXPLORE-NAV] Found {report.total_links_found} links in "
        f"{len(report.sections)} section(s)"
    )
    return report


# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------

async def _take_baseline(run: _DiscoveryRun) -> None:
    """Confirm the page is readable and log how many links it renders up front."""
    try:
        baseline = await collect_links(run.driver, run.base_url)
    except DriverError as e:
        run.report.add_error(f"Baseline snapshot failed: {e}")
        return
    logger.debug(f"[EXPLORE-NAV] Baseline: {len(baseline)} link(s)")


async def _scan_primary_nav(run: _DiscoveryRun) -> None:
    """Static links inside nav-shaped regions, merged into one section."""
    for scope in run.config.nav_link_scopes:
        try:
            records = await run.driver.query_elements(scope)
        except DriverError:
            continue  # selector not supported on this page
        links_from_records(records, run.base_url, into=run.primary_nav)

    run.emit(PRIMARY_NAV_LABEL, list(run.primary_nav.values()))


async def _explore_hover_menus(run: _DiscoveryRun) -> None:
    """Hover each menu item and keep the links its dropdown reveals."""
    cfg = run.config
    for scope in cfg.hover_target_scopes:
        if run.budget.exhausted:
            break
        items = run.driver.locate(scope)
        try:
            count = await items.count()
        except DriverError:
            continue
        for index in range(min(count, cfg.max_hover_items_per_scope)):
            if run.budget.exhausted:
                break
            await _hover_item(run, items.nth(index), index)


async def _hover_item(run: _DiscoveryRun, item, index: int) -> None:
    cfg = run.config
    try:
        text = await item.text_content(timeout=cfg.item_text_timeout_ms)
        label = clean_link_text(text, cfg.hover_label_chars) or f"Item {index}"

        before = await collect_links(run.driver, run.base_url)
        await item.hover(timeout=cfg.hover_timeout_ms)
        await run.driver.wait(cfg.hover_settle_ms)
        after = await collect_links(run.driver, run.base_url)
    except DriverError as e:
        logger.debug(f"[EXPLORE-NAV] Hover skipped for item {index}: {e}")
        return

    run.emit(f"Dropdown: {label}", diff_links(before, after))


async def _explore_menu_toggle(run: _DiscoveryRun) -> None:
    """Open the first visible hamburger toggle, diff, then close it again."""
    cfg = run.config
    for selector in cfg.menu_toggle_selectors:
        if run.budget.exhausted:
            break
        toggle = run.driver.locate(selector).first
        try:
            if not await toggle.is_visible(timeout=cfg.toggle_visible_timeout_ms):
                continue
            before = await collect_links(run.driver, run.base_url)
            await toggle.click(timeout=cfg.toggle_click_timeout_ms)
        except DriverError:
            continue

        # The toggle is engaged from here on: no other toggle is tried
        revealed: List[Link] = []
        try:
            await run.driver.wait(cfg.toggle_settle_ms)
            after = await collect_links(run.driver, run.base_url)
            revealed = diff_links(before, after)
        except DriverError as e:
            logger.debug(f"[EXPLORE-NAV] Menu snapshot failed after {selector}: {e}")

        run.emit(HAMBURGER_LABEL, revealed)

        try:
            await toggle.click(timeout=cfg.toggle_close_timeout_ms)
            await run.driver.wait(cfg.toggle_close_settle_ms)
        except DriverError as e:
            logger.debug(f"[EXPLORE-NAV] Menu close failed: {e}")
        return


async def _scan_footer(run: _DiscoveryRun) -> None:
    """Footer-shaped links not already captured as primary navigation."""
    if run.budget.exhausted:
        logger.debug("[EXPLORE-NAV] Budget exhausted, footer scan skipped")
        return

    try:
        await run.driver.scroll_to_bottom()
        await run.driver.wait(run.config.footer_settle_ms)
    except DriverError as e:
        run.report.add_error(f"Footer scroll failed: {e}")
        return

    footer: LinkSet = {}
    for scope in run.config.footer_link_scopes:
        try:
            records = await run.driver.query_elements(scope)
        except DriverError:
            continue
        links_from_records(records, run.base_url, into=footer, exclude=run.primary_nav)

    run.emit(FOOTER_LABEL, list(footer.values()))
