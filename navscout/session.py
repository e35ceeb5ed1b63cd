"""
Browser Session
===============
Lazily provisions the one browser every research tool shares.

Modes:
  - ``steel``  create a remote Steel session through the Steel SDK and
               attach Playwright through CDP (live viewer URL is logged)
  - ``cdp``    attach to an already-running browser's CDP endpoint
  - ``local``  launch a local Chromium
  - ``auto``   steel when an API key is configured, else cdp when an
               endpoint is configured, else local

The browser is created on first use and shared by all callers; an
``asyncio.Lock`` makes concurrent first calls share one connection.
Each tool call gets its own page via ``new_page()`` so parallel
navigations never touch the same DOM.

Usage::

    async with BrowserSession(SessionConfig()) as session:
        driver = await session.new_page()
        ...
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from playwright.async_api import Browser, Playwright, async_playwright
from steel import APIError as SteelAPIError
from steel import AsyncSteel

from .page_driver import PageDriver

logger = logging.getLogger(__name__)

_MODES = ("auto", "steel", "cdp", "local")


class SessionError(RuntimeError):
    """The browser could not be provisioned or connected."""


@dataclass
class SessionConfig:
    """How to obtain a browser."""
    mode: str = "auto"
    headless: bool = True

    # Steel remote browser
    steel_api_key: Optional[str] = None
    steel_base_url: Optional[str] = None     # None = SDK default
    steel_connect_url: str = "wss://connect.steel.dev"
    steel_session_timeout_ms: int = 900000   # 15 min
    api_timeout_s: float = 30.0

    # Existing browser over CDP
    cdp_url: Optional[str] = None

    def resolved_mode(self) -> str:
        if self.mode not in _MODES:
            raise SessionError(f"Unknown browser mode {self.mode!r} (expected one of {', '.join(_MODES)})")
        if self.mode != "auto":
            return self.mode
        if self.steel_api_key:
            return "steel"
        if self.cdp_url:
            return "cdp"
        return "local"


class BrowserSession:
    """Shared browser for one research process."""

    def __init__(self, config: Optional[SessionConfig] = None):
        self.config = config or SessionConfig()
        self._lock = asyncio.Lock()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._steel: Optional[AsyncSteel] = None
        self.steel_session_id: Optional[str] = None
        self.viewer_url: Optional[str] = None

    async def __aenter__(self) -> "BrowserSession":
        await self.get_browser()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    async def get_browser(self) -> Browser:
        """Return the shared browser, creating it on first call."""
        async with self._lock:
            if self._browser is None:
                self._browser = await self._connect()
            return self._browser

    async def new_page(self) -> PageDriver:
        """A fresh page inside the browser's first (or a new) context."""
        browser = await self.get_browser()
        contexts = browser.contexts
        context = contexts[0] if contexts else await browser.new_context()
        return PageDriver(await context.new_page())

    async def _connect(self) -> Browser:
        mode = self.config.resolved_mode()
        self._playwright = await async_playwright().start()
        try:
            if mode == "steel":
                return await self._connect_steel()
            if mode == "cdp":
                return await self._connect_cdp(self.config.cdp_url)
            browser = await self._playwright.chromium.launch(headless=self.config.headless)
            logger.info(f"[SESSION] Local Chromium launched (headless={self.config.headless})")
            return browser
        except Exception:
            await self._stop_playwright()
            raise

    async def _connect_cdp(self, endpoint: Optional[str]) -> Browser:
        if not endpoint:
            raise SessionError("CDP mode requires a CDP endpoint URL")
        browser = await self._playwright.chromium.connect_over_cdp(endpoint)
        logger.info("[SESSION] Playwright connected via CDP")
        return browser

    def _steel_client(self) -> AsyncSteel:
        if self._steel is None:
            self._steel = AsyncSteel(
                steel_api_key=self.config.steel_api_key,
                base_url=self.config.steel_base_url,
                timeout=self.config.api_timeout_s,
            )
        return self._steel

    async def _create_steel_session(self) -> None:
        """Create the remote session and remember its id and viewer URL."""
        if not self.config.steel_api_key:
            raise SessionError("Steel mode requires STEEL_API_KEY")
        try:
            session = await self._steel_client().sessions.create(
                api_timeout=self.config.steel_session_timeout_ms,
            )
        except SteelAPIError as e:
            raise SessionError(f"Steel session could not be created: {e}") from e

        self.steel_session_id = session.id
        self.viewer_url = session.debug_url or session.session_viewer_url
        logger.info("[SESSION] Steel session created")
        if self.viewer_url:
            logger.info(f"[SESSION] Live viewer: {self.viewer_url}")

    async def _connect_steel(self) -> Browser:
        await self._create_steel_session()
        query = urlencode({"apiKey": self.config.steel_api_key, "sessionId": self.steel_session_id})
        try:
            return await self._connect_cdp(f"{self.config.steel_connect_url}?{query}")
        except Exception:
            await self._release_steel()
            raise

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def release(self) -> None:
        """Close the browser connection and release the remote session."""
        async with self._lock:
            if self._browser is not None:
                try:
                    await self._browser.close()
                except Exception as e:
                    logger.debug(f"[SESSION] Browser close failed: {e}")
                self._browser = None
            await self._stop_playwright()
            await self._release_steel()

    async def _release_steel(self) -> None:
        if not self.steel_session_id:
            return
        session_id, self.steel_session_id = self.steel_session_id, None
        try:
            await self._steel_client().sessions.release(session_id)
            logger.info(f"[SESSION] Steel session {session_id} released")
        except SteelAPIError as e:
            logger.warning(f"[SESSION] Steel release of {session_id} failed: {e}")

    async def _stop_playwright(self) -> None:
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.debug(f"[SESSION] Playwright stop failed: {e}")
            self._playwright = None
