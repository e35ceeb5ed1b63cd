"""
Unified Run Configuration
=========================
Single source of truth for every navscout default and runtime limit.

The CLI populates one ``ResearchRunConfig`` from flags and environment;
the per-subsystem config objects (``NavigationConfig``, ``SessionConfig``,
``ToolConfig``) are built *from* it via the ``to_*`` converters.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Canonical defaults: the ONLY place these numbers live
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "max_links": 50,
    "navigation_timeout_ms": 30000,
    "load_settle_ms": 2000,
    "hover_settle_ms": 800,
    "toggle_settle_ms": 1500,
    "footer_settle_ms": 1500,
    "max_hover_items_per_scope": 15,
    "max_content_chars": 15000,     # scrape-url truncation
    "max_matches": 10,              # search-for-page results
    "concurrency": 3,               # competitors researched at once
    "browser_mode": "auto",         # auto | steel | cdp | local
    "headless": True,
    "report_path": "report.md",
    "topics": ["pricing", "features", "customers"],
}

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class ResearchRunConfig:
    """
    Unified configuration consumed by every navscout subsystem.

    Populate via:
      - ``ResearchRunConfig()``               → all defaults
      - ``ResearchRunConfig(max_links=20)``   → override one value
      - ``ResearchRunConfig.from_env()``      → defaults + environment
      - ``ResearchRunConfig.from_cli_args(ns)`` → from argparse Namespace
    """

    # ---- Discovery ----
    max_links: int = _DEFAULTS["max_links"]
    navigation_timeout_ms: int = _DEFAULTS["navigation_timeout_ms"]
    load_settle_ms: int = _DEFAULTS["load_settle_ms"]
    hover_settle_ms: int = _DEFAULTS["hover_settle_ms"]
    toggle_settle_ms: int = _DEFAULTS["toggle_settle_ms"]
    footer_settle_ms: int = _DEFAULTS["footer_settle_ms"]
    max_hover_items_per_scope: int = _DEFAULTS["max_hover_items_per_scope"]

    # ---- Tools ----
    max_content_chars: int = _DEFAULTS["max_content_chars"]
    max_matches: int = _DEFAULTS["max_matches"]
    topics: List[str] = field(default_factory=lambda: list(_DEFAULTS["topics"]))
    concurrency: int = _DEFAULTS["concurrency"]

    # ---- Browser ----
    browser_mode: str = _DEFAULTS["browser_mode"]
    headless: bool = _DEFAULTS["headless"]
    steel_api_key: Optional[str] = None
    cdp_url: Optional[str] = None

    # ---- Output paths (None = skip) ----
    report_path: str = _DEFAULTS["report_path"]
    output_json: Optional[str] = None
    output_csv: Optional[str] = None
    output_docx: Optional[str] = None

    def __post_init__(self):
        if self.max_links < 1:
            raise ValueError(f"max_links must be >= 1, got {self.max_links}")
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")

    # -----------------------------------------------------------------------
    # Factory helpers
    # -----------------------------------------------------------------------
    @classmethod
    def from_env(cls, **overrides) -> "ResearchRunConfig":
        """Defaults plus ``STEEL_API_KEY``, ``NAVSCOUT_CDP_URL`` and
        ``NAVSCOUT_HEADLESS`` from the environment."""
        values = {
            "steel_api_key": os.environ.get("STEEL_API_KEY") or None,
            "cdp_url": os.environ.get("NAVSCOUT_CDP_URL") or None,
        }
        headless = os.environ.get("NAVSCOUT_HEADLESS")
        if headless is not None:
            values["headless"] = headless.strip().lower() in _TRUTHY
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @classmethod
    def from_cli_args(cls, args) -> "ResearchRunConfig":
        """Build config from an argparse Namespace (``__main__.py``)."""
        overrides = dict(
            max_links=getattr(args, "max_links", None),
            concurrency=getattr(args, "concurrency", None),
            navigation_timeout_ms=(
                int(args.timeout * 1000) if getattr(args, "timeout", None) else None
            ),
            browser_mode=getattr(args, "browser", None),
            steel_api_key=getattr(args, "steel_api_key", None),
            cdp_url=getattr(args, "cdp_url", None),
            report_path=getattr(args, "report", None),
            output_json=getattr(args, "output_json", None),
            output_csv=getattr(args, "output_csv", None),
            output_docx=getattr(args, "output_docx", None),
            topics=getattr(args, "topic", None) or None,
        )
        if getattr(args, "headed", False):
            overrides["headless"] = False
        return cls.from_env(**overrides)

    # -----------------------------------------------------------------------
    # Converters to subsystem config objects
    # -----------------------------------------------------------------------
    def to_navigation_config(self):
        """Return a ``NavigationConfig`` populated from this run config."""
        from .navigation import NavigationConfig
        return NavigationConfig(
            max_links=self.max_links,
            navigation_timeout_ms=self.navigation_timeout_ms,
            load_settle_ms=self.load_settle_ms,
            hover_settle_ms=self.hover_settle_ms,
            toggle_settle_ms=self.toggle_settle_ms,
            footer_settle_ms=self.footer_settle_ms,
            max_hover_items_per_scope=self.max_hover_items_per_scope,
        )

    def to_session_config(self):
        """Return a ``SessionConfig`` populated from this run config."""
        from .session import SessionConfig
        return SessionConfig(
            mode=self.browser_mode,
            headless=self.headless,
            steel_api_key=self.steel_api_key,
            cdp_url=self.cdp_url,
        )

    def to_tool_config(self):
        """Return a ``ToolConfig`` populated from this run config."""
        from .tools import ToolConfig
        return ToolConfig(
            navigation_timeout_ms=self.navigation_timeout_ms,
            load_settle_ms=self.load_settle_ms,
            max_content_chars=self.max_content_chars,
            max_matches=self.max_matches,
            report_path=self.report_path,
        )

    # -----------------------------------------------------------------------
    # Logging helper
    # -----------------------------------------------------------------------
    def log_summary(self, urls: List[str]) -> None:
        """Emit a structured summary to the logger."""
        logger.info("=" * 60)
        logger.info("NAVSCOUT RUN CONFIG")
        logger.info("=" * 60)
        for i, url in enumerate(urls, 1):
            logger.info(f"  URL {i}:            {url}")
        logger.info(f"  Max Links:        {self.max_links} per page")
        logger.info(f"  Timeout:          {self.navigation_timeout_ms / 1000:.0f}s per navigation")
        logger.info(f"  Concurrency:      {self.concurrency}")
        logger.info(f"  Browser:          {self.browser_mode} (headless={self.headless})")
        if self.steel_api_key:
            logger.info(f"  Steel:            API key configured")
        if self.cdp_url:
            logger.info(f"  CDP Endpoint:     {self.cdp_url}")
        logger.info(f"  Topics:           {', '.join(self.topics)}")
        logger.info("=" * 60)
