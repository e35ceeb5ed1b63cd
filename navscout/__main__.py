#!/usr/bin/env python3
"""
navscout CLI
============
Competitor research from the command line.

Subcommands:
  explore   discover navigation links (hover menus, hamburger, footer)
  search    keyword search over a page's links
  scrape    page content as Markdown
  research  full competitor run -> report.md

All configuration flows through ``ResearchRunConfig``.

Run with: python -m navscout <command> <url> [options]
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .run_config import ResearchRunConfig

# Load .env (STEEL_API_KEY etc.) before anything reads the environment
_env_path = Path(__file__).resolve().parent.parent / '.env'
if _env_path.exists():
    load_dotenv(_env_path)
else:
    load_dotenv()  # tries CWD

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)s | %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)


def _normalize_url(url: str) -> str:
    url = url.strip()
    if not url.startswith(('http://', 'https://')):
        url = 'https://' + url
    return url


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

async def _cmd_explore(cfg: ResearchRunConfig, urls):
    from .exporters import export_csv, export_docx, export_json
    from .session import BrowserSession
    from .tools import explore_many

    async with BrowserSession(cfg.to_session_config()) as session:
        reports = await explore_many(
            session, urls, cfg.max_links,
            concurrency=cfg.concurrency,
            config=cfg.to_navigation_config(),
        )

    for report in reports:
        print(report.to_markdown())

    exported = []
    if cfg.output_json:
        exported.append(export_json(reports, cfg.output_json))
    if cfg.output_csv:
        exported.append(export_csv(reports, cfg.output_csv))
    if cfg.output_docx:
        exported.append(export_docx(reports, cfg.output_docx))
    if exported:
        print("-" * 40)
        for path in exported:
            print(f"  Exported: {path}")
        print("-" * 40)
    print_summary(reports)


async def _cmd_search(cfg: ResearchRunConfig, url: str, keyword: str):
    from .session import BrowserSession
    from .tools import search_for_page

    async with BrowserSession(cfg.to_session_config()) as session:
        result = await search_for_page(session, url, keyword, config=cfg.to_tool_config())
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))


async def _cmd_scrape(cfg: ResearchRunConfig, url: str):
    from .session import BrowserSession
    from .tools import scrape_url

    async with BrowserSession(cfg.to_session_config()) as session:
        result = await scrape_url(session, url, config=cfg.to_tool_config())
    print(f"# {result.title or result.url}\n")
    print(result.content)
    if result.truncated:
        print("\n[truncated]")


async def _cmd_research(cfg: ResearchRunConfig, urls):
    from .session import BrowserSession
    from .research import run_research

    async with BrowserSession(cfg.to_session_config()) as session:
        if session.viewer_url:
            print(f"Live viewer: {session.viewer_url}")
        results = await run_research(session, urls, cfg)
    print_summary([r.navigation for r in results])
    print(f"Done. Report written to {Path(cfg.report_path).resolve()}")


def print_summary(reports) -> None:
    """Print discovery summary."""
    print("\n" + "=" * 65)
    print("DISCOVERY COMPLETE")
    print("=" * 65)
    for report in reports:
        status = "ok" if not report.errors else f"{len(report.errors)} error(s)"
        print(f"  {report.target_url[:45]:<45} {report.total_links_found:>4} links  "
              f"{len(report.sections):>2} sections  {status}")
    print("=" * 65)


# ---------------------------------------------------------------------------
# Flag-driven entry point
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='navscout',
        description='Competitor research: navigation discovery, link search, page scraping',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m navscout explore https://stripe.com
  python -m navscout explore https://stripe.com https://adyen.com --max-links 30 --output-json nav.json
  python -m navscout search https://stripe.com pricing
  python -m navscout scrape https://stripe.com/pricing
  python -m navscout research https://stripe.com https://braintree.com
        """
    )

    browser = argparse.ArgumentParser(add_help=False)
    group = browser.add_argument_group('Browser')
    group.add_argument('--browser', choices=['auto', 'steel', 'cdp', 'local'],
                       help='Browser provisioning mode (default: auto)')
    group.add_argument('--steel-api-key', type=str,
                       help='Steel API key (or set STEEL_API_KEY)')
    group.add_argument('--cdp-url', type=str,
                       help='CDP endpoint of a running browser (or set NAVSCOUT_CDP_URL)')
    group.add_argument('--headed', action='store_true', help='Show the local browser window')
    group.add_argument('--timeout', type=float, help='Navigation timeout in seconds (default: 30)')

    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('explore', parents=[browser], help='Discover navigation links')
    p.add_argument('urls', nargs='+', help='Page(s) to explore')
    p.add_argument('--max-links', type=int, help='Link budget per page (default: 50)')
    p.add_argument('--concurrency', type=int, help='Pages explored at once (default: 3)')
    p.add_argument('--output-json', type=str, help='JSON output file path')
    p.add_argument('--output-csv', type=str, help='CSV output file path')
    p.add_argument('--output-docx', type=str, help='DOCX output file path')

    p = sub.add_parser('search', parents=[browser], help='Keyword search over page links')
    p.add_argument('url', help='Base URL to scan')
    p.add_argument('keyword', help="Keyword, e.g. 'pricing'")

    p = sub.add_parser('scrape', parents=[browser], help='Page content as Markdown')
    p.add_argument('url', help='URL to scrape')

    p = sub.add_parser('research', parents=[browser], help='Full competitor research run')
    p.add_argument('urls', nargs='+', help='Competitor homepage(s)')
    p.add_argument('--topic', type=str, action='append',
                   help='Topic keyword to research (repeatable; default: pricing, features, customers)')
    p.add_argument('--max-links', type=int, help='Navigation link budget per site (default: 50)')
    p.add_argument('--concurrency', type=int, help='Competitors researched at once (default: 3)')
    p.add_argument('--report', type=str, help='Report path (default: report.md)')

    return parser


def run_cli_with_args(argv=None):
    """Parse argv, build ResearchRunConfig, run."""
    args = _build_parser().parse_args(argv)

    try:
        cfg = ResearchRunConfig.from_cli_args(args)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(2)

    if args.command in ('explore', 'research'):
        urls = [_normalize_url(u) for u in args.urls]
        cfg.log_summary(urls)
        coro = _cmd_explore(cfg, urls) if args.command == 'explore' else _cmd_research(cfg, urls)
    elif args.command == 'search':
        coro = _cmd_search(cfg, _normalize_url(args.url), args.keyword)
    else:
        coro = _cmd_scrape(cfg, _normalize_url(args.url))

    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(130)
    except Exception as e:
        logger.error(f"[NAVSCOUT] {e}", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    run_cli_with_args()
