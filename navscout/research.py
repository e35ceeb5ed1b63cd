"""
Competitor Research Run
=======================
A fixed research policy over the four tools.  Per competitor:

  1. explore the homepage navigation (hover menus, hamburger, footer)
  2. search the homepage links for each topic keyword
  3. when the search finds nothing, fall back to navigation links
     matching the topic
  4. scrape the best page per topic (each URL at most once)

Competitors run concurrently up to ``concurrency``; the Markdown report
is rendered from all results and written once at the end.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .models import DiscoveryReport, ScrapeResult, SearchResult
from .run_config import ResearchRunConfig
from .tools import explore_navigation, scrape_url, search_for_page, write_report

logger = logging.getLogger(__name__)

# Characters of scraped content quoted per topic in the report
_EXCERPT_CHARS = 3000


@dataclass
class TopicFinding:
    topic: str
    url: Optional[str] = None
    source: str = "none"              # search | navigation | none
    page: Optional[ScrapeResult] = None


@dataclass
class CompetitorResearch:
    url: str
    navigation: DiscoveryReport
    searches: List[SearchResult] = field(default_factory=list)
    findings: List[TopicFinding] = field(default_factory=list)
    error: Optional[str] = None       # set when the run for this competitor failed


def pick_topic_url(topic: str, search: SearchResult, navigation: DiscoveryReport) -> TopicFinding:
    """First search match, else the first navigation link mentioning the topic."""
    if search.matches:
        return TopicFinding(topic=topic, url=search.matches[0].url, source="search")
    kw = topic.lower()
    for link in navigation.links:
        if kw in link.url.lower() or kw in link.label.lower():
            return TopicFinding(topic=topic, url=link.url, source="navigation")
    return TopicFinding(topic=topic)


async def research_competitor(session, url: str, config: ResearchRunConfig) -> CompetitorResearch:
    nav_config = config.to_navigation_config()
    tool_config = config.to_tool_config()

    logger.info(f"[RESEARCH] {url}")
    navigation = await explore_navigation(session, url, config.max_links, config=nav_config)
    result = CompetitorResearch(url=url, navigation=navigation)

    scraped: Dict[str, ScrapeResult] = {}
    for topic in config.topics:
        search = await search_for_page(session, url, topic, config=tool_config)
        result.searches.append(search)

        finding = pick_topic_url(topic, search, navigation)
        if finding.url:
            if finding.url not in scraped:
                scraped[finding.url] = await scrape_url(session, finding.url, config=tool_config)
            finding.page = scraped[finding.url]
        result.findings.append(finding)

    return result


async def run_research(
    session, urls: Sequence[str], config: ResearchRunConfig
) -> List[CompetitorResearch]:
    """Research every competitor and write the report to ``config.report_path``."""
    semaphore = asyncio.Semaphore(config.concurrency)

    async def _one(url: str) -> CompetitorResearch:
        async with semaphore:
            try:
                return await research_competitor(session, url, config)
            except Exception as e:
                # The other competitors keep their results
                logger.error(f"[RESEARCH] {url} failed: {e}", exc_info=True)
                return CompetitorResearch(
                    url=url, navigation=DiscoveryReport(target_url=url), error=str(e)
                )

    results = list(await asyncio.gather(*(_one(u) for u in urls)))
    write_report(render_report(results), config.report_path)
    return results


def render_report(results: Sequence[CompetitorResearch]) -> str:
    """Markdown competitive-intelligence report."""
    lines = ["# Competitive Intelligence Report", ""]
    lines.append("| Competitor | Nav links | Topics found |")
    lines.append("|---|---|---|")
    for r in results:
        found = sum(1 for f in r.findings if f.url)
        lines.append(f"| {r.url} | {r.navigation.total_links_found} | {found}/{len(r.findings)} |")

    for r in results:
        lines.extend(["", f"# {r.url}", ""])
        if r.error:
            lines.append(f"_Research failed: {r.error}_")
            lines.append("")
        for finding in r.findings:
            lines.append(f"## {finding.topic.title()}")
            lines.append("")
            if not finding.url:
                lines.append("_No page found._")
                lines.append("")
                continue
            lines.append(f"Source: {finding.url} (via {finding.source})")
            lines.append("")
            page = finding.page
            if page is not None and page.content:
                excerpt = page.content[:_EXCERPT_CHARS]
                lines.append(excerpt)
                if len(page.content) > _EXCERPT_CHARS or page.truncated:
                    lines.append("")
                    lines.append("_(excerpt truncated)_")
                lines.append("")
        lines.append(r.navigation.to_markdown())
    return "\n".join(lines).rstrip() + "\n"
