"""
Tests for the fixed competitor research policy and report rendering.
"""

import asyncio

from conftest import NAV, FakeElement, FakePage, FakeSession
from playwright.async_api import Error as PlaywrightError

from navscout.models import DiscoveryReport, Link, PageMatch, ScrapeResult, SearchResult, Section
from navscout.research import (
    CompetitorResearch,
    TopicFinding,
    pick_topic_url,
    render_report,
    research_competitor,
    run_research,
)
from navscout.run_config import ResearchRunConfig

HOME = "https://acme.example/"


def _navigation(*links):
    report = DiscoveryReport(target_url=HOME)
    if links:
        report.add_section(Section("Primary Nav", [Link(u, t) for u, t in links]))
    return report


class TestPickTopicUrl:

    def test_search_match_wins(self):
        search = SearchResult(HOME, "pricing", [PageMatch("https://acme.example/pricing", "Pricing")])
        nav = _navigation(("https://acme.example/plans-and-pricing", "Plans"))
        finding = pick_topic_url("pricing", search, nav)
        assert (finding.url, finding.source) == ("https://acme.example/pricing", "search")

    def test_navigation_fallback_by_label(self):
        nav = _navigation(("https://acme.example/a", "About"), ("https://acme.example/b", "Customers"))
        finding = pick_topic_url("customers", SearchResult(HOME, "customers"), nav)
        assert (finding.url, finding.source) == ("https://acme.example/b", "navigation")

    def test_nothing_found(self):
        finding = pick_topic_url("features", SearchResult(HOME, "features"), _navigation())
        assert finding.url is None
        assert finding.source == "none"


def _acme_page():
    """Homepage with a pricing link in the nav and a hover-only customers link."""
    page = FakePage(routes={
        HOME: {'title': "Acme"},
        "https://acme.example/pricing": {'title': "Pricing", 'html': "<h1>Plans</h1><p>Pro plan</p>"},
        "https://acme.example/stories": {'title': "Stories", 'html': "<p>Loved by teams</p>"},
    })
    page.add_anchor("/pricing", "Pricing", NAV)

    def reveal(p):
        if not any(a.href == "/stories" for a in p.anchors):
            p.add_anchor("/stories", "Customers", NAV)

    page.add_element('nav > ul > li', FakeElement("Company", on_hover=reveal))
    return page


class TestResearchCompetitor:

    def test_topics_resolved_and_scraped_once(self):
        session = FakeSession(_acme_page)
        cfg = ResearchRunConfig(topics=["pricing", "customers", "careers", "plans"])

        result = asyncio.run(research_competitor(session, HOME, cfg))

        by_topic = {f.topic: f for f in result.findings}
        assert by_topic["pricing"].source == "search"
        assert by_topic["pricing"].page.title == "Pricing"
        assert by_topic["customers"].url == "https://acme.example/stories"
        assert by_topic["customers"].source == "navigation"
        assert by_topic["customers"].page.content == "Loved by teams"
        assert by_topic["careers"].url is None
        # "plans" falls back to nothing: the Pricing link text does not contain it
        assert by_topic["plans"].url is None

        scraped = [p.navigations[0] for p in session.pages if p.navigations[0] != HOME]
        assert sorted(scraped) == ["https://acme.example/pricing", "https://acme.example/stories"]
        assert all(p.closed for p in session.pages)

    def test_run_research_writes_report(self, tmp_path):
        session = FakeSession(_acme_page)
        path = tmp_path / "report.md"
        cfg = ResearchRunConfig(topics=["pricing"], report_path=str(path))

        results = asyncio.run(run_research(session, [HOME], cfg))

        assert len(results) == 1
        text = path.read_text(encoding="utf-8")
        assert text.startswith("# Competitive Intelligence Report")
        assert f"| {HOME} | 2 | 1/1 |" in text
        assert "Source: https://acme.example/pricing (via search)" in text


class TestRenderReport:

    def test_missing_topic_and_truncated_excerpt(self):
        result = CompetitorResearch(
            url=HOME,
            navigation=_navigation(("https://acme.example/x", "X")),
            findings=[
                TopicFinding("features"),
                TopicFinding("pricing", "https://acme.example/x", "navigation",
                             ScrapeResult("https://acme.example/x", "X", "y" * 5000, True)),
            ],
        )
        text = render_report([result])
        assert "## Features\n\n_No page found._" in text
        assert "y" * 3000 + "\n\n_(excerpt truncated)_" in text
        assert "y" * 3001 not in text
        assert "## Navigation: https://acme.example/" in text
        assert text.endswith("\n")


class _DroppingSession(FakeSession):
    """Browser connection lost after ``healthy`` pages were handed out."""

    def __init__(self, factory, healthy):
        super().__init__(factory)
        self.healthy = healthy

    async def new_page(self):
        if len(self.pages) >= self.healthy:
            raise PlaywrightError("Target page, context or browser has been closed")
        return await super().new_page()


class TestRunResearchFailures:

    def test_failed_competitor_does_not_lose_the_report(self, tmp_path):
        # First competitor uses three pages: explore, search, scrape
        session = _DroppingSession(_acme_page, healthy=3)
        path = tmp_path / "report.md"
        cfg = ResearchRunConfig(topics=["pricing"], concurrency=1, report_path=str(path))

        results = asyncio.run(run_research(session, [HOME, "https://beta.example/"], cfg))

        assert [r.url for r in results] == [HOME, "https://beta.example/"]
        assert results[0].error is None
        assert results[0].findings[0].page.title == "Pricing"
        assert results[1].error == "Target page, context or browser has been closed"

        text = path.read_text(encoding="utf-8")
        assert "Source: https://acme.example/pricing (via search)" in text
        assert "# https://beta.example/\n\n_Research failed: Target page, context or browser has been closed_" in text
