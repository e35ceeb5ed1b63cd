"""
Tests for the research tools and the tool dispatcher.

Covers:
  1. search-for-page (keyword filter, exclusions, dedup, cap)
  2. scrape-url (Markdown conversion, HTTP errors, truncation)
  3. explore-navigation / explore_many (page lifecycle, ordering)
  4. write-report
  5. dispatch_tool argument validation
"""

import asyncio

import pytest
from conftest import NAV, FakePage, FakeSession
from playwright.async_api import Error as PlaywrightError

from navscout.page_driver import ElementRecord
from navscout.tools import (
    TOOLS,
    ToolConfig,
    ToolInputError,
    dispatch_tool,
    explore_many,
    explore_navigation,
    html_to_markdown,
    match_links,
    scrape_url,
    search_for_page,
    write_report,
)

URL = "https://example.com/"

SEARCH_ANCHORS = [
    ("/pricing", "Pricing"),
    ("/plans", "See   pricing plans"),
    ("javascript:void(0)", "pricing js"),
    ("mailto:sales@example.com", "pricing email"),
    ("#pricing", "Pricing anchor"),
    ("/about", "About us"),
    ("/pricing", "Pricing again"),
    ("https://docs.example.com/PRICING-api", "API"),
]


def _session(**page_kwargs):
    return FakeSession(lambda: FakePage(**page_kwargs))


# ====================================================================
# 1. search-for-page
# ====================================================================

class TestSearchForPage:

    def test_matches_href_or_text(self):
        session = _session(routes={URL: {'anchors': SEARCH_ANCHORS}})

        result = asyncio.run(search_for_page(session, URL, "pricing"))

        assert [m.url for m in result.matches] == [
            "https://example.com/pricing",
            "https://example.com/plans",
            "https://docs.example.com/PRICING-api",
        ]
        assert result.matches[0].link_text == "Pricing"
        assert result.matches[1].link_text == "See pricing plans"
        assert session.pages[0].closed

    def test_keyword_is_case_insensitive(self):
        session = _session(routes={URL: {'anchors': SEARCH_ANCHORS}})
        result = asyncio.run(search_for_page(session, URL, "ABOUT"))
        assert [m.url for m in result.matches] == ["https://example.com/about"]

    def test_no_matches(self):
        session = _session(routes={URL: {'anchors': SEARCH_ANCHORS}})
        result = asyncio.run(search_for_page(session, URL, "careers"))
        assert result.matches == []
        assert result.to_dict() == {'base_url': URL, 'keyword': "careers", 'matches': []}

    def test_navigation_error_returns_empty(self):
        session = _session(nav_error=PlaywrightError("net::ERR_CONNECTION_REFUSED"))
        result = asyncio.run(search_for_page(session, URL, "pricing"))
        assert result.matches == []
        assert session.pages[0].closed

    def test_resolves_against_final_url(self):
        session = _session(routes={URL: {
            'final_url': "https://www.example.com/en/",
            'anchors': [("pricing", "Pricing")],
        }})
        result = asyncio.run(search_for_page(session, URL, "pricing"))
        assert result.matches[0].url == "https://www.example.com/en/pricing"

    def test_match_cap(self):
        records = [ElementRecord(f"/docs/{i}", "Docs") for i in range(25)]
        matches = match_links(records, URL, "docs", max_matches=10)
        assert len(matches) == 10
        assert matches[-1].url == "https://example.com/docs/9"

    def test_config_cap(self):
        anchors = [(f"/docs/{i}", "Docs") for i in range(5)]
        session = _session(routes={URL: {'anchors': anchors}})
        result = asyncio.run(search_for_page(session, URL, "docs", config=ToolConfig(max_matches=2)))
        assert len(result.matches) == 2


# ====================================================================
# 2. scrape-url
# ====================================================================

ARTICLE = """
<html><head><title>ignored</title><style>.x { color: red }</style></head>
<body>
  <!-- tracking -->
  <h1>Pricing</h1>
  <p>Plans start at ten dollars.</p>
  <ul><li>Starter</li><li>Business</li></ul>
  <script>var secret = 1;</script>
  <noscript>Enable JavaScript</noscript>
</body></html>
"""


class TestScrapeUrl:

    def test_markdown_content(self):
        session = _session(title="Pricing | Example", html=ARTICLE)

        result = asyncio.run(scrape_url(session, URL))

        assert result.title == "Pricing | Example"
        assert "# Pricing" in result.content
        assert "Plans start at ten dollars." in result.content
        assert "- Starter" in result.content
        assert "secret" not in result.content
        assert "color: red" not in result.content
        assert "tracking" not in result.content
        assert "Enable JavaScript" not in result.content
        assert result.truncated is False
        assert session.pages[0].closed

    def test_http_error(self):
        session = _session(status=404, html=ARTICLE)
        result = asyncio.run(scrape_url(session, URL))
        assert result.content == "Page returned HTTP 404"
        assert result.title == ""
        assert session.pages[0].closed

    def test_navigation_error(self):
        session = _session(nav_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))
        result = asyncio.run(scrape_url(session, URL))
        assert result.content == "Navigation error: net::ERR_NAME_NOT_RESOLVED"
        assert session.pages[0].closed

    def test_truncation(self):
        session = _session(html="<p>" + "word " * 200 + "</p>")
        result = asyncio.run(scrape_url(session, URL, config=ToolConfig(max_content_chars=20)))
        assert len(result.content) == 20
        assert result.truncated is True

    def test_blank_lines_collapsed(self):
        markdown = html_to_markdown("<div><p>a</p></div><div></div><div></div><p>b</p>")
        assert "\n\n\n" not in markdown
        assert markdown.startswith("a")
        assert markdown.endswith("b")

    def test_empty_html(self):
        assert html_to_markdown("") == ""


# ====================================================================
# 3. explore-navigation
# ====================================================================

class TestExploreNavigation:

    def test_page_closed_after_run(self):
        def factory():
            page = FakePage()
            page.add_anchor("/a", "A", NAV)
            return page

        session = FakeSession(factory)
        report = asyncio.run(explore_navigation(session, URL, 10))

        assert report.total_links_found == 1
        assert session.pages[0].closed

    def test_page_closed_on_fatal_navigation(self):
        session = _session(status=500)
        report = asyncio.run(explore_navigation(session, URL))
        assert report.errors == ["Page returned HTTP 500"]
        assert session.pages[0].closed

    def test_many_keeps_input_order_and_isolates_pages(self):
        urls = ["https://a.example/", "https://b.example/", "https://c.example/"]
        routes = {urls[1]: {'status': 404}}
        session = _session(routes=routes)

        reports = asyncio.run(explore_many(session, urls, 5, concurrency=2))

        assert [r.target_url for r in reports] == urls
        assert reports[0].errors == []
        assert reports[1].errors == ["Page returned HTTP 404"]
        assert len(session.pages) == 3
        assert all(p.closed for p in session.pages)
        assert sorted(p.navigations[0] for p in session.pages) == urls


# ====================================================================
# 4. write-report
# ====================================================================

class TestWriteReport:

    def test_writes_file(self, tmp_path):
        path = tmp_path / "out" / "report.md"
        result = write_report("# Report\n", str(path))
        assert result == {'file_path': str(path.resolve()), 'success': True}
        assert path.read_text(encoding="utf-8") == "# Report\n"

    def test_overwrites(self, tmp_path):
        path = tmp_path / "report.md"
        write_report("first", str(path))
        write_report("second", str(path))
        assert path.read_text(encoding="utf-8") == "second"


# ====================================================================
# 5. Dispatcher
# ====================================================================

class TestDispatchTool:

    def test_contracts_published(self):
        assert [t["name"] for t in TOOLS] == [
            "search-for-page", "scrape-url", "explore-navigation", "write-report",
        ]
        for tool in TOOLS:
            assert tool["description"]
            assert tool["input_schema"]["type"] == "object"
            assert tool["input_schema"]["required"]

    def test_unknown_tool(self, session):
        with pytest.raises(ToolInputError):
            asyncio.run(dispatch_tool(session, "delete-site", {}))

    @pytest.mark.parametrize("arguments", [
        {},
        {"baseUrl": "", "keyword": "pricing"},
        {"baseUrl": "example.com", "keyword": "pricing"},
        {"baseUrl": "ftp://example.com/", "keyword": "pricing"},
        {"baseUrl": URL},
        {"baseUrl": URL, "keyword": ""},
        {"baseUrl": URL, "keyword": 5},
    ])
    def test_search_arguments_validated(self, session, arguments):
        with pytest.raises(ToolInputError):
            asyncio.run(dispatch_tool(session, "search-for-page", arguments))
        assert session.pages == []

    @pytest.mark.parametrize("max_links", [0, -3, "5", 2.5, True])
    def test_max_links_validated(self, session, max_links):
        with pytest.raises(ToolInputError):
            asyncio.run(dispatch_tool(session, "explore-navigation", {"url": URL, "maxLinks": max_links}))

    def test_explore_returns_report_dict(self, session):
        result = asyncio.run(dispatch_tool(session, "explore-navigation", {"url": URL, "maxLinks": 3}))
        assert set(result) == {'target_url', 'total_links_found', 'sections', 'errors'}
        assert result['target_url'] == URL

    def test_search_returns_matches(self):
        session = _session(routes={URL: {'anchors': SEARCH_ANCHORS}})
        result = asyncio.run(dispatch_tool(session, "search-for-page", {"baseUrl": URL, "keyword": "about"}))
        assert result['matches'] == [{'url': "https://example.com/about", 'link_text': "About us"}]

    def test_scrape_returns_dict(self):
        session = _session(title="T", html="<p>hello</p>")
        result = asyncio.run(dispatch_tool(session, "scrape-url", {"url": URL}))
        assert result == {'url': URL, 'title': "T", 'content': "hello", 'truncated': False}

    def test_write_report_uses_configured_path(self, session, tmp_path):
        path = tmp_path / "r.md"
        result = asyncio.run(dispatch_tool(
            session, "write-report", {"content": "done"},
            tool_config=ToolConfig(report_path=str(path)),
        ))
        assert result['success'] is True
        assert path.read_text(encoding="utf-8") == "done"
