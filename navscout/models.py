"""
Result Models
=============
Plain dataclasses shared by the discovery engine, the research tools and
the exporters.  Every record knows how to turn itself into a dict for
JSON export, and ``DiscoveryReport`` also renders a Markdown summary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

# Maximum characters kept from a link's visible text
MAX_LABEL_CHARS = 120


@dataclass(frozen=True)
class Link:
    """One navigable link.  ``url`` is absolute and is the identity key."""
    url: str
    label: str = ""

    def to_dict(self) -> dict:
        return {'url': self.url, 'label': self.label}


# Insertion-ordered mapping url -> Link (dicts preserve order)
LinkSet = Dict[str, Link]


@dataclass(frozen=True)
class Section:
    """Labeled contribution of one discovery phase or interaction."""
    label: str
    links: Tuple[Link, ...] = ()

    def __post_init__(self):
        if not self.links:
            raise ValueError(f"Section {self.label!r} must contain at least one link")
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, 'links', tuple(self.links))

    def to_dict(self) -> dict:
        return {
            'label': self.label,
            'links': [link.to_dict() for link in self.links],
        }


@dataclass
class DiscoveryReport:
    """
    Result of one discovery run against a single page.

    Append-only while the run is in progress; ``add_section`` and
    ``add_error`` are the only mutators the engine uses.
    """
    target_url: str
    total_links_found: int = 0
    sections: List[Section] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def add_section(self, section: Section) -> None:
        self.sections.append(section)
        self.total_links_found += len(section.links)

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    @property
    def links(self) -> List[Link]:
        """All links across sections, in report order."""
        return [link for section in self.sections for link in section.links]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON export."""
        return {
            'target_url': self.target_url,
            'total_links_found': self.total_links_found,
            'sections': [s.to_dict() for s in self.sections],
            'errors': list(self.errors),
        }

    def to_flat_rows(self) -> List[dict]:
        """One row per link for CSV export."""
        rows = []
        for section in self.sections:
            for link in section.links:
                rows.append({
                    'target_url': self.target_url,
                    'section': section.label,
                    'url': link.url,
                    'label': link.label,
                })
        return rows

    def to_markdown(self) -> str:
        """Human-readable summary of what was found and where."""
        lines = [
            f"## Navigation: {self.target_url}",
            "",
            f"Found {self.total_links_found} link(s) in {len(self.sections)} section(s).",
        ]
        for section in self.sections:
            lines.append("")
            lines.append(f"### {section.label} ({len(section.links)})")
            for link in section.links:
                text = link.label or link.url
                lines.append(f"- [{text}]({link.url})")
        if self.errors:
            lines.append("")
            lines.append("### Errors")
            for err in self.errors:
                lines.append(f"- {err}")
        return "\n".join(lines) + "\n"


@dataclass
class PageMatch:
    """A link whose URL or text matched a keyword search."""
    url: str
    link_text: str = ""

    def to_dict(self) -> dict:
        return {'url': self.url, 'link_text': self.link_text}


@dataclass
class SearchResult:
    """Result of ``search_for_page``."""
    base_url: str
    keyword: str
    matches: List[PageMatch] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'base_url': self.base_url,
            'keyword': self.keyword,
            'matches': [m.to_dict() for m in self.matches],
        }


@dataclass
class ScrapeResult:
    """Result of ``scrape_url``: page content as Markdown."""
    url: str
    title: str = ""
    content: str = ""
    truncated: bool = False

    def to_dict(self) -> dict:
        return {
            'url': self.url,
            'title': self.title,
            'content': self.content,
            'truncated': self.truncated,
        }
