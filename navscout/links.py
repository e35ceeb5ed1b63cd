"""
Link Collection
===============
Turns raw DOM query results into canonical ``LinkSet`` snapshots and
diffs two snapshots to attribute links to the interaction between them.

Malformed and non-navigable hrefs are page-authoring noise: they are
skipped here and never reported as errors.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .models import Link, LinkSet
from .page_driver import DEFAULT_SCOPE, ElementRecord
from .utils import clean_link_text, is_excluded_href, resolve_href

logger = logging.getLogger(__name__)


def links_from_records(
    records: Iterable[ElementRecord],
    base_url: str,
    *,
    into: Optional[LinkSet] = None,
    exclude: Optional[LinkSet] = None,
) -> LinkSet:
    """
    Normalize ``{href, text}`` records into a LinkSet.

    Args:
        records:  Raw DOM query results, in document order.
        base_url: URI relative hrefs are resolved against.
        into:     Existing LinkSet to extend (first-seen label still wins).
        exclude:  URIs present here are dropped.

    Returns:
        The extended (or new) LinkSet.
    """
    links: LinkSet = into if into is not None else {}
    for href, text in records:
        if is_excluded_href(href):
            continue
        url = resolve_href(href, base_url)
        if url is None:
            continue
        if url in links or (exclude is not None and url in exclude):
            continue
        links[url] = Link(url=url, label=clean_link_text(text))
    return links


async def collect_links(driver, base_url: str, scope: str = DEFAULT_SCOPE) -> LinkSet:
    """Snapshot every link matching ``scope`` on the driver's current page.

    Driver errors (e.g. an invalid selector) propagate; the caller decides
    whether that is candidate noise or a phase failure.
    """
    records = await driver.query_elements(scope)
    return links_from_records(records, base_url)


def diff_links(before: LinkSet, after: LinkSet) -> List[Link]:
    """Links of ``after`` whose URI is absent from ``before``, in ``after`` order."""
    return [link for url, link in after.items() if url not in before]
