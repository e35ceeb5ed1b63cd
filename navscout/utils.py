"""
Utility Functions
URL resolution, href filtering and text cleanup shared by every link reader.
"""

import logging
import re
from typing import Optional
from urllib.parse import quote, urljoin, urlsplit, urlunsplit

from .models import MAX_LABEL_CHARS

logger = logging.getLogger(__name__)

# hrefs that never lead to a navigable page
EXCLUDED_HREF_PREFIXES = ('javascript:', 'mailto:', 'tel:')

# Schemes that must carry a host to be a usable absolute URI
_HOST_SCHEMES = {'http', 'https', 'ftp', 'ws', 'wss'}

_DEFAULT_PORTS = {'http': 80, 'https': 443, 'ftp': 21, 'ws': 80, 'wss': 443}

# Browsers drop ASCII tab/newline anywhere inside a URL before parsing
_URL_CONTROL_CHARS = re.compile(r'[\t\n\r]')

# Left as-is when percent-encoding; '%' keeps existing escapes intact
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"
_QUERY_SAFE = _PATH_SAFE + "?"

_SINGLE_DOT = {'.', '%2e'}
_DOUBLE_DOT = {'..', '.%2e', '%2e.', '%2e%2e'}


def is_excluded_href(href: Optional[str]) -> bool:
    """True for empty, script, mail, phone and bare-fragment hrefs."""
    if not href:
        return True
    href = href.strip()
    if not href or href == '#':
        return True
    return href.lower().startswith(EXCLUDED_HREF_PREFIXES)


def resolve_href(href: str, base_url: str) -> Optional[str]:
    """
    Resolve ``href`` against ``base_url`` into a canonical absolute URI.

    Scheme and host are lower-cased, default ports dropped, dot segments
    removed and an empty http(s) path becomes ``/``.  Path, query and
    fragment are percent-encoded as UTF-8, so ``/café`` and ``/caf%C3%A9``
    resolve to the same URI.  Applying the function to its own output
    returns the same string.

    Returns:
        The absolute URI, or None when the href cannot be resolved.
    """
    if href is None:
        return None
    href = _URL_CONTROL_CHARS.sub('', href.strip())
    try:
        parsed = urlsplit(urljoin(base_url, href))
        port = parsed.port  # raises ValueError on a malformed port
    except ValueError:
        return None

    scheme = parsed.scheme.lower()
    if not scheme:
        return None
    if scheme in _HOST_SCHEMES and not parsed.hostname:
        return None

    netloc = parsed.netloc
    if netloc:
        userinfo, at, hostport = netloc.rpartition('@')
        hostport = hostport.lower()
        if port is not None and _DEFAULT_PORTS.get(scheme) == port:
            hostport = hostport[: hostport.rfind(':')]
        netloc = f"{userinfo}{at}{hostport}"

    path = remove_dot_segments(parsed.path)
    if scheme in ('http', 'https') and not path:
        path = '/'

    return urlunsplit((
        scheme,
        netloc,
        quote(path, safe=_PATH_SAFE),
        quote(parsed.query, safe=_QUERY_SAFE),
        quote(parsed.fragment, safe=_QUERY_SAFE),
    ))


def remove_dot_segments(path: str) -> str:
    """Resolve ``.`` and ``..`` in an absolute path, keeping a trailing slash."""
    if not path.startswith('/'):
        return path
    segments = path.split('/')[1:]
    output = []
    for i, segment in enumerate(segments):
        last = i == len(segments) - 1
        lowered = segment.lower()
        if lowered in _SINGLE_DOT:
            if last:
                output.append('')
        elif lowered in _DOUBLE_DOT:
            if output:
                output.pop()
            if last:
                output.append('')
        else:
            output.append(segment)
    return '/' + '/'.join(output)


def clean_link_text(text: Optional[str], limit: int = MAX_LABEL_CHARS) -> str:
    """Collapse whitespace and truncate to ``limit`` characters."""
    return clean_text(text)[:limit]


def clean_text(text: Optional[str]) -> str:
    """Clean and normalize text content."""
    if not text:
        return ""

    # Replace multiple whitespace with single space
    text = re.sub(r'\s+', ' ', text)

    return text.strip()


def base_name_from_url(url: str) -> str:
    """Derive a filesystem-safe base name from a URL."""
    parsed = urlsplit(url)
    base = parsed.netloc.replace('.', '_').replace(':', '_')
    if parsed.path and parsed.path != '/':
        path_part = parsed.path.strip('/').replace('/', '_')[:30]
        base = f"{base}_{path_part}"
    return base or "report"
