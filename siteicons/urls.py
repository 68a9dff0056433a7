"""URL resolution utilities for site icon extraction"""

from urllib.parse import urldefrag, urljoin, urlsplit

import httpx

from siteicons.constants import ALLOWED_SCHEMES
from siteicons.exceptions import InvalidUrlError


def validate_page_url(url: str) -> str:
    """Return `url` if it is an absolute http(s) URL with a host, else raise InvalidUrlError."""
    if not isinstance(url, str) or not url.strip():
        raise InvalidUrlError(f"Empty URL: {url!r}")

    url = url.strip()
    try:
        parts = urlsplit(url)
        # Accessing the port validates it
        parts.port
    except ValueError as e:
        raise InvalidUrlError(f"Cannot parse URL {url!r}: {e}") from e

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidUrlError(f"Unsupported scheme in URL {url!r}")
    if not parts.hostname:
        raise InvalidUrlError(f"Missing host in URL {url!r}")
    return url


def resolve(base: str, candidate: str) -> str:
    """Join a candidate reference against the page's base URL.

    Protocol-relative and path-relative candidates are resolved against the base. The
    result is normalized (lowercase scheme and host, no default port, no dot segments)
    so different spellings of one URL compare equal. The fragment is dropped.

    Raises:
        InvalidUrlError: if the candidate is blank or the joined URL is not a valid
            http(s) URL (e.g. `data:` or `javascript:` references).
    """
    reference = candidate.strip() if isinstance(candidate, str) else ""
    if not reference:
        raise InvalidUrlError(f"Empty icon reference on {base}")

    try:
        joined = urljoin(base, reference)
    except ValueError as e:
        raise InvalidUrlError(f"Cannot join {reference!r} to {base}: {e}") from e

    url, _fragment = urldefrag(joined)
    url = validate_page_url(url)
    try:
        return str(httpx.URL(url))
    except httpx.InvalidURL as e:
        raise InvalidUrlError(f"Cannot normalize URL {url!r}: {e}") from e
