"""Request URL composition for SWAPI endpoints."""
from typing import Optional
from urllib.parse import quote, urlencode

import httpx

from config.settings import SWAPI_BASE_URL
from swapi_smoke.client.errors import URLBuildError


def build_url(term: str = "", search_term: str = "", base_url: Optional[str] = None) -> str:
    """
    Compose the absolute URL for a term and an optional search term.

    Args:
        term: Path segment appended to the base address (e.g. "people", "films/1")
        search_term: Free text sent as the ``search`` query parameter
        base_url: Base address, defaults to the configured SWAPI base URL

    Returns:
        The URL string. The base address is returned unmodified when both
        term and search term are empty.

    Raises:
        URLBuildError: If the base does not end with "/" or the composed
            string is not a valid absolute URL
    """
    base = SWAPI_BASE_URL if base_url is None else base_url
    if not base.endswith("/"):
        raise URLBuildError(f"Base URL {base!r} must end with '/'", url=base)

    if not term and not search_term:
        url = base
    elif not search_term:
        url = base + term
    else:
        # RFC 3986 escaping: a space is %20, never "+"
        url = f"{base}{term}?{urlencode({'search': search_term}, quote_via=quote)}"

    _validate(url)
    return url


def _validate(url: str) -> None:
    """Parse the URL with httpx and reject anything that is not absolute."""
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise URLBuildError(f"Invalid URL {url!r}: {e}", url=url) from e

    if not parsed.scheme or not parsed.host:
        raise URLBuildError(f"Invalid URL {url!r}: missing scheme or host", url=url)
