"""Async request executor for SWAPI endpoints."""
import logging
from typing import Any, Optional

import httpx

from config.settings import SWAPI_BASE_URL, SWAPI_TIMEOUT
from swapi_smoke.client.errors import ParseError, TransportError
from swapi_smoke.client.url_builder import build_url

logger = logging.getLogger(__name__)


def build_async_client(**kwargs: Any) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` that follows redirects and uses the configured timeout."""
    # SWAPI answers "people" with a redirect to "people/"
    kwargs.setdefault("follow_redirects", True)
    if SWAPI_TIMEOUT is not None:
        kwargs.setdefault("timeout", SWAPI_TIMEOUT)
    return httpx.AsyncClient(**kwargs)


class SwapiClient:
    """Performs GET requests against SWAPI and returns decoded JSON bodies."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Base address, defaults to the configured SWAPI base URL
            http_client: Client to send requests with. When omitted one is
                created here and closed by ``aclose``.
        """
        self.base_url = SWAPI_BASE_URL if base_url is None else base_url
        self._owns_client = http_client is None
        self._client = http_client if http_client is not None else build_async_client()

    async def __aenter__(self) -> "SwapiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def url_for(self, term: str = "", search_term: str = "") -> str:
        return build_url(term, search_term, base_url=self.base_url)

    async def request(self, term: str = "", search_term: str = "") -> Any:
        """
        GET the resource for a term and search term.

        Returns:
            The JSON-decoded response body

        Raises:
            URLBuildError: If the URL cannot be built (no request is sent)
            TransportError: If the response status is outside 200-299
            ParseError: If the body is not valid JSON
        """
        url = self.url_for(term, search_term)
        logger.debug(f"GET {url}")

        response = await self._client.get(url)

        if not response.is_success:
            logger.warning(f"GET {url} returned HTTP {response.status_code}")
            raise TransportError(response.status_code, url=url)

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"Response from {url} is not valid JSON: {e}", url=url) from e


async def request(term: str = "", search_term: str = "", *, base_url: Optional[str] = None) -> Any:
    """Send a single request with a short-lived client."""
    async with SwapiClient(base_url=base_url) as client:
        return await client.request(term, search_term)
