"""URL building and request execution for SWAPI."""
from swapi_smoke.client.errors import ParseError, RequestError, TransportError, URLBuildError
from swapi_smoke.client.executor import SwapiClient, build_async_client, request
from swapi_smoke.client.url_builder import build_url

__all__ = [
    "build_url",
    "build_async_client",
    "request",
    "SwapiClient",
    "RequestError",
    "URLBuildError",
    "TransportError",
    "ParseError",
]
