"""Errors raised while building URLs and requesting SWAPI resources."""
from typing import Optional


class RequestError(Exception):
    """Base class for every failure surfaced by the request layer."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class URLBuildError(RequestError):
    """The composed request URL is not a valid absolute URL."""


class TransportError(RequestError):
    """The server answered with a status outside 200-299."""

    def __init__(self, status_code: int, url: Optional[str] = None):
        super().__init__(f"HTTP status {status_code}", url=url)
        self.status_code = status_code


class ParseError(RequestError):
    """The response body could not be decoded as JSON."""
