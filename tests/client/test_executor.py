"""Unit tests for the async request executor against an offline SWAPI double."""
import httpx
import pytest

from swapi_smoke.client import ParseError, RequestError, SwapiClient, TransportError, URLBuildError
from swapi_smoke.client import executor

BASE_URL = "https://swapi.dev/api/"


def client_for(handler) -> SwapiClient:
    """SwapiClient whose requests are answered by ``handler``."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SwapiClient(base_url=BASE_URL, http_client=http_client)


# ============================================================================
# Tests for SwapiClient.request - success
# ============================================================================

@pytest.mark.asyncio
async def test_request_returns_decoded_body(offline_swapi):
    """Test a successful request returns the parsed JSON body."""
    data = await offline_swapi.request("films/1", "")
    assert data["title"] == "A New Hope"
    assert data["episode_id"] == 4


@pytest.mark.asyncio
async def test_request_follows_trailing_slash_redirect(offline_swapi, swapi_transport):
    """Test the redirect from 'people' to 'people/' is followed."""
    data = await offline_swapi.request("people", "luke")
    assert data["count"] == 1
    assert [r.url.path for r in swapi_transport.seen] == ["/api/people", "/api/people/"]


@pytest.mark.asyncio
async def test_request_sends_search_parameter(offline_swapi, swapi_transport):
    """Test the search term reaches the server decoded."""
    await offline_swapi.request("people", "A new hope")
    assert swapi_transport.seen[0].url.params["search"] == "A new hope"


@pytest.mark.asyncio
async def test_request_root_sends_one_get(offline_swapi, swapi_transport):
    """Test exactly one GET is issued for the base address."""
    data = await offline_swapi.request("", "")
    assert "people" in data
    assert len(swapi_transport.seen) == 1
    assert swapi_transport.seen[0].method == "GET"
    assert str(swapi_transport.seen[0].url) == BASE_URL


# ============================================================================
# Tests for SwapiClient.request - failures
# ============================================================================

@pytest.mark.asyncio
async def test_request_not_found_raises_transport_error(offline_swapi):
    """Test a 404 surfaces as TransportError carrying the status code."""
    with pytest.raises(TransportError) as excinfo:
        await offline_swapi.request("planets/72", "")
    assert excinfo.value.status_code == 404
    assert excinfo.value.url == "https://swapi.dev/api/planets/72"
    assert str(excinfo.value) == "HTTP status 404"


@pytest.mark.asyncio
async def test_request_server_error_raises_transport_error():
    """Test 5xx is reported the same way as 4xx."""
    client = client_for(lambda request: httpx.Response(503, text="down"))
    async with client:
        with pytest.raises(TransportError) as excinfo:
            await client.request("people", "")
    assert excinfo.value.status_code == 503


@pytest.mark.asyncio
async def test_request_invalid_json_raises_parse_error():
    """Test a non-JSON body surfaces as ParseError chained to the decoder error."""
    client = client_for(lambda request: httpx.Response(200, text="<html>not json</html>"))
    async with client:
        with pytest.raises(ParseError) as excinfo:
            await client.request("people", "")
    assert isinstance(excinfo.value.__cause__, ValueError)
    assert isinstance(excinfo.value, RequestError)


@pytest.mark.asyncio
async def test_request_invalid_utf8_raises_parse_error():
    """Test a body that is not UTF-8 surfaces as ParseError chained to the decode error."""
    body = b'{"name": "Luke \xff Skywalker"}'
    client = client_for(lambda request: httpx.Response(200, content=body, headers={"Content-Type": "application/json"}))
    async with client:
        with pytest.raises(ParseError) as excinfo:
            await client.request("people/1", "")
    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)
    assert excinfo.value.url == "https://swapi.dev/api/people/1"


@pytest.mark.asyncio
async def test_request_invalid_url_sends_nothing():
    """Test URL errors are raised before any request is made."""
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={})

    client = client_for(handler)
    async with client:
        with pytest.raises(URLBuildError):
            await client.request("people\x00", "")
    assert seen == []


@pytest.mark.asyncio
async def test_request_network_error_propagates():
    """Test transport-level httpx errors are not swallowed."""
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = client_for(handler)
    async with client:
        with pytest.raises(httpx.ConnectError):
            await client.request("people", "")


# ============================================================================
# Tests for client lifecycle and module-level request
# ============================================================================

@pytest.mark.asyncio
async def test_client_closes_owned_http_client():
    """Test a client created without an injected http client closes its own."""
    client = SwapiClient(base_url=BASE_URL)
    await client.aclose()
    assert client._client.is_closed


@pytest.mark.asyncio
async def test_client_leaves_injected_http_client_open():
    """Test an injected http client stays open for its owner to close."""
    http_client = httpx.AsyncClient()
    async with SwapiClient(base_url=BASE_URL, http_client=http_client):
        pass
    assert not http_client.is_closed
    await http_client.aclose()


def test_build_async_client_follows_redirects():
    """Test the shared client builder enables redirect following."""
    http_client = executor.build_async_client()
    assert http_client.follow_redirects is True


@pytest.mark.asyncio
async def test_module_request_uses_short_lived_client(monkeypatch, swapi_transport):
    """Test the convenience function opens and closes its own client."""
    created = []

    def fake_builder(**kwargs):
        http_client = httpx.AsyncClient(transport=swapi_transport, follow_redirects=True)
        created.append(http_client)
        return http_client

    monkeypatch.setattr(executor, "build_async_client", fake_builder)

    data = await executor.request("films/1", "", base_url=BASE_URL)
    assert data["director"] == "George Lucas"
    assert len(created) == 1
    assert created[0].is_closed
