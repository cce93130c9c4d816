"""Pytest configuration: SWAPI client fixtures and failure capture."""
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from config.settings import FAILURES_DIR
from swapi_smoke.analyzer.failure_capture import ExchangeLog
from swapi_smoke.client import SwapiClient, build_async_client


# Last SWAPI exchange per running test
exchange_log = ExchangeLog()


@pytest_asyncio.fixture
async def swapi(request):
    """SWAPI client whose traffic is recorded for failure reports."""
    http_client = build_async_client(event_hooks=exchange_log.hooks(request.node.nodeid))
    async with SwapiClient(http_client=http_client) as client:
        yield client
    await http_client.aclose()


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Write a JSON failure record for every failed setup, call or teardown."""
    outcome = yield
    report = outcome.get_result()

    exc = call.excinfo.value if report.failed and call.excinfo else None
    failure = exchange_log.handle_report(
        node_id=item.nodeid,
        test_name=item.name,
        test_file=str(item.path),
        phase=report.when,
        exc=exc,
    )
    if failure is not None:
        output_file = failure.write(Path(FAILURES_DIR))
        print(f"\n[FAILURE CAPTURED] {item.name} ({report.when}) -> {output_file}")


# ============================================================================
# Offline SWAPI double
# ============================================================================

BASE_URL = "https://swapi.dev/api/"

ROOT_BODY = {
    category: f"{BASE_URL}{category}/"
    for category in ("people", "planets", "films", "species", "vehicles", "starships")
}

PEOPLE = {
    "luke": [{"name": "Luke Skywalker"}],
    "skywalker": [{"name": "Luke Skywalker"}, {"name": "Anakin Skywalker"}, {"name": "Shmi Skywalker"}],
}

FILM_1 = {
    "title": "A New Hope",
    "episode_id": 4,
    "director": "George Lucas",
    "planets": [f"{BASE_URL}planets/1/", f"{BASE_URL}planets/2/", f"{BASE_URL}planets/3/"],
}


def fake_swapi(request: httpx.Request) -> httpx.Response:
    """Answer like swapi.dev for the snapshot the scenarios were written against."""
    path = request.url.path

    # Django-style slash redirect
    if path != "/api/" and not path.endswith("/"):
        return httpx.Response(301, headers={"Location": str(request.url.copy_with(path=path + "/"))})

    if path == "/api/":
        return httpx.Response(200, json=ROOT_BODY)
    if path == "/api/people/":
        search = request.url.params.get("search")
        if search is None:
            return httpx.Response(200, json={"count": 82, "results": [{"name": "Luke Skywalker"}]})
        results = PEOPLE.get(search.lower(), [])
        return httpx.Response(200, json={"count": len(results), "results": results})
    if path == "/api/films/1/":
        return httpx.Response(200, json=FILM_1)
    return httpx.Response(404, json={"detail": "Not found"})


@pytest.fixture
def swapi_transport():
    """Mock transport that records every request it serves."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return fake_swapi(request)

    transport = httpx.MockTransport(handler)
    transport.seen = seen
    return transport


@pytest_asyncio.fixture
async def offline_swapi(swapi_transport):
    """SwapiClient backed by the offline double."""
    http_client = build_async_client(transport=swapi_transport)
    async with SwapiClient(base_url=BASE_URL, http_client=http_client) as client:
        yield client
    await http_client.aclose()
