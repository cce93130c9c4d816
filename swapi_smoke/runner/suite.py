"""Concurrent scenario runner."""
import asyncio
import logging
import time
from typing import Iterable, List, Optional

import httpx
from pydantic import BaseModel, Field

from swapi_smoke.client.errors import RequestError, TransportError
from swapi_smoke.client.executor import SwapiClient
from swapi_smoke.runner.scenarios import SCENARIOS, Scenario

logger = logging.getLogger(__name__)


class ScenarioResult(BaseModel):
    """Outcome of a single scenario."""
    name: str
    url: Optional[str] = Field(default=None, description="Request URL, if it could be built")
    passed: bool
    error_type: Optional[str] = Field(default=None)
    error_message: Optional[str] = Field(default=None)
    duration: float = Field(default=0.0, description="Seconds")


def _failure_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


async def run_scenario(client: SwapiClient, scenario: Scenario) -> ScenarioResult:
    """
    Run one scenario and record its outcome instead of raising.

    A positive scenario passes when the request succeeds and its check does
    not raise. A negative scenario passes only when the request fails with
    the expected error kind (and status, when one is given).
    """
    start_time = time.time()
    url = None
    error: Optional[BaseException] = None

    try:
        url = client.url_for(scenario.term, scenario.search_term)
        body = await client.request(scenario.term, scenario.search_term)
        if scenario.is_negative:
            error = AssertionError(
                f"Expected {scenario.expect_error.__name__} but the request succeeded"
            )
        elif scenario.check is not None:
            scenario.check(body)
    except RequestError as e:
        if not _matches_expected_error(scenario, e):
            error = e
    except (AssertionError, KeyError, IndexError, TypeError) as e:
        error = e
    except httpx.HTTPError as e:
        logger.warning(f"Scenario {scenario.name} failed in transport: {e}")
        error = e
    except Exception as e:
        logger.exception(f"Unexpected error in scenario {scenario.name}")
        error = e

    duration = round(time.time() - start_time, 3)
    if error is None:
        return ScenarioResult(name=scenario.name, url=url, passed=True, duration=duration)

    return ScenarioResult(
        name=scenario.name,
        url=url,
        passed=False,
        error_type=type(error).__name__,
        error_message=_failure_message(error),
        duration=duration,
    )


def _matches_expected_error(scenario: Scenario, error: RequestError) -> bool:
    if scenario.expect_error is None or not isinstance(error, scenario.expect_error):
        return False
    if scenario.expect_status is None:
        return True
    return isinstance(error, TransportError) and error.status_code == scenario.expect_status


async def run_scenarios(
    scenarios: Iterable[Scenario] = SCENARIOS,
    *,
    base_url: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    sequential: bool = False,
) -> List[ScenarioResult]:
    """
    Run scenarios and return their results in the order given.

    By default every scenario is dispatched at once and the task list is
    awaited together; ``sequential=True`` awaits them one at a time.
    Scenarios share nothing but the HTTP client.
    """
    scenarios = list(scenarios)
    async with SwapiClient(base_url=base_url, http_client=http_client) as client:
        if sequential:
            results = []
            for scenario in scenarios:
                results.append(await run_scenario(client, scenario))
            return results

        tasks = [asyncio.create_task(run_scenario(client, scenario)) for scenario in scenarios]
        return list(await asyncio.gather(*tasks))
