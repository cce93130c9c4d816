"""SWAPI smoke scenarios.

Each scenario is a fixed (term, search term) pair and a check against the
decoded body. Expected values come from the live swapi.dev dataset and will
drift if that dataset changes.
"""
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Type

from swapi_smoke.client.errors import RequestError, TransportError

ROOT_CATEGORIES = ("people", "planets", "films", "species", "vehicles", "starships")

FILM_1_PLANETS = [
    "https://swapi.dev/api/planets/1/",
    "https://swapi.dev/api/planets/2/",
    "https://swapi.dev/api/planets/3/",
]


@dataclass(frozen=True)
class Scenario:
    """One smoke case: the request to make and what must come back."""
    name: str
    term: str = ""
    search_term: str = ""
    check: Optional[Callable[[Any], None]] = None
    expect_error: Optional[Type[RequestError]] = None
    expect_status: Optional[int] = None
    description: str = ""

    @property
    def is_negative(self) -> bool:
        return self.expect_error is not None


def check_root_lists_categories(body: Any) -> None:
    assert body is not None
    assert isinstance(body, dict)
    for category in ROOT_CATEGORIES:
        assert category in body, f"missing category link {category!r}"


def check_search_luke(body: Any) -> None:
    assert body["count"] == 1
    assert body["results"]
    assert body["results"][0]["name"] == "Luke Skywalker"


def check_search_no_match(body: Any) -> None:
    assert body["count"] == 0
    assert body["results"] == []


def check_search_skywalker(body: Any) -> None:
    assert body["count"] == 3
    assert len(body["results"]) > 0


def check_people_all(body: Any) -> None:
    assert body["count"] == 82
    assert body["results"] is not None


def check_film_1(body: Any) -> None:
    assert body["title"] == "A New Hope"
    assert body["episode_id"] == 4
    assert body["director"] == "George Lucas"
    assert body["planets"] == FILM_1_PLANETS


SCENARIOS: Tuple[Scenario, ...] = (
    Scenario(
        name="root_lists_categories",
        check=check_root_lists_categories,
        description="Base URL enumerates the resource categories",
    ),
    Scenario(
        name="invalid_term_fails",
        term="/$/asde",
        expect_error=RequestError,
        description="Malformed term is rejected",
    ),
    Scenario(
        name="search_luke",
        term="people",
        search_term="luke",
        check=check_search_luke,
        description="Search finds exactly Luke Skywalker",
    ),
    Scenario(
        name="search_no_match",
        term="people",
        search_term="A new hope",
        check=check_search_no_match,
        description="Search for a film title among people finds nothing",
    ),
    Scenario(
        name="search_skywalker",
        term="people",
        search_term="skywalker",
        check=check_search_skywalker,
        description="Search returns several Skywalkers",
    ),
    Scenario(
        name="people_all",
        term="people",
        check=check_people_all,
        description="Empty search term lists every person",
    ),
    Scenario(
        name="film_1",
        term="films/1",
        check=check_film_1,
        description="Film 1 is A New Hope",
    ),
    Scenario(
        name="planet_72_missing",
        term="planets/72",
        expect_error=TransportError,
        expect_status=404,
        description="Planet 72 does not exist",
    ),
)


def get_scenario(name: str) -> Scenario:
    for scenario in SCENARIOS:
        if scenario.name == name:
            return scenario
    raise KeyError(f"Unknown scenario: {name}")
