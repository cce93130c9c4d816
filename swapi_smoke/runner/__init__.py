"""Scenario catalogue and runner."""
from swapi_smoke.runner.scenarios import SCENARIOS, Scenario, get_scenario
from swapi_smoke.runner.suite import ScenarioResult, run_scenario, run_scenarios

__all__ = ["SCENARIOS", "Scenario", "get_scenario", "ScenarioResult", "run_scenario", "run_scenarios"]
