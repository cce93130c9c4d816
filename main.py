"""Main entry point for the SWAPI smoke suite."""
import asyncio
import json
import logging
import re
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from config.settings import FAILURES_DIR, SWAPI_BASE_URL
from swapi_smoke.analyzer.failure_capture import SwapiFailure, clear_failures, load_failures
from swapi_smoke.client import RequestError, build_url, request
from swapi_smoke.runner import SCENARIOS, ScenarioResult, run_scenarios

PROJECT_ROOT = Path(__file__).parent

app = typer.Typer(
    help="SWAPI smoke suite - build request URLs, fetch endpoints and run smoke scenarios",
    no_args_is_help=True
)
console = Console()


def configure_logging(verbose: bool = False):
    """Route library logging through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def run_all_tests(live: bool = False) -> Dict[str, Any]:
    """Run the pytest suite and return results."""
    marker = ["-m", "live"] if live else []
    try:
        # First, collect tests to get accurate count
        collect_cmd = ["pytest", "tests", "--collect-only", "-q", *marker]
        collect_result = subprocess.run(
            collect_cmd,
            capture_output=True,
            text=True,
            timeout=30,
            cwd=str(PROJECT_ROOT)
        )

        test_count = 0
        if collect_result.returncode == 0:
            # "8/60 tests collected (52 deselected)" or "60 tests collected"
            match = re.search(r'(\d+)(?:/\d+)?\s+tests?\s+collected', collect_result.stdout)
            if match:
                test_count = int(match.group(1))

        cmd = ["pytest", "tests", "-v", "--tb=short", *marker]
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=120,
            cwd=str(PROJECT_ROOT)
        )

        return {
            "success": True,
            "passed": result.returncode == 0,
            "output": result.stdout + result.stderr,
            "test_count": test_count,
            "error": None
        }
    except subprocess.TimeoutExpired:
        return {
            "success": False,
            "passed": False,
            "output": "",
            "test_count": 0,
            "error": "Test execution timed out"
        }
    except OSError as e:
        return {
            "success": False,
            "passed": False,
            "output": "",
            "test_count": 0,
            "error": f"Error running tests: {str(e)}"
        }


def print_session_banner(title: str):
    """Print session start banner with timestamp."""
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    banner = Panel(
        Text(f"{title}\nTarget: {SWAPI_BASE_URL}\nSession started: {timestamp}", justify="center"),
        border_style="bright_blue",
        title="[bold bright_blue]SWAPI SMOKE[/bold bright_blue]"
    )
    console.print(banner)


def print_summary_report(results: List[ScenarioResult]):
    """Print scenario results using Rich."""
    table = Table(title="SWAPI Smoke — Scenario Report", show_header=True, header_style="bold magenta")

    table.add_column("Scenario", style="cyan", no_wrap=True)
    table.add_column("Result")
    table.add_column("Time (s)", justify="right")
    table.add_column("Detail", style="dim")

    for result in results:
        status = "[green]PASS[/green]" if result.passed else "[red]FAIL[/red]"
        detail = "" if result.passed else f"{result.error_type}: {result.error_message}"
        table.add_row(result.name, status, f"{result.duration:.2f}", detail)

    passed = sum(1 for r in results if r.passed)
    console.print("\n")
    console.print(table)
    colour = "green" if passed == len(results) else "red"
    console.print(f"\n[bold {colour}]{passed}/{len(results)} scenarios passed[/bold {colour}]")


def print_failures_report(failures: List[SwapiFailure]):
    """Print captured test failures using Rich."""
    table = Table(title="SWAPI Smoke — Captured Failures", show_header=True, header_style="bold magenta")

    table.add_column("Test", style="cyan")
    table.add_column("Phase")
    table.add_column("Error")
    table.add_column("Status", justify="right")
    table.add_column("Term")
    table.add_column("Search")

    for failure in failures:
        exchange = failure.exchange
        status = failure.status_code or (exchange.status_code if exchange else None)
        error_style = "red" if failure.is_request_error else "yellow"
        table.add_row(
            escape(failure.test_name),
            failure.phase,
            f"[{error_style}]{failure.error_kind}[/{error_style}]",
            str(status) if status is not None else "-",
            escape(exchange.term) if exchange else "-",
            escape(exchange.search_term or "") if exchange else "-",
        )

    console.print(table)
    console.print(f"\n[bold red]{len(failures)} captured failure(s)[/bold red]")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging")
):
    """Smoke-test the Star Wars API."""
    configure_logging(verbose)


@app.command(name="url")
def url_cmd(
    term: str = typer.Argument("", help="Path segment, e.g. 'people' or 'films/1'"),
    search: str = typer.Option("", "--search", "-s", help="Search term")
):
    """Print the request URL for a term and search term."""
    try:
        console.print(build_url(term, search), markup=False, highlight=False)
    except RequestError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1)


@app.command(name="get")
def get_cmd(
    term: str = typer.Argument("", help="Path segment, e.g. 'people' or 'films/1'"),
    search: str = typer.Option("", "--search", "-s", help="Search term")
):
    """Fetch an endpoint and pretty-print its JSON body."""
    try:
        body = asyncio.run(request(term, search))
    except RequestError as e:
        console.print(f"[red]Request failed: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)
    except httpx.HTTPError as e:
        console.print(f"[red]Network error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    console.print_json(json.dumps(body))


@app.command(name="smoke")
def smoke_cmd(
    sequential: bool = typer.Option(False, "--sequential", help="Run scenarios one at a time"),
    only: List[str] = typer.Option([], "--only", help="Run only the named scenario(s)")
):
    """
    Run the smoke scenarios in-process.

    Exits non-zero when any scenario fails.
    """
    scenarios = [s for s in SCENARIOS if not only or s.name in only]
    if not scenarios:
        console.print(f"[red]No scenarios match: {', '.join(only)}[/red]")
        raise typer.Exit(code=2)

    print_session_banner(f"Running {len(scenarios)} scenario(s)")
    results = asyncio.run(run_scenarios(scenarios, sequential=sequential))
    print_summary_report(results)

    if not all(r.passed for r in results):
        raise typer.Exit(code=1)


@app.command(name="run")
def run_cmd(
    live: bool = typer.Option(False, "--live", help="Run only the live SWAPI tests")
):
    """Run the pytest suite."""
    print_session_banner("Running pytest suite")
    result = run_all_tests(live=live)

    if not result["success"]:
        console.print(f"[red]Error running tests: {result.get('error', 'Unknown error')}[/red]")
        raise typer.Exit(code=1)

    if result["passed"]:
        console.print(f"[green]✓ All {result['test_count']} tests passed![/green]")
        return

    console.print(result["output"], markup=False, highlight=False)
    console.print("[yellow]⚠ Some tests failed[/yellow]")
    raise typer.Exit(code=1)


@app.command(name="failures")
def failures_cmd(
    clear: bool = typer.Option(False, "--clear", help="Delete the captured failures after listing them")
):
    """List failures captured by the last pytest runs."""
    directory = Path(FAILURES_DIR)
    failures = load_failures(directory)

    if not failures:
        console.print("[green]✓ No captured failures[/green]")
    else:
        print_failures_report(failures)

    if clear:
        removed = clear_failures(directory)
        console.print(f"[dim]Removed {removed} failure file(s)[/dim]")


if __name__ == "__main__":
    app()
