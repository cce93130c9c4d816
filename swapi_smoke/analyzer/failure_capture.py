"""Capture of failed SWAPI tests: the exchange a test made and how it failed."""
import logging
import re
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

import httpx
from pydantic import BaseModel, Field

from config.settings import SWAPI_BASE_URL
from swapi_smoke.client.errors import RequestError, TransportError

logger = logging.getLogger(__name__)


class Exchange(BaseModel):
    """The last request a test sent to SWAPI and what came back."""
    request_url: str
    term: str = Field(default="", description="Path below the base URL")
    search_term: Optional[str] = Field(default=None, description="Decoded 'search' query parameter")
    status_code: Optional[int] = Field(default=None, description="None until a response arrives")
    body: Any = Field(default=None, description="Parsed JSON or raw text")


class SwapiFailure(BaseModel):
    """One failed test phase, ready to be written as JSON."""
    node_id: str
    test_name: str
    phase: str = Field(description="setup, call or teardown")
    error_kind: str = Field(description="RequestError subclass or other exception type")
    error_message: str
    status_code: Optional[int] = Field(default=None)
    exchange: Optional[Exchange] = Field(default=None)
    line_number: Optional[int] = Field(default=None, description="Line in the test file")
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())

    @property
    def is_request_error(self) -> bool:
        return self.error_kind in REQUEST_ERROR_KINDS

    def write(self, directory: Path) -> Path:
        """Write the failure to ``directory`` and return the file path."""
        directory.mkdir(parents=True, exist_ok=True)
        output_file = directory / failure_filename(self.node_id, self.phase)
        output_file.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return output_file

    @classmethod
    def load(cls, path: Path) -> "SwapiFailure":
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))


REQUEST_ERROR_KINDS = {cls.__name__ for cls in (RequestError, *RequestError.__subclasses__())}


def failure_filename(node_id: str, phase: str) -> str:
    """Build a filesystem-safe JSON file name for a failed test phase."""
    safe_node_id = re.sub(r'[^\w\-.]', '_', node_id.replace('::', '__').replace('/', '_'))
    return f"{safe_node_id}.{phase}.json"


def split_request_url(url: str, base_url: str = SWAPI_BASE_URL) -> Tuple[str, Optional[str]]:
    """Recover (term, search term) from a request URL built against ``base_url``."""
    parts = urlsplit(url)
    base_path = urlsplit(base_url).path
    path = parts.path
    term = path[len(base_path):] if path.startswith(base_path) else path
    values = parse_qs(parts.query).get("search")
    return term, values[0] if values else None


def describe_error(exc: BaseException) -> Tuple[str, Optional[int]]:
    """Return the error kind and, for status failures, the HTTP status."""
    if isinstance(exc, TransportError):
        return type(exc).__name__, exc.status_code
    return type(exc).__name__, None


def find_line_number(exc: BaseException, test_file: str) -> Optional[int]:
    """Return the deepest line inside ``test_file`` in the exception's traceback."""
    line_number = None
    for frame in traceback.extract_tb(exc.__traceback__):
        if frame.filename == test_file:
            line_number = frame.lineno
    return line_number


class ExchangeLog:
    """Keeps the last SWAPI exchange of every running test, keyed by node id."""

    def __init__(self, base_url: str = SWAPI_BASE_URL):
        self.base_url = base_url
        self._exchanges: Dict[str, Exchange] = {}

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._exchanges

    def get(self, node_id: str) -> Optional[Exchange]:
        return self._exchanges.get(node_id)

    def discard(self, node_id: str) -> None:
        self._exchanges.pop(node_id, None)

    def hooks(self, node_id: str) -> Dict[str, list]:
        """httpx event hooks that record the exchanges of one test."""

        async def on_request(request: httpx.Request):
            # Stored immediately so the URL survives a network failure
            url = str(request.url)
            term, search_term = split_request_url(url, self.base_url)
            self._exchanges[node_id] = Exchange(request_url=url, term=term, search_term=search_term)

        async def on_response(response: httpx.Response):
            await response.aread()
            try:
                body = response.json()
            except ValueError:
                body = response.text

            exchange = self._exchanges.get(node_id)
            if exchange is not None:
                exchange.status_code = response.status_code
                exchange.body = body

        return {"request": [on_request], "response": [on_response]}

    def handle_report(
        self,
        node_id: str,
        test_name: str,
        test_file: str,
        phase: str,
        exc: Optional[BaseException],
    ) -> Optional[SwapiFailure]:
        """
        Turn a test phase outcome into a failure record.

        Args:
            exc: The exception the phase failed with, or None if it passed

        Returns:
            The failure, or None for a passing phase. The test's exchange is
            forgotten once its teardown phase has been reported.
        """
        failure = None
        if exc is not None:
            error_kind, status_code = describe_error(exc)
            failure = SwapiFailure(
                node_id=node_id,
                test_name=test_name,
                phase=phase,
                error_kind=error_kind,
                error_message=str(exc) or error_kind,
                status_code=status_code,
                exchange=self.get(node_id),
                line_number=find_line_number(exc, test_file),
            )
            logger.debug(f"Captured {error_kind} in {phase} of {node_id}")

        if phase == "teardown":
            self.discard(node_id)
        return failure


def load_failures(directory: Path) -> List[SwapiFailure]:
    """Load every captured failure in ``directory``, oldest first."""
    if not directory.exists():
        return []

    failures = []
    for path in sorted(directory.glob("*.json")):
        try:
            failures.append(SwapiFailure.load(path))
        except ValueError as e:
            logger.warning(f"Skipping unreadable failure file {path}: {e}")
    return sorted(failures, key=lambda f: f.timestamp)


def clear_failures(directory: Path) -> int:
    """Delete captured failures and return how many were removed."""
    if not directory.exists():
        return 0
    removed = 0
    for path in directory.glob("*.json"):
        path.unlink()
        removed += 1
    return removed
