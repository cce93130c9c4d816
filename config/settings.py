"""Configuration settings for the SWAPI smoke suite."""
import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def parse_base_url(value: str) -> str:
    """Terms are appended directly, so the base always ends with '/'."""
    return value if value.endswith("/") else value + "/"


def parse_timeout(value: Optional[str]) -> Optional[float]:
    """Seconds as a float; unset or empty means httpx's own client default."""
    if not value:
        return None
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(
            f"SWAPI_TIMEOUT must be a number of seconds, got {value!r}. "
            "Please fix it in your .env file."
        ) from e


# SWAPI Configuration
SWAPI_BASE_URL = parse_base_url(os.getenv("SWAPI_BASE_URL", "https://swapi.dev/api/"))
SWAPI_TIMEOUT = parse_timeout(os.getenv("SWAPI_TIMEOUT"))

# Where the pytest hook writes failure contexts
FAILURES_DIR = os.getenv("FAILURES_DIR", "failures")
