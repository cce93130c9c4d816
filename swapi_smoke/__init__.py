"""Smoke tests for the Star Wars API."""
__version__ = "0.1.0"
