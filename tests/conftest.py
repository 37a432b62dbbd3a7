"""Pytest configuration and shared fixtures."""

import pytest

from ghlines.core.cache import SingleFlightCache
from ghlines.core.fetcher import ContentFetcher
from ghlines.core.pipeline import LineCore

from fakes import FakeTransport, numbered


@pytest.fixture
def numbered_file() -> bytes:
    """Forty-line file: 'line 1' .. 'line 40'."""
    return numbered(40)


@pytest.fixture
def make_core():
    """Factory building a LineCore over a FakeTransport.

    Returns (core, transport).
    """
    def _make(responses: dict, delays: dict | None = None, cache: bool = True, **fetcher_kwargs):
        transport = FakeTransport(responses, delays)
        fetcher = ContentFetcher(
            transport,
            cache=SingleFlightCache() if cache else None,
            **fetcher_kwargs,
        )
        return LineCore(fetcher), transport

    return _make
