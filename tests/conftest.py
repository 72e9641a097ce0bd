"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from shortlinks.lib.common.logging_config import setup_logging
from shortlinks.lib.database.memory import MemoryLinkStore
from shortlinks.lib.registry import LinkRegistry
from shortlinks.lib.shortcode import ShortCodeGenerator

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def store(logger):
    return MemoryLinkStore(logger=logger)


@pytest.fixture
def short_code_generator():
    """Create short code generator."""
    return ShortCodeGenerator(default_length=6)


@pytest.fixture
def registry(store, short_code_generator, logger, clock):
    """Create registry over an in-memory store."""
    return LinkRegistry(
        store=store,
        short_code_generator=short_code_generator,
        logger=logger,
        clock=clock,
    )


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "http://stackoverflow.com/questions/123456",
    ]
