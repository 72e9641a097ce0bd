"""Concurrency tests: interleaved requests must not lose or duplicate state."""

import asyncio
import random
from datetime import timedelta

import pytest

from shortlinks.lib.database.memory import MemoryLinkStore
from shortlinks.lib.errors import CollisionError
from shortlinks.lib.registry import LinkRegistry
from shortlinks.lib.resolver import Redirect, resolve
from shortlinks.lib.shortcode import ShortCodeGenerator

from .conftest import T0


class YieldingLinkStore(MemoryLinkStore):
    """Memory store that hands control back to the loop mid-operation.

    Every read-modify-write is split by an ``await``, the way a networked
    backend would be, so a missing lock shows up as lost updates.
    """

    async def insert(self, record):
        exists = record.code in self._records
        await asyncio.sleep(0)
        if exists or record.code in self._records:
            return False
        self._records[record.code] = record
        return True

    async def append_click(self, code, event):
        record = self._records.get(code)
        await asyncio.sleep(0)
        if record is None or code not in self._records:
            return False
        self._records[code] = record.with_click(event)
        return True

    async def codes(self):
        await asyncio.sleep(0)
        return set(self._records)


@pytest.fixture
def yielding_registry(logger, clock):
    return LinkRegistry(store=YieldingLinkStore(logger=logger), logger=logger, clock=clock)


class TestConcurrentClicks:

    @pytest.mark.asyncio
    async def test_no_lost_clicks(self, yielding_registry):
        await yielding_registry.create("https://example.com", validity_minutes=60,
                                       requested_code="hot", now=T0)

        outcomes = await asyncio.gather(*[
            resolve(yielding_registry, "hot", f"src-{i}", T0 + timedelta(seconds=i))
            for i in range(100)
        ])

        assert all(isinstance(o, Redirect) for o in outcomes)
        record = await yielding_registry.get("hot")
        assert record.click_count == 100
        assert {c.source for c in record.clicks} == {f"src-{i}" for i in range(100)}

    @pytest.mark.asyncio
    async def test_clicks_on_different_codes(self, yielding_registry):
        for code in ("one", "two"):
            await yielding_registry.create("https://example.com", validity_minutes=60,
                                           requested_code=code, now=T0)

        await asyncio.gather(*[
            resolve(yielding_registry, code, "direct", T0 + timedelta(seconds=1))
            for code in ("one", "two")
            for _ in range(25)
        ])

        assert (await yielding_registry.get("one")).click_count == 25
        assert (await yielding_registry.get("two")).click_count == 25

    @pytest.mark.asyncio
    async def test_clicks_racing_delete(self, yielding_registry):
        await yielding_registry.create("https://example.com", validity_minutes=60,
                                       requested_code="gone", now=T0)

        async def delete_soon():
            await asyncio.sleep(0)
            await yielding_registry.delete("gone")

        results = await asyncio.gather(
            *[resolve(yielding_registry, "gone", "direct", T0 + timedelta(seconds=1))
              for _ in range(20)],
            delete_soon(),
        )

        # Every resolve finished with a defined outcome and nothing survived the delete
        assert all(r is None or r.outcome in ("redirect", "not_found") for r in results)
        assert await yielding_registry.get("gone") is None


class TestConcurrentCreates:

    @pytest.mark.asyncio
    async def test_generated_codes_unique(self, logger, clock):
        # A tiny code space makes collisions between concurrent creates likely
        generator = ShortCodeGenerator(default_length=2, alphabet="abcdefgh", rng=random.Random(1))
        registry = LinkRegistry(
            store=YieldingLinkStore(logger=logger),
            short_code_generator=generator,
            logger=logger,
            max_collision_retries=500,
            clock=clock,
        )

        records = await asyncio.gather(*[
            registry.create(f"https://example.com/{i}", validity_minutes=30)
            for i in range(40)
        ])

        codes = [r.code for r in records]
        assert len(set(codes)) == 40
        assert len(await registry.list()) == 40

    @pytest.mark.asyncio
    async def test_same_custom_code_once(self, yielding_registry):
        results = await asyncio.gather(
            *[yielding_registry.create(f"https://example.com/{i}", validity_minutes=30,
                                       requested_code="contested")
              for i in range(10)],
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]

        assert len(successes) == 1
        assert len(failures) == 9
        assert all(isinstance(f, CollisionError) for f in failures)
        assert (await yielding_registry.get("contested")).destination == successes[0].destination
