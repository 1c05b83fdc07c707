"""Shared fixtures: a controllable clock and in-process stand-ins for the stores."""

import time
from typing import Dict, List, Optional, Tuple

import fakeredis
import pytest
import pytest_asyncio
from fakeredis import aioredis as fake_aioredis

from ratewindow.core.logging import configure_logging

configure_logging(log_level="DEBUG")


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeMemcachedClient:
    """Dict-backed client exposing the aiomcache calls the limiter uses.

    Follows memcached's expiry rule: an ``exptime`` above 30 days is an
    absolute Unix time, so a past one drops the item immediately.
    """

    def __init__(self) -> None:
        self.data: Dict[bytes, bytes] = {}
        self.set_calls: List[Tuple[bytes, bytes, int]] = []
        self.flushes = 0
        self.closed = False

    async def get(self, key: bytes, default: Optional[bytes] = None) -> Optional[bytes]:
        return self.data.get(key, default)

    async def set(self, key: bytes, value: bytes, exptime: int = 0) -> bool:
        self.set_calls.append((key, value, exptime))
        if exptime > 30 * 24 * 60 * 60 and exptime <= time.time():
            self.data.pop(key, None)
            return True
        self.data[key] = value
        return True

    async def flush_all(self) -> None:
        self.flushes += 1
        self.data.clear()

    async def version(self) -> bytes:
        return b"1.6.21"

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memcached_client() -> FakeMemcachedClient:
    return FakeMemcachedClient()


@pytest_asyncio.fixture
async def redis_client():
    """A fakeredis client on its own server so tests never share keys."""
    client = fake_aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    await client.aclose()
