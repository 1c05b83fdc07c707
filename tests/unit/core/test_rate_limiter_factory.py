"""Unit tests for limiter construction and lifecycle helpers."""

import asyncio
import os
import signal
import sys
from unittest.mock import AsyncMock, patch

import pytest

from ratewindow.core.config.settings import Settings
from ratewindow.core.exceptions import ConfigurationError, StoreUnavailableError
from ratewindow.core.rate_limiting import (
    create_rate_limiter,
    create_rate_limiter_from_settings,
    install_shutdown_handlers,
    managed_rate_limiter,
    managed_rate_limiter_from_settings,
)
from ratewindow.domain.rate_limiting import (
    FixedWindowInMemoryRateLimiter,
    FixedWindowMemcachedRateLimiter,
    SlidingWindowListRateLimiter,
    SlidingWindowMinHeapRateLimiter,
    SlidingWindowRedisListRateLimiter,
    SlidingWindowRedisSortedSetRateLimiter,
)

FACTORY = "ratewindow.core.rate_limiting.factory"


@pytest.mark.asyncio
class TestCreateRateLimiter:
    @pytest.mark.parametrize(
        "strategy, expected_cls",
        [
            ("fixed_window_in_memory", FixedWindowInMemoryRateLimiter),
            ("sliding_window_min_heap", SlidingWindowMinHeapRateLimiter),
            ("sliding_window_list", SlidingWindowListRateLimiter),
        ],
    )
    async def test_builds_local_strategies(self, strategy, expected_cls):
        limiter = await create_rate_limiter(strategy, 5, 1000)
        try:
            assert type(limiter) is expected_cls
            assert limiter.get_threshold() == 5
            assert limiter.get_time_interval() == 1000
        finally:
            await limiter.destroy()

    @pytest.mark.parametrize(
        "strategy, expected_cls",
        [
            ("sliding_window_redis_list", SlidingWindowRedisListRateLimiter),
            ("sliding_window_redis_sorted_set", SlidingWindowRedisSortedSetRateLimiter),
        ],
    )
    async def test_builds_redis_strategies_on_connected_client(
        self, strategy, expected_cls, redis_client
    ):
        with patch(f"{FACTORY}.connect_redis", AsyncMock(return_value=redis_client)) as connect:
            limiter = await create_rate_limiter(
                strategy, 2, 1000, redis_url="redis://cache:6379/0", key_prefix="test:"
            )

        connect.assert_awaited_once_with("redis://cache:6379/0")
        assert type(limiter) is expected_cls
        assert await limiter.is_allowed("alice")

    async def test_builds_memcached_strategy_on_connected_client(self, memcached_client):
        with patch(f"{FACTORY}.connect_memcached", AsyncMock(return_value=memcached_client)):
            limiter = await create_rate_limiter(
                "fixed_window_memcached", 2, 1000, memcached_url="cache:11211"
            )
        try:
            assert type(limiter) is FixedWindowMemcachedRateLimiter
            assert await limiter.is_allowed("alice")
        finally:
            await limiter.destroy()
        assert memcached_client.closed

    async def test_unknown_strategy_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError):
            await create_rate_limiter("leaky_bucket", 5, 1000)

    @pytest.mark.parametrize("threshold, time_interval", [(0, 1000), (5, 0), (-3, -3)])
    async def test_invalid_window_fails_before_connecting(self, threshold, time_interval):
        with patch(f"{FACTORY}.connect_redis", AsyncMock()) as connect:
            with pytest.raises(ConfigurationError):
                await create_rate_limiter(
                    "sliding_window_redis_list",
                    threshold,
                    time_interval,
                    redis_url="redis://cache:6379/0",
                )
        connect.assert_not_awaited()

    async def test_missing_store_targets_are_configuration_errors(self):
        with pytest.raises(ConfigurationError):
            await create_rate_limiter("sliding_window_redis_sorted_set", 5, 1000)
        with pytest.raises(ConfigurationError):
            await create_rate_limiter("fixed_window_memcached", 5, 1000, memcached_url="")

    async def test_connect_failure_reaches_the_caller(self):
        failure = StoreUnavailableError("down", store="redis", operation="ping")
        with patch(f"{FACTORY}.connect_redis", AsyncMock(side_effect=failure)):
            with pytest.raises(StoreUnavailableError) as exc_info:
                await create_rate_limiter(
                    "sliding_window_redis_list", 5, 1000, redis_url="redis://cache:6379/0"
                )
        assert exc_info.value is failure

    async def test_builds_from_settings(self):
        settings = Settings(
            _env_file=None,
            RATE_LIMIT_STRATEGY="sliding-window-min-heap",
            THRESHOLD=9,
            TIME_INTERVAL=4000,
        )

        limiter = await create_rate_limiter_from_settings(settings)

        assert type(limiter) is SlidingWindowMinHeapRateLimiter
        assert (limiter.get_threshold(), limiter.get_time_interval()) == (9, 4000)


@pytest.mark.asyncio
class TestManagedRateLimiter:
    async def test_destroys_on_normal_exit(self):
        async with managed_rate_limiter("fixed_window_in_memory", 1, 60_000) as limiter:
            assert limiter.timer_active
        assert not limiter.timer_active

    async def test_destroys_when_block_raises(self):
        with pytest.raises(RuntimeError):
            async with managed_rate_limiter("fixed_window_in_memory", 1, 60_000) as limiter:
                raise RuntimeError("boom")
        assert not limiter.timer_active

    async def test_settings_variant_builds_and_destroys(self):
        settings = Settings(
            _env_file=None,
            RATE_LIMIT_STRATEGY="fixed_window_in_memory",
            THRESHOLD=2,
            TIME_INTERVAL=60_000,
        )

        async with managed_rate_limiter_from_settings(settings) as limiter:
            assert type(limiter) is FixedWindowInMemoryRateLimiter
            assert limiter.get_threshold() == 2
            assert limiter.timer_active
        assert not limiter.timer_active


@pytest.mark.asyncio
@pytest.mark.skipif(sys.platform == "win32", reason="loop signal handlers are Unix only")
async def test_shutdown_signal_destroys_limiter_once():
    limiter = AsyncMock()
    destroyed = install_shutdown_handlers(limiter, signals=(signal.SIGUSR1,))

    os.kill(os.getpid(), signal.SIGUSR1)
    await asyncio.wait_for(destroyed.wait(), timeout=2)

    limiter.destroy.assert_awaited_once()
