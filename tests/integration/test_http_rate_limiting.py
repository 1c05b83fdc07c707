"""End-to-end tests of the FastAPI boundary.

The application is driven through `TestClient`, which runs the lifespan, so
the limiter is built from settings exactly as in production.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from ratewindow.core.application import create_application
from ratewindow.core.config.settings import Settings
from ratewindow.core.exceptions import StoreUnavailableError

pytestmark = pytest.mark.integration


def build_settings(strategy: str = "sliding_window_list", threshold: int = 3) -> Settings:
    return Settings(
        _env_file=None,
        RATE_LIMIT_STRATEGY=strategy,
        THRESHOLD=threshold,
        TIME_INTERVAL=60_000,
    )


@pytest.mark.parametrize(
    "strategy", ["sliding_window_list", "sliding_window_min_heap", "fixed_window_in_memory"]
)
def test_allows_threshold_requests_then_returns_429(strategy):
    app = create_application(build_settings(strategy))

    with TestClient(app) as client:
        responses = [client.get("/alice") for _ in range(4)]

    assert [r.status_code for r in responses] == [200, 200, 200, 429]
    assert responses[0].text == "Hello World!"
    assert responses[-1].json() == {"detail": "Too many requests"}


def test_callers_are_limited_independently():
    app = create_application(build_settings(threshold=1))

    with TestClient(app) as client:
        assert client.get("/alice").status_code == 200
        assert client.get("/alice").status_code == 429
        assert client.get("/bob").status_code == 200


def test_store_failure_returns_500():
    app = create_application(build_settings())

    with TestClient(app) as client:
        failing = AsyncMock()
        failing.is_allowed.side_effect = StoreUnavailableError(
            "redis rpush failed", store="redis", operation="rpush"
        )
        app.state.rate_limiter = failing

        response = client.get("/alice")

    assert response.status_code == 500
    assert response.json() == {"detail": "Rate limiter unavailable"}


def test_lifespan_destroys_limiter_on_shutdown():
    app = create_application(build_settings("fixed_window_in_memory"))

    with TestClient(app):
        limiter = app.state.rate_limiter
        assert limiter.timer_active

    assert not limiter.timer_active
