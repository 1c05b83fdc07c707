"""End-to-end check of a running rate-limited server.

Sends ``threshold + 2`` requests for a fresh caller, spread evenly over one
window, and verifies that exactly the first ``threshold`` are admitted.

Usage:
    ratewindow-check --port 8080
"""

import argparse
import asyncio
import sys
import uuid
from typing import Awaitable, Callable, List, Optional, Sequence

import httpx
import structlog

from ratewindow.core.config.settings import settings
from ratewindow.core.logging import configure_logging

logger = structlog.get_logger(__name__)


class RateLimiterVerificationError(Exception):
    """Raised when the server admits or denies a request it should not have."""

    def __init__(self, request_number: int, allowed: bool, threshold: int):
        self.request_number = request_number
        self.allowed = allowed
        self.threshold = threshold
        verdict = "allowed" if allowed else "denied"
        super().__init__(
            f"Request {request_number} was {verdict} with threshold {threshold}"
        )


async def check_rate_limiter(
    client: httpx.AsyncClient,
    threshold: int,
    time_interval: int,
    *,
    user_id: Optional[str] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> List[bool]:
    """Exercise the server behind ``client`` and return the allow/deny outcomes.

    Args:
        client: Client whose base URL points at the server.
        threshold: Expected maximum requests per window.
        time_interval: Expected window length in milliseconds.
        user_id: Caller id to use; a random one by default.
        sleep: Awaitable delay, replaceable in tests.

    Raises:
        RateLimiterVerificationError: On a wrong allow or deny.
        httpx.HTTPStatusError: On any status other than 200 or 429.
    """
    user_id = user_id or uuid.uuid4().hex
    num_requests = threshold + 2
    delay_ms = time_interval // num_requests
    loop = asyncio.get_running_loop()
    started = loop.time()
    outcomes: List[bool] = []

    for number in range(1, num_requests + 1):
        response = await client.get(f"/{user_id}")
        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            allowed = False
        else:
            response.raise_for_status()
            allowed = True

        logger.info(
            "verification_request",
            request=number,
            elapsed_s=int(loop.time() - started),
            allowed=allowed,
        )
        if allowed != (number <= threshold):
            raise RateLimiterVerificationError(number, allowed, threshold)
        outcomes.append(allowed)
        await sleep(delay_ms / 1000)

    return outcomes


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Console entry point; returns the process exit status."""
    parser = argparse.ArgumentParser(description="Verify a running ratewindow server.")
    parser.add_argument("--port", type=int, default=settings.API_PORT)
    parser.add_argument("--host", default="localhost")
    args = parser.parse_args(argv)

    configure_logging(log_level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
    logger.info(
        "verification_started",
        threshold=settings.THRESHOLD,
        time_interval_s=settings.TIME_INTERVAL // 1000,
    )

    async def _run() -> None:
        async with httpx.AsyncClient(base_url=f"http://{args.host}:{args.port}") as client:
            await check_rate_limiter(client, settings.THRESHOLD, settings.TIME_INTERVAL)

    try:
        asyncio.run(_run())
    except (RateLimiterVerificationError, httpx.HTTPError) as exc:
        logger.error("verification_failed", error=str(exc))
        return 1
    logger.info("verification_passed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
