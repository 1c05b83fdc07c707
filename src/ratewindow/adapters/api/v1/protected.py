"""Rate-limited demo endpoint."""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from ratewindow.core.rate_limit import enforce_rate_limit

router = APIRouter()


@router.get(
    "/{user_id}",
    response_class=PlainTextResponse,
    dependencies=[Depends(enforce_rate_limit)],
    summary="Rate-limited greeting",
)
async def greet(user_id: str) -> str:
    """Return a greeting while ``user_id`` is within its rate limit."""
    return "Hello World!"
