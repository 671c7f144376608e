"""Per-request deadline for storage work."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


async def within_deadline(awaitable: Awaitable[T], seconds: float) -> T:
    """Await with a deadline.

    On expiry the awaitable is cancelled, which aborts in-flight backend
    calls, and TimeoutError is raised. Writes the backend already
    committed are not rolled back.
    """
    async with asyncio.timeout(seconds):
        return await awaitable
