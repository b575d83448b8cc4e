"""Client-side polling of job status until a terminal state."""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Protocol, TypeVar

from gitsummary.models.analysis_job import TERMINAL_JOB_STATUSES

DEFAULT_POLL_INTERVAL = 2.0


class HasStatus(Protocol):
    status: str


S = TypeVar("S", bound=HasStatus)


async def poll_job(
    fetch: Callable[[], Awaitable[S]],
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float | None = None,
) -> AsyncGenerator[S, None]:
    """Yield job snapshots from *fetch* every *interval* seconds.

    Stops after yielding the first snapshot in COMPLETED or FAILED.
    Raises :class:`TimeoutError` once *timeout* seconds have elapsed
    without reaching a terminal state.
    """
    deadline = time.monotonic() + timeout if timeout is not None else None
    while True:
        snapshot = await fetch()
        yield snapshot
        if snapshot.status in TERMINAL_JOB_STATUSES:
            return
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError(f"job still {snapshot.status} after {timeout}s")
            await asyncio.sleep(min(interval, remaining))
        else:
            await asyncio.sleep(interval)
