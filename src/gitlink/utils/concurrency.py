"""Bounded thread fan-out for linking several projects at once."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

T = TypeVar("T")


async def run_in_threads(calls: Sequence[Callable[[], T]], limit: int) -> list[T]:
    """Run blocking ``calls`` on worker threads, at most ``limit`` at a time.

    Results are returned in the order of ``calls``, not completion order.
    The first exception cancels every call still waiting for a slot and is
    re-raised; calls already running on a thread finish on their own.
    """

    if limit <= 0:
        raise ValueError("limit must be > 0")
    slots = asyncio.Semaphore(limit)

    async def run_one(call: Callable[[], T]) -> T:
        async with slots:
            return await asyncio.to_thread(call)

    tasks = [asyncio.create_task(run_one(call)) for call in calls]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def map_in_threads(calls: Sequence[Callable[[], T]], limit: int) -> list[T]:
    """Synchronous entry point for ``run_in_threads``."""

    return asyncio.run(run_in_threads(calls, limit))


__all__ = ["map_in_threads", "run_in_threads"]
