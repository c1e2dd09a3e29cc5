from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Sequence
from typing import TypeVar

T = TypeVar("T")


async def join_all(awaitables: Sequence[Awaitable[T]]) -> list[T]:
    """
    Run every awaitable concurrently and return their results in input order.

    The first failure wins: remaining in-flight tasks are cancelled and the
    error is re-raised, so callers never observe a partial list. When several
    tasks have already failed, the earliest one in input order is reported.
    """
    if not awaitables:
        return []

    tasks = [asyncio.ensure_future(awaitable) for awaitable in awaitables]
    try:
        _, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        await _cancel_all(tasks)
        raise

    if pending:
        await _cancel_all(list(pending))

    for task in tasks:
        if task.cancelled():
            continue
        error = task.exception()
        if error is not None:
            raise error
    return [task.result() for task in tasks]


async def _cancel_all(tasks: list[asyncio.Future[T]]) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
