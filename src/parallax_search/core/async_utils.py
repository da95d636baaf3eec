"""
Async Utilities for Provider Calls.

Provides:
- Parallel execution with asyncio.TaskGroup (results kept in submission order)
- Per-call time budgets that surface as ProviderTimeoutError
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable

from .exceptions import ProviderTimeoutError

logger = logging.getLogger(__name__)


async def gather_with_errors[T](
    *coros: Awaitable[T],
    return_exceptions: bool = False,
) -> list[T | Exception]:
    """
    Execute coroutines in parallel using TaskGroup.

    Results are returned in the order the coroutines were passed,
    regardless of completion order.

    Args:
        *coros: Coroutines to execute
        return_exceptions: If True, return exceptions in place of results
            instead of cancelling the group on the first failure

    Returns:
        List of results (or exceptions if return_exceptions=True)

    Example:
        results = await gather_with_errors(
            google.search(request),
            serper.search(request),
            return_exceptions=True,
        )
    """
    results: list[T | Exception] = [None] * len(coros)  # type: ignore[list-item]

    if return_exceptions:

        async def safe_run(coro: Awaitable[T], index: int) -> None:
            try:
                results[index] = await coro
            except Exception as e:
                results[index] = e

        async with asyncio.TaskGroup() as tg:
            for i, coro in enumerate(coros):
                tg.create_task(safe_run(coro, i))
    else:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(coro) for coro in coros]
        results = [task.result() for task in tasks]

    return results


async def call_with_timeout[T](
    coro: Awaitable[T],
    timeout: float,
    provider: str,
) -> T:
    """
    Await *coro* within *timeout* seconds.

    Raises:
        ProviderTimeoutError: if the budget is exhausted; the pending
            call is cancelled.
    """
    try:
        async with asyncio.timeout(timeout):
            return await coro
    except TimeoutError:
        logger.warning(f"{provider}: call exceeded {timeout:.1f}s budget")
        raise ProviderTimeoutError(provider, timeout) from None
