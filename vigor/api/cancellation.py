"""
Request-scoped cancellation.

Dashboard aggregations issue several queries in a row. If the client
disconnects, or the whole request runs past its budget, the in-flight
work is cancelled instead of running to completion for nobody.
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

import structlog
from fastapi import Request

from vigor.config import settings
from vigor.exceptions import ClientDisconnected, RequestTimeoutError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def _cancel(task: asyncio.Task) -> None:
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


async def run_cancellable(
    request: Request,
    work: Awaitable[T],
    operation: str,
    timeout: Optional[float] = None,
    poll_interval: Optional[float] = None,
) -> T:
    """
    Await `work`, cancelling it when the client disconnects or time runs out.

    Raises ClientDisconnected or RequestTimeoutError after the task is
    cancelled; any error raised by `work` itself propagates unchanged.
    """
    timeout = settings.request_timeout_seconds if timeout is None else timeout
    poll_interval = settings.disconnect_poll_seconds if poll_interval is None else poll_interval

    task = asyncio.ensure_future(work)
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    while True:
        remaining = deadline - loop.time()
        if remaining <= 0:
            await _cancel(task)
            logger.warning("request_timed_out", operation=operation, timeout_seconds=timeout)
            raise RequestTimeoutError(operation, timeout)

        done, _ = await asyncio.wait({task}, timeout=min(poll_interval, remaining))
        if task in done:
            return task.result()

        if await request.is_disconnected():
            await _cancel(task)
            logger.info("request_cancelled_client_disconnected", operation=operation)
            raise ClientDisconnected(operation)
