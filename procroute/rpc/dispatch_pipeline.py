"""Utilities for running calls through guard pipelines and batches."""

from __future__ import annotations

import asyncio
import inspect
from typing import Awaitable, Callable, Iterable

from procroute.rpc.messages import Call, CallResult

HandlerResult = CallResult | None
DispatchHandler = Callable[[], Awaitable[HandlerResult] | HandlerResult]
CallDispatcher = Callable[[Call], Awaitable[CallResult]]


async def run_handler_pipeline(handlers: Iterable[DispatchHandler]) -> HandlerResult:
    """Run handlers in order and return the first non-None result."""
    for handler in handlers:
        outcome = handler()
        result = await outcome if inspect.isawaitable(outcome) else outcome
        if result is not None:
            return result
    return None


async def dispatch_batch(calls: list[Call], dispatch: CallDispatcher) -> list[CallResult]:
    """
    Dispatch every call concurrently; results keep the request order.

    ``dispatch`` must not raise (Router.dispatch never does), so one call's
    failure cannot cancel its siblings.
    """
    return list(await asyncio.gather(*(dispatch(call) for call in calls)))
