"""Batch flush policies.

A scheduler decides *when* pending calls are sent. The batch loader arms it
when the first call of a new batch is enqueued and cancels it if the batch is
flushed earlier (e.g. because ``max_batch_size`` was reached).
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Callable

FlushCallback = Callable[[], None]


class ScheduledFlush(ABC):
    """Handle for an armed flush."""

    @abstractmethod
    def cancel(self) -> None:
        ...


class _HandleFlush(ScheduledFlush):
    def __init__(self, handle: asyncio.Handle | asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()


class _NoFlush(ScheduledFlush):
    def cancel(self) -> None:
        return None


class BatchScheduler(ABC):
    @abstractmethod
    def schedule(self, flush: FlushCallback) -> ScheduledFlush:
        """Arrange for ``flush`` to run later; return a cancellable handle."""


class TickScheduler(BatchScheduler):
    """Flush once the current event-loop turn ends (calls made before the
    caller yields share one batch)."""

    def schedule(self, flush: FlushCallback) -> ScheduledFlush:
        return _HandleFlush(asyncio.get_running_loop().call_soon(flush))


class DelayScheduler(BatchScheduler):
    """Flush ``delay`` seconds after the first pending call."""

    def __init__(self, delay: float):
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self.delay = delay

    def schedule(self, flush: FlushCallback) -> ScheduledFlush:
        return _HandleFlush(asyncio.get_running_loop().call_later(self.delay, flush))


class ManualScheduler(BatchScheduler):
    """Never flushes on its own; the owner calls ``BatchLoader.flush()``."""

    def schedule(self, flush: FlushCallback) -> ScheduledFlush:
        return _NoFlush()


def scheduler_for_wait(batch_wait_ms: int) -> BatchScheduler:
    """Scheduler matching ``ClientConfig.batch_wait_ms``."""
    if batch_wait_ms <= 0:
        return TickScheduler()
    return DelayScheduler(batch_wait_ms / 1000.0)
