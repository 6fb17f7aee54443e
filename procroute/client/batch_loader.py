"""Collects calls into batches and demultiplexes batched results by index."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from loguru import logger

from procroute.client.scheduler import BatchScheduler, ScheduledFlush, TickScheduler
from procroute.client.transport import RpcTransport
from procroute.rpc.messages import Call
from procroute.utils.exceptions import RpcCallError, TransportError, sanitize_error_message


@dataclass(slots=True)
class PendingCall:
    call: Call
    future: asyncio.Future[Any]


class BatchLoader:
    """
    Queue of pending calls that are sent together.

    ``enqueue`` registers a call synchronously and returns a future; the
    scheduler (or ``max_batch_size``) decides when the queue is flushed. Each
    flush sends exactly one batch and resolves its futures strictly by
    position in that batch.
    """

    def __init__(
        self,
        transport: RpcTransport,
        *,
        scheduler: BatchScheduler | None = None,
        max_batch_size: int = 50,
    ):
        if max_batch_size < 1:
            raise ValueError("max_batch_size must be >= 1")
        self.transport = transport
        self.scheduler = scheduler or TickScheduler()
        self.max_batch_size = max_batch_size
        self._pending: list[PendingCall] = []
        self._armed: ScheduledFlush | None = None
        self._inflight: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def enqueue(self, call: Call) -> asyncio.Future[Any]:
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending.append(PendingCall(call=call, future=future))
        if len(self._pending) >= self.max_batch_size:
            self.flush()
        elif self._armed is None:
            self._armed = self.scheduler.schedule(self._on_scheduled_flush)
        return future

    def _on_scheduled_flush(self) -> None:
        self._armed = None
        self.flush()

    def flush(self) -> asyncio.Task[None] | None:
        """Send everything pending as one batch. Returns the send task, if any."""
        if self._armed is not None:
            self._armed.cancel()
            self._armed = None
        if not self._pending:
            return None
        batch, self._pending = self._pending, []
        task = asyncio.get_running_loop().create_task(self._send(batch))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def drain(self) -> None:
        """Flush pending calls and wait for every in-flight batch."""
        self.flush()
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    async def _send(self, batch: list[PendingCall]) -> None:
        calls = [item.call for item in batch]
        logger.debug("RPC flushing batch of {} call(s): {}", len(calls), [c.name for c in calls])
        try:
            results = await self.transport.send(calls)
        except TransportError as e:
            logger.warning("RPC batch of {} call(s) failed: {}", len(calls), e)
            self._reject_all(batch, e)
            return
        except Exception as e:
            error = TransportError(sanitize_error_message(str(e)) or type(e).__name__)
            logger.warning("RPC batch of {} call(s) failed: {}", len(calls), error)
            self._reject_all(batch, error)
            return

        if len(results) != len(batch):
            error = TransportError(f"received {len(results)} results for a batch of {len(batch)} calls")
            logger.warning("RPC batch misaligned: {}", error.message)
            self._reject_all(batch, error)
            return

        for item, result in zip(batch, results):
            if item.future.done():
                # Caller stopped waiting (e.g. asyncio.wait_for timeout).
                continue
            if result.ok:
                item.future.set_result(result.value)
            else:
                error = result.error or {}
                item.future.set_exception(
                    RpcCallError(
                        str(error.get("code", "")),
                        str(error.get("message", "")),
                        error.get("data"),
                    )
                )

    @staticmethod
    def _reject_all(batch: list[PendingCall], error: TransportError) -> None:
        for item in batch:
            if not item.future.done():
                item.future.set_exception(error)
