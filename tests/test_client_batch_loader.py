import asyncio

import pytest

from procroute.client.batch_loader import BatchLoader
from procroute.client.scheduler import DelayScheduler, ManualScheduler
from procroute.rpc.messages import Call, CallResult
from procroute.rpc.procedures import ProcedureKind
from procroute.utils.exceptions import RpcCallError, TransportError


class _EchoTransport:
    """Answers each call with its input; records the batches it was sent."""

    def __init__(self):
        self.batches: list[list[Call]] = []

    async def send(self, calls):
        self.batches.append(list(calls))
        await asyncio.sleep(0)
        return [
            CallResult.failure("BAD_INPUT", "negative") if isinstance(c.input, int) and c.input < 0
            else CallResult.success(c.input)
            for c in calls
        ]


class _FailingTransport:
    def __init__(self, exc: Exception):
        self.exc = exc

    async def send(self, calls):
        raise self.exc


class _ShortTransport:
    async def send(self, calls):
        return [CallResult.success(None)]


def _q(value=None) -> Call:
    return Call("echo", ProcedureKind.QUERY, value)


@pytest.mark.asyncio
async def test_calls_in_same_tick_share_one_batch():
    transport = _EchoTransport()
    loader = BatchLoader(transport)
    futures = [loader.enqueue(_q(i)) for i in range(3)]
    assert loader.pending_count == 3
    assert await asyncio.gather(*futures) == [0, 1, 2]
    assert len(transport.batches) == 1
    assert [c.input for c in transport.batches[0]] == [0, 1, 2]


@pytest.mark.asyncio
async def test_sequential_awaits_send_separate_batches():
    transport = _EchoTransport()
    loader = BatchLoader(transport)
    assert await loader.enqueue(_q("a")) == "a"
    assert await loader.enqueue(_q("b")) == "b"
    assert len(transport.batches) == 2


@pytest.mark.asyncio
async def test_max_batch_size_splits_batches():
    transport = _EchoTransport()
    loader = BatchLoader(transport, max_batch_size=2)
    futures = [loader.enqueue(_q(i)) for i in range(5)]
    assert await asyncio.gather(*futures) == [0, 1, 2, 3, 4]
    assert [len(b) for b in transport.batches] == [2, 2, 1]


@pytest.mark.asyncio
async def test_per_call_errors_do_not_affect_siblings():
    loader = BatchLoader(_EchoTransport())
    ok = loader.enqueue(_q(1))
    bad = loader.enqueue(_q(-1))
    results = await asyncio.gather(ok, bad, return_exceptions=True)
    assert results[0] == 1
    assert isinstance(results[1], RpcCallError)
    assert results[1].code == "BAD_INPUT"


@pytest.mark.asyncio
async def test_transport_failure_rejects_every_call_with_same_error():
    err = TransportError("connection refused", code="CONNECTION_ERROR", retryable=True)
    loader = BatchLoader(_FailingTransport(err))
    futures = [loader.enqueue(_q(i)) for i in range(3)]
    results = await asyncio.gather(*futures, return_exceptions=True)
    assert all(r is err for r in results)


@pytest.mark.asyncio
async def test_unexpected_transport_exception_is_wrapped():
    loader = BatchLoader(_FailingTransport(RuntimeError("socket closed")))
    futures = [loader.enqueue(_q(i)) for i in range(2)]
    results = await asyncio.gather(*futures, return_exceptions=True)
    assert isinstance(results[0], TransportError)
    assert results[0] is results[1]
    assert "socket closed" in results[0].message


@pytest.mark.asyncio
async def test_misaligned_response_rejects_whole_batch():
    loader = BatchLoader(_ShortTransport())
    futures = [loader.enqueue(_q(i)) for i in range(2)]
    results = await asyncio.gather(*futures, return_exceptions=True)
    assert all(isinstance(r, TransportError) for r in results)


@pytest.mark.asyncio
async def test_manual_scheduler_waits_for_flush():
    transport = _EchoTransport()
    loader = BatchLoader(transport, scheduler=ManualScheduler())
    future = loader.enqueue(_q("x"))
    for _ in range(3):
        await asyncio.sleep(0)
    assert transport.batches == []
    assert not future.done()

    task = loader.flush()
    assert task is not None
    await task
    assert future.result() == "x"
    assert loader.flush() is None


@pytest.mark.asyncio
async def test_delay_scheduler_collects_across_ticks():
    transport = _EchoTransport()
    loader = BatchLoader(transport, scheduler=DelayScheduler(0.02))
    first = loader.enqueue(_q(1))
    await asyncio.sleep(0)
    second = loader.enqueue(_q(2))
    assert await asyncio.gather(first, second) == [1, 2]
    assert len(transport.batches) == 1


@pytest.mark.asyncio
async def test_abandoned_call_is_skipped():
    transport = _EchoTransport()
    loader = BatchLoader(transport, scheduler=ManualScheduler())
    abandoned = loader.enqueue(_q("gone"))
    kept = loader.enqueue(_q("kept"))
    abandoned.cancel()
    await loader.flush()
    assert kept.result() == "kept"
    assert abandoned.cancelled()


@pytest.mark.asyncio
async def test_drain_waits_for_pending_calls():
    transport = _EchoTransport()
    loader = BatchLoader(transport, scheduler=ManualScheduler())
    future = loader.enqueue(_q("late"))
    await loader.drain()
    assert future.result() == "late"


def test_max_batch_size_must_be_positive():
    with pytest.raises(ValueError):
        BatchLoader(_EchoTransport(), max_batch_size=0)
