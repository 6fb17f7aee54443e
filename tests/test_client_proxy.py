import asyncio

import pytest

from procroute.client.client import ProcedureProxy, RpcClient, create_client
from procroute.client.scheduler import DelayScheduler, ManualScheduler, TickScheduler, scheduler_for_wait
from procroute.client.transport import HttpTransport
from procroute.config.schema import ClientConfig
from procroute.rpc.messages import CallResult
from procroute.rpc.procedures import ProcedureKind


class _RecordingTransport:
    def __init__(self):
        self.batches = []
        self.closed = False

    async def send(self, calls):
        self.batches.append([(c.name, c.kind, c.input) for c in calls])
        return [CallResult.success({"name": c.name, "input": c.input}) for c in calls]

    async def aclose(self):
        self.closed = True


_SIGNATURE = {
    "userList": ProcedureKind.QUERY,
    "userCreate": "mutation",
    "user.byId": "query",
}


@pytest.mark.asyncio
async def test_proxy_calls_are_batched_together():
    transport = _RecordingTransport()
    client = RpcClient(transport)
    created, listed = await asyncio.gather(
        client.userCreate.mutate({"name": "Alice"}),
        client.userList.query(),
    )
    assert created == {"name": "userCreate", "input": {"name": "Alice"}}
    assert listed == {"name": "userList", "input": None}
    assert transport.batches == [
        [
            ("userCreate", ProcedureKind.MUTATION, {"name": "Alice"}),
            ("userList", ProcedureKind.QUERY, None),
        ]
    ]


@pytest.mark.asyncio
async def test_nested_paths_are_dotted():
    transport = _RecordingTransport()
    client = RpcClient(transport, procedures=_SIGNATURE)
    proxy = client.user.byId
    assert isinstance(proxy, ProcedureProxy)
    assert proxy.path == "user.byId"
    assert (await proxy.query("1"))["name"] == "user.byId"


@pytest.mark.asyncio
async def test_closed_surface_rejects_unknown_names_and_wrong_kind():
    transport = _RecordingTransport()
    client = RpcClient(transport, procedures=_SIGNATURE)
    with pytest.raises(AttributeError):
        client.userDelete
    with pytest.raises(AttributeError):
        client.user.missing
    with pytest.raises(TypeError, match="mutate"):
        client.userCreate.query({"name": "Bob"})
    with pytest.raises(TypeError, match="query"):
        client.userList.mutate()
    await asyncio.sleep(0)
    assert transport.batches == []


@pytest.mark.asyncio
async def test_procedure_reaches_names_shadowed_by_methods():
    transport = _RecordingTransport()
    client = RpcClient(transport)
    assert await client.procedure("flush").query() == {"name": "flush", "input": None}


def test_private_attributes_are_not_procedures():
    client = RpcClient(_RecordingTransport())
    with pytest.raises(AttributeError):
        client._missing


@pytest.mark.asyncio
async def test_flush_and_close():
    transport = _RecordingTransport()
    client = RpcClient(transport, scheduler=ManualScheduler())
    future = client.userList.query()
    await client.flush()
    assert future.done()
    pending = client.userList.query()
    async with client:
        pass
    assert pending.done()
    assert transport.closed is True


def test_scheduler_for_wait():
    assert isinstance(scheduler_for_wait(0), TickScheduler)
    delayed = scheduler_for_wait(25)
    assert isinstance(delayed, DelayScheduler)
    assert delayed.delay == pytest.approx(0.025)
    with pytest.raises(ValueError):
        DelayScheduler(-1)


def test_create_client_uses_config():
    cfg = ClientConfig(url="http://example.test/rpc", timeout_seconds=3, max_batch_size=7, batch_wait_ms=5)
    client = create_client(config=cfg)
    transport = client.loader.transport
    assert isinstance(transport, HttpTransport)
    assert transport.url == "http://example.test/rpc"
    assert transport.timeout == 3
    assert client.loader.max_batch_size == 7
    assert isinstance(client.loader.scheduler, DelayScheduler)
    assert create_client("http://other.test/trpc", config=cfg).loader.transport.url == "http://other.test/trpc"


def test_closed_surface_matches_whole_path_segments():
    client = RpcClient(_RecordingTransport(), procedures=_SIGNATURE)
    assert client.procedure("user").path == "user"
    assert client.procedure("user.byId").path == "user.byId"
    with pytest.raises(AttributeError):
        client.procedure("us")
    with pytest.raises(AttributeError):
        client.procedure("user.by")
