"""Proxy client: one callable per procedure, batched transparently.

    client = create_client("http://127.0.0.1:3000/trpc", procedures=router.signature())
    alice, users = await asyncio.gather(
        client.userCreate.mutate({"name": "Alice"}),
        client.userList.query(),
    )  # one HTTP request
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

import httpx

from procroute.client.batch_loader import BatchLoader
from procroute.client.scheduler import BatchScheduler, scheduler_for_wait
from procroute.client.transport import HttpTransport, RpcTransport
from procroute.config.schema import ClientConfig
from procroute.rpc.messages import Call
from procroute.rpc.procedures import ProcedureKind


def _is_known_path(procedures: Mapping[str, ProcedureKind], path: str) -> bool:
    """True for a procedure name or a dotted prefix of one (``user`` for ``user.byId``)."""
    if path in procedures:
        return True
    prefix = path + "."
    return any(name.startswith(prefix) for name in procedures)


class ProcedureProxy:
    """Callable surface for one procedure path (``client.user.byId``)."""

    __slots__ = ("_client", "_path")

    def __init__(self, client: RpcClient, path: str):
        self._client = client
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def query(self, input: Any = None) -> asyncio.Future[Any]:
        return self._client.call(self._path, ProcedureKind.QUERY, input)

    def mutate(self, input: Any = None) -> asyncio.Future[Any]:
        return self._client.call(self._path, ProcedureKind.MUTATION, input)

    def __getattr__(self, name: str) -> ProcedureProxy:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._client.procedure(f"{self._path}.{name}")

    def __repr__(self) -> str:
        return f"ProcedureProxy({self._path!r})"


class RpcClient:
    """
    Client exposing procedures as attributes.

    With ``procedures`` (a name -> kind mapping, e.g. ``Router.signature()``)
    the surface is closed: unknown names raise AttributeError and using the
    wrong kind raises TypeError before anything is sent. Without it any name
    is accepted and the server decides.
    """

    def __init__(
        self,
        transport: RpcTransport,
        *,
        procedures: Mapping[str, ProcedureKind | str] | None = None,
        scheduler: BatchScheduler | None = None,
        max_batch_size: int = 50,
    ):
        self._transport = transport
        self._loader = BatchLoader(transport, scheduler=scheduler, max_batch_size=max_batch_size)
        self._procedures: dict[str, ProcedureKind] | None = (
            {name: ProcedureKind(kind) for name, kind in procedures.items()} if procedures is not None else None
        )

    @property
    def loader(self) -> BatchLoader:
        return self._loader

    def __getattr__(self, name: str) -> ProcedureProxy:
        if name.startswith("_"):
            raise AttributeError(name)
        return self.procedure(name)

    def procedure(self, path: str) -> ProcedureProxy:
        """Proxy for ``path``; also reaches names shadowed by client methods."""
        if self._procedures is not None and not _is_known_path(self._procedures, path):
            raise AttributeError(f"no procedure named {path!r}")
        return ProcedureProxy(self, path)

    def call(self, name: str, kind: ProcedureKind | str, input: Any = None) -> asyncio.Future[Any]:
        """Enqueue one call; the returned future resolves to its output."""
        kind = ProcedureKind(kind)
        if self._procedures is not None:
            expected = self._procedures.get(name)
            if expected is None:
                raise AttributeError(f"no procedure named {name!r}")
            if expected is not kind:
                verb = "query()" if expected is ProcedureKind.QUERY else "mutate()"
                raise TypeError(f"{name!r} is a {expected.value}; call it with {verb}")
        return self._loader.enqueue(Call(name=name, kind=kind, input=input))

    async def flush(self) -> None:
        """Send pending calls now and wait for that batch."""
        task = self._loader.flush()
        if task is not None:
            await task

    async def aclose(self) -> None:
        await self._loader.drain()
        close = getattr(self._transport, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> RpcClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()


def create_client(
    url: str | None = None,
    *,
    config: ClientConfig | None = None,
    procedures: Mapping[str, ProcedureKind | str] | None = None,
    scheduler: BatchScheduler | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> RpcClient:
    """Build an HTTP-backed client from ``config`` (defaults from ClientConfig)."""
    cfg = config or ClientConfig()
    transport = HttpTransport(url or cfg.url, timeout=cfg.timeout_seconds, client=http_client)
    return RpcClient(
        transport,
        procedures=procedures,
        scheduler=scheduler or scheduler_for_wait(cfg.batch_wait_ms),
        max_batch_size=cfg.max_batch_size,
    )
