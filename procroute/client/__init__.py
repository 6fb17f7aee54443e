"""Batched RPC client."""

from procroute.client.batch_loader import BatchLoader
from procroute.client.client import ProcedureProxy, RpcClient, create_client
from procroute.client.scheduler import (
    BatchScheduler,
    DelayScheduler,
    ManualScheduler,
    TickScheduler,
    scheduler_for_wait,
)
from procroute.client.transport import HttpTransport, RpcTransport

__all__ = [
    "BatchLoader",
    "BatchScheduler",
    "DelayScheduler",
    "HttpTransport",
    "ManualScheduler",
    "ProcedureProxy",
    "RpcClient",
    "RpcTransport",
    "TickScheduler",
    "create_client",
    "scheduler_for_wait",
]
