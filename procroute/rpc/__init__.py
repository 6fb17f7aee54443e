"""Procedure registry, router and wire codec."""

from procroute.rpc.messages import Call, CallResult
from procroute.rpc.procedures import Procedure, ProcedureBuilder, ProcedureDef, ProcedureKind, procedure
from procroute.rpc.router import Router, RouterBuilder, build_router
from procroute.rpc.validators import Validator

__all__ = [
    "Call",
    "CallResult",
    "Procedure",
    "ProcedureBuilder",
    "ProcedureDef",
    "ProcedureKind",
    "Router",
    "RouterBuilder",
    "Validator",
    "build_router",
    "procedure",
]
