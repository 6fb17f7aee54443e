"""Router: a closed, read-only namespace of procedures."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from loguru import logger

from procroute.rpc.error_boundary import (
    procedure_error_result,
    unhandled_exception_result,
    unknown_procedure_result,
    validation_error_result,
)
from procroute.rpc.messages import Call, CallResult
from procroute.rpc.procedures import Handler, Procedure, ProcedureDef, ProcedureKind
from procroute.rpc.validators import Validator
from procroute.utils.exceptions import (
    DuplicateProcedureError,
    NotFoundError,
    ProcrouteError,
    ValidationError,
)


class Router:
    """
    Immutable mapping from procedure name to :class:`Procedure`.

    Built once (via :class:`RouterBuilder` or :func:`build_router`) and shared
    read-only by every request the server handles.
    """

    def __init__(self, procedures: Mapping[str, Procedure]):
        self._procedures: Mapping[str, Procedure] = MappingProxyType(dict(procedures))

    def __contains__(self, name: object) -> bool:
        return name in self._procedures

    def __iter__(self) -> Iterator[str]:
        return iter(self._procedures)

    def __len__(self) -> int:
        return len(self._procedures)

    @property
    def procedures(self) -> Mapping[str, Procedure]:
        return self._procedures

    def resolve(self, name: str) -> Procedure:
        proc = self._procedures.get(name)
        if proc is None:
            raise NotFoundError(name)
        return proc

    def signature(self) -> dict[str, ProcedureKind]:
        """Procedure names and kinds, for building a closed client surface."""
        return {name: proc.kind for name, proc in sorted(self._procedures.items())}

    async def dispatch(self, call: Call) -> CallResult:
        """Run one call to exactly one result. Never raises."""
        name = call.name
        try:
            proc = self._procedures.get(name)
            if proc is None:
                return unknown_procedure_result(name=name)
            if proc.kind is not ProcedureKind(call.kind):
                return unknown_procedure_result(name=name, kind=ProcedureKind(call.kind).value)

            try:
                parsed = proc.parse_input(call.input)
            except ValidationError as e:
                return validation_error_result(name=name, exc=e, log_info=logger.info)

            value = await proc.invoke(parsed)
            try:
                value = proc.parse_output(value)
            except ValidationError as e:
                # The handler produced a value its own output validator rejects.
                return unhandled_exception_result(name=name, exc=e, log_exception=logger.exception)
            return CallResult.success(value)
        except ProcrouteError as e:
            return procedure_error_result(name=name, exc=e, log_warning=logger.warning)
        except Exception as e:
            return unhandled_exception_result(name=name, exc=e, log_exception=logger.exception)


class RouterBuilder:
    """Mutable registry used while defining procedures; ``build()`` freezes it."""

    def __init__(self) -> None:
        self._procedures: dict[str, Procedure] = {}

    def define(
        self,
        name: str,
        kind: ProcedureKind | str,
        input_validator: Validator[Any],
        handler: Handler,
        *,
        output_validator: Validator[Any] | None = None,
    ) -> Procedure:
        """Register a procedure; a duplicate name raises DuplicateProcedureError."""
        if not isinstance(name, str) or not name:
            raise ValueError("procedure name must be a non-empty string")
        if name in self._procedures:
            raise DuplicateProcedureError(name)
        proc = Procedure(
            name=name,
            kind=ProcedureKind(kind),
            input_validator=input_validator,
            handler=handler,
            output_validator=output_validator,
        )
        self._procedures[name] = proc
        return proc

    def add(self, name: str, definition: ProcedureDef) -> Procedure:
        return self.define(
            name,
            definition.kind,
            definition.input_validator,
            definition.handler,
            output_validator=definition.output_validator,
        )

    def merge(self, router: Router, *, prefix: str = "") -> RouterBuilder:
        """Copy every procedure of ``router``, optionally under ``prefix.``."""
        for name, proc in router.procedures.items():
            full_name = f"{prefix}.{name}" if prefix else name
            self.define(
                full_name,
                proc.kind,
                proc.input_validator,
                proc.handler,
                output_validator=proc.output_validator,
            )
        return self

    def build(self) -> Router:
        return Router(self._procedures)


def build_router(definitions: Mapping[str, Any]) -> Router:
    """
    Build a router from ``{name: ProcedureDef | Router | nested mapping}``.

    Nested routers and mappings are flattened into dotted names
    (``{"user": {"list": ...}}`` -> ``user.list``).
    """
    builder = RouterBuilder()
    _collect(builder, definitions, prefix="")
    return builder.build()


def _collect(builder: RouterBuilder, definitions: Mapping[str, Any], *, prefix: str) -> None:
    for key, entry in definitions.items():
        name = f"{prefix}.{key}" if prefix else key
        if isinstance(entry, ProcedureDef):
            builder.add(name, entry)
        elif isinstance(entry, Router):
            builder.merge(entry, prefix=name)
        elif isinstance(entry, Mapping):
            _collect(builder, entry, prefix=name)
        else:
            raise TypeError(f"unsupported router entry for {name!r}: {type(entry).__name__}")
