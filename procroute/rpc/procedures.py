"""Procedure definitions: named, typed queries and mutations."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable

from procroute.rpc.validators import NoInput, Validator

Handler = Callable[[Any], Awaitable[Any] | Any]


class ProcedureKind(str, Enum):
    """Advisory read/write tag carried end-to-end."""
    QUERY = "query"
    MUTATION = "mutation"


@dataclass(frozen=True, slots=True)
class Procedure:
    """A registered procedure. Immutable once defined."""

    name: str
    kind: ProcedureKind
    input_validator: Validator[Any]
    handler: Handler
    output_validator: Validator[Any] | None = None

    @property
    def idempotent(self) -> bool:
        return self.kind is ProcedureKind.QUERY

    def parse_input(self, raw: Any) -> Any:
        return self.input_validator.parse(raw)

    async def invoke(self, parsed_input: Any) -> Any:
        outcome = self.handler(parsed_input)
        return await outcome if inspect.isawaitable(outcome) else outcome

    def parse_output(self, value: Any) -> Any:
        if self.output_validator is None:
            return value
        return self.output_validator.parse(value)


@dataclass(frozen=True, slots=True)
class ProcedureDef:
    """Unnamed procedure produced by the builder; the router assigns the name."""

    kind: ProcedureKind
    input_validator: Validator[Any]
    handler: Handler
    output_validator: Validator[Any] | None = None

    def bind(self, name: str) -> Procedure:
        return Procedure(
            name=name,
            kind=self.kind,
            input_validator=self.input_validator,
            handler=self.handler,
            output_validator=self.output_validator,
        )


@dataclass(frozen=True, slots=True)
class ProcedureBuilder:
    """
    Chainable builder: ``procedure.input(string()).query(handler)``.

    Every step returns a new builder, so a shared base builder can be reused.
    """

    input_validator: Validator[Any] | None = None
    output_validator: Validator[Any] | None = None

    def input(self, validator: Validator[Any]) -> ProcedureBuilder:
        return replace(self, input_validator=validator)

    def output(self, validator: Validator[Any]) -> ProcedureBuilder:
        return replace(self, output_validator=validator)

    def query(self, handler: Handler) -> ProcedureDef:
        return self._finish(ProcedureKind.QUERY, handler)

    def mutation(self, handler: Handler) -> ProcedureDef:
        return self._finish(ProcedureKind.MUTATION, handler)

    def _finish(self, kind: ProcedureKind, handler: Handler) -> ProcedureDef:
        if not callable(handler):
            raise TypeError(f"procedure handler must be callable, got {type(handler).__name__}")
        return ProcedureDef(
            kind=kind,
            input_validator=self.input_validator or NoInput(),
            handler=handler,
            output_validator=self.output_validator,
        )


procedure = ProcedureBuilder()
