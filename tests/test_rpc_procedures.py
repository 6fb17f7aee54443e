import pytest

from procroute.rpc import validators as v
from procroute.rpc.procedures import ProcedureDef, ProcedureKind, procedure
from procroute.rpc.validators import NoInput


def test_builder_defaults_to_no_input():
    definition = procedure.query(lambda _: [])
    assert isinstance(definition, ProcedureDef)
    assert definition.kind is ProcedureKind.QUERY
    assert isinstance(definition.input_validator, NoInput)
    assert definition.output_validator is None


def test_builder_steps_do_not_mutate_base():
    base = procedure.input(v.string())
    mutation = base.mutation(lambda s: s)
    assert procedure.input_validator is None
    assert mutation.kind is ProcedureKind.MUTATION
    assert mutation.input_validator is base.input_validator


def test_builder_rejects_non_callable_handler():
    with pytest.raises(TypeError):
        procedure.query("not callable")


def test_bound_procedure_idempotence():
    query = procedure.query(lambda _: None).bind("a")
    mutation = procedure.mutation(lambda _: None).bind("b")
    assert query.name == "a"
    assert query.idempotent is True
    assert mutation.idempotent is False


@pytest.mark.asyncio
async def test_invoke_supports_sync_and_async_handlers():
    async def _async_upper(s: str) -> str:
        return s.upper()

    sync_proc = procedure.input(v.string()).query(lambda s: s + "!").bind("sync")
    async_proc = procedure.input(v.string()).query(_async_upper).bind("async")
    assert await sync_proc.invoke("hi") == "hi!"
    assert await async_proc.invoke("hi") == "HI"


def test_parse_output_without_validator_is_identity():
    proc = procedure.query(lambda _: None).bind("p")
    marker = object()
    assert proc.parse_output(marker) is marker
