"""JSON wire codec for calls and results.

Request envelope::

    {"name": "userById", "kind": "query", "input": "1"}        # single call
    [{"name": ...}, {"name": ...}]                              # batch

Response envelope::

    {"ok": true, "value": ...}
    {"ok": false, "error": {"code": "...", "message": "...", "data": ...}}

A batch response is a JSON array of result envelopes in request order. A
request whose framing cannot be read is answered with a single top-level
``{"error": {...}}`` object instead.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Literal

from loguru import logger
from pydantic import BaseModel, ConfigDict, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from procroute.rpc.messages import Call, CallResult
from procroute.rpc.procedures import ProcedureKind
from procroute.utils.exceptions import ErrorCode, InternalError, MalformedEnvelopeError


class CallEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    kind: Literal["query", "mutation"]
    input: Any = None


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str
    message: str
    data: dict[str, Any] | None = None


class ResultEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ok: bool
    value: Any = None
    error: ErrorEnvelope | None = None


_REQUEST_ADAPTER: TypeAdapter[list[CallEnvelope] | CallEnvelope] = TypeAdapter(
    list[CallEnvelope] | CallEnvelope
)
_RESULTS_ADAPTER: TypeAdapter[list[ResultEnvelope]] = TypeAdapter(list[ResultEnvelope])


def _load_json(body: bytes | str | Any) -> Any:
    if isinstance(body, (bytes, bytearray)):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedEnvelopeError("envelope is not valid UTF-8") from e
    if isinstance(body, str):
        if not body.strip():
            raise MalformedEnvelopeError("empty envelope")
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise MalformedEnvelopeError(f"envelope is not valid JSON: {e.msg}") from e
        except RecursionError as e:
            raise MalformedEnvelopeError("envelope is nested too deeply") from e
    return body


def _describe(exc: PydanticValidationError) -> str:
    first = exc.errors()[0] if exc.errors() else {}
    loc = ".".join(str(part) for part in first.get("loc", ()))
    msg = first.get("msg", "invalid envelope")
    return f"{loc}: {msg}" if loc else msg


# Requests


def encode_call(call: Call) -> dict[str, Any]:
    envelope: dict[str, Any] = {"name": call.name, "kind": ProcedureKind(call.kind).value}
    if call.input is not None:
        envelope["input"] = to_jsonable_python(call.input)
    return envelope


def encode_request(calls: list[Call], *, batch: bool = True) -> list[dict[str, Any]] | dict[str, Any]:
    """Encode calls as a batch array, or a single object when ``batch`` is False."""
    if batch:
        return [encode_call(call) for call in calls]
    if len(calls) != 1:
        raise ValueError("single-call mode requires exactly one call")
    return encode_call(calls[0])


def decode_request(body: bytes | str | Any) -> tuple[list[Call], bool]:
    """
    Decode a request body into ``(calls, is_batch)``.

    ``body`` may be raw bytes/str or already-parsed JSON. Raises
    MalformedEnvelopeError when the framing is unreadable.
    """
    data = _load_json(body)
    if isinstance(data, list) and not data:
        raise MalformedEnvelopeError("batch envelope is empty")
    if not isinstance(data, (list, dict)):
        raise MalformedEnvelopeError("envelope must be a call object or an array of calls")
    try:
        parsed = _REQUEST_ADAPTER.validate_python(data)
    except PydanticValidationError as e:
        raise MalformedEnvelopeError(f"invalid envelope: {_describe(e)}") from e
    if isinstance(parsed, list):
        return [_to_call(env) for env in parsed], True
    return [_to_call(parsed)], False


def _to_call(envelope: CallEnvelope) -> Call:
    return Call(name=envelope.name, kind=ProcedureKind(envelope.kind), input=envelope.input)


# Results


def _to_json_value(value: Any, *, fallback: Callable[[Any], Any] | None = None) -> Any:
    """JSON-compatible copy of ``value``; NaN and infinities are rejected."""
    jsonable = to_jsonable_python(value, fallback=fallback)
    json.dumps(jsonable, allow_nan=False)
    return jsonable


def _serialization_failure() -> dict[str, Any]:
    internal = InternalError({"error_code": "SERIALIZATION_ERROR", "category": "fatal"})
    return {"ok": False, "error": internal.to_dict()}


def encode_result(result: CallResult) -> dict[str, Any]:
    """Encode one result; a value that is not valid JSON becomes an INTERNAL error."""
    try:
        if result.ok:
            return {"ok": True, "value": _to_json_value(result.value)}
        error = result.error or {}
        return {
            "ok": False,
            "error": {
                "code": error.get("code", ErrorCode.INTERNAL.value),
                "message": error.get("message", ""),
                "data": _to_json_value(error.get("data"), fallback=str),
            },
        }
    except (PydanticSerializationError, ValueError, TypeError, RecursionError) as e:
        logger.warning("RPC result could not be encoded as JSON: {}", e)
        return _serialization_failure()


def encode_results(results: list[CallResult], *, batch: bool) -> list[dict[str, Any]] | dict[str, Any]:
    encoded = [encode_result(result) for result in results]
    if batch:
        return encoded
    return encoded[0]


def encode_envelope_error(exc: MalformedEnvelopeError) -> dict[str, Any]:
    return {"error": {"code": exc.code, "message": exc.message}}


def decode_result(envelope: ResultEnvelope) -> CallResult:
    if envelope.ok:
        return CallResult.success(envelope.value)
    if envelope.error is None:
        raise MalformedEnvelopeError("error result without error payload")
    return CallResult.failure(envelope.error.code, envelope.error.message, envelope.error.data)


def decode_response(body: bytes | str | Any, *, expected: int) -> list[CallResult]:
    """
    Decode a batch response and check it lines up with ``expected`` calls.

    A single result object is accepted when exactly one call was sent.
    """
    data = _load_json(body)
    if isinstance(data, dict) and expected == 1 and "ok" in data:
        data = [data]
    if not isinstance(data, list):
        raise MalformedEnvelopeError("response must be an array of results")
    try:
        envelopes = _RESULTS_ADAPTER.validate_python(data)
    except PydanticValidationError as e:
        raise MalformedEnvelopeError(f"invalid response: {_describe(e)}") from e
    if len(envelopes) != expected:
        raise MalformedEnvelopeError(
            f"response has {len(envelopes)} results for a batch of {expected} calls"
        )
    return [decode_result(env) for env in envelopes]


def decode_envelope_error(body: bytes | str | Any) -> dict[str, Any] | None:
    """Return the top-level error payload of a response, if it is one."""
    try:
        data = _load_json(body)
    except MalformedEnvelopeError:
        return None
    if isinstance(data, dict) and isinstance(data.get("error"), dict) and "ok" not in data:
        return data["error"]
    return None
