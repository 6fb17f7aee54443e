"""Error-boundary helpers: map every dispatch failure to a CallResult."""

from __future__ import annotations

from typing import Any, Callable

from procroute.rpc.messages import CallResult
from procroute.utils.exceptions import (
    InternalError,
    MethodNotSupportedError,
    NotFoundError,
    ProcrouteError,
    ValidationError,
    classify_exception,
    classify_http_status,
    sanitize_error_message,
)


def unknown_procedure_result(*, name: str, kind: str | None = None) -> CallResult:
    """Build standardized unknown-procedure result."""
    return CallResult.from_error(NotFoundError(name, kind))


def method_not_supported_result(*, name: str, http_method: str) -> CallResult:
    """Build result for a mutation sent over a read-only HTTP method."""
    return CallResult.from_error(MethodNotSupportedError(name, http_method))


def validation_error_result(
    *,
    name: str,
    exc: ValidationError,
    log_info: Callable[[str, Any, Any], None],
) -> CallResult:
    """Map validator failures to BAD_INPUT results."""
    log_info("RPC procedure {} rejected input: {}", name, exc.message)
    return CallResult.from_error(exc)


def procedure_error_result(
    *,
    name: str,
    exc: ProcrouteError,
    log_warning: Callable[[str, Any, Any, Any], None],
) -> CallResult:
    """Map intentional domain errors to results carrying their own code."""
    log_warning("RPC procedure {} failed with {}: {}", name, exc.code, exc.message)
    return CallResult.from_error(exc)


def unhandled_exception_result(
    *,
    name: str,
    exc: Exception,
    log_exception: Callable[[str, Any, Any, Any], None],
) -> CallResult:
    """Map unexpected exceptions to INTERNAL results with a generic message."""
    code, category = classify_exception(exc)
    sanitized = sanitize_error_message(str(exc))
    log_exception("RPC procedure {} failed with [{}]: {}", name, code, sanitized)
    return CallResult.from_error(InternalError({"error_code": code, "category": category.value}))


def result_http_status(result: CallResult) -> int:
    """HTTP status for a single-call response."""
    if result.ok:
        return 200
    return classify_http_status(result.error_code or "", result.category)
