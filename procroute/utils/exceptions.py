"""
Exception hierarchy and error classification for procroute.

Provides:
- Error codes carried on the wire (NOT_FOUND, BAD_INPUT, INTERNAL, ...)
- Error categorization used for HTTP status mapping and retry hints
- Safe error message formatting (no sensitive data leak)
"""

from __future__ import annotations

import asyncio
import json
import re
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Error categories for classification."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PERMISSION = "permission"
    UNSUPPORTED = "unsupported"
    TIMEOUT = "timeout"
    RETRYABLE = "retryable"
    FATAL = "fatal"


class ErrorCode(str, Enum):
    """Well-known codes; handlers may use any other string for domain errors."""
    MALFORMED_ENVELOPE = "MALFORMED_ENVELOPE"
    NOT_FOUND = "NOT_FOUND"
    BAD_INPUT = "BAD_INPUT"
    METHOD_NOT_SUPPORTED = "METHOD_NOT_SUPPORTED"
    INTERNAL = "INTERNAL"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"


class ProcrouteError(Exception):
    """Base exception for all procroute errors."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.INTERNAL.value,
        category: ErrorCategory = ErrorCategory.FATAL,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "data": self.details or None,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class MalformedEnvelopeError(ProcrouteError):
    """Transport framing could not be read; fatal to the whole request."""

    def __init__(self, message: str):
        super().__init__(
            message,
            code=ErrorCode.MALFORMED_ENVELOPE.value,
            category=ErrorCategory.VALIDATION,
        )


class NotFoundError(ProcrouteError):
    """No procedure with the requested name (and kind)."""

    def __init__(self, name: str, kind: str | None = None):
        if kind:
            message = f"no {kind} procedure named {name!r}"
        else:
            message = f"no procedure named {name!r}"
        super().__init__(
            message,
            code=ErrorCode.NOT_FOUND.value,
            category=ErrorCategory.NOT_FOUND,
            details={"procedure": name},
        )


class ValidationError(ProcrouteError):
    """Procedure input rejected by its validator."""

    def __init__(self, message: str, issues: list[dict[str, Any]] | None = None):
        details = {"issues": issues} if issues else {}
        super().__init__(
            message,
            code=ErrorCode.BAD_INPUT.value,
            category=ErrorCategory.VALIDATION,
            details=details,
        )


class MethodNotSupportedError(ProcrouteError):
    """Mutation requested over a read-only transport method."""

    def __init__(self, name: str, http_method: str):
        super().__init__(
            f"procedure {name!r} is a mutation and cannot be called with {http_method}",
            code=ErrorCode.METHOD_NOT_SUPPORTED.value,
            category=ErrorCategory.UNSUPPORTED,
            details={"procedure": name},
        )


class ProcedureError(ProcrouteError):
    """Intentional domain error raised by a procedure handler."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        category: ErrorCategory = ErrorCategory.FATAL,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, category=category, details=details)


class InternalError(ProcrouteError):
    """Unexpected fault inside a handler; the wire message stays generic."""

    def __init__(self, details: dict[str, Any] | None = None):
        super().__init__(
            "internal server error",
            code=ErrorCode.INTERNAL.value,
            category=ErrorCategory.FATAL,
            details=details,
        )


class DuplicateProcedureError(ProcrouteError):
    """A procedure name is already registered in the target router."""

    def __init__(self, name: str):
        super().__init__(
            f"procedure {name!r} is already defined",
            code="DUPLICATE_PROCEDURE",
            category=ErrorCategory.CONFLICT,
            details={"procedure": name},
        )


class RpcCallError(ProcrouteError):
    """Client side: one call came back with an error result."""

    def __init__(self, code: str, message: str, data: dict[str, Any] | None = None):
        super().__init__(message, code=code, category=ErrorCategory.FATAL, details=data)
        self.data = data


class TransportError(ProcrouteError):
    """Client side: the whole batch failed (connection, timeout, unreadable response)."""

    def __init__(
        self,
        message: str,
        *,
        code: str = ErrorCode.TRANSPORT_ERROR.value,
        status_code: int | None = None,
        retryable: bool = False,
    ):
        category = ErrorCategory.RETRYABLE if retryable else ErrorCategory.FATAL
        super().__init__(
            message,
            code=code,
            category=category,
            details={"status_code": status_code} if status_code is not None else None,
        )
        self.status_code = status_code
        self.retryable = retryable


_SENSITIVE_PATTERNS = [
    re.compile(r"(api[_-]?key|token|secret|password|auth)[=:]\s*['\"]?([^\s'\"]+)['\"]?", re.IGNORECASE),
    re.compile(r"bearer\s+[a-zA-Z0-9\-._~+/]+=*", re.IGNORECASE),
    re.compile(r"[a-zA-Z0-9]{32,}"),
]


def sanitize_error_message(message: str, replacement: str = "[REDACTED]") -> str:
    """Remove sensitive information from error messages."""
    sanitized = message
    for pattern in _SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def classify_exception(exc: Exception) -> tuple[str, ErrorCategory]:
    """
    Classify an exception and return (error_code, category).

    Used for diagnostics on unexpected faults; the wire code of such faults
    stays INTERNAL.
    """
    if isinstance(exc, ProcrouteError):
        return exc.code, exc.category

    if isinstance(exc, asyncio.TimeoutError):
        return "TIMEOUT", ErrorCategory.TIMEOUT

    if isinstance(exc, ConnectionError):
        return "CONNECTION_ERROR", ErrorCategory.RETRYABLE

    if isinstance(exc, json.JSONDecodeError):
        return "JSON_PARSE_ERROR", ErrorCategory.VALIDATION

    if isinstance(exc, KeyError):
        return "MISSING_KEY", ErrorCategory.VALIDATION

    if isinstance(exc, (ValueError, TypeError)):
        return "INVALID_VALUE", ErrorCategory.VALIDATION

    if isinstance(exc, LookupError):
        return "LOOKUP_ERROR", ErrorCategory.NOT_FOUND

    return "INTERNAL_ERROR", ErrorCategory.FATAL


_CODE_TO_STATUS = {
    ErrorCode.MALFORMED_ENVELOPE.value: 400,
    ErrorCode.BAD_INPUT.value: 400,
    ErrorCode.NOT_FOUND.value: 404,
    ErrorCode.METHOD_NOT_SUPPORTED.value: 405,
    ErrorCode.INTERNAL.value: 500,
}

_CATEGORY_TO_STATUS = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.PERMISSION: 403,
    ErrorCategory.UNSUPPORTED: 405,
    ErrorCategory.TIMEOUT: 504,
    ErrorCategory.RETRYABLE: 503,
    ErrorCategory.FATAL: 500,
}


def classify_http_status(code: str, category: str | ErrorCategory | None = None) -> int:
    """Map an error code (and optional category) to an HTTP status code."""
    if code in _CODE_TO_STATUS:
        return _CODE_TO_STATUS[code]
    if isinstance(category, str):
        try:
            category = ErrorCategory(category)
        except ValueError:
            category = None
    if category is None:
        return 500
    return _CATEGORY_TO_STATUS.get(category, 500)
