"""Call and result records exchanged between client, codec and router."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from procroute.rpc.procedures import ProcedureKind
from procroute.utils.exceptions import ErrorCategory, ProcrouteError


@dataclass(frozen=True, slots=True)
class Call:
    name: str
    kind: ProcedureKind
    input: Any = None


@dataclass(frozen=True, slots=True)
class CallResult:
    """Outcome of one call: ``ok`` with a value (possibly None) or an error payload."""

    ok: bool
    value: Any = None
    error: dict[str, Any] | None = None
    # Server-side only; not part of the wire format.
    category: ErrorCategory | None = None

    @classmethod
    def success(cls, value: Any) -> CallResult:
        return cls(ok=True, value=value)

    @classmethod
    def failure(
        cls,
        code: str,
        message: str,
        data: dict[str, Any] | None = None,
        *,
        category: ErrorCategory | None = None,
    ) -> CallResult:
        return cls(
            ok=False,
            error={"code": code, "message": message, "data": data},
            category=category,
        )

    @classmethod
    def from_error(cls, exc: ProcrouteError) -> CallResult:
        return cls.failure(exc.code, exc.message, exc.details or None, category=exc.category)

    @property
    def error_code(self) -> str | None:
        return self.error["code"] if self.error else None
