"""Input/output validators for procedures.

A validator has one fallible operation, ``parse(raw)``, which returns the typed
value or raises :class:`~procroute.utils.exceptions.ValidationError`. Parsing
is delegated to pydantic so any type pydantic understands (models, TypedDicts,
``list[str]``, ...) can be used as a procedure input.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from procroute.utils.exceptions import ValidationError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


def _issues_from_pydantic(exc: PydanticValidationError) -> list[dict[str, Any]]:
    return [
        {
            "path": [str(part) for part in err.get("loc", ())],
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]


def _summarize(issues: list[dict[str, Any]]) -> str:
    parts = []
    for issue in issues:
        path = ".".join(issue["path"])
        parts.append(f"{path}: {issue['message']}" if path else issue["message"])
    return "; ".join(parts) or "invalid input"


class Validator(ABC, Generic[T]):
    """Parses a raw (JSON-decoded) payload into a typed value."""

    @abstractmethod
    def parse(self, raw: Any) -> T:
        ...

    def __call__(self, raw: Any) -> T:
        return self.parse(raw)

    def optional(self) -> Validator[T | None]:
        """Accept ``None`` in addition to whatever this validator accepts."""
        return _Optional(self)

    def refine(self, check: Callable[[T], bool], message: str) -> Validator[T]:
        """Run an extra predicate on the parsed value."""
        return _Refined(self, check, message)


class TypeValidator(Validator[T]):
    """Validator backed by a pydantic ``TypeAdapter``."""

    def __init__(self, tp: Any, *, strict: bool | None = None):
        self.tp = tp
        self._adapter: TypeAdapter[T] = TypeAdapter(tp)
        self._strict = strict

    def parse(self, raw: Any) -> T:
        try:
            return self._adapter.validate_python(raw, strict=self._strict)
        except PydanticValidationError as e:
            issues = _issues_from_pydantic(e)
            raise ValidationError(_summarize(issues), issues=issues) from e

    def __repr__(self) -> str:
        return f"TypeValidator({self.tp!r})"


class ModelValidator(TypeValidator[M]):
    """Validator for a pydantic model; accepts a dict or a model instance."""

    def __init__(self, model_cls: type[M]):
        super().__init__(model_cls)
        self.model_cls = model_cls


class NoInput(Validator[None]):
    """Validator for procedures that take no input."""

    def parse(self, raw: Any) -> None:
        if raw is not None:
            raise ValidationError(
                "procedure takes no input",
                issues=[{"path": [], "message": "expected no input", "type": "none_required"}],
            )
        return None

    def __repr__(self) -> str:
        return "NoInput()"


class _Optional(Validator[Any]):
    def __init__(self, inner: Validator[Any]):
        self.inner = inner

    def parse(self, raw: Any) -> Any:
        if raw is None:
            return None
        return self.inner.parse(raw)


class _Refined(Validator[Any]):
    def __init__(self, inner: Validator[Any], check: Callable[[Any], bool], message: str):
        self.inner = inner
        self.check = check
        self.message = message

    def parse(self, raw: Any) -> Any:
        value = self.inner.parse(raw)
        if not self.check(value):
            raise ValidationError(
                self.message,
                issues=[{"path": [], "message": self.message, "type": "refine"}],
            )
        return value


def none() -> Validator[None]:
    return NoInput()


def string() -> Validator[str]:
    return TypeValidator(str, strict=True)


def of(tp: Any) -> Validator[Any]:
    return TypeValidator(tp)


def model(model_cls: type[M]) -> Validator[M]:
    return ModelValidator(model_cls)
