"""Validation results — structured issues, errors, and safe-parse outcomes."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from tether.errors import TetherError


@dataclass(frozen=True, slots=True)
class Issue:
    """One validation failure.

    ``path`` locates the failing value inside the validated input
    (``("user", "tags", 0)``), ``message`` is human-readable, and
    ``code`` is a stable machine-readable identifier such as
    ``"missing"`` or ``"bool_type"``.
    """

    path: tuple[str | int, ...]
    message: str
    code: str

    def to_dict(self) -> dict[str, Any]:
        return {"path": list(self.path), "message": self.message, "code": self.code}


class SchemaError(TetherError, ValueError):
    """A value failed schema validation.

    Always structured: inspect ``issues`` rather than parsing the
    message string.
    """

    def __init__(self, issues: Sequence[Issue]) -> None:
        self.issues: tuple[Issue, ...] = tuple(issues)
        super().__init__(self.message)

    @property
    def message(self) -> str:
        """One-line summary of every issue."""
        parts = []
        for issue in self.issues:
            where = ".".join(str(p) for p in issue.path)
            parts.append(f"{where}: {issue.message}" if where else issue.message)
        return "; ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible form embedded in 400 response bodies."""
        return {"issues": [issue.to_dict() for issue in self.issues]}

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> SchemaError:
        issues = [
            Issue(path=tuple(err["loc"]), message=err["msg"], code=err["type"])
            for err in exc.errors(include_url=False)
        ]
        return cls(issues)


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Outcome of ``Schema.safe_parse()``.

    Falsy when validation failed, so callers can write::

        result = schema.safe_parse(data)
        if not result:
            return error_response(result.error)
    """

    ok: bool
    value: Any = None
    error: SchemaError | None = None

    def __bool__(self) -> bool:
        return self.ok
