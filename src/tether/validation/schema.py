"""Schema — a pydantic-backed validator for one request part.

A ``Schema`` wraps any type annotation pydantic understands (a
``BaseModel`` subclass, ``list[Item]``, ``int``, a ``TypedDict``, ...)
in a ``TypeAdapter`` built once at declaration time. The adapter is
immutable and safe to share between concurrent requests.

Validation is strict by default: numbers and booleans must already be
typed. String-sourced input (path segments, query strings, headers)
is made acceptable by ``tether.validation.coerce``, not by lax mode.
"""

from typing import Any

from pydantic import TypeAdapter, ValidationError

from tether.validation.result import ParseResult, SchemaError


class Schema:
    """Validator/transformer for a path, query, body, or headers value.

    Usage::

        class HelloQuery(BaseModel):
            excited: bool = False

        schema = Schema(HelloQuery)
        schema.parse({"excited": True})        # -> HelloQuery(excited=True)
        schema.safe_parse({"excited": "yes"})  # -> ParseResult(ok=False, ...)
    """

    __slots__ = ("_adapter", "annotation", "coerced", "strict")

    def __init__(self, annotation: Any, *, strict: bool = True, coerced: bool = False) -> None:
        self.annotation = annotation
        self.strict = strict
        # True when produced by coerce(); coercing it again is a no-op
        self.coerced = coerced
        self._adapter: TypeAdapter[Any] = TypeAdapter(annotation)

    def __repr__(self) -> str:
        name = getattr(self.annotation, "__name__", repr(self.annotation))
        return f"Schema({name}, strict={self.strict}, coerced={self.coerced})"

    def parse(self, value: Any) -> Any:
        """Validate *value*, returning the transformed result.

        Raises ``SchemaError`` on failure.
        """
        try:
            return self._adapter.validate_python(value, strict=self.strict)
        except ValidationError as exc:
            raise SchemaError.from_pydantic(exc) from exc

    def parse_json(self, raw: bytes | str) -> Any:
        """Validate a JSON document. Malformed JSON is a ``json_invalid`` issue."""
        try:
            return self._adapter.validate_json(raw, strict=self.strict)
        except ValidationError as exc:
            raise SchemaError.from_pydantic(exc) from exc

    def safe_parse(self, value: Any) -> ParseResult:
        """Validate *value* without raising for validation failures."""
        try:
            return ParseResult(ok=True, value=self.parse(value))
        except SchemaError as exc:
            return ParseResult(ok=False, error=exc)

    def safe_parse_json(self, raw: bytes | str) -> ParseResult:
        """JSON counterpart of ``safe_parse()``."""
        try:
            return ParseResult(ok=True, value=self.parse_json(raw))
        except SchemaError as exc:
            return ParseResult(ok=False, error=exc)

    def dump(self, value: Any) -> Any:
        """Return the JSON-compatible form of a validated value (aliases applied)."""
        return self._adapter.dump_python(value, mode="json", by_alias=True)


def as_schema(value: Any) -> Schema:
    """Return *value* if it is already a ``Schema``, else wrap it in one."""
    if isinstance(value, Schema):
        return value
    return Schema(value)
