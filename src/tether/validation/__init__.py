"""Request-part validation — pydantic-backed schemas and string coercion.

Usage::

    from pydantic import BaseModel
    from tether.validation import Schema, coerce

    class Page(BaseModel):
        limit: int = 20
        archived: bool = False

    schema = coerce(Schema(Page))
    schema.parse({"limit": "50", "archived": "true"})  # -> Page(limit=50, archived=True)
"""

from tether.validation.coerce import coerce, coerce_type, last_value, to_boolean, to_number
from tether.validation.result import Issue, ParseResult, SchemaError
from tether.validation.schema import Schema, as_schema

__all__ = [
    "Issue",
    "ParseResult",
    "Schema",
    "SchemaError",
    "as_schema",
    "coerce",
    "coerce_type",
    "last_value",
    "to_boolean",
    "to_number",
]
