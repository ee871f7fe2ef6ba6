"""Route declarations shared by the server dispatcher and the client.

A route binds one path template to a schema bundle per HTTP method. The
bundle is a tagged variant: ``QueryMethod`` (GET, may declare a query
schema, never a body) or ``MutationMethod`` (POST/PUT/PATCH/DELETE, may
declare a body schema, never a query string)::

    hello = route("hello/:name", {
        "GET": query(query=HelloQuery, response=Greeting),
        "POST": mutation(body=NewGreeting),
    })

    hello.get(path={"name": "world"}, query={"excited": True})
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Final

from tether.errors import ConfigurationError
from tether.routing.pattern import Pattern
from tether.validation import Schema, as_schema

QUERY_METHODS: Final = frozenset({"GET"})
MUTATION_METHODS: Final = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class _Unset:
    """Sentinel for "no body supplied" (``None`` is a valid JSON body)."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()


def _convert_schemas(instance: Any, names: tuple[str, ...]) -> None:
    for name in names:
        value = getattr(instance, name)
        if value is not None:
            object.__setattr__(instance, name, as_schema(value))


@dataclass(frozen=True, slots=True)
class QueryMethod:
    """Schemas for a query method (GET).

    ``response`` is a type marker for readers and static tooling only;
    nothing validates responses at runtime.
    """

    path: Schema | None = None
    query: Schema | None = None
    headers: Schema | None = None
    response: Any = None

    def __post_init__(self) -> None:
        _convert_schemas(self, ("path", "query", "headers"))


@dataclass(frozen=True, slots=True)
class MutationMethod:
    """Schemas for a mutation method (POST, PUT, PATCH, DELETE)."""

    path: Schema | None = None
    body: Schema | None = None
    headers: Schema | None = None
    response: Any = None

    def __post_init__(self) -> None:
        _convert_schemas(self, ("path", "body", "headers"))


type MethodSchema = QueryMethod | MutationMethod


def query(
    *,
    path: Any = None,
    query: Any = None,
    headers: Any = None,
    response: Any = None,
) -> QueryMethod:
    """Declare the schemas of a GET handler. Raw annotations are wrapped in ``Schema``."""
    return QueryMethod(path=path, query=query, headers=headers, response=response)


def mutation(
    *,
    path: Any = None,
    body: Any = None,
    headers: Any = None,
    response: Any = None,
) -> MutationMethod:
    """Declare the schemas of a POST/PUT/PATCH/DELETE handler."""
    return MutationMethod(path=path, body=body, headers=headers, response=response)


@dataclass(frozen=True, slots=True)
class RouteArgs:
    """Unvalidated per-call arguments. ``options`` go to ``httpx`` as-is."""

    path: Mapping[str, Any] | None = None
    query: Any = None
    body: Any = UNSET
    headers: Mapping[str, str | None] | None = None
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RouteRequest:
    """A route-bound call, consumed immediately by ``Client``."""

    method_schema: MethodSchema
    pattern: Pattern
    method: str
    args: RouteArgs


class Route:
    """A declared route: a compiled pattern plus per-method schemas.

    Immutable after construction. Method names are stored upper-case.
    """

    __slots__ = ("methods", "pattern", "template")

    def __init__(self, template: str, methods: Mapping[str, MethodSchema]) -> None:
        normalized: dict[str, MethodSchema] = {}
        for method, schema in methods.items():
            key = method.upper()
            if key in normalized:
                msg = f"Method {key} declared twice for route {template!r}"
                raise ConfigurationError(msg)
            _check_variant(template, key, schema)
            normalized[key] = schema
        self.template = template
        self.pattern = Pattern(template)
        self.methods: Mapping[str, MethodSchema] = MappingProxyType(normalized)

    def __repr__(self) -> str:
        return f"Route({self.template!r}, methods={sorted(self.methods)})"

    def request(
        self,
        method: str,
        *,
        path: Mapping[str, Any] | None = None,
        query: Any = None,
        body: Any = UNSET,
        headers: Mapping[str, str | None] | None = None,
        **options: Any,
    ) -> RouteRequest:
        """Bind call arguments to one of this route's methods."""
        key = method.upper()
        schema = self.methods.get(key)
        if schema is None:
            msg = f"Route {self.template!r} does not declare {key}"
            raise ConfigurationError(msg)
        args = RouteArgs(path=path, query=query, body=body, headers=headers, options=options)
        return RouteRequest(method_schema=schema, pattern=self.pattern, method=key, args=args)

    def get(self, **kwargs: Any) -> RouteRequest:
        return self.request("GET", **kwargs)

    def post(self, **kwargs: Any) -> RouteRequest:
        return self.request("POST", **kwargs)

    def put(self, **kwargs: Any) -> RouteRequest:
        return self.request("PUT", **kwargs)

    def patch(self, **kwargs: Any) -> RouteRequest:
        return self.request("PATCH", **kwargs)

    def delete(self, **kwargs: Any) -> RouteRequest:
        return self.request("DELETE", **kwargs)


def _check_variant(template: str, method: str, schema: Any) -> None:
    if method in QUERY_METHODS:
        expected: type = QueryMethod
    elif method in MUTATION_METHODS:
        expected = MutationMethod
    else:
        msg = f"Unsupported method {method!r} for route {template!r}"
        raise ConfigurationError(msg)
    if not isinstance(schema, expected):
        msg = (
            f"{method} on route {template!r} must be declared with "
            f"{'query()' if expected is QueryMethod else 'mutation()'}, "
            f"got {type(schema).__name__}"
        )
        raise ConfigurationError(msg)


def route(template: str, methods: Mapping[str, MethodSchema]) -> Route:
    """Declare a route. See the module docstring for an example."""
    return Route(template, methods)
