"""Route dispatcher — maps one request to a handler through the route table.

Per request:

1. ``OPTIONS`` is a CORS preflight for the method named in
   ``Access-Control-Request-Method`` (default ``GET``).
2. Entries are scanned in declaration order; the first entry whose
   pattern matches and which declares the method wins.
3. Preflights are answered (204, or 403 for a disallowed origin) before
   any validation.
4. A declared method without a bound handler is fatal in debug mode and
   skipped otherwise.
5. ``path`` -> ``headers`` -> ``query`` -> ``body`` are validated in that
   order; the first failure becomes a 400 response. Path, headers and
   query schemas are coerced to accept strings first.
6. The handler's result is returned verbatim if it is a ``Response``,
   otherwise serialized as JSON with status 200.

No match at all yields ``None`` (``dispatch``) or falls through to the
next middleware link (``__call__``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from tether._internal.invoke import invoke
from tether._internal.types import Handler, HandlerMap
from tether.config import AppConfig
from tether.context import g
from tether.errors import ConfigurationError, HandlerMissing
from tether.http.request import Request
from tether.http.response import Response, empty_response, json_response
from tether.middleware.protocol import Next
from tether.routing.route import MutationMethod, QueryMethod
from tether.routing.table import RouteEntry, RouteTable
from tether.server.cors import OriginPolicy, preflight_response
from tether.validation import Schema, SchemaError, coerce

logger = logging.getLogger("tether.server")

INVALID_PATH = "Invalid path parameter"
INVALID_HEADERS = "Invalid request headers"
INVALID_QUERY = "Invalid query string"
INVALID_BODY = "Invalid request body"


@dataclass(slots=True)
class RouteContext:
    """Per-request state handed to a route handler.

    ``path``, ``headers``, ``query`` and ``body`` hold validated values
    (``None`` when the method declares no schema for that part, except
    ``path``, which falls back to the raw captured parameters).
    Attributes set on ``tether.context.g`` by upstream middleware are
    readable directly: ``ctx.user``.
    """

    request: Request
    url: str
    route: str
    method: str
    params: dict[str, str]
    path: Any = None
    headers: Any = None
    query: Any = None
    body: Any = None

    def __getattr__(self, name: str) -> Any:
        # Only reached for names that are not fields
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(g, name)


class _Rejected(Exception):  # noqa: N818 — internal control flow
    def __init__(self, error: SchemaError, message: str) -> None:
        super().__init__(message)
        self.error = error
        self.message = message


class Dispatcher:
    """Dispatch requests through a ``RouteTable`` to bound handlers.

    Usage::

        dispatcher = Dispatcher(table, {"hello": {"GET": say_hello}}, AppConfig())
        response = await dispatcher.dispatch(request)  # Response | None

    Also usable directly as a middleware link::

        response = await dispatcher(request, next)
    """

    __slots__ = ("config", "handlers", "origins", "table")

    def __init__(
        self,
        table: RouteTable,
        handlers: HandlerMap,
        config: AppConfig | None = None,
    ) -> None:
        self.table = table
        self.config = config or AppConfig()
        self.origins = OriginPolicy(self.config.allow_origins)
        self.handlers: dict[str, dict[str, Handler]] = {}
        for name, by_method in handlers.items():
            if table.get(name) is None:
                msg = f"Handlers given for unknown route {name!r}"
                raise ConfigurationError(msg)
            self.handlers[name] = {method.upper(): func for method, func in by_method.items()}

    async def __call__(self, request: Request, next: Next) -> Response:
        response = await self.dispatch(request)
        if response is None:
            return await next(request)
        return response

    async def dispatch(self, request: Request) -> Response | None:
        """Answer *request*, or return ``None`` when no route matches."""
        method = request.method
        preflight = method == "OPTIONS"
        if preflight:
            method = (request.headers.get("access-control-request-method") or "GET").upper()

        url = request.url
        for entry in self.table:
            params = entry.pattern.match(url)
            if params is None:
                continue
            method_schema = entry.methods.get(method)
            if method_schema is None:
                continue

            if preflight:
                return self._preflight(request, entry, method)

            handler = self.handlers.get(entry.name, {}).get(method)
            if handler is None:
                if self.config.debug:
                    raise HandlerMissing(entry.name, method)
                logger.debug("Skipping %s %s: no handler bound", method, entry.name)
                continue

            logger.debug("Matched %s %s -> %s", method, request.path, entry.name)
            context = RouteContext(
                request=request,
                url=url,
                route=entry.name,
                method=method,
                params=params,
            )
            try:
                await self._validate(context, method_schema)
            except _Rejected as rejected:
                return self._client_error(rejected.error, rejected.message)

            result = await invoke(handler, context)
            if isinstance(result, Response):
                return result
            return json_response(result)

        return None

    def _preflight(self, request: Request, entry: RouteEntry, method: str) -> Response:
        origin = request.headers.get("origin")
        if not self.origins.allows(origin):
            logger.warning("Rejected preflight for %s from origin %r", entry.name, origin)
            return empty_response(403)
        logger.debug("Accepted preflight %s %s from origin %r", method, entry.name, origin)
        return preflight_response(
            origin,
            method,
            request.headers.get("access-control-request-headers"),
        )

    async def _validate(self, context: RouteContext, schema: QueryMethod | MutationMethod) -> None:
        request = context.request

        if schema.path is not None:
            context.path = _check(coerce(schema.path), context.params, INVALID_PATH)
        else:
            context.path = context.params

        if schema.headers is not None:
            context.headers = _check(coerce(schema.headers), request.headers.to_dict(), INVALID_HEADERS)

        match schema:
            case QueryMethod(query=Schema() as query_schema):
                context.query = _check(coerce(query_schema), request.query.to_dict(), INVALID_QUERY)
            case MutationMethod(body=Schema() as body_schema):
                raw = await request.body()
                result = body_schema.safe_parse_json(raw)
                if not result:
                    raise _Rejected(result.error, INVALID_BODY)
                context.body = result.value

    def _client_error(self, error: SchemaError, message: str) -> Response:
        logger.debug("%s: %s", message, error.message)
        if self.config.debug:
            message = f"{message}: {error.message}"
        return json_response({**error.to_dict(), "message": message}, status=400)


def _check(schema: Schema, value: Any, message: str) -> Any:
    result = schema.safe_parse(value)
    if not result:
        raise _Rejected(result.error, message)
    return result.value
