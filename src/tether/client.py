"""Route-aware HTTP client.

Builds ``httpx`` requests from the same route declarations the server
dispatches on. Arguments are validated against the declared schemas
before any network I/O::

    async with Client("https://example.com/api") as client:
        greeting = await client.json(routes["hello"].get(path={"name": "world"}))
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import httpx
from pydantic_core import to_json

from tether._internal.invoke import invoke
from tether.config import ClientConfig
from tether.errors import ClientUsageError, PatternError, TetherError
from tether.http.query import encode_query, format_value
from tether.routing.route import UNSET, MutationMethod, QueryMethod, RouteRequest
from tether.validation import Schema, SchemaError, coerce

logger = logging.getLogger("tether.client")


class Client:
    """Send ``RouteRequest`` values over HTTP.

    ``base_url`` may carry a path prefix (``https://example.com/api``);
    root-relative route paths are appended to it. Routes declared with an
    absolute template ignore the base URL.
    """

    __slots__ = ("_http", "config")

    def __init__(
        self,
        base_url: str | None = None,
        *,
        headers: Mapping[str, str] | None = None,
        on_json_error: Callable[[httpx.Response], Any] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        config: ClientConfig | None = None,
    ) -> None:
        if config is None:
            if base_url is None:
                msg = "Client needs a base_url or a ClientConfig"
                raise TetherError(msg)
            config = ClientConfig(
                base_url=base_url,
                headers=dict(headers or {}),
                on_json_error=on_json_error,
            )
        self.config = config
        self._http = httpx.AsyncClient(transport=transport)

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def build(self, call: RouteRequest) -> httpx.Request:
        """Validate *call* and turn it into an ``httpx.Request``.

        Raises ``ClientUsageError`` when an argument is not allowed by the
        route declaration or fails its schema.
        """
        schema = call.method_schema
        args = call.args

        if schema.path is not None:
            path_params = _dump(schema.path, args.path or {}, "path")
        else:
            path_params = dict(args.path or {})
        try:
            url = self._resolve(call.pattern.href(path_params))
        except PatternError as exc:
            raise ClientUsageError("path", str(exc)) from exc

        params = ""
        match schema:
            case QueryMethod(query=Schema() as query_schema):
                params = encode_query(_dump(query_schema, args.query or {}, "query"))
            case _ if args.query is not None:
                msg = f"{call.method} {call.pattern.source} does not accept a query string"
                raise ClientUsageError("query", msg)

        content: bytes | None = None
        match schema:
            case MutationMethod(body=Schema() as body_schema):
                body = {} if args.body is UNSET else args.body
                content = to_json(_dump(body_schema, body, "body"))
            case _ if args.body is not UNSET:
                msg = f"{call.method} {call.pattern.source} does not accept a body"
                raise ClientUsageError("body", msg)

        headers = self._headers(schema.headers, args.headers)
        if content is not None:
            headers["content-type"] = "application/json"

        if params:
            url = f"{url}?{params}"
        return self._http.build_request(
            call.method,
            url,
            content=content,
            headers=headers,
            **dict(args.options),
        )

    async def request(self, call: RouteRequest) -> httpx.Response:
        """Build and send *call*, returning the raw ``httpx.Response``."""
        built = self.build(call)
        logger.debug("%s %s", built.method, built.url)
        response = await self._http.send(built)
        logger.debug("%s %s -> %d", built.method, built.url, response.status_code)
        return response

    async def json(self, call: RouteRequest) -> Any:
        """Send *call* and decode the JSON response.

        Non-2xx responses go to ``on_json_error`` when configured;
        otherwise the body is decoded regardless of status.
        """
        response = await self.request(call)
        handler = self.config.on_json_error
        if response.is_error and handler is not None:
            return await invoke(handler, response)
        return response.json()

    def _resolve(self, href: str) -> str:
        if "://" in href:
            return href
        base = urlsplit(self.config.base_url)
        return urlunsplit((base.scheme, base.netloc, base.path.rstrip("/") + href, "", ""))

    def _headers(self, schema: Schema | None, overrides: Mapping[str, str | None] | None) -> dict[str, str]:
        merged: dict[str, Any] = {name.lower(): value for name, value in self.config.headers.items()}
        for name, value in (overrides or {}).items():
            # None drops the override, not the default
            if value is not None:
                merged[name.lower()] = value
        if schema is not None:
            # Undeclared headers (defaults like authorization) pass through untouched
            merged.update(_dump(coerce(schema), merged, "headers"))
        return {name: format_value(value) for name, value in merged.items() if value is not None}


def _dump(schema: Schema, value: Any, part: str) -> Any:
    try:
        return schema.dump(schema.parse(value))
    except SchemaError as exc:
        msg = f"Invalid {part}: {exc.message}"
        raise ClientUsageError(part, msg, issues=tuple(exc.issues)) from exc
