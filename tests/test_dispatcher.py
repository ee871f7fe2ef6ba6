"""Tests for tether.server.dispatcher — matching, validation, and preflight."""

from typing import Any

import pytest
from pydantic import BaseModel, Field

from tether.app import App
from tether.config import AppConfig
from tether.errors import ConfigurationError, HandlerMissing
from tether.http.request import Request
from tether.http.response import Response
from tether.routing import RouteTable, mutation, query, route
from tether.server.dispatcher import INVALID_HEADERS, INVALID_QUERY, Dispatcher, RouteContext
from tether.testing import TestClient


class HelloQuery(BaseModel):
    excited: bool = False


class NewPost(BaseModel):
    title: str


class ItemPath(BaseModel):
    id: int


class Auth(BaseModel):
    token: str = Field(alias="x-token")


class Search(BaseModel):
    tag: list[str] = []
    page: int = 1


def _request(method: str, path: str, *, headers: dict[str, str] | None = None, body: bytes = b"") -> Request:
    raw_headers = [(b"host", b"testserver")]
    raw_headers += [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    path_part, _, query_string = path.partition("?")
    scope = {
        "type": "http",
        "method": method,
        "path": path_part,
        "raw_path": path_part.encode(),
        "query_string": query_string.encode(),
        "headers": raw_headers,
        "server": ("testserver", 80),
    }
    sent = False

    async def receive() -> dict[str, Any]:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        return {"type": "http.disconnect"}

    return Request.from_asgi(scope, receive)


def _hello_app(config: AppConfig | None = None) -> tuple[App, list[RouteContext]]:
    seen: list[RouteContext] = []
    routes = {"hello": route("hello/:name", {"GET": query(query=HelloQuery)})}
    app = App(routes, config)

    @app.handler("hello", "GET")
    def hello(ctx: RouteContext) -> dict:
        seen.append(ctx)
        return {"name": ctx.path["name"], "excited": ctx.query.excited}

    return app, seen


class TestQueryRoutes:
    async def test_valid_query(self) -> None:
        app, seen = _hello_app()
        async with TestClient(app) as client:
            response = await client.get("/hello/world?excited=true")
        assert response.status == 200
        assert response.json() == {"name": "world", "excited": True}
        ctx = seen[0]
        assert ctx.path == {"name": "world"}
        assert isinstance(ctx.query, HelloQuery)
        assert ctx.query.excited is True
        assert ctx.route == "hello"
        assert ctx.method == "GET"

    async def test_repeated_key_last_value_wins(self) -> None:
        app, _ = _hello_app()
        async with TestClient(app) as client:
            response = await client.get("/hello/world?excited=true&excited=false")
        assert response.status == 200
        assert response.json() == {"name": "world", "excited": False}

    async def test_invalid_query(self) -> None:
        app, seen = _hello_app()
        async with TestClient(app) as client:
            response = await client.get("/hello/world?excited=maybe")
        assert response.status == 400
        body = response.json()
        assert body["message"] == INVALID_QUERY
        assert body["issues"][0]["path"] == ["excited"]
        assert seen == []

    async def test_debug_message_includes_issue(self) -> None:
        app, _ = _hello_app(AppConfig(debug=True))
        async with TestClient(app) as client:
            response = await client.get("/hello/world?excited=maybe")
        assert response.json()["message"].startswith(f"{INVALID_QUERY}: excited:")

    async def test_repeated_query_keys(self) -> None:
        routes = {"search": route("search", {"GET": query(query=Search)})}
        app = App(routes)
        app.handlers({"search": {"GET": lambda ctx: {"tag": ctx.query.tag, "page": ctx.query.page}}})
        async with TestClient(app) as client:
            many = await client.get("/search", query={"tag": ["a", "b"], "page": 2})
            one = await client.get("/search?tag=a")
        assert many.json() == {"tag": ["a", "b"], "page": 2}
        assert one.json() == {"tag": ["a"], "page": 1}


class TestMutationRoutes:
    def _app(self) -> App:
        app = App({"posts": route("posts", {"POST": mutation(body=NewPost)})})

        @app.handler("posts", "POST")
        async def create(ctx: RouteContext) -> Response:
            return Response(ctx.body.title, status=201)

        return app

    async def test_missing_field(self) -> None:
        async with TestClient(self._app()) as client:
            response = await client.post("/posts", json={})
        assert response.status == 400
        issue = response.json()["issues"][0]
        assert issue["path"] == ["title"]
        assert issue["code"] == "missing"

    async def test_valid_body_reaches_handler(self) -> None:
        async with TestClient(self._app()) as client:
            response = await client.post("/posts", json={"title": "x"})
        assert response.status == 201
        assert response.text == "x"

    async def test_empty_body(self) -> None:
        async with TestClient(self._app()) as client:
            response = await client.post("/posts")
        assert response.status == 400
        assert response.json()["issues"][0]["code"] == "json_invalid"

    async def test_body_is_not_coerced(self) -> None:
        app = App({"items": route("items", {"POST": mutation(body=ItemPath)})})
        app.handlers({"items": {"POST": lambda ctx: {"id": ctx.body.id}}})
        async with TestClient(app) as client:
            response = await client.post("/items", json={"id": "5"})
        assert response.status == 400


class TestValidationOrder:
    def _app(self) -> App:
        routes = {
            "items": route("items/:id", {"GET": query(path=ItemPath, headers=Auth, query=HelloQuery)}),
        }
        app = App(routes)
        app.handlers({"items": {"GET": lambda ctx: {"id": ctx.path.id, "token": ctx.headers.token}}})
        return app

    async def test_path_is_coerced(self) -> None:
        async with TestClient(self._app()) as client:
            response = await client.get("/items/5", headers={"X-Token": "t"})
        assert response.json() == {"id": 5, "token": "t"}

    async def test_invalid_path(self) -> None:
        async with TestClient(self._app()) as client:
            response = await client.get("/items/abc?excited=maybe")
        assert response.json()["message"] == "Invalid path parameter"

    async def test_headers_checked_before_query(self) -> None:
        async with TestClient(self._app()) as client:
            response = await client.get("/items/5?excited=maybe")
        assert response.status == 400
        body = response.json()
        assert body["message"] == INVALID_HEADERS
        assert len(body["issues"]) == 1


class TestPreflight:
    def _app(self, allow_origins: tuple[str, ...] = ()) -> tuple[App, list[RouteContext]]:
        return _hello_app(AppConfig(allow_origins=allow_origins))

    async def test_allowed_origin(self) -> None:
        app, seen = self._app(("https://*.example.com",))
        async with TestClient(app) as client:
            response = await client.options(
                "/hello/world?excited=maybe",
                origin="https://shop.example.com",
                headers={"Access-Control-Request-Headers": "x-token"},
            )
        assert response.status == 204
        assert response.header("access-control-allow-origin") == "https://shop.example.com"
        assert response.header("access-control-allow-methods") == "GET"
        assert response.header("access-control-allow-headers") == "x-token"
        assert response.body_bytes == b""
        assert seen == []

    async def test_disallowed_origin(self) -> None:
        app, seen = self._app(("https://*.example.com",))
        async with TestClient(app) as client:
            response = await client.options("/hello/world", origin="https://evil.test")
        assert response.status == 403
        assert seen == []

    async def test_open_policy_without_origin(self) -> None:
        app, _ = self._app()
        async with TestClient(app) as client:
            response = await client.options("/hello/world")
        assert response.status == 204
        assert response.header("access-control-allow-origin") == "*"
        assert response.header("access-control-allow-headers") == ""

    async def test_undeclared_method_falls_through(self) -> None:
        app, _ = self._app()
        async with TestClient(app) as client:
            response = await client.options("/hello/world", method="DELETE")
        assert response.status == 404


class TestDispatcher:
    async def test_no_match_returns_none(self) -> None:
        table = RouteTable.build({"hello": route("hello/:name", {"GET": query()})})
        dispatcher = Dispatcher(table, {"hello": {"GET": lambda ctx: {}}})
        assert await dispatcher.dispatch(_request("GET", "/nope")) is None
        assert await dispatcher.dispatch(_request("POST", "/hello/x")) is None

    async def test_call_delegates_to_next(self) -> None:
        table = RouteTable.build({"hello": route("hello", {"GET": query()})})
        dispatcher = Dispatcher(table, {})

        async def fallback(request: Request) -> Response:
            return Response("fallback", status=418)

        response = await dispatcher(_request("GET", "/other"), fallback)
        assert response.status == 418

    async def test_first_declared_match_wins(self) -> None:
        table = RouteTable.build(
            {
                "by_id": route("items/:id", {"GET": query()}),
                "by_slug": route("items/:slug", {"GET": query()}),
            }
        )
        dispatcher = Dispatcher(
            table,
            {"by_id": {"get": lambda ctx: ctx.route}, "by_slug": {"GET": lambda ctx: ctx.route}},
        )
        response = await dispatcher.dispatch(_request("GET", "/items/x"))
        assert response.json() == "by_id"

    async def test_missing_handler_skipped(self) -> None:
        table = RouteTable.build(
            {
                "by_id": route("items/:id", {"GET": query()}),
                "by_slug": route("items/:slug", {"GET": query()}),
            }
        )
        dispatcher = Dispatcher(table, {"by_slug": {"GET": lambda ctx: ctx.params}})
        response = await dispatcher.dispatch(_request("GET", "/items/x"))
        assert response.json() == {"slug": "x"}

    async def test_missing_handler_fatal_in_debug(self) -> None:
        table = RouteTable.build({"hello": route("hello", {"GET": query()})})
        dispatcher = Dispatcher(table, {}, AppConfig(debug=True))
        with pytest.raises(HandlerMissing) as info:
            await dispatcher.dispatch(_request("GET", "/hello"))
        assert info.value.route == "hello"
        assert info.value.method == "GET"

    async def test_base_path(self) -> None:
        table = RouteTable.build({"hello": route("hello", {"GET": query()})}, base_path="/api")
        dispatcher = Dispatcher(table, {"hello": {"GET": lambda ctx: "hi"}})
        assert await dispatcher.dispatch(_request("GET", "/hello")) is None
        response = await dispatcher.dispatch(_request("GET", "/api/hello"))
        assert response.json() == "hi"

    async def test_unknown_route_in_handlers(self) -> None:
        table = RouteTable.build({"hello": route("hello", {"GET": query()})})
        with pytest.raises(ConfigurationError, match="unknown route"):
            Dispatcher(table, {"bye": {"GET": lambda ctx: None}})

    async def test_model_results_serialized(self) -> None:
        table = RouteTable.build({"hello": route("hello", {"GET": query()})})
        dispatcher = Dispatcher(table, {"hello": {"GET": lambda ctx: HelloQuery(excited=True)}})
        response = await dispatcher.dispatch(_request("GET", "/hello"))
        assert response.status == 200
        assert response.content_type == "application/json"
        assert response.json() == {"excited": True}
