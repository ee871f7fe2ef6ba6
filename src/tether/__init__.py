"""Tether — one route declaration for both client and server.

Declare each route once; the server dispatcher validates incoming
requests against it and the client builds outgoing requests from it.

Basic usage::

    from pydantic import BaseModel
    from tether import App, Client, query, route

    class HelloQuery(BaseModel):
        excited: bool = False

    routes = {"hello": route("hello/:name", {"GET": query(query=HelloQuery)})}

    app = App(routes)

    @app.handler("hello", "GET")
    def hello(ctx):
        return {"greeting": f"Hello, {ctx.path['name']}" + ("!" if ctx.query.excited else "")}

    async with Client("https://example.com") as client:
        await client.json(routes["hello"].get(path={"name": "world"}))
"""

__version__ = "0.1.0-dev"
__all__ = [
    "App",
    "AppConfig",
    "Client",
    "ClientConfig",
    "ClientUsageError",
    "ConfigurationError",
    "Dispatcher",
    "HTTPError",
    "HandlerMissing",
    "Middleware",
    "Next",
    "NotFound",
    "Pattern",
    "PatternError",
    "Request",
    "Response",
    "Route",
    "RouteContext",
    "RouteTable",
    "Schema",
    "SchemaError",
    "TetherError",
    "coerce",
    "g",
    "get_request",
    "json_response",
    "mutation",
    "query",
    "route",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import tether`` fast while providing a clean top-level API.
    """
    if name == "App":
        from tether.app import App

        return App

    if name == "Client":
        from tether.client import Client

        return Client

    if name in ("AppConfig", "ClientConfig"):
        from tether import config as _config

        return getattr(_config, name)

    if name == "Request":
        from tether.http.request import Request

        return Request

    if name in ("Response", "json_response"):
        from tether.http import response as _resp

        return getattr(_resp, name)

    if name in ("Pattern", "Route", "RouteTable", "mutation", "query", "route"):
        from tether import routing as _routing

        return getattr(_routing, name)

    if name in ("Schema", "SchemaError", "coerce"):
        from tether import validation as _validation

        return getattr(_validation, name)

    if name in ("Dispatcher", "RouteContext"):
        from tether.server import dispatcher as _dispatcher

        return getattr(_dispatcher, name)

    if name in ("Middleware", "Next"):
        from tether.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("g", "get_request"):
        from tether import context as _ctx

        return getattr(_ctx, name)

    if name in (
        "ClientUsageError",
        "ConfigurationError",
        "HTTPError",
        "HandlerMissing",
        "NotFound",
        "PatternError",
        "TetherError",
    ):
        from tether import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
