"""Tether application class — the ASGI shell around the route dispatcher.

Mutable during setup (handler binding, middleware, lifecycle hooks).
Frozen at runtime when ``__call__()`` is first invoked.
"""

import inspect
import threading
from collections.abc import Callable, Mapping
from typing import Any

from tether._internal.asgi import Receive, Scope, Send
from tether._internal.types import Handler
from tether.config import AppConfig
from tether.errors import ConfigurationError
from tether.middleware.protocol import Middleware, Next
from tether.routing.route import Route
from tether.routing.table import RouteTable
from tether.server.dispatcher import Dispatcher
from tether.server.handler import build_chain, handle_request


class App:
    """A tether application serving one set of shared route declarations.

    Usage::

        routes = {"hello": route("hello/:name", {"GET": query(query=HelloQuery)})}
        app = App(routes, AppConfig(base_path="/api"))

        @app.handler("hello", "GET")
        def hello(ctx: RouteContext) -> dict:
            return {"greeting": f"Hello, {ctx.path['name']}"}

    Thread safety:
        Setup is single-threaded (decorators at import time). The freeze
        transition uses a Lock + double-check so exactly one thread
        builds the route table, even when several workers receive their
        first request at once.
    """

    __slots__ = (
        "_chain",
        "_dispatcher",
        "_freeze_lock",
        "_frozen",
        "_handlers",
        "_middleware_list",
        "_routes",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, routes: Mapping[str, Route], config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._routes: dict[str, Route] = dict(routes)
        self._handlers: dict[str, dict[str, Handler]] = {}
        self._middleware_list: list[Middleware] = []
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._dispatcher: Dispatcher | None = None
        self._chain: Next | None = None

    # -- Handler binding --

    def handler(self, name: str, method: str = "GET") -> Callable[[Handler], Handler]:
        """Bind a handler to a declared route method via decorator."""

        def decorator(func: Handler) -> Handler:
            self._bind(name, method, func)
            return func

        return decorator

    def handlers(self, handlers: Mapping[str, Mapping[str, Handler]]) -> None:
        """Bind many handlers at once: ``{route_name: {method: handler}}``."""
        for name, by_method in handlers.items():
            for method, func in by_method.items():
                self._bind(name, method, func)

    def _bind(self, name: str, method: str, func: Handler) -> None:
        self._check_not_frozen()
        declared = self._routes.get(name)
        if declared is None:
            msg = f"Unknown route {name!r}"
            raise ConfigurationError(msg)
        key = method.upper()
        if key not in declared.methods:
            msg = f"Route {name!r} does not declare {key}"
            raise ConfigurationError(msg)
        self._handlers.setdefault(name, {})[key] = func

    # -- Middleware and lifecycle --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the chain. Earlier additions run first."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a sync or async hook run on ASGI lifespan startup."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a sync or async hook run on ASGI lifespan shutdown."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    @property
    def table(self) -> RouteTable:
        """The compiled route table (freezes the app)."""
        self._ensure_frozen()
        assert self._dispatcher is not None
        return self._dispatcher.table

    @property
    def dispatcher(self) -> Dispatcher:
        """The compiled dispatcher (freezes the app)."""
        self._ensure_frozen()
        assert self._dispatcher is not None
        return self._dispatcher

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        assert self._chain is not None
        await handle_request(scope, receive, send, chain=self._chain, debug=self.config.debug)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol, freezing before the first request."""
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self._run_hooks(self._startup_hooks)
                except Exception as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self._run_hooks(self._shutdown_hooks)
                await send({"type": "lifespan.shutdown.complete"})
                return

    @staticmethod
    async def _run_hooks(hooks: list[Callable[..., Any]]) -> None:
        for hook in hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the route table, dispatcher and middleware chain.

        MUST only be called while holding _freeze_lock.
        """
        table = RouteTable.build(self._routes, base_path=self.config.base_path)
        self._dispatcher = Dispatcher(table, self._handlers, self.config)
        self._chain = build_chain(self._dispatcher, tuple(self._middleware_list))
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the app after it has started serving requests."
            raise ConfigurationError(msg)
