"""Request-scoped context via ContextVar.

- ``request_var`` holds the ``Request`` currently being dispatched.
- ``g`` is a per-request namespace where upstream middleware attach
  values (``g.user = ...``). Route handlers read them straight off their
  ``RouteContext`` (``ctx.user``).

Both are set by the ASGI pipeline and reset after each request.
``ContextVar`` is task-local under asyncio, so concurrent requests
never see each other's values.
"""

from contextvars import ContextVar
from typing import Any

from tether.http.request import Request

request_var: ContextVar[Request] = ContextVar("tether_request")


def get_request() -> Request:
    """Return the current request. Raises ``LookupError`` outside a request."""
    return request_var.get()


class _RequestGlobals:
    """A mutable namespace scoped to the current request."""

    __slots__ = ("_store",)

    def __init__(self) -> None:
        object.__setattr__(self, "_store", ContextVar("tether_g", default=None))

    def _get_dict(self) -> dict[str, Any]:
        store: ContextVar[dict[str, Any] | None] = object.__getattribute__(self, "_store")
        d = store.get()
        if d is None:
            d = {}
            store.set(d)
        return d

    def __getattr__(self, name: str) -> Any:
        try:
            return self._get_dict()[name]
        except KeyError:
            msg = f"'g' has no attribute {name!r} in the current request scope"
            raise AttributeError(msg) from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._get_dict()[name] = value

    def __contains__(self, name: str) -> bool:
        return name in self._get_dict()

    def get(self, name: str, default: Any = None) -> Any:
        return self._get_dict().get(name, default)

    def _reset(self) -> None:
        store: ContextVar[dict[str, Any] | None] = object.__getattribute__(self, "_store")
        store.set(None)

    def __repr__(self) -> str:
        return f"<g {self._get_dict()!r}>"


g = _RequestGlobals()
"""Request-scoped namespace for middleware-supplied context."""
