"""Middleware protocol and the ``Next`` type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> Response: ...

No base class required. The route dispatcher is itself one link of the
chain: it answers matched requests and calls ``next`` otherwise.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from tether.http.request import Request
from tether.http.response import Response

# The next handler in the middleware chain
type Next = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Protocol for tether middleware.

    Accepts both functions and callable objects::

        async def attach_user(request: Request, next: Next) -> Response:
            g.user = await load_user(request.headers.get("authorization"))
            return await next(request)
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...
