"""ASGI handler — translates ASGI scope/messages to tether types.

The only component that touches raw ASGI HTTP messages. Builds a
``Request``, runs it through the middleware chain with the dispatcher as
the innermost link, and sends the resulting ``Response``.
"""

from collections.abc import Callable
from contextvars import Token
from typing import Any

from tether._internal.asgi import Receive, Scope, Send
from tether.context import g, request_var
from tether.errors import HTTPError, NotFound
from tether.http.request import Request
from tether.http.response import Response
from tether.middleware.protocol import Next
from tether.server.dispatcher import Dispatcher
from tether.server.errors import handle_http_error, handle_internal_error
from tether.server.sender import send_response


async def _not_found(request: Request) -> Response:
    raise NotFound


def build_chain(
    dispatcher: Dispatcher,
    middleware: tuple[Callable[..., Any], ...],
) -> Next:
    """Wrap *middleware* around the dispatcher; unmatched requests end in 404."""

    async def dispatch(req: Request) -> Response:
        return await dispatcher(req, _not_found)

    handler: Next = dispatch
    for mw in reversed(middleware):

        async def link(req: Request, _mw: Any = mw, _next: Next = handler) -> Response:
            return await _mw(req, _next)

        handler = link
    return handler


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    chain: Next,
    debug: bool,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    token: Token[Request] = request_var.set(request)
    g._reset()

    try:
        response = await chain(request)
    except HTTPError as exc:
        response = handle_http_error(exc, request)
    except Exception as exc:
        response = handle_internal_error(exc, request, debug=debug)
    finally:
        g._reset()
        request_var.reset(token)

    await send_response(response, send)
