"""Server side — route dispatch, CORS preflight and the ASGI pipeline."""

from tether.server.dispatcher import Dispatcher, RouteContext

__all__ = ["Dispatcher", "RouteContext"]
