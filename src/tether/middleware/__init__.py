"""Middleware — protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response
"""

from tether.middleware.protocol import Middleware, Next

__all__ = ["Middleware", "Next"]
