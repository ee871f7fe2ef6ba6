"""Error responses for the ASGI pipeline.

Maps ``HTTPError`` and unexpected exceptions to JSON responses. Schema
validation failures never reach this module: the dispatcher turns them
into 400 responses itself.
"""

import logging

from tether.errors import HTTPError
from tether.http.request import Request
from tether.http.response import Response, json_response

logger = logging.getLogger("tether.server")


def handle_http_error(exc: HTTPError, request: Request) -> Response:
    """Render an ``HTTPError`` as ``{"message": detail}`` with its status."""
    logger.debug("%d %s %s — %s", exc.status, request.method, request.path, exc.detail)
    response = json_response({"message": exc.detail or f"Error {exc.status}"}, status=exc.status)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


def handle_internal_error(exc: Exception, request: Request, *, debug: bool) -> Response:
    """Log an unexpected exception and render a 500."""
    logger.exception("500 %s %s", request.method, request.path)
    body: dict[str, str] = {"message": "Internal Server Error"}
    if debug:
        body["detail"] = f"{type(exc).__name__}: {exc}"
    return json_response(body, status=500)
