"""Tether exception hierarchy.

Shared by the route table, dispatcher, client, and application shell so
every module raises and catches the same types.
"""

from dataclasses import dataclass


class TetherError(Exception):
    """Base for all tether-specific errors."""


class ConfigurationError(TetherError):
    """Raised when a route declaration or app setup is invalid."""


class HandlerMissing(ConfigurationError):  # noqa: N818 — mirrors HTTP-style names
    """A request matched a declared route method that has no bound handler.

    Only raised when the app runs with ``debug=True``. Outside debug
    mode the dispatcher skips the entry and keeps scanning.
    """

    def __init__(self, route: str, method: str) -> None:
        self.route = route
        self.method = method
        super().__init__(f"No handler bound for {method} on route {route!r}")


class PatternError(TetherError):
    """A path template could not be compiled or rendered."""


class ClientUsageError(TetherError):
    """The caller built a request the route declaration does not allow.

    Raised by the client before any network I/O. ``part`` names the
    offending request part (``"path"``, ``"query"``, ``"body"`` or
    ``"headers"``). When the cause is a failed schema validation the
    structured issues are available on ``issues``.
    """

    def __init__(self, part: str, message: str, *, issues: tuple = ()) -> None:
        self.part = part
        self.issues = issues
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class HTTPError(TetherError):
    """An error that maps directly to an HTTP status code.

    Raised by the fallback link of the middleware chain or by handlers.
    The ASGI pipeline renders it as a JSON error response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no route table entry matched the request."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
