"""CORS preflight support for the route dispatcher.

Allow-origin strings are compiled once into matchers:

- no ``://`` in the string: ``https://`` is assumed
- no ``*``: exact comparison
- ``*://host`` matches any protocol
- ``https://*.example.com`` matches ``https://example.com`` and one
  subdomain label (``https://shop.example.com``)
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

from tether.http.response import Response, empty_response

type OriginMatcher = Callable[[str], bool]

_PROTOCOL = r"[A-Za-z][A-Za-z0-9+.\-]*"
_SUBDOMAIN = r"(?:[^./:]+\.)?"


def compile_origin(allowed: str) -> OriginMatcher:
    """Compile one allow-origin string into a predicate."""
    if "://" not in allowed:
        allowed = f"https://{allowed}"
    if "*" not in allowed:
        return allowed.__eq__

    scheme, _, rest = allowed.partition("://")
    scheme_re = _PROTOCOL if scheme == "*" else re.escape(scheme)
    rest_re = re.escape(rest).replace(r"\*\.", _SUBDOMAIN).replace(r"\*", r"[^/]*")
    regex = re.compile(f"{scheme_re}://{rest_re}")
    return lambda origin: regex.fullmatch(origin) is not None


class OriginPolicy:
    """The compiled allow-list. An empty list allows every origin."""

    __slots__ = ("_matchers", "sources")

    def __init__(self, allow_origins: Iterable[str] = ()) -> None:
        self.sources = tuple(allow_origins)
        self._matchers = tuple(compile_origin(origin) for origin in self.sources)

    @property
    def restricted(self) -> bool:
        return bool(self._matchers)

    def allows(self, origin: str | None) -> bool:
        """True if *origin* may send cross-origin requests."""
        if not self._matchers:
            return True
        if origin is None:
            return False
        return any(matcher(origin) for matcher in self._matchers)


def preflight_response(
    origin: str | None,
    method: str,
    request_headers: str | None,
) -> Response:
    """204 answer to an accepted preflight.

    Echoes the request origin (``*`` when the request sent none), the
    requested method, and the requested headers (empty when none were
    requested).
    """
    response = empty_response(204).with_header("Access-Control-Allow-Origin", origin or "*")
    response = response.with_header("Access-Control-Allow-Methods", method)
    return response.with_header("Access-Control-Allow-Headers", request_headers or "")
