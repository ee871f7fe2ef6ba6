"""Path templates compiled for two-way use: URL -> params and params -> URL.

Template syntax::

    users/:id               one segment, captured as "id"
    files/*path             wildcard, may span "/"
    api(/v:version)/items   optional group, emitted by href() only when
                            every parameter inside it is supplied
    https://api.test/users  absolute template; matches that origin only

A leading ``/`` is optional: ``hello/:name`` and ``/hello/:name`` are the
same pattern. Captured values are percent-decoded; ``href()`` encodes.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, unquote, urlsplit

from tether.errors import PatternError
from tether.http.query import format_value

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True, slots=True)
class _Text:
    value: str


@dataclass(frozen=True, slots=True)
class _Param:
    name: str


@dataclass(frozen=True, slots=True)
class _Wildcard:
    name: str | None


@dataclass(frozen=True, slots=True)
class _Group:
    tokens: tuple[_Token, ...]


type _Token = _Text | _Param | _Wildcard | _Group


class _MissingParam(Exception):  # noqa: N818 — internal control flow
    pass


def join_path(base_path: str, template: str) -> str:
    """Prefix *template* with *base_path*.

    Exactly one leading and one trailing ``/`` are trimmed from the base::

        join_path("/api/", "users/:id")  # -> "/api/users/:id"
    """
    if not base_path:
        return template
    base = base_path.removeprefix("/").removesuffix("/")
    origin, pathname = _split_origin(template)
    pathname = pathname.removeprefix("/")
    joined = f"/{base}/{pathname}" if pathname else f"/{base}"
    return f"{origin}{joined}" if origin else joined


def _split_origin(template: str) -> tuple[str | None, str]:
    if "://" not in template:
        return None, template
    scheme, _, rest = template.partition("://")
    host, slash, pathname = rest.partition("/")
    return f"{scheme}://{host}", f"{slash}{pathname}"


def parse_template(pathname: str) -> tuple[_Token, ...]:
    """Tokenize a template pathname. Raises ``PatternError`` on bad syntax."""
    tokens, index = _parse_tokens(pathname, 0, nested=False)
    if index != len(pathname):
        msg = f"Unbalanced ')' in path template {pathname!r}"
        raise PatternError(msg)
    return tokens


def _parse_tokens(source: str, index: int, *, nested: bool) -> tuple[tuple[_Token, ...], int]:
    tokens: list[_Token] = []
    text: list[str] = []

    def flush() -> None:
        if text:
            tokens.append(_Text("".join(text)))
            text.clear()

    while index < len(source):
        char = source[index]
        if char == ":":
            found = _NAME_RE.match(source, index + 1)
            if found is None:
                msg = f"Missing parameter name after ':' in {source!r}"
                raise PatternError(msg)
            flush()
            tokens.append(_Param(found.group()))
            index = found.end()
        elif char == "*":
            found = _NAME_RE.match(source, index + 1)
            flush()
            tokens.append(_Wildcard(found.group() if found else None))
            index = found.end() if found else index + 1
        elif char == "(":
            flush()
            inner, index = _parse_tokens(source, index + 1, nested=True)
            tokens.append(_Group(inner))
        elif char == ")":
            if not nested:
                break
            flush()
            return tuple(tokens), index + 1
        else:
            text.append(char)
            index += 1

    if nested:
        msg = f"Unclosed '(' in path template {source!r}"
        raise PatternError(msg)
    flush()
    return tuple(tokens), index


class Pattern:
    """A compiled path template. Immutable and safe to share.

    Usage::

        pattern = Pattern("hello/:name")
        pattern.match("https://example.com/hello/world")  # -> {"name": "world"}
        pattern.href({"name": "big world"})                # -> "/hello/big%20world"
    """

    __slots__ = ("_groups", "_regex", "_tokens", "names", "origin", "source")

    def __init__(self, template: str, *, base_path: str = "") -> None:
        self.source = join_path(base_path, template)
        origin, pathname = _split_origin(self.source)
        self.origin = origin
        self._tokens = parse_template(pathname.removeprefix("/"))

        groups: list[tuple[str, str]] = []
        regex = self._compile(self._tokens, groups)
        names = [name for _, name in groups]
        if len(set(names)) != len(names):
            msg = f"Duplicate parameter name in path template {template!r}"
            raise PatternError(msg)
        self._groups = tuple(groups)
        self._regex = re.compile(regex)
        self.names: tuple[str, ...] = tuple(names)

    def __repr__(self) -> str:
        return f"Pattern({self.source!r})"

    def _compile(self, tokens: tuple[_Token, ...], groups: list[tuple[str, str]]) -> str:
        parts: list[str] = []
        for token in tokens:
            match token:
                case _Text(value):
                    parts.append(re.escape(value))
                case _Param(name):
                    group = f"g{len(groups)}"
                    groups.append((group, name))
                    parts.append(f"(?P<{group}>[^/]+)")
                case _Wildcard(None):
                    parts.append("(?:.*)")
                case _Wildcard(name):
                    group = f"g{len(groups)}"
                    groups.append((group, name))
                    parts.append(f"(?P<{group}>.*)")
                case _Group(inner):
                    parts.append(f"(?:{self._compile(inner, groups)})?")
        return "".join(parts)

    def match(self, url: str) -> dict[str, str] | None:
        """Match a URL (absolute, or a path with optional query string).

        Returns the captured parameters in template order, or ``None``.
        Parameters inside an unmatched optional group are omitted.
        """
        parts = urlsplit(url)
        if self.origin is not None:
            if f"{parts.scheme}://{parts.netloc}".lower() != self.origin.lower():
                return None
        found = self._regex.fullmatch(parts.path.removeprefix("/"))
        if found is None:
            return None
        params: dict[str, str] = {}
        for group, name in self._groups:
            value = found.group(group)
            if value is not None:
                params[name] = unquote(value)
        return params

    def href(self, params: Mapping[str, Any] | None = None) -> str:
        """Render the canonical path (or absolute URL) for *params*.

        Raises ``PatternError`` when a required parameter is missing.
        """
        values = params or {}
        try:
            pathname = "/" + self._render(self._tokens, values)
        except _MissingParam as exc:
            msg = f"Missing parameter {exc.args[0]!r} for path template {self.source!r}"
            raise PatternError(msg) from None
        if self.origin is not None:
            return f"{self.origin}{pathname}"
        return pathname

    def _render(self, tokens: tuple[_Token, ...], values: Mapping[str, Any]) -> str:
        out: list[str] = []
        for token in tokens:
            match token:
                case _Text(value):
                    out.append(value)
                case _Param(name):
                    value = values.get(name)
                    if value is None:
                        raise _MissingParam(name)
                    out.append(quote(format_value(value), safe=""))
                case _Wildcard(None):
                    pass
                case _Wildcard(name):
                    value = values.get(name)
                    if value is None:
                        raise _MissingParam(name)
                    out.append(quote(format_value(value), safe="/"))
                case _Group(inner):
                    try:
                        out.append(self._render(inner, values))
                    except _MissingParam:
                        pass
        return "".join(out)
