"""The route table — an immutable, ordered list of named entries.

Built once at startup from the declared routes. Declaration order is
match precedence, so the table is a tuple scanned front to back, never
a hash lookup.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from tether.errors import ConfigurationError
from tether.routing.pattern import Pattern
from tether.routing.route import MethodSchema, Route


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """One named route with its compiled (possibly base-path prefixed) pattern."""

    name: str
    route: Route
    pattern: Pattern

    @property
    def methods(self) -> Mapping[str, MethodSchema]:
        return self.route.methods


class RouteTable:
    """Ordered, read-only collection of ``RouteEntry``.

    Usage::

        table = RouteTable.build({"hello": hello, "posts": posts}, base_path="/api")
        for entry in table:
            entry.pattern.match(url)
    """

    __slots__ = ("_by_name", "_entries", "base_path")

    def __init__(self, entries: tuple[RouteEntry, ...], base_path: str = "") -> None:
        self._entries = entries
        self._by_name = {entry.name: entry for entry in entries}
        self.base_path = base_path

    @classmethod
    def build(cls, routes: Mapping[str, Route], *, base_path: str = "") -> RouteTable:
        """Compile declared routes into a table, prefixing ``base_path``.

        Schemas are not inspected here; a malformed schema surfaces only
        when a request exercises it.
        """
        entries: list[RouteEntry] = []
        for name, declared in routes.items():
            if not isinstance(declared, Route):
                msg = f"Route {name!r} must be a Route, got {type(declared).__name__}"
                raise ConfigurationError(msg)
            pattern = Pattern(declared.template, base_path=base_path) if base_path else declared.pattern
            entries.append(RouteEntry(name=name, route=declared, pattern=pattern))
        return cls(tuple(entries), base_path)

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        names = ", ".join(entry.name for entry in self._entries)
        return f"RouteTable([{names}])"

    def get(self, name: str) -> RouteEntry | None:
        """Look up an entry by its declared name."""
        return self._by_name.get(name)

    @property
    def entries(self) -> tuple[RouteEntry, ...]:
        return self._entries
