"""Query strings — immutable parsed params and client-side encoding.

``QueryParams`` implements ``Mapping[str, str]`` (first value wins) plus
``get_list``. ``to_dict()`` produces the plain map handed to query
schemas: single-valued keys map to a string, repeated keys to a list.
"""

from collections.abc import Iterator, Mapping
from typing import Any
from urllib.parse import parse_qs, urlencode


def format_value(value: Any) -> str:
    """Render a scalar for a URL: booleans as ``true``/``false``, others via ``str``."""
    if value is True:
        return "true"
    if value is False:
        return "false"
    return str(value)


def encode_query(data: Mapping[str, Any]) -> str:
    """Encode a JSON-compatible mapping as a query string.

    ``None`` values are omitted and lists become repeated keys::

        encode_query({"tag": ["a", "b"], "page": 2, "draft": None})
        # -> "tag=a&tag=b&page=2"
    """
    pairs: list[tuple[str, str]] = []
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((key, format_value(item)) for item in value if item is not None)
        else:
            pairs.append((key, format_value(value)))
    return urlencode(pairs)


class QueryParams(Mapping[str, str]):
    """Immutable query string parameters.

    ``__getitem__`` returns the first value for a key.
    ``get_list`` returns all values for a key.
    """

    _data: dict[str, list[str]]
    _raw: bytes

    __slots__ = ("_data", "_raw")

    def __init__(self, query_string: bytes = b"") -> None:
        object.__setattr__(self, "_raw", query_string)
        parsed = parse_qs(query_string.decode("latin-1"), keep_blank_values=True)
        object.__setattr__(self, "_data", parsed)

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self.get_list(k)!r}" for k in self)
        return f"QueryParams({{{items}}})"

    @property
    def raw(self) -> bytes:
        return self._raw

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._data.get(key, []))

    def to_dict(self) -> dict[str, str | list[str]]:
        """Plain map for schema validation; repeated keys become lists."""
        return {key: values[0] if len(values) == 1 else list(values) for key, values in self._data.items()}
