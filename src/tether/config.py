"""Server and client configuration.

Both configs are frozen dataclasses: immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Server-side configuration. Immutable after creation.

    Override what you need::

        config = AppConfig(
            debug=True,
            base_path="/api",
            allow_origins=("*://localhost:3000", "https://*.example.com"),
        )
    """

    # Verbose 400 messages and fatal-on-missing-handler
    debug: bool = False

    # Prepended to every route template before compilation
    base_path: str = ""

    # CORS preflight allow-list; empty means every origin is allowed
    allow_origins: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Client-side configuration.

    ``on_json_error`` is called instead of JSON decoding when
    ``Client.json()`` receives a non-2xx response. It receives the
    ``httpx.Response`` and may be sync or async.
    """

    base_url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    on_json_error: Callable[[Any], Any] | None = None
