"""Import resolution — turns ``"module:attribute"`` strings into a route table.

Used by ``tether routes`` to locate an App, a compiled ``RouteTable`` or a
plain ``{name: Route}`` mapping from a user-supplied import string.
"""

import importlib
from collections.abc import Mapping
from typing import Any

from tether.app import App
from tether.errors import ConfigurationError
from tether.routing.table import RouteTable


def resolve_target(import_string: str) -> Any:
    """Import the object named by *import_string*.

    Accepts ``"module:attribute"``. When the attribute is omitted it
    defaults to ``"app"``. Factory functions are called.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If a factory function raised.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "app"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if callable(obj) and not isinstance(obj, (App, RouteTable)):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc
    return obj


def resolve_table(import_string: str, *, base_path: str = "") -> tuple[RouteTable, App | None]:
    """Resolve *import_string* to a ``RouteTable`` (and the App, when there is one)."""
    obj = resolve_target(import_string)
    if isinstance(obj, App):
        return obj.table, obj
    if isinstance(obj, RouteTable):
        return obj, None
    if isinstance(obj, Mapping):
        try:
            return RouteTable.build(obj, base_path=base_path), None
        except ConfigurationError as exc:
            raise TypeError(str(exc)) from exc
    msg = f"{import_string!r} resolved to {type(obj).__name__}, not an App, RouteTable or route mapping"
    raise TypeError(msg)
