"""Shared type aliases used across tether modules."""

from collections.abc import Callable, Mapping
from typing import Any, TypeAlias

# Route handler: receives a RouteContext, returns a value or a Response
Handler: TypeAlias = Callable[..., Any]

# Handlers bound to a route table: {route_name: {METHOD: handler}}
HandlerMap: TypeAlias = Mapping[str, Mapping[str, Handler]]
