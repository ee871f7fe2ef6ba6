"""Routing — shared route declarations and the ordered route table.

Routes are declared once and read by both the server dispatcher and the
client request builder.
"""

from tether.routing.pattern import Pattern, join_path
from tether.routing.route import (
    UNSET,
    MethodSchema,
    MutationMethod,
    QueryMethod,
    Route,
    RouteArgs,
    RouteRequest,
    mutation,
    query,
    route,
)
from tether.routing.table import RouteEntry, RouteTable

__all__ = [
    "UNSET",
    "MethodSchema",
    "MutationMethod",
    "Pattern",
    "QueryMethod",
    "Route",
    "RouteArgs",
    "RouteEntry",
    "RouteRequest",
    "RouteTable",
    "join_path",
    "mutation",
    "query",
    "route",
]
