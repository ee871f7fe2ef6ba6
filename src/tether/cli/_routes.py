"""``tether routes`` — list declared routes.

Prints one row per route method: name, method, full pattern, the
request parts that carry a schema, and the bound handler when the
target is an App.
"""

import argparse
import sys

from tether.app import App
from tether.cli._resolve import resolve_table
from tether.routing.route import MethodSchema, MutationMethod, QueryMethod
from tether.routing.table import RouteTable


def declared_parts(schema: MethodSchema) -> str:
    """Comma-separated request parts with a schema, or ``-``."""
    parts: list[str] = []
    if schema.path is not None:
        parts.append("path")
    if schema.headers is not None:
        parts.append("headers")
    match schema:
        case QueryMethod(query=query) if query is not None:
            parts.append("query")
        case MutationMethod(body=body) if body is not None:
            parts.append("body")
    return ", ".join(parts) or "-"


def build_rows(table: RouteTable, app: App | None = None) -> list[tuple[str, ...]]:
    rows: list[tuple[str, ...]] = []
    bound = app.dispatcher.handlers if app is not None else {}
    for entry in table:
        for method, schema in entry.methods.items():
            row = (entry.name, method, entry.pattern.source, declared_parts(schema))
            if app is not None:
                handler = bound.get(entry.name, {}).get(method)
                row = (*row, getattr(handler, "__name__", "-") if handler else "-")
            rows.append(row)
    return rows


def run_routes(args: argparse.Namespace) -> None:
    """Resolve ``args.target`` and print its route table."""
    try:
        table, app = resolve_table(args.target, base_path=args.base_path)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not len(table):
        print("No routes declared.")
        return

    headers = ("NAME", "METHOD", "PATTERN", "PARTS")
    if app is not None:
        headers = (*headers, "HANDLER")
    rows = build_rows(table, app)

    widths = [max(len(header), *(len(row[i]) for row in rows)) for i, header in enumerate(headers)]
    fmt = "  ".join(f"{{:<{width}}}" for width in widths[:-1]) + "  {}"
    print(fmt.format(*headers))
    print("-" * min(sum(widths) + 2 * (len(widths) - 1), 80))
    for row in rows:
        print(fmt.format(*row))
