"""Tether CLI — inspect route declarations.

Entry point registered as ``tether`` in ``pyproject.toml``::

    [project.scripts]
    tether = "tether.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``tether`` command."""
    parser = argparse.ArgumentParser(
        prog="tether",
        description="Tether — one route declaration for client and server.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- tether routes ----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List declared routes")
    routes_parser.add_argument(
        "target",
        help="Import string of an App, RouteTable or route mapping (e.g. myapp:app)",
    )
    routes_parser.add_argument(
        "--base-path",
        default="",
        help="Base path applied to a plain route mapping",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from tether.cli._routes import run_routes

        run_routes(args)
