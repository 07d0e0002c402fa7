"""
sysview.cli - Entry point for the ``sysview`` console script.

Commands themselves live in ``sysview.commands``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from sysview import __version__
from sysview.commands import config_cmd, serve, show, validate

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s\n%(message)s\n"


def create_parser() -> argparse.ArgumentParser:
    """Build the top-level parser with one subparser per command."""
    parser = argparse.ArgumentParser(
        prog="sysview",
        description="Element store with tree, table and graph views",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sysview serve --demo 10                 # Reference backend with demo data
  sysview show tree                       # Definition/usage tree
  sysview show table --format csv         # Flat table as CSV
  sysview show graph --format json        # Nodes and edges as JSON
  sysview show table --search charge      # Text search on the backend
  sysview validate                        # Static model checks

Configuration:
  sysview config path           # Which .sysview.toml is in effect
  sysview config show           # Merged settings as TOML
  sysview config validate       # Check settings

Environment overrides use SYSVIEW_<SECTION>_<KEY>, e.g.
  SYSVIEW_BACKEND_BASE_URL=http://host:8080/api/v1

Run sysview <command> --help for per-command options.
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"sysview {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output (debug logging, tracebacks on error)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the reference element backend",
    )
    serve_parser.add_argument("--host", help="Bind address (default: server.host)")
    serve_parser.add_argument("--port", type=int, help="Port (default: server.port)")
    serve_parser.add_argument(
        "--demo",
        type=int,
        metavar="N",
        help="Seed N demo requirement definitions (default: server.demo_size)",
    )

    # show command
    show_parser = subparsers.add_parser(
        "show",
        help="Load elements and print a view",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sysview show tree --type RequirementDefinition
  sysview show table --sort declaredName,desc --size 20 --page 1
  sysview show table --filter status:draft --format csv
  sysview show graph --all-pages
""",
    )
    show_parser.add_argument("view", choices=show.VIEWS, help="Which projection to print")
    show_parser.add_argument("--type", help="Only load one type tag")
    show_parser.add_argument("--page", type=int, default=0, help="Zero-based page (default: 0)")
    show_parser.add_argument("--size", type=int, help="Page size, 1-200 (default: query.page_size)")
    show_parser.add_argument(
        "--sort", action="append", metavar="FIELD[,DIR]", help="Sort key; repeatable"
    )
    show_parser.add_argument(
        "--filter", action="append", metavar="FIELD:VALUE", help="Equality filter; repeatable"
    )
    show_parser.add_argument("--search", help="Free-text search")
    show_parser.add_argument(
        "--all-pages", action="store_true", help="Keep loading until the last page"
    )
    show_parser.add_argument(
        "--select", action="append", metavar="ID", help="Mark an element as selected; repeatable"
    )
    show_parser.add_argument(
        "--format",
        choices=["text", "json", "csv"],
        default="text",
        help="Output format (csv: table only)",
    )
    show_parser.add_argument("--base-url", help="Backend URL (default: backend.base_url)")
    show_parser.add_argument("--project", help="Project id (default: backend.project_id)")

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Check the loaded model against the static rules",
    )
    validate_parser.add_argument("--type", help="Only load one type tag")
    validate_parser.add_argument(
        "--skip-rule", action="append", metavar="CODE", help="Ignore a rule; repeatable"
    )
    validate_parser.add_argument(
        "--format", choices=["text", "json"], default="text", help="Output format"
    )
    validate_parser.add_argument("--base-url", help="Backend URL (default: backend.base_url)")
    validate_parser.add_argument("--project", help="Project id (default: backend.project_id)")

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Inspect configuration",
    )
    config_subparsers = config_parser.add_subparsers(dest="config_action")
    config_show = config_subparsers.add_parser("show", help="Print the effective configuration")
    config_show.add_argument("--json", action="store_true", help="Print as JSON")
    config_subparsers.add_parser("path", help="Print the config file in use")
    config_subparsers.add_parser("validate", help="Check configuration values")

    # version command
    subparsers.add_parser("version", help="Show version")

    return parser


def configure_logging(args: argparse.Namespace) -> None:
    """Set up root logging from -v/-q, falling back to ``logging.level``."""
    if args.verbose:
        level = "DEBUG"
    elif args.quiet:
        level = "ERROR"
    else:
        from sysview.config import get_config

        try:
            level = str(get_config(args.config)["logging"]["level"]).upper()
        except Exception:
            # A broken config file is reported by the command itself.
            level = "WARNING"

    logging.basicConfig(level=getattr(logging, level, logging.WARNING), format=LOG_FORMAT)


def version_command(args: argparse.Namespace) -> int:
    """Print the installed version."""
    print(f"sysview {__version__}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run one sysview command.

    Args:
        argv: Arguments without the program name; None reads sys.argv.

    Returns:
        Process exit status, 0 on success.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(args)

    try:
        if args.command == "serve":
            return serve.run(args)
        elif args.command == "show":
            return show.run(args)
        elif args.command == "validate":
            return validate.run(args)
        elif args.command == "config":
            return config_cmd.run(args)
        elif args.command == "version":
            return version_command(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
