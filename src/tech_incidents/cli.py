"""
Command-line interface with subcommands.

The CLI drives the same catalog engine as the web service: it can serve
the API, list and filter incidents, walk the decade/year folders and show
a single incident, reading either from the backend or from a JSON export.
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .version import __version__, VERSION_INFO
from .config import AppConfig
from .backend.client import BackendClient
from .catalog import (
    FilterCriteria,
    IncidentStore,
    NavigationState,
    apply_filters,
    decade_label,
    generate_slug,
    resolve_theme,
)
from .constants import ALL_SENTINEL
from .dates import format_date_for_display
from .exceptions import TechIncidentsError
from .logging_config import configure_cli_logging
from .models import Incident, SortKey

logger = logging.getLogger(__name__)

LIST_FIELDS = ("incident_date", "name", "category", "severity")


def _load_config(args: argparse.Namespace) -> AppConfig:
    config_file = getattr(args, 'config_file', None)
    return AppConfig.load(config_file) if config_file else AppConfig.load()


def load_records(args: argparse.Namespace, config: AppConfig) -> List[Dict[str, Any]]:
    """
    Incident records from ``--input`` (a JSON array) or from the backend.

    Raises:
        ValueError: If the input file is not a JSON array
        TechIncidentsError: If the backend call fails
    """
    input_path = getattr(args, 'input', None)
    if input_path:
        path = Path(input_path)
        logger.info(f"Loading incidents from: {path}")
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{path} must contain a JSON array of incidents")
        return data

    client = BackendClient.from_config(config)
    try:
        return client.fetch_incidents()
    finally:
        client.close()


def _criteria(args: argparse.Namespace, config: AppConfig) -> FilterCriteria:
    return FilterCriteria(
        search=args.search or "",
        categories=args.category or ALL_SENTINEL,
        years=[str(year) for year in args.filter_year] if args.filter_year else ALL_SENTINEL,
        sort=args.sort or config.default_sort,
    )


def format_incident_row(incident: Incident) -> str:
    """One-line summary used by ``list`` and ``browse``."""
    cells = [incident.display(field) for field in LIST_FIELDS]
    return f"{cells[0]:<12} {cells[1]:<40} {cells[2]:<16} {cells[3]}"


def format_incident_detail(incident: Incident) -> str:
    theme = resolve_theme(incident)
    date_text = format_date_for_display(incident.incident_date) or incident.display("incident_date")
    lines = [
        incident.name,
        "=" * len(incident.name),
        f"Date:            {date_text}",
        f"Category:        {incident.display('category')}",
        f"Severity:        {incident.display('severity')}",
        f"Era:             {decade_label(incident)} ({theme.detail_window})",
        f"Time to resolve: {incident.display('time_to_resolve')}",
        "",
        f"Description:  {incident.display('description')}",
        f"Cause:        {incident.display('cause')}",
        f"Consequences: {incident.display('consequences')}",
        "",
        f"Slug: {generate_slug(incident.name)}",
    ]
    return "\n".join(lines)


def _emit_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def handle_serve(args: argparse.Namespace) -> int:
    """Run the web service."""
    from .web.app import run_server

    try:
        config = _load_config(args)
        run_server(host=args.host, port=args.port, config=config, debug=args.debug or None)
        return 0
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1


def handle_list(args: argparse.Namespace) -> int:
    """
    Handle the list subcommand.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        config = _load_config(args)
        store = IncidentStore(load_records(args, config))
        incidents = apply_filters(store.incidents, _criteria(args, config))

        if args.json:
            _emit_json([incident.to_dict() for incident in incidents])
            return 0

        for incident in incidents:
            print(format_incident_row(incident))
        print(f"\n{len(incidents)} of {len(store)} incidents")
        return 0

    except (TechIncidentsError, ValueError, OSError) as e:
        logger.error(f"List failed: {e}", exc_info=args.debug)
        print(f"ERROR: {e}")
        return 1


def handle_browse(args: argparse.Namespace) -> int:
    """Handle the browse subcommand: print one explorer folder."""
    try:
        config = _load_config(args)
        store = IncidentStore(load_records(args, config))
        nav = NavigationState(store, apply_filters(store.incidents, _criteria(args, config)))

        decade = args.decade
        if args.year is not None and decade is None:
            decade = args.year - args.year % 10
        if decade is not None:
            nav.open_folder(decade)
        if args.year is not None:
            nav.open_folder(args.year)

        view = nav.view()
        if args.json:
            _emit_json(view.to_dict())
            return 0

        print(view.path)
        print(view.title)
        print()
        for folder in view.folders:
            label = f"{folder}s" if view.level.value == "root" else str(folder)
            print(f"[{label}]")
        for incident in view.incidents:
            print(format_incident_row(incident))
        if not view.folders and not view.incidents:
            print("(empty)")
        return 0

    except (TechIncidentsError, ValueError, OSError) as e:
        logger.error(f"Browse failed: {e}", exc_info=args.debug)
        print(f"ERROR: {e}")
        return 1


def handle_show(args: argparse.Namespace) -> int:
    """Handle the show subcommand: one incident by id or slug."""
    try:
        config = _load_config(args)
        store = IncidentStore(load_records(args, config))
        incident = store.find(args.incident)

        if args.json:
            data = incident.to_dict()
            data["theme"] = resolve_theme(incident).to_dict()
            data["slug"] = generate_slug(incident.name)
            _emit_json(data)
        else:
            print(format_incident_detail(incident))
        return 0

    except (TechIncidentsError, ValueError, OSError) as e:
        logger.error(f"Show failed: {e}", exc_info=args.debug)
        print(f"ERROR: {e}")
        return 1


def handle_version(args: argparse.Namespace) -> int:
    """Print version information."""
    print(f"Tech Incidents version {__version__}")
    print(VERSION_INFO["full_name"])

    if args.verbose:
        print(f"\nPython: {sys.version}")
        config = _load_config(args)
        print(f"Environment: {config.environment}")
        print(f"Backend: {config.backend_url or '(not configured)'}")

    return 0


def handle_config(args: argparse.Namespace) -> int:
    """
    Handle the config subcommand.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    config = _load_config(args)

    if args.action == "validate":
        try:
            config.validate()
        except ValueError as e:
            print(f"ERROR: {e}")
            return 1
        print("✓ Configuration is valid")
        if not config.is_backend_configured:
            print("WARNING: backend URL or API key is not set")
        return 0

    print("Current Tech Incidents Configuration:")
    for key, value in config.to_dict().items():
        print(f"  {key}: {value}")
    return 0


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--input", "-i",
        metavar="PATH",
        help="Read incidents from a JSON file instead of the backend"
    )
    parser.add_argument(
        "--search", "-s",
        help="Case-insensitive text to find in name or description"
    )
    parser.add_argument(
        "--category", "-c",
        action="append",
        help="Only this category (repeatable)"
    )
    parser.add_argument(
        "--filter-year",
        type=int,
        action="append",
        help="Only this year (repeatable)"
    )
    parser.add_argument(
        "--sort",
        choices=[key.value for key in SortKey],
        help="Sort order (default: from configuration)"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print JSON instead of text"
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser with subcommands.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="tech-incidents",
        description="Tech Incidents: a decade-by-decade catalog of technology failures",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s serve --port 8000
  %(prog)s list --search mars --sort severity-desc
  %(prog)s list --input incidents.json --category Software --category Hardware
  %(prog)s browse --decade 1990
  %(prog)s browse --year 1996
  %(prog)s show y2k-bug
  %(prog)s config validate

Environment Variables:
  TECH_INCIDENTS_BACKEND_URL   Backend project URL (or SUPABASE_URL)
  TECH_INCIDENTS_BACKEND_KEY   Backend public API key (or SUPABASE_ANON_KEY)
  TECH_INCIDENTS_ENV           development, test or production
        """
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only show warnings and errors"
    )
    parser.add_argument(
        "--config-file",
        metavar="PATH",
        help="Path to configuration file"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output and tracebacks"
    )

    subparsers = parser.add_subparsers(
        dest="subcommand",
        help="Available subcommands"
    )

    serve_parser = subparsers.add_parser("serve", help="Run the web service")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=5000, help="Port to listen on")
    serve_parser.set_defaults(func=handle_serve)

    list_parser = subparsers.add_parser("list", help="List, filter and sort incidents")
    _add_filter_arguments(list_parser)
    list_parser.set_defaults(func=handle_list)

    browse_parser = subparsers.add_parser("browse", help="Show one decade or year folder")
    _add_filter_arguments(browse_parser)
    browse_parser.add_argument("--decade", type=int, help="Decade folder, e.g. 1990")
    browse_parser.add_argument("--year", type=int, help="Year folder, e.g. 1996")
    browse_parser.set_defaults(func=handle_browse)

    show_parser = subparsers.add_parser("show", help="Show one incident by id or slug")
    show_parser.add_argument("incident", help="Incident id or slug")
    show_parser.add_argument(
        "--input", "-i",
        metavar="PATH",
        help="Read incidents from a JSON file instead of the backend"
    )
    show_parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    show_parser.set_defaults(func=handle_show)

    version_parser = subparsers.add_parser("version", help="Show version information")
    version_parser.set_defaults(func=handle_version)

    config_parser = subparsers.add_parser("config", help="Show or validate configuration")
    config_parser.add_argument(
        "action",
        nargs="?",
        choices=["show", "validate"],
        default="show",
        help="Config action (default: show)"
    )
    config_parser.set_defaults(func=handle_config)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_cli_logging(verbose=args.verbose or args.debug, quiet=args.quiet)

    if not hasattr(args, 'func'):
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
