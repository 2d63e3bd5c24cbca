"""
Command-line front end.

Usage:
  grafana-backup [--apply-for auto|dashboards,datasources,users|all]
                 [--dir DIR] [--title TEXT] [--starred] [--tag TAG ...]
                 [--url URL] [--timeout SECONDS] [--verbose]

  # Dashboards plus the datasources they use (default)
  grafana-backup --dir backups/grafana

  # Everything, independently
  grafana-backup --apply-for all --verbose
"""

import argparse
import sys
from typing import Dict, List, Optional

from grafana_backup import __version__
from grafana_backup.backup import EXIT_FAILURE, run
from grafana_backup.cancel import CancelToken, install_signal_handlers
from grafana_backup.client import GrafanaClient
from grafana_backup.config import ConfigError, load_settings
from grafana_backup.models import BackupRequest, SearchFilter

APPLY_FOR_CHOICES = ('auto', 'dashboards', 'datasources', 'users', 'all')


def parse_apply_for(value: str) -> Dict[str, bool]:
    """Turn an --apply-for list into the mode flags of a BackupRequest."""
    flags = {'hierarchical': False, 'dashboards': False, 'datasources': False, 'users': False}
    items = [item.strip().lower() for item in value.split(',') if item.strip()]
    if not items:
        raise ValueError("--apply-for needs at least one value")

    for item in items:
        if item not in APPLY_FOR_CHOICES:
            raise ValueError(f"unknown --apply-for value '{item}' (choose from {', '.join(APPLY_FOR_CHOICES)})")
        if item == 'auto':
            flags['hierarchical'] = True
        elif item == 'all':
            flags.update(dashboards=True, datasources=True, users=True)
        else:
            flags[item] = True
    return flags


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='grafana-backup',
        description="Back up Grafana dashboards, datasources and users to JSON files",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    # What to back up
    parser.add_argument("--apply-for", default="auto", metavar="OBJECTS",
                        help="Comma list of auto, dashboards, datasources, users, all "
                             "(auto: dashboards plus the datasources they use)")

    # Dashboard search filters
    parser.add_argument("--title", default="", help="Only dashboards whose title contains TEXT")
    parser.add_argument("--starred", action="store_true", help="Only starred dashboards")
    parser.add_argument("--tag", action="append", default=[], help="Only dashboards with this tag (repeatable)")

    # Output and connection
    parser.add_argument("--dir", help="Output directory (default: $GRAFANA_BACKUP_DIR or ./backup)")
    parser.add_argument("--url", help="Grafana base URL (default: $GRAFANA_URL)")
    parser.add_argument("--timeout", type=float, help="HTTP timeout in seconds (default: $GRAFANA_TIMEOUT)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Print every backed-up object")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        flags = parse_apply_for(args.apply_for)
    except ValueError as e:
        parser.error(str(e))

    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FAILURE

    request = BackupRequest(
        directory=args.dir or settings.directory,
        search=SearchFilter(title=args.title, starred=args.starred, tags=tuple(args.tag)),
        verbose=args.verbose,
        **flags,
    )
    client = GrafanaClient(
        args.url or settings.url,
        token=settings.token,
        user=settings.user,
        password=settings.password,
        timeout=args.timeout if args.timeout is not None else settings.timeout,
    )

    if request.verbose:
        print("Grafana Backup")
        print("=" * 50)
        print(f"Grafana URL: {client.base_url}")
        print(f"Backup directory: {request.directory}")
        print()

    cancel = CancelToken()
    install_signal_handlers(cancel)
    run(request, client, cancel=cancel)
    return 0


if __name__ == '__main__':
    sys.exit(main())
