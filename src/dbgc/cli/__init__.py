"""CLI module for the database garbage collector.

Provides commands to report and clean up orphaned rows, i.e. rows whose
declared foreign key points to a row that no longer exists.

Usage:
    DBGC_PROFILE=local dbgc report
    dbgc --profile local cleanup
    dbgc --profile local cleanup --confirm
    dbgc --profile local cleanup --table posts --key author --confirm
    dbgc profiles

Commands:
    report    - Count orphaned rows per table and foreign key
    cleanup   - Back up and delete orphaned rows
    profiles  - List available profiles
"""

import argparse
import logging
import signal
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from dbgc.collector import CleanupSummary, SweepReport
from dbgc.config.loader import DEFAULT_CONFIG_FILE, load_config
from dbgc.errors import DbgcError
from dbgc.factory import create_collector, get_active_profile_name
from dbgc.progress import RichProgress

console = Console()


# ============================================================================
# Rendering helpers
# ============================================================================


def _configure_logging(verbose: bool) -> None:
    """Route library logging through rich on the shared console."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _report_table(report: SweepReport) -> Table:
    """Build the rich table listing orphan counts."""
    table = Table(title="Orphaned records", show_header=True, header_style="bold")
    table.add_column("Table", style="cyan")
    table.add_column("Key", style="dim")
    table.add_column("Field(s)")
    table.add_column("Target table", style="cyan")
    table.add_column("Target field(s)")
    table.add_column("Orphans", justify="right")

    for entry in report.entries:
        table.add_row(
            entry.table,
            entry.key,
            ",".join(entry.fields),
            entry.reftable,
            ",".join(entry.reffields),
            str(entry.orphan_count),
        )
    return table


def _print_failures(failures) -> None:
    if not failures:
        return
    console.print()
    failure_table = Table(title="Failures", show_header=True, header_style="bold red")
    failure_table.add_column("Table")
    failure_table.add_column("Key")
    failure_table.add_column("Stage")
    failure_table.add_column("Error")
    for failure in failures:
        failure_table.add_row(
            failure.table,
            failure.key,
            failure.stage,
            f"{failure.error}: {failure.message}",
        )
    console.print(failure_table)


def _print_report(report: SweepReport) -> None:
    if not report.entries:
        console.print(
            "[bold green]v[/bold green] There are no orphaned records in the database, all good!"
        )
    else:
        console.print(_report_table(report))
        console.print(
            f"\nThere are [bold]{report.total_orphans}[/bold] orphaned records "
            f"in the database; they should be removed!"
        )
    _print_failures(report.failures)


def _print_summary(summary: CleanupSummary) -> None:
    console.print()
    if summary.cancelled:
        console.print("[bold yellow]Cleanup cancelled[/bold yellow] before all foreign keys ran.")
    table = Table(title="Cleanup Summary", show_header=False)
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("Tables cleaned", str(summary.tables_cleaned))
    table.add_row("Records removed", str(summary.records_removed))
    table.add_row("Backup", summary.backup_path or "[dim](nothing backed up)[/dim]")
    console.print(table)
    _print_failures(summary.failures)


# ============================================================================
# Command implementations
# ============================================================================


def _load(args: argparse.Namespace):
    """Load config and resolve the profile name from CLI args."""
    config = load_config(Path(args.config))
    profile = get_active_profile_name(args.profile, env_prefix=args.env_prefix)
    return config, profile


def cmd_report(args: argparse.Namespace) -> int:
    """Handle report command.

    Returns:
        0 on success, 1 on configuration or connection errors.
    """
    try:
        config, profile = _load(args)
        collector = create_collector(config, profile, progress=RichProgress(console))
    except (FileNotFoundError, ValueError, DbgcError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    console.print(f"Scanning profile [bold cyan]{profile}[/bold cyan] for orphaned records...")
    try:
        report = collector.report()
    except DbgcError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    finally:
        collector.storage.close()

    _print_report(report)
    return 0


def cmd_cleanup(args: argparse.Namespace) -> int:
    """Handle cleanup command.

    Without ``--confirm`` this only shows what would be removed.  Ctrl-C
    during a confirmed run stops it after the current foreign key.

    Returns:
        0 if every foreign key was cleaned, 1 otherwise.
    """
    if args.key and not args.table:
        console.print("[red]Error: --key requires --table[/red]")
        return 1

    cancelled = False

    def should_cancel() -> bool:
        return cancelled

    try:
        config, profile = _load(args)
        collector = create_collector(
            config, profile, progress=RichProgress(console), should_cancel=should_cancel
        )
    except (FileNotFoundError, ValueError, DbgcError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        if not args.confirm:
            report = collector.report()
            if args.table:
                report.entries = [
                    e for e in report.entries
                    if e.table == args.table and (args.key is None or e.key == args.key)
                ]
            _print_report(report)
            console.print()
            console.print("[bold yellow]DRY RUN[/bold yellow] - No changes made.")
            console.print("[dim]Re-run with[/dim] [cyan]--confirm[/cyan] [dim]to back up and delete.[/dim]")
            return 1

        def _interrupt(signum, frame):
            nonlocal cancelled
            cancelled = True
            console.print("[yellow]Stopping after the current foreign key...[/yellow]")

        previous_handler = signal.signal(signal.SIGINT, _interrupt)
        try:
            summary = collector.cleanup(table_name=args.table, key_name=args.key)
        finally:
            signal.signal(signal.SIGINT, previous_handler)
    except DbgcError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    finally:
        collector.storage.close()

    _print_summary(summary)
    return 0 if summary.success else 1


def cmd_profiles(args: argparse.Namespace) -> int:
    """Handle profiles command."""
    try:
        config = load_config(Path(args.config))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        current = get_active_profile_name(args.profile, env_prefix=args.env_prefix)
    except DbgcError:
        current = None

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("Profile", style="cyan")
    table.add_column("Description")
    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green] " if name == current else "  "
        table.add_row(f"{marker}{name}", profile.description)
    console.print(table)

    if current in config.profiles:
        console.print("\n[bold green]*[/bold green] = current profile")
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="dbgc",
        description="Find, back up and delete orphaned database rows",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_FILE,
        help=f"Path to config file (default: {DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument(
        "--profile",
        "-p",
        default=None,
        help="Database profile from the config file",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DBGC_PROFILE)"
        ),
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show debug logging, including generated SQL",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # report command
    p_report = subparsers.add_parser(
        "report",
        help="Count orphaned rows per table and foreign key",
    )
    p_report.set_defaults(func=cmd_report)

    # cleanup command
    p_cleanup = subparsers.add_parser(
        "cleanup",
        help="Back up and delete orphaned rows",
    )
    p_cleanup.add_argument(
        "--table",
        default=None,
        help="Only clean up this table's foreign keys",
    )
    p_cleanup.add_argument(
        "--key",
        default=None,
        help="Only clean up this foreign key (requires --table)",
    )
    p_cleanup.add_argument(
        "--confirm",
        action="store_true",
        help="Actually back up and delete (required for non-dry-run)",
    )
    p_cleanup.set_defaults(func=cmd_cleanup)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
