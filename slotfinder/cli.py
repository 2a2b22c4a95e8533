#!/usr/bin/env python3
"""
cli.py - Entry point for Slotfinder
Check exported tracker rows against a destination tracker.
"""

try:
    import asyncio
    import sys
    import argparse
    import time
    from pathlib import Path
    from rich.console import Console
    from rich.table import Table
    from typing import Optional, Sequence
    import slotfinder as pkg
    from .check_mode import run_check_mode
    from .config import SlotfinderConfig, load_config
    from .tracker_profile import destination_trackers, resolve_tracker_profile
except ImportError as e:
    print(f"Error: Missing required dependency: {e}")
    print("Please install required dependencies: pip install -e .")
    sys.exit(1)

console = Console()
DEFAULT_CONFIG_PATH = Path("config.toml")
_CLI_SESSION_START_MONOTONIC = time.monotonic()


def _ui_info(message: str) -> None:
    console.print(f"[cyan][INFO][/cyan] {message}")


def _ui_warn(message: str) -> None:
    console.print(f"[yellow][WARNING][/yellow] {message}")


def _ui_error(message: str) -> None:
    console.print(f"[red][ERROR][/red] {message}")


def _format_elapsed_runtime(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3_600:
        return f"{seconds / 60:.1f}m"
    if seconds < 86_400:
        return f"{seconds / 3_600:.1f}h"
    return f"{seconds / 86_400:.1f}d"


def _ui_goodbye_with_elapsed() -> None:
    elapsed = max(0.0, time.monotonic() - _CLI_SESSION_START_MONOTONIC)
    _ui_info(f"Goodbye! Elapsed {_format_elapsed_runtime(elapsed)}")


def redact_api_key(key: str) -> str:
    """Redact API key showing first 2 and last 2 characters"""
    if not key:
        return ""
    if len(key) <= 4:
        return "****"
    return f"{key[:2]}....{key[-2:]}"


def display_config_table(config: SlotfinderConfig):
    """Display configured trackers and their credential status"""
    _ui_info(f"✓ Read configuration file \"{config.config_path}\"... ok!")

    table = Table(title="Tracker configuration")
    table.add_column("Tracker", style="cyan")
    table.add_column("URL")
    table.add_column("Status", style="green")
    for tracker_name, tracker in config.trackers.items():
        if tracker.api_key:
            status = f"✓ Configured = {redact_api_key(tracker.api_key)}"
        else:
            status = "✗ Not set"
        table.add_row(tracker_name.upper(), tracker.url, status)
    console.print(table)
    console.print()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slotfinder",
        description="Find releases from exported source rows that are missing on a destination tracker.",
    )
    parser.add_argument("rows", type=Path, help="JSON file with rows exported from the source tracker")
    parser.add_argument("--source", required=True, help="Source tracker (e.g. hdb, ptp, blu)")
    parser.add_argument(
        "--target",
        default="ptp",
        help=f"Destination tracker (one of: {', '.join(destination_trackers())})",
    )
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to config.toml")
    parser.add_argument("--output-dir", type=Path, default=None, help="Directory for runN.txt logs")
    parser.add_argument("--no-log", action="store_true", help="Do not mirror output to a run log")
    parser.add_argument("--debug", action="store_true", help="Show API requests and matching details")
    parser.add_argument("--version", action="version", version=f"%(prog)s {pkg.__version__}")
    return parser


def _validate_trackers(source: str, target: str) -> Optional[str]:
    try:
        source_profile = resolve_tracker_profile(source)
        target_profile = resolve_tracker_profile(target)
    except ValueError as exc:
        return str(exc)
    if not source_profile.can_be_source:
        return f"{source_profile.name} cannot be used as a source tracker."
    if not target_profile.can_be_destination:
        return f"{target_profile.name} cannot be used as a destination tracker."
    return None


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    problem = _validate_trackers(args.source, args.target)
    if problem:
        _ui_error(problem)
        sys.exit(1)
    if not args.rows.exists():
        _ui_error(f"Rows file not found: {args.rows}")
        sys.exit(1)

    config = load_config(args.config)
    display_config_table(config)

    try:
        asyncio.run(
            run_check_mode(
                config,
                args.rows,
                args.source,
                args.target,
                log=not args.no_log,
                debug=args.debug,
                output_dir=args.output_dir,
            )
        )
    except (OSError, ValueError) as exc:
        _ui_error(str(exc))
        sys.exit(1)
    except KeyboardInterrupt:
        _ui_warn("Interrupted.")
    _ui_goodbye_with_elapsed()


if __name__ == "__main__":
    main()
