"""Check exported source rows against a destination tracker."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from rich.console import Console
from rich.table import Table
from rich.text import Text

from slotfinder import logger
from slotfinder.config import SlotfinderConfig, TrackerConfig
from slotfinder.matching.cache import ListingCache
from slotfinder.matching.engine import reconcile_group
from slotfinder.matching.pipeline import Item, Progress, Skip
from slotfinder.matching.types import Outcome
from slotfinder.tracker_profile import resolve_tracker_profile
from slotfinder.trackers.blu_client import BluDestinationAdapter
from slotfinder.trackers.protocols import DestinationAdapter
from slotfinder.trackers.ptp_client import PtpDestinationAdapter
from slotfinder.trackers.rows import ExportedRowSource, load_rows

console = Console()

DestinationFactory = Callable[[TrackerConfig], DestinationAdapter]

_DESTINATION_FACTORIES: dict[str, DestinationFactory] = {
    "blu": BluDestinationAdapter,
    "ptp": PtpDestinationAdapter,
}
_UPLOADABLE = {
    Outcome.EXIST_BUT_MISSING_SLOT,
    Outcome.NOT_EXIST,
    Outcome.NOT_EXIST_WITH_REQUEST,
    Outcome.MAYBE_NOT_EXIST,
    Outcome.MAYBE_NOT_EXIST_WITH_REQUEST,
}


def _emit(message: str, indent: int = 0) -> None:
    """Emit message to screen and log file via logger"""
    padding = " " * max(indent, 0)
    logger.log(f"{padding}{message}")


def _next_run_path(output_dir: Path = Path(".")) -> Path:
    """Find next available runN.txt path in output directory."""
    output_dir.mkdir(parents=True, exist_ok=True)

    max_num = 0
    for path in output_dir.glob("run*.txt"):
        try:
            num = int(path.stem[3:])  # Extract number from "runN"
            max_num = max(max_num, num)
        except (ValueError, IndexError):
            pass

    return output_dir / f"run{max_num + 1}.txt"


@dataclass
class CheckedGroup:
    label: str
    outcome: Outcome
    missing: int = 0
    redundant: int = 0
    filtered: int = 0


@dataclass
class CheckSummary:
    total: int = 0
    groups: list[CheckedGroup] = field(default_factory=list)
    hidden: list[Any] = field(default_factory=list)

    def counts(self) -> Counter:
        return Counter(group.outcome for group in self.groups)

    def uploadable(self) -> list[CheckedGroup]:
        return [group for group in self.groups if group.outcome in _UPLOADABLE]

    def filtered(self) -> int:
        return sum(group.filtered for group in self.groups)


def resolve_destination(config: SlotfinderConfig, target_key: str) -> DestinationAdapter:
    profile = resolve_tracker_profile(target_key)
    if not profile.can_be_destination:
        raise ValueError(f"{profile.name} cannot be used as a destination tracker.")
    factory = _DESTINATION_FACTORIES[target_key.strip().lower()]
    return factory(config.tracker(target_key))


def render_summary(summary: CheckSummary, target_name: str) -> None:
    """Print per-outcome counts and the groups worth uploading."""
    counts = summary.counts()
    table = Table(title=f"Outcomes against {target_name}")
    table.add_column("Outcome", style="cyan")
    table.add_column("Groups", justify="right")
    for outcome in Outcome:
        if counts.get(outcome):
            table.add_row(outcome.value, str(counts[outcome]))
    console.print(table)

    uploadable = summary.uploadable()
    if not uploadable:
        console.print(Text(f"No upload candidates found for {target_name}."))
        return
    candidates = Table(title="Upload candidates")
    candidates.add_column("Title")
    candidates.add_column("Outcome", style="green")
    candidates.add_column("Missing slots", justify="right")
    for group in uploadable:
        candidates.add_row(group.label, group.outcome.value, str(group.missing or "-"))
    console.print(candidates)


async def run_check_mode(
    config: SlotfinderConfig,
    rows_path: Path,
    source_key: str,
    target_key: str,
    log: bool = True,
    debug: bool = False,
    output_dir: Path | None = None,
    destination: DestinationAdapter | None = None,
) -> CheckSummary:
    # Initialize logger with debug mode
    log_path: Path | None = None
    if log:
        log_path = _next_run_path(output_dir or Path("output"))
        logger.set_logger(logger.SlotfinderLogger(log_path, debug=debug))
    else:
        logger.set_logger(logger.SlotfinderLogger(debug=debug))

    summary = CheckSummary()
    try:
        source_profile = resolve_tracker_profile(source_key)
        source = ExportedRowSource(load_rows(rows_path), source_profile)
        if destination is None:
            destination = resolve_destination(config, target_key)
        target_name = resolve_tracker_profile(target_key).name
    except (OSError, ValueError) as exc:
        logger.error(str(exc))
        logger.get_logger().close()
        raise

    _emit("Check mode: find missing upload slots")
    _emit(f"Source rows: {rows_path} ({source_profile.name})")
    _emit(f"Destination tracker: {target_name}")

    cache = ListingCache()
    size_ratio = config.matching.size_ratio
    try:
        idx = 0
        async for event in source.scan():
            if isinstance(event, Progress):
                summary.total = event.total
                _emit(f"Rows to process: {event.total}")
                continue
            idx += 1
            logger.get_logger().status(f"Working row {idx}/{summary.total}")
            if isinstance(event, Skip):
                summary.hidden.append(event.origin_ref)
                logger.get_logger().debug(f"Row {event.origin_ref} skipped")
                continue
            if isinstance(event, Item):
                group = event.group
                report = await reconcile_group(
                    group,
                    destination,
                    cache,
                    hide=summary.hidden.append,
                    size_ratio=size_ratio,
                )
                label = group.describe()
                summary.groups.append(
                    CheckedGroup(
                        label=label,
                        outcome=report.outcome,
                        missing=len(report.missing),
                        redundant=len(report.redundant),
                        filtered=len(report.filtered),
                    )
                )
                logger.get_logger().outcome(idx, summary.total, report.outcome.value, label)
                if report.missing:
                    _emit(f"{len(report.missing)} release(s) without a matching slot", indent=3)
                if report.filtered:
                    _emit(f"{len(report.filtered)} release(s) filtered as non HDR x265 below 2160p", indent=3)

        _emit("[End of Run]")
        counts = summary.counts()
        for outcome in Outcome:
            if counts.get(outcome):
                _emit(f"{outcome.value}: {counts[outcome]}", indent=2)
        _emit(f"Hidden rows/releases: {len(summary.hidden)}", indent=2)
        _emit(f"Filtered releases: {summary.filtered()}", indent=2)
        render_summary(summary, target_name)
        return summary
    finally:
        await destination.close()
        if log_path:
            logger.info(f"Output mirrored to {log_path}")
        logger.get_logger().close()
