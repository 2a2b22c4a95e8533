"""Ordered, cooperative stream of candidate groups."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Optional, Sequence, TypeVar, Union

from slotfinder.matching.types import CandidateGroup

_Row = TypeVar("_Row")


@dataclass(frozen=True)
class Progress:
    total: int


@dataclass(frozen=True)
class Skip:
    origin_ref: Any = None


@dataclass(frozen=True)
class Item:
    group: CandidateGroup


ScanEvent = Union[Progress, Skip, Item]


async def scan_rows(
    rows: Sequence[_Row],
    build_group: Callable[[_Row], Optional[CandidateGroup]],
    is_skipped: Callable[[_Row], bool] = lambda _row: False,
    origin_of: Callable[[_Row], Any] = lambda row: row,
) -> AsyncIterator[ScanEvent]:
    """Scan ``rows`` once, in order.

    Emits ``Progress`` first, then one ``Skip`` or ``Item`` per row. Rows that
    are skipped or produce no group become ``Skip`` so the consumer can hide
    them. Control returns to the event loop between rows; closing the
    generator stops the scan.
    """
    yield Progress(total=len(rows))
    for row in rows:
        await asyncio.sleep(0)
        if is_skipped(row):
            yield Skip(origin_of(row))
            continue
        group = build_group(row)
        if group is None:
            yield Skip(origin_of(row))
            continue
        yield Item(group)
