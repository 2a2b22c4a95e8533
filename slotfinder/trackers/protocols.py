"""Protocol definitions for source and destination adapters."""

from __future__ import annotations

from typing import AsyncIterator, Protocol

from slotfinder.matching.pipeline import ScanEvent
from slotfinder.matching.types import RemoteListing, TitleSearchResult


class SourceAdapter(Protocol):
    """Produces candidate groups scraped from a source tracker."""

    def scan(self) -> AsyncIterator[ScanEvent]:
        ...


class DestinationAdapter(Protocol):
    """Minimal destination API used by the reconciliation engine."""

    async def query_by_exact_id(self, external_id: str) -> RemoteListing:
        ...

    async def query_by_title_year(self, title: str, year: int) -> TitleSearchResult:
        ...

    async def close(self) -> None:
        ...
