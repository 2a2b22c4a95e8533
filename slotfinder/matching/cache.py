"""In-memory session cache for destination listings."""

from __future__ import annotations

from dataclasses import dataclass, field

from slotfinder.matching.types import RemoteListing


def _normalize_key(key: str) -> str:
    return key.strip().lower()


@dataclass
class ListingCache:
    """Exact-id keyed listings for one run. Nothing is evicted."""

    listings: dict[str, RemoteListing] = field(default_factory=dict)

    def get(self, key: str) -> RemoteListing | None:
        return self.listings.get(_normalize_key(key))

    def put(self, key: str, listing: RemoteListing) -> None:
        self.listings[_normalize_key(key)] = listing

    def clear(self) -> None:
        self.listings.clear()

    def __len__(self) -> int:
        return len(self.listings)
