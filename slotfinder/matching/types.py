"""Shared data structures for release reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence, Union


class Resolution(str, Enum):
    SD = "SD"
    HD = "HD"
    FHD = "FHD"
    UHD = "UHD"


class Category(str, Enum):
    MOVIE = "Movie"
    TV = "TV"
    DOCUMENTARY = "Documentary"
    MUSIC = "Music"
    SPORT = "Sport"
    XXX = "XXX"
    STAND_UP = "StandUp"
    LIVE_PERFORMANCE = "LivePerformance"


class Outcome(str, Enum):
    """Result of reconciling one candidate group against a destination."""

    NOT_CHECKED = "NOT_CHECKED"
    NOT_ALLOWED = "NOT_ALLOWED"
    EXIST = "EXIST"
    EXIST_BUT_MISSING_SLOT = "EXIST_BUT_MISSING_SLOT"
    NOT_EXIST = "NOT_EXIST"
    NOT_EXIST_WITH_REQUEST = "NOT_EXIST_WITH_REQUEST"
    MAYBE_NOT_EXIST = "MAYBE_NOT_EXIST"
    MAYBE_NOT_EXIST_WITH_REQUEST = "MAYBE_NOT_EXIST_WITH_REQUEST"


class ListingState(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class MediaRelease:
    """One physical release, local or remote."""

    size: Optional[float] = None  # megabytes
    resolution: Union[Resolution, str, None] = None
    codec: Optional[str] = None
    tags: frozenset[str] = field(default_factory=frozenset)
    category: Optional[Category] = None
    origin_ref: Any = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.size is not None and self.size <= 0:
            object.__setattr__(self, "size", None)
        if not isinstance(self.tags, frozenset):
            object.__setattr__(self, "tags", frozenset(self.tags or ()))


@dataclass(frozen=True)
class ExactIdentity:
    external_id: str


@dataclass(frozen=True)
class FuzzyIdentity:
    title: Optional[str]
    year: Optional[int]

    def is_usable(self) -> bool:
        return bool(self.title) and self.year is not None


Identity = Union[ExactIdentity, FuzzyIdentity]


@dataclass
class CandidateGroup:
    """Local releases that share one content identity."""

    identity: Optional[Identity]
    releases: list[MediaRelease]
    category: Optional[Category] = None
    origin_ref: Any = None

    def __post_init__(self) -> None:
        if not self.releases:
            raise ValueError("CandidateGroup needs at least one release")

    def describe(self) -> str:
        identity = self.identity
        if isinstance(identity, ExactIdentity):
            return identity.external_id
        if isinstance(identity, FuzzyIdentity) and identity.is_usable():
            return f"{identity.title} ({identity.year})"
        return "(no identity)"


@dataclass(frozen=True)
class RemoteListing:
    """Known releases on the destination for one identity."""

    releases: tuple[MediaRelease, ...] = ()
    state: ListingState = ListingState.FOUND
    has_requests: bool = False

    @classmethod
    def found(cls, releases: Sequence[MediaRelease]) -> "RemoteListing":
        return cls(releases=tuple(releases), state=ListingState.FOUND)

    @classmethod
    def not_found(cls, has_requests: bool = False) -> "RemoteListing":
        return cls(state=ListingState.NOT_FOUND, has_requests=has_requests)

    @classmethod
    def failed(cls) -> "RemoteListing":
        return cls(state=ListingState.FAILED)

    @property
    def is_usable(self) -> bool:
        return self.state is ListingState.FOUND


@dataclass(frozen=True)
class TitleCandidate:
    """One entry of an ambiguous title/year search."""

    title: str
    year: Optional[int]
    listing: RemoteListing


@dataclass(frozen=True)
class TitleSearchResult:
    """Destination answer to a title/year query.

    Either ``listing`` is set (zero or one match) or ``candidates`` holds the
    ambiguous matches that still need exact filtering.
    """

    listing: Optional[RemoteListing] = None
    candidates: tuple[TitleCandidate, ...] = ()
    has_requests: bool = False

    @property
    def is_ambiguous(self) -> bool:
        return self.listing is None and bool(self.candidates)
