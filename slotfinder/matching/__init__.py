"""Release normalization, equivalence rules and reconciliation."""

from .cache import ListingCache
from .engine import ReconcileReport, reconcile, reconcile_group
from .pipeline import Item, Progress, ScanEvent, Skip, scan_rows
from .types import (
    CandidateGroup,
    Category,
    ExactIdentity,
    FuzzyIdentity,
    ListingState,
    MediaRelease,
    Outcome,
    RemoteListing,
    Resolution,
    TitleCandidate,
    TitleSearchResult,
)

__all__ = [
    "CandidateGroup",
    "Category",
    "ExactIdentity",
    "FuzzyIdentity",
    "Item",
    "ListingCache",
    "ListingState",
    "MediaRelease",
    "Outcome",
    "Progress",
    "ReconcileReport",
    "RemoteListing",
    "Resolution",
    "ScanEvent",
    "Skip",
    "TitleCandidate",
    "TitleSearchResult",
    "reconcile",
    "reconcile_group",
    "scan_rows",
]
