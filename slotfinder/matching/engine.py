"""Reconcile local candidate groups against a destination tracker."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from slotfinder import logger
from slotfinder.matching.cache import ListingCache
from slotfinder.matching.normalize import normalize_title
from slotfinder.matching.rules import (
    DEFAULT_SIZE_RATIO,
    is_allowed_encoding,
    is_eligible_category,
    is_similar,
    sizes_distinct,
)
from slotfinder.matching.types import (
    CandidateGroup,
    ExactIdentity,
    FuzzyIdentity,
    ListingState,
    MediaRelease,
    Outcome,
    RemoteListing,
    TitleSearchResult,
)

if TYPE_CHECKING:
    from slotfinder.trackers.protocols import DestinationAdapter

HideCallback = Callable[[Any], None]


@dataclass
class ReconcileReport:
    """Outcome of one group plus the per-release verdicts behind it."""

    outcome: Outcome
    redundant: List[MediaRelease] = field(default_factory=list)
    missing: List[MediaRelease] = field(default_factory=list)
    filtered: List[MediaRelease] = field(default_factory=list)


def _select_exact_candidate(identity: FuzzyIdentity, result: TitleSearchResult) -> Optional[RemoteListing]:
    wanted = normalize_title(identity.title)
    for candidate in result.candidates:
        if normalize_title(candidate.title) == wanted and candidate.year == identity.year:
            logger.get_logger().debug(f"Exact title match among ambiguous results: {candidate.title} ({candidate.year})")
            return candidate.listing
    return None


async def _resolve_exact(
    identity: ExactIdentity,
    destination: DestinationAdapter,
    cache: ListingCache,
) -> RemoteListing:
    cached = cache.get(identity.external_id)
    if cached is not None:
        logger.get_logger().debug(f"Cache hit for {identity.external_id}")
        return cached
    listing = await destination.query_by_exact_id(identity.external_id)
    if listing.state is not ListingState.FAILED:
        cache.put(identity.external_id, listing)
    return listing


async def _resolve_fuzzy(identity: FuzzyIdentity, destination: DestinationAdapter) -> tuple[Optional[RemoteListing], bool]:
    result = await destination.query_by_title_year(identity.title or "", identity.year or 0)
    if result.is_ambiguous:
        logger.get_logger().debug(f"{len(result.candidates)} ambiguous results for {identity.title} ({identity.year})")
        return _select_exact_candidate(identity, result), result.has_requests
    listing = result.listing
    has_requests = result.has_requests or (listing is not None and listing.has_requests)
    return listing, has_requests


def _is_missing_slot(release: MediaRelease, listing: RemoteListing, size_ratio: float) -> bool:
    similar = [remote for remote in listing.releases if is_similar(release, remote)]
    if not similar:
        return release.resolution is not None and release.codec is not None
    if len(similar) == 1:
        return sizes_distinct(release.size, similar[0].size, size_ratio)
    return False


def _no_listing_outcome(exact: bool, has_requests: bool) -> Outcome:
    if has_requests:
        return Outcome.NOT_EXIST_WITH_REQUEST if exact else Outcome.MAYBE_NOT_EXIST_WITH_REQUEST
    return Outcome.NOT_EXIST if exact else Outcome.MAYBE_NOT_EXIST


async def reconcile_group(
    group: CandidateGroup,
    destination: DestinationAdapter,
    cache: ListingCache,
    *,
    hide: Optional[HideCallback] = None,
    size_ratio: float = DEFAULT_SIZE_RATIO,
) -> ReconcileReport:
    """Reconcile one group and keep the per-release verdicts.

    Redundant releases are passed to ``hide`` through their ``origin_ref``.
    Fuzzy (title/year) listings never touch ``cache``.
    """
    log = logger.get_logger()
    if not is_eligible_category(group.category):
        log.debug(f"Category {group.category} not allowed for {group.describe()}")
        return ReconcileReport(Outcome.NOT_ALLOWED)

    allowed = [release for release in group.releases if is_allowed_encoding(release)]
    filtered = [release for release in group.releases if not is_allowed_encoding(release)]
    if not allowed:
        log.debug(f"Only non HDR x265 below 2160p in {group.describe()}")
        return ReconcileReport(Outcome.NOT_ALLOWED, filtered=filtered)

    identity = group.identity
    if isinstance(identity, ExactIdentity):
        exact = True
        listing: Optional[RemoteListing] = await _resolve_exact(identity, destination, cache)
        has_requests = listing.has_requests
    elif isinstance(identity, FuzzyIdentity) and identity.is_usable():
        exact = False
        log.debug(f"Searching by title and year: {identity.title} - {identity.year}")
        listing, has_requests = await _resolve_fuzzy(identity, destination)
    else:
        return ReconcileReport(Outcome.NOT_CHECKED, filtered=filtered)

    if listing is None or not listing.is_usable:
        return ReconcileReport(_no_listing_outcome(exact, has_requests), filtered=filtered)

    report = ReconcileReport(Outcome.EXIST, filtered=filtered)
    for release in allowed:
        if _is_missing_slot(release, listing, size_ratio):
            report.missing.append(release)
            continue
        report.redundant.append(release)
        if hide is not None:
            hide(release.origin_ref)
    if report.missing:
        report.outcome = Outcome.EXIST_BUT_MISSING_SLOT
    return report


async def reconcile(
    group: CandidateGroup,
    destination: DestinationAdapter,
    cache: ListingCache,
    *,
    hide: Optional[HideCallback] = None,
    size_ratio: float = DEFAULT_SIZE_RATIO,
) -> Outcome:
    report = await reconcile_group(group, destination, cache, hide=hide, size_ratio=size_ratio)
    return report.outcome
