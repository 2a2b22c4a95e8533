"""PTP destination adapter built on the torrents.php JSON endpoint."""

from __future__ import annotations

from typing import Any, Dict

from slotfinder import logger
from slotfinder.matching.types import RemoteListing, TitleSearchResult
from slotfinder.trackers.http_client import TrackerHttpClient
from slotfinder.trackers.protocols import DestinationAdapter
from slotfinder.trackers.ptp_parser import parse_movies
from slotfinder.trackers.resilience import ADAPTER_FAILURES

REQUESTS_MESSAGE = "Your search did not match any torrents, however it did match these requests."
_SEARCH_PATH = "torrents.php"


class PtpDestinationAdapter(TrackerHttpClient, DestinationAdapter):
    """Looks up PTP listings by IMDb id or by title and year."""

    tracker_key = "ptp"

    async def query_by_exact_id(self, external_id: str) -> RemoteListing:
        params = {"imdb": external_id}
        try:
            movies = parse_movies(await self._request_json(_SEARCH_PATH, {**params, "json": "noredirect"}))
        except ADAPTER_FAILURES as exc:
            logger.get_logger().warning(f"PTP lookup for {external_id} failed: {exc}")
            return RemoteListing.failed()
        if not movies:
            return RemoteListing.not_found(has_requests=await self._has_requests(params))
        if len(movies) > 1:
            logger.get_logger().debug(f"[PTP] {len(movies)} groups share {external_id}, using the first")
        return movies[0].listing

    async def query_by_title_year(self, title: str, year: int) -> TitleSearchResult:
        params: Dict[str, Any] = {"action": "advanced", "searchstr": title, "year": year}
        try:
            movies = parse_movies(await self._request_json(_SEARCH_PATH, {**params, "json": "noredirect"}))
        except ADAPTER_FAILURES as exc:
            logger.get_logger().warning(f"PTP search for {title} ({year}) failed: {exc}")
            return TitleSearchResult(listing=RemoteListing.failed())
        if not movies:
            has_requests = await self._has_requests(params)
            return TitleSearchResult(
                listing=RemoteListing.not_found(has_requests=has_requests),
                has_requests=has_requests,
            )
        if len(movies) == 1:
            return TitleSearchResult(listing=movies[0].listing)
        logger.get_logger().debug(f"[PTP] Multiple results found: {len(movies)}")
        return TitleSearchResult(candidates=tuple(movies))

    async def _has_requests(self, params: Dict[str, Any]) -> bool:
        """Check the HTML results page for the matching-requests notice.

        The empty search already answered the lookup, so a failure here only
        loses the request hint.
        """
        try:
            _, text, _ = await self._request_with_retries(_SEARCH_PATH, dict(params), lambda response: response.text())
        except ADAPTER_FAILURES as exc:
            logger.get_logger().debug(f"[PTP] Request check failed: {exc}")
            return False
        return REQUESTS_MESSAGE in text
