"""BLU destination adapter built on the UNIT3D torrent filter API."""

from __future__ import annotations

import re
from typing import Any, Dict, List

from slotfinder import logger
from slotfinder.matching.normalize import normalize_title
from slotfinder.matching.types import MediaRelease, RemoteListing, TitleSearchResult
from slotfinder.trackers.blu_parser import entry_title_year, parse_entries, parse_remote_release
from slotfinder.trackers.http_client import TrackerHttpClient
from slotfinder.trackers.protocols import DestinationAdapter
from slotfinder.trackers.resilience import ADAPTER_FAILURES

_FILTER_PATH = "api/torrents/filter"
_PER_PAGE = "100"
_DIGITS_RE = re.compile(r"\d+")


def _imdb_number(external_id: str) -> str:
    match = _DIGITS_RE.search(external_id)
    return match.group(0) if match else external_id


class BluDestinationAdapter(TrackerHttpClient, DestinationAdapter):
    """Looks up BLU listings; BLU exposes no request hint, so ``has_requests`` stays False."""

    tracker_key = "blu"

    def _get_headers(self) -> Dict[str, str]:
        headers = super()._get_headers()
        headers["Accept"] = "application/json"
        return headers

    async def _filter(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        return parse_entries(await self._request_json(_FILTER_PATH, {**params, "perPage": _PER_PAGE}))

    async def query_by_exact_id(self, external_id: str) -> RemoteListing:
        try:
            entries = await self._filter({"imdbId": _imdb_number(external_id)})
            releases = [parse_remote_release(entry) for entry in entries]
        except ADAPTER_FAILURES as exc:
            logger.get_logger().warning(f"BLU lookup for {external_id} failed: {exc}")
            return RemoteListing.failed()
        if not releases:
            return RemoteListing.not_found()
        return RemoteListing.found(releases)

    async def query_by_title_year(self, title: str, year: int) -> TitleSearchResult:
        wanted = normalize_title(title)
        try:
            entries = await self._filter({"name": title})
            releases: List[MediaRelease] = []
            for entry in entries:
                entry_title, entry_year = entry_title_year(entry)
                if entry_year == year and normalize_title(entry_title) == wanted:
                    releases.append(parse_remote_release(entry))
        except ADAPTER_FAILURES as exc:
            logger.get_logger().warning(f"BLU search for {title} ({year}) failed: {exc}")
            return TitleSearchResult(listing=RemoteListing.failed())
        logger.get_logger().debug(f"[BLU] {len(releases)} of {len(entries)} results match {title} ({year})")
        if not releases:
            return TitleSearchResult(listing=RemoteListing.not_found())
        return TitleSearchResult(listing=RemoteListing.found(releases))
