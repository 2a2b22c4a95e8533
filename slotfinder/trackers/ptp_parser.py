"""Parse PTP JSON search payloads into remote listings."""

from typing import Any, Dict, List, Optional

from slotfinder.matching.normalize import parse_remote_resolution, parse_tags, size_from_bytes
from slotfinder.matching.types import MediaRelease, RemoteListing, TitleCandidate
from slotfinder.trackers.resilience import expect_dict, optional_list_of_dicts


def parse_movies(payload: object) -> List[TitleCandidate]:
    """Extract every movie of a ``json=noredirect`` search response."""
    root = expect_dict(payload, "PTP search payload")
    movies = optional_list_of_dicts(root, "Movies", "PTP search payload")
    return [_parse_movie(movie, idx) for idx, movie in enumerate(movies)]


def _parse_movie(movie: Dict[str, Any], idx: int) -> TitleCandidate:
    context = f"PTP search payload.Movies[{idx}]"
    torrents = optional_list_of_dicts(movie, "Torrents", context)
    releases = [parse_remote_release(torrent) for torrent in torrents]
    return TitleCandidate(
        title=str(movie.get("Title") or "").strip(),
        year=_as_year(movie.get("Year")),
        listing=RemoteListing.found(releases),
    )


def parse_remote_release(torrent: Dict[str, Any]) -> MediaRelease:
    """Build a remote release from one PTP torrent entry."""
    release_name = str(torrent.get("ReleaseName") or "")
    remaster_title = str(torrent.get("RemasterTitle") or "")
    return MediaRelease(
        size=size_from_bytes(torrent.get("Size")),
        resolution=parse_remote_resolution(torrent.get("Resolution")),
        codec=str(torrent.get("Codec") or "").strip() or None,
        tags=parse_tags(f"{release_name} {remaster_title}"),
        origin_ref=torrent.get("Id"),
    )


def _as_year(value: object) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None
