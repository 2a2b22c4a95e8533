"""Parse BLU (UNIT3D) torrent filter payloads into remote releases."""

from typing import Any, Dict, List, Optional, Tuple

from slotfinder.matching.normalize import (
    parse_codec,
    parse_remote_resolution,
    parse_tags,
    parse_title_year,
    size_from_bytes,
)
from slotfinder.matching.types import MediaRelease
from slotfinder.trackers.resilience import expect_dict, optional_list_of_dicts

_CONTEXT = "BLU filter payload"


def parse_entries(payload: object) -> List[Dict[str, Any]]:
    root = expect_dict(payload, _CONTEXT)
    return optional_list_of_dicts(root, "data", _CONTEXT)


def _attributes(entry: Dict[str, Any]) -> Dict[str, Any]:
    value = entry.get("attributes")
    if value is None:
        return {}
    return expect_dict(value, f"{_CONTEXT}.data[{entry.get('id')}].attributes")


def entry_title_year(entry: Dict[str, Any]) -> Tuple[Optional[str], Optional[int]]:
    """Title and year parsed from the torrent name (``Title YYYY rest``)."""
    return parse_title_year(str(_attributes(entry).get("name") or ""))


def parse_remote_release(entry: Dict[str, Any]) -> MediaRelease:
    """Build a remote release from one ``data`` entry.

    UNIT3D carries no codec field, so the codec comes from the torrent name;
    the release type ("Remux", "Encode", ...) feeds the tags.
    """
    attributes = _attributes(entry)
    name = str(attributes.get("name") or "")
    release_type = str(attributes.get("type") or "")
    return MediaRelease(
        size=size_from_bytes(attributes.get("size")),
        resolution=parse_remote_resolution(attributes.get("resolution")),
        codec=parse_codec(name),
        tags=parse_tags(f"{name} {release_type}"),
        origin_ref=entry.get("id"),
    )
