"""Source adapter over rows exported from a tracker's browse pages."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, AsyncIterator, Optional

from slotfinder.matching.normalize import (
    parse_category,
    parse_codec,
    parse_imdb_id,
    parse_resolution,
    parse_size,
    parse_tags,
    parse_title_year,
    parse_title_year_from_release_name,
)
from slotfinder.matching.pipeline import ScanEvent, scan_rows
from slotfinder.matching.types import (
    CandidateGroup,
    ExactIdentity,
    FuzzyIdentity,
    Identity,
    MediaRelease,
)
from slotfinder.tracker_profile import TrackerProfile
from slotfinder.trackers.protocols import SourceAdapter
from slotfinder.trackers.resilience import expect_dict


def load_rows(path: Path) -> list[dict]:
    """Read a JSON array of exported rows."""
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    if not isinstance(payload, list):
        raise ValueError(f"{path} must contain a JSON array of rows")
    return [expect_dict(row, f"{path}[{idx}]") for idx, row in enumerate(payload)]


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def build_identity(row: dict, profile: TrackerProfile) -> Optional[Identity]:
    imdb_id = parse_imdb_id(_text(row.get("imdb")))
    if imdb_id:
        return ExactIdentity(imdb_id)
    title_text = _text(row.get("title"))
    if profile.title_style == "spaced":
        title, year = parse_title_year(title_text)
    elif profile.title_style == "release_name":
        title, year = parse_title_year_from_release_name(title_text)
    else:
        return None
    return FuzzyIdentity(title, year)


def build_release(torrent: dict, row: dict, origin_ref: Any = None) -> MediaRelease:
    name = _text(torrent.get("name"))
    resolution_hint = _text(torrent.get("resolution"))
    codec_hint = _text(torrent.get("codec"))
    return MediaRelease(
        size=parse_size(_text(torrent.get("size"))),
        resolution=parse_resolution(resolution_hint or name),
        codec=parse_codec(codec_hint or name),
        tags=parse_tags(name),
        category=parse_category(row.get("category")),
        origin_ref=torrent.get("ref", origin_ref),
    )


def _row_ref(row: dict, index: int) -> Any:
    return row.get("ref", index)


def _torrent_ref(row: dict, index: int, position: int, count: int) -> Any:
    row_ref = _row_ref(row, index)
    return row_ref if count == 1 else f"{row_ref}/{position}"


def _row_torrents(row: dict) -> list[dict]:
    torrents = row.get("torrents")
    if torrents is None:
        name = row.get("name") or row.get("title")
        if name is None and row.get("size") is None:
            return []
        return [
            {
                "name": name,
                "size": row.get("size"),
                "resolution": row.get("resolution"),
                "codec": row.get("codec"),
            }
        ]
    return [expect_dict(torrent, "row.torrents[]") for torrent in torrents]


class ExportedRowSource(SourceAdapter):
    """Turns exported browse rows into candidate groups, in row order."""

    def __init__(self, rows: list[dict], profile: TrackerProfile):
        if not profile.can_be_source:
            raise ValueError(f"{profile.name} cannot be used as a source tracker.")
        self.rows = rows
        self.profile = profile
        self._index = {id(row): idx for idx, row in enumerate(rows)}

    def _is_skipped(self, row: dict) -> bool:
        return self.profile.skip_exclusive and bool(row.get("exclusive"))

    def _origin_of(self, row: dict) -> Any:
        return _row_ref(row, self._index[id(row)])

    def build_group(self, row: dict) -> Optional[CandidateGroup]:
        index = self._index[id(row)]
        torrents = _row_torrents(row)
        if not torrents:
            return None
        return CandidateGroup(
            identity=build_identity(row, self.profile),
            releases=[
                build_release(torrent, row, _torrent_ref(row, index, position, len(torrents)))
                for position, torrent in enumerate(torrents)
            ],
            category=parse_category(row.get("category")),
            origin_ref=_row_ref(row, index),
        )

    def scan(self) -> AsyncIterator[ScanEvent]:
        return scan_rows(self.rows, self.build_group, self._is_skipped, self._origin_of)
