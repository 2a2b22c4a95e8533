"""Turn scraped text fragments into typed release fields."""

from __future__ import annotations

import re
from typing import Optional, Union

from slotfinder.matching.types import Category, Resolution

REMUX = "Remux"
HDR = "HDR"
DV = "DV"

_SIZE_UNITS = {"GB": 1024.0, "MB": 1.0}
_SIZE_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*(GiB|GB|MiB|MB)")
_THOUSANDS_RE = re.compile(r"^\d{1,3}(?:,\d{3})+(?:\.\d+)?$")
_BYTES_PER_MB = 1024 * 1024

RESOLUTION_ALIASES: dict[Resolution, tuple[str, ...]] = {
    Resolution.SD: ("sd", "pal", "ntsc"),
    Resolution.HD: ("720p", "hd"),
    Resolution.FHD: ("1080p", "fhd", "full_hd"),
    Resolution.UHD: ("2160p", "uhd", "4k"),
}
# Aliases are whole tokens, so "hd" does not fire inside "uhd" or "full_hd".
_RESOLUTION_PATTERNS: dict[Resolution, re.Pattern[str]] = {
    resolution: re.compile(
        "|".join(rf"(?<![A-Za-z0-9_]){re.escape(alias)}(?![A-Za-z0-9_])" for alias in aliases)
    )
    for resolution, aliases in RESOLUTION_ALIASES.items()
}
_DIMENSIONS_RE = re.compile(r"\b(\d{3,4})x(\d{3,4})\b")

CODEC_ALIASES: dict[str, tuple[str, ...]] = {
    "x264": ("x264", "h264", "h.264", "h 264"),
    "x265": ("x265", "h265", "h.265", "h 265", "hevc"),
}

_HDRIP_RE = re.compile("HDRip", re.IGNORECASE)
_RELEASE_NAME_RE = re.compile(r"^(.+?)\.(\d{4})\.")
_SPACED_TITLE_RE = re.compile(r"^(.*?)\s+(\d{4})\s+(.*)$")
_IMDB_RE = re.compile(r"(tt\d+)")
_WHITESPACE_RE = re.compile(r"\s+")

# HDB browse category ids.
_HDB_CATEGORY_IDS: dict[str, Category] = {
    "1": Category.MOVIE,
    "2": Category.TV,
    "3": Category.DOCUMENTARY,
    "4": Category.MUSIC,
    "5": Category.SPORT,
    "6": Category.MUSIC,
    "7": Category.XXX,
}
_CATEGORY_LABELS: tuple[tuple[str, Category], ...] = (
    ("stand-up comedy", Category.STAND_UP),
    ("standup", Category.STAND_UP),
    ("live performance", Category.LIVE_PERFORMANCE),
    ("liveperformance", Category.LIVE_PERFORMANCE),
    ("documentary", Category.DOCUMENTARY),
    ("movie", Category.MOVIE),
    ("feature film", Category.MOVIE),
    ("tv", Category.TV),
    ("music", Category.MUSIC),
    ("sport", Category.SPORT),
    ("xxx", Category.XXX),
)


def _magnitude(raw: str) -> float:
    # "1,5" is a decimal comma; "1,234" and "1,234.5" group thousands.
    if "." not in raw and not _THOUSANDS_RE.match(raw):
        raw = raw.replace(",", ".", 1)
    return float(raw.replace(",", ""))


def parse_size(text: Optional[str]) -> Optional[float]:
    """Return the size in megabytes, or None when no magnitude/unit is found."""
    if not text:
        return None
    match = _SIZE_RE.search(text)
    if not match:
        return None
    magnitude = _magnitude(match.group(1))
    unit = match.group(2).replace("iB", "B")
    size = magnitude * _SIZE_UNITS[unit]
    return size if size > 0 else None


def parse_resolution(text: Optional[str]) -> Optional[Resolution]:
    if not text:
        return None
    for resolution, pattern in _RESOLUTION_PATTERNS.items():
        if pattern.search(text):
            return resolution
    match = _DIMENSIONS_RE.search(text)
    if match:
        return resolution_from_height(int(match.group(2)))
    return None


def parse_remote_resolution(value: object) -> Union[Resolution, str, None]:
    """Single resolution field of a tracker API; unknown values stay raw."""
    raw = str(value or "").strip()
    if not raw:
        return None
    return parse_resolution(raw.lower()) or raw


def size_from_bytes(value: object) -> Optional[float]:
    try:
        size = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return size / _BYTES_PER_MB if size > 0 else None


def resolution_from_height(height: int) -> Resolution:
    if height < 720:
        return Resolution.SD
    if height < 1080:
        return Resolution.HD
    if height < 2160:
        return Resolution.FHD
    return Resolution.UHD


def parse_codec(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    lowered = text.lower()
    for codec, aliases in CODEC_ALIASES.items():
        if any(alias in lowered for alias in aliases):
            return codec
    return None


def parse_tags(text: Optional[str]) -> frozenset[str]:
    if not text:
        return frozenset()
    tags: set[str] = set()
    if "remux" in text.lower():
        tags.add(REMUX)
    if HDR in _HDRIP_RE.sub("", text):
        tags.add(HDR)
    if DV in text:
        tags.add(DV)
    return frozenset(tags)


def parse_title_year_from_release_name(text: Optional[str]) -> tuple[Optional[str], Optional[int]]:
    """Parse ``Title.Words.YYYY.rest`` release names."""
    match = _RELEASE_NAME_RE.match(text or "")
    if not match:
        return None, None
    title = match.group(1).replace(".", " ").strip()
    return title, int(match.group(2))


def parse_title_year(text: Optional[str]) -> tuple[Optional[str], Optional[int]]:
    """Parse ``Title Words YYYY rest`` listing titles."""
    match = _SPACED_TITLE_RE.match(text or "")
    if not match:
        return None, None
    return match.group(1).strip(), int(match.group(2))


def parse_imdb_id(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    match = _IMDB_RE.search(text)
    return match.group(1) if match else None


def parse_category(text: Optional[str]) -> Optional[Category]:
    if text is None:
        return None
    cleaned = str(text).strip().replace("?cat=", "")
    if not cleaned:
        return None
    if cleaned in _HDB_CATEGORY_IDS:
        return _HDB_CATEGORY_IDS[cleaned]
    lowered = cleaned.lower()
    for label, category in _CATEGORY_LABELS:
        if lowered == label or lowered.startswith(label + " "):
            return category
    return None


def normalize_title(text: Optional[str]) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip().casefold()
