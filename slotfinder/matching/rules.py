"""Equivalence and eligibility rules used by the reconciliation engine."""

from __future__ import annotations

import re
from typing import Optional, Union

from slotfinder.matching.normalize import DV, HDR, REMUX
from slotfinder.matching.types import Category, MediaRelease, Resolution

DEFAULT_SIZE_RATIO = 1.5

_CODEC_ALIAS_PAIRS: frozenset[frozenset[str]] = frozenset(
    frozenset(pair)
    for pair in (
        ("H.264", "x264"),
        ("H.265", "x265"),
        ("UHD100", "BD100"),
        ("UHD66", "BD66"),
    )
)
_SD_LITERALS = frozenset({"SD", "PAL", "NTSC"})
_ELIGIBLE_CATEGORIES = frozenset({Category.MOVIE, Category.DOCUMENTARY, Category.LIVE_PERFORMANCE})
_HEIGHT_RE = re.compile(r"^(\d{3,4})[pi]?$")

ResolutionValue = Union[Resolution, str, None]


def codec_equivalent(first: Optional[str], second: Optional[str]) -> bool:
    if first == second:
        return True
    if first is None or second is None:
        return False
    return frozenset((first, second)) in _CODEC_ALIAS_PAIRS


def _height_of(resolution: str) -> Optional[int]:
    value = resolution.strip().lower()
    if "x" in value:
        value = value.split("x", 1)[1]
    match = _HEIGHT_RE.match(value)
    return int(match.group(1)) if match else None


def is_sd(resolution: ResolutionValue) -> bool:
    """True for SD literals or any height below 720 lines."""
    if resolution is None:
        return False
    value = str(resolution.value if isinstance(resolution, Resolution) else resolution)
    if value.strip().upper() in _SD_LITERALS:
        return True
    height = _height_of(value)
    return height is not None and height < 720


def resolution_compatible(first: ResolutionValue, second: ResolutionValue) -> bool:
    if not first or not second:
        return True
    if first == second:
        return True
    if first == Resolution.SD:
        return is_sd(second)
    if second == Resolution.SD:
        return is_sd(first)
    return False


def is_eligible_category(category: Optional[Category]) -> bool:
    return category is None or category in _ELIGIBLE_CATEGORIES


def is_allowed_encoding(release: MediaRelease) -> bool:
    """Reject non-HDR x265 encodes below UHD."""
    if release.codec != "x265":
        return True
    if release.resolution == Resolution.UHD:
        return True
    return HDR in release.tags or DV in release.tags


def tag_compatible(local: MediaRelease, remote: MediaRelease) -> bool:
    return REMUX not in local.tags or REMUX in remote.tags


def is_similar(local: MediaRelease, remote: MediaRelease) -> bool:
    return (
        resolution_compatible(local.resolution, remote.resolution)
        and (local.codec is None or codec_equivalent(remote.codec, local.codec))
        and tag_compatible(local, remote)
    )


def sizes_distinct(first: Optional[float], second: Optional[float], ratio: float = DEFAULT_SIZE_RATIO) -> bool:
    """True when either known size is at least ``ratio`` times the other."""
    if first is None or second is None:
        return False
    return first >= second * ratio or second >= first * ratio
