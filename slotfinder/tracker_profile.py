"""Central tracker capability and policy definitions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

TitleStyle = Literal["release_name", "spaced", "none"]
AuthStyle = Literal["api_user_key", "bearer", "none"]


@dataclass(frozen=True)
class TrackerProfile:
    name: str
    hosts: tuple[str, ...]
    can_be_source: bool
    can_be_destination: bool
    title_style: TitleStyle = "none"
    auth_style: AuthStyle = "none"
    request_limit: int | None = None
    skip_exclusive: bool = False

    def matches_url(self, url: str) -> bool:
        lowered = (url or "").lower()
        return any(host in lowered for host in self.hosts)


_TRACKER_PROFILES: dict[str, TrackerProfile] = {
    "ptp": TrackerProfile(
        name="PTP",
        hosts=("passthepopcorn.me",),
        can_be_source=True,
        can_be_destination=True,
        title_style="release_name",
        auth_style="api_user_key",
        request_limit=5,
    ),
    "hdb": TrackerProfile(
        name="HDB",
        hosts=("hdbits.org",),
        can_be_source=True,
        can_be_destination=False,
        title_style="spaced",
        skip_exclusive=True,
    ),
    "blu": TrackerProfile(
        name="BLU",
        hosts=("blutopia.xyz", "blutopia.cc"),
        can_be_source=True,
        can_be_destination=True,
        auth_style="bearer",
    ),
    "hdt": TrackerProfile(
        name="HDT",
        hosts=("hd-torrents.org",),
        can_be_source=True,
        can_be_destination=False,
    ),
}


def _normalize_tracker_name(tracker_name: str | None) -> str:
    return (tracker_name or "").strip().lower()


def resolve_tracker_profile(tracker_name: str | None) -> TrackerProfile:
    normalized = _normalize_tracker_name(tracker_name)
    profile = _TRACKER_PROFILES.get(normalized)
    if profile is not None:
        return profile
    supported = ", ".join(name.upper() for name in sorted(_TRACKER_PROFILES))
    raise ValueError(
        f"Unsupported tracker '{tracker_name}'. Supported trackers: {supported}."
    )


def resolve_tracker_for_url(url: str) -> tuple[str, TrackerProfile]:
    for key, profile in _TRACKER_PROFILES.items():
        if profile.matches_url(url):
            return key, profile
    raise ValueError(f"URL does not belong to a supported tracker: {url}")


def destination_trackers() -> list[str]:
    return sorted(key for key, profile in _TRACKER_PROFILES.items() if profile.can_be_destination)
