"""Tracker-specific authentication header formatting."""

from __future__ import annotations

from slotfinder.tracker_profile import resolve_tracker_profile


def build_tracker_auth_headers(tracker_name: str, api_user: str, api_key: str) -> dict[str, str]:
    """
    Return the authentication headers for a tracker.

    Keep rules explicit per tracker; each site authenticates API calls its
    own way.
    """
    profile = resolve_tracker_profile(tracker_name)
    user = (api_user or "").strip()
    key = (api_key or "").strip()
    if profile.auth_style == "api_user_key":
        if not user or not key:
            raise ValueError(f"{profile.name} needs both api_user and api_key.")
        return {"ApiUser": user, "ApiKey": key}
    if profile.auth_style == "bearer":
        if not key:
            raise ValueError(f"{profile.name} needs an api_key.")
        return {"Authorization": key if key.lower().startswith("bearer ") else f"Bearer {key}"}
    raise ValueError(f"{profile.name} has no supported API authentication.")
