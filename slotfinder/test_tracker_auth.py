import pytest

from slotfinder.tracker_auth import build_tracker_auth_headers


def test_tracker_auth_headers_ptp_uses_api_user_and_key() -> None:
    assert build_tracker_auth_headers("PTP", "user", "key") == {"ApiUser": "user", "ApiKey": "key"}


def test_tracker_auth_headers_ptp_requires_both_credentials() -> None:
    with pytest.raises(ValueError, match="api_user and api_key"):
        build_tracker_auth_headers("ptp", "", "key")


def test_tracker_auth_headers_blu_uses_bearer_prefix() -> None:
    assert build_tracker_auth_headers("blu", "", "blu-key") == {"Authorization": "Bearer blu-key"}


def test_tracker_auth_headers_blu_preserves_existing_prefix() -> None:
    assert build_tracker_auth_headers("blu", "", "bearer blu-key") == {"Authorization": "bearer blu-key"}


def test_tracker_auth_headers_without_api_auth_raises() -> None:
    with pytest.raises(ValueError, match="no supported API authentication"):
        build_tracker_auth_headers("hdb", "user", "key")


def test_tracker_auth_headers_unknown_tracker_raises() -> None:
    with pytest.raises(ValueError, match="Unsupported tracker"):
        build_tracker_auth_headers("other", "user", "abc123")


def test_tracker_auth_headers_normalize_tracker_name_and_whitespace() -> None:
    assert build_tracker_auth_headers(" PTP ", "  user ", "  key  ") == {"ApiUser": "user", "ApiKey": "key"}
