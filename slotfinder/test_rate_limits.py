from __future__ import annotations

import pytest

from slotfinder import rate_limits
from slotfinder.tracker_profile import resolve_tracker_profile


def _fake_clock(monkeypatch: pytest.MonkeyPatch, start: float) -> list[float]:
    clock = {"now": start}
    waits: list[float] = []

    monkeypatch.setattr(rate_limits.time, "monotonic", lambda: clock["now"])

    async def _fake_sleep(delay: float) -> None:
        waits.append(delay)
        clock["now"] += delay

    monkeypatch.setattr(rate_limits.asyncio, "sleep", _fake_sleep)
    return waits


@pytest.mark.asyncio
async def test_pacer_spaces_consecutive_requests(monkeypatch: pytest.MonkeyPatch) -> None:
    waits = _fake_clock(monkeypatch, 100.0)
    pacer = rate_limits.RequestPacer()

    first_wait = await pacer.wait()
    second_wait = await pacer.wait()

    assert first_wait == 0.0
    assert second_wait == pytest.approx(rate_limits.TRACKER_MIN_INTERVAL_SECONDS)
    assert waits == [pytest.approx(rate_limits.TRACKER_MIN_INTERVAL_SECONDS)]


@pytest.mark.asyncio
async def test_pacer_does_not_wait_after_interval_elapsed(monkeypatch: pytest.MonkeyPatch) -> None:
    clock = {"now": 50.0}
    monkeypatch.setattr(rate_limits.time, "monotonic", lambda: clock["now"])
    pacer = rate_limits.RequestPacer(min_interval_seconds=2.0)

    await pacer.wait()
    clock["now"] += 5.0

    assert await pacer.wait() == 0.0


@pytest.mark.asyncio
async def test_pacers_do_not_share_state(monkeypatch: pytest.MonkeyPatch) -> None:
    waits = _fake_clock(monkeypatch, 200.0)

    assert await rate_limits.RequestPacer().wait() == 0.0
    assert await rate_limits.RequestPacer().wait() == 0.0
    assert waits == []


@pytest.mark.asyncio
async def test_pacer_applies_profile_request_window(monkeypatch: pytest.MonkeyPatch) -> None:
    waits = _fake_clock(monkeypatch, 300.0)
    pacer = rate_limits.RequestPacer.for_profile(resolve_tracker_profile("ptp"), min_interval_seconds=0)

    for _ in range(5):
        await pacer.wait()
    sixth_wait = await pacer.wait()

    assert sixth_wait == pytest.approx(rate_limits.TRACKER_RATE_LIMIT_WINDOW_SECONDS)
    assert waits == [pytest.approx(rate_limits.TRACKER_RATE_LIMIT_WINDOW_SECONDS)]


@pytest.mark.asyncio
async def test_pacer_without_request_limit_has_no_window(monkeypatch: pytest.MonkeyPatch) -> None:
    waits = _fake_clock(monkeypatch, 400.0)
    pacer = rate_limits.RequestPacer.for_profile(resolve_tracker_profile("blu"), min_interval_seconds=0)

    for _ in range(8):
        await pacer.wait()

    assert waits == []
