"""aiohttp plumbing shared by the destination adapters."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, TypeVar

import aiohttp

from slotfinder import logger
from slotfinder.__version__ import __version__
from slotfinder.config import TrackerConfig
from slotfinder.rate_limits import (
    TRACKER_MIN_INTERVAL_SECONDS,
    TRACKER_WAIT_LOG_THRESHOLD_SECONDS,
    RequestPacer,
)
from slotfinder.tracker_auth import build_tracker_auth_headers
from slotfinder.tracker_profile import resolve_tracker_profile
from slotfinder.trackers.resilience import RETRYABLE_HTTP_STATUSES, retry_delay_seconds

DEFAULT_USER_AGENT = f"Slotfinder/{__version__}"
_T = TypeVar("_T")


class TrackerHttpClient:
    """Paced, retrying GET requests against one tracker.

    Subclasses set ``tracker_key``; credentials are checked up front through
    the tracker's auth rules so a bad config fails before the scan starts.
    """

    tracker_key = ""
    max_retries = 3

    def __init__(
        self,
        tracker: TrackerConfig,
        timeout: int = 10,
        max_concurrency: int = 3,
        min_interval_seconds: float = TRACKER_MIN_INTERVAL_SECONDS,
    ):
        self.tracker = tracker
        self.profile = resolve_tracker_profile(self.tracker_key)
        self.timeout = timeout
        self.base_url = tracker.url.rstrip("/")
        self._headers = self._get_headers()
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._pacer = RequestPacer.for_profile(self.profile, min_interval_seconds)
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()

    def _get_headers(self) -> Dict[str, str]:
        headers = build_tracker_auth_headers(self.tracker_key, self.tracker.api_user, self.tracker.api_key)
        headers["User-Agent"] = DEFAULT_USER_AGENT
        return headers

    async def _request_with_retries(
        self,
        path: str,
        params: Dict[str, Any],
        parser: Callable[[aiohttp.ClientResponse], Awaitable[_T]],
    ) -> tuple[int, _T, float]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        log = logger.get_logger()
        log.api_request("GET", url, params)
        request_start = time.time()

        async with self._semaphore:
            await self._enforce_interval()
            session = await self._ensure_session()
            for attempt in range(self.max_retries):
                try:
                    async with session.get(url, params=params) as response:
                        if response.status >= 400:
                            text = await response.text()
                            exc = aiohttp.ClientResponseError(
                                request_info=response.request_info,
                                history=response.history,
                                status=response.status,
                                message=text,
                                headers=response.headers,
                            )
                            # Retry only transient server failures and explicit throttling.
                            if attempt < self.max_retries - 1 and response.status in RETRYABLE_HTTP_STATUSES:
                                delay = retry_delay_seconds(attempt=attempt, retry_after=response.headers.get("Retry-After"))
                                log.api_retry(self.profile.name, attempt + 1, self.max_retries, delay)
                                await asyncio.sleep(delay)
                                continue
                            raise exc
                        data = await parser(response)
                        elapsed_ms = (time.time() - request_start) * 1000
                        return response.status, data, elapsed_ms
                except (asyncio.TimeoutError, aiohttp.ClientConnectionError, aiohttp.ServerTimeoutError):
                    if attempt < self.max_retries - 1:
                        delay = 2 ** (attempt + 1)
                        log.api_retry(self.profile.name, attempt + 1, self.max_retries, delay)
                        await asyncio.sleep(delay)
                    else:
                        log.api_failed(self.profile.name, self.max_retries)
                        raise
        raise RuntimeError("Unreachable retry exit")

    async def _request_json(self, path: str, params: Dict[str, Any]) -> Any:
        status, data, elapsed_ms = await self._request_with_retries(
            path,
            params,
            lambda response: response.json(content_type=None),
        )
        logger.get_logger().api_response(status, data, elapsed_ms)
        return data

    async def _enforce_interval(self) -> None:
        wait = await self._pacer.wait()
        log = logger.get_logger()
        log.api_wait_debug(self.profile.name, wait)
        if wait > TRACKER_WAIT_LOG_THRESHOLD_SECONDS:
            log.api_wait(self.profile.name, wait)

    async def _ensure_session(self) -> aiohttp.ClientSession:
        session = self._session
        if session is not None and not session.closed:
            return session

        async with self._session_lock:
            session = self._session
            if session is None or session.closed:
                self._session = aiohttp.ClientSession(
                    headers=self._headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                )
            return self._session

    async def close(self) -> None:
        """Close any open connections."""
        async with self._session_lock:
            session = self._session
            self._session = None
        if session is not None and not session.closed:
            await session.close()
