"""HTTP reachability probe adapter."""

import asyncio
import logging
import time

import requests

logger = logging.getLogger(__name__)


class HttpReachabilityProbe:
    """
    Reachability check against the backend host.

    Implements ReachabilityProbe protocol. Any HTTP response counts as
    online; a connection error or timeout counts as offline. Results are
    cached for `cache_seconds`.
    """

    def __init__(
        self,
        url: str,
        cache_seconds: float = 5.0,
        timeout: float = 3.0,
        force_offline: bool = False,
        http: requests.Session | None = None,
        clock=time.monotonic,
    ):
        self.url = url
        self.cache_seconds = cache_seconds
        self.timeout = timeout
        self._force_offline = force_offline
        self._http = http or requests.Session()
        self._clock = clock
        self._cached: bool | None = None
        self._checked_at = 0.0

    @property
    def force_offline(self) -> bool:
        return self._force_offline

    @force_offline.setter
    def force_offline(self, value: bool) -> None:
        self._force_offline = value
        self.invalidate()
        logger.info(f"Force offline mode: {value}")

    def invalidate(self) -> None:
        """Drop the cached state so the next call probes again."""
        self._cached = None
        self._checked_at = 0.0

    def _probe(self) -> bool:
        if not self.url:
            return False
        try:
            self._http.head(self.url, timeout=self.timeout)
            return True
        except requests.RequestException:
            return False

    async def is_online(self) -> bool:
        """Return True if the backend host answered recently."""
        if self._force_offline:
            return False

        now = self._clock()
        if self._cached is not None and now - self._checked_at < self.cache_seconds:
            return self._cached

        online = await asyncio.to_thread(self._probe)
        if self._cached is not None and online != self._cached:
            logger.info(f"Connection state changed: {'ONLINE' if online else 'OFFLINE'}")
        self._cached = online
        self._checked_at = now
        return online
