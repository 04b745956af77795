"""In-memory cache of DingTalk access tokens.

Tokens are keyed by app key and expire after a fixed TTL that is shorter
than the platform's two hour lifetime, so a cached token is always retired
before DingTalk would reject it. The TTL ignores the expires_in the
platform sends back.
"""

import threading
import time
from typing import Callable, Dict, Optional, Tuple

from messenger.logging import get_logger

logger = get_logger(__name__, component="token_cache")

DEFAULT_TOKEN_TTL_SECONDS = 7000
DEFAULT_CLEANUP_INTERVAL_SECONDS = 7200


class AccessTokenCache:
    """Thread-safe token cache with TTL expiry and periodic sweeping.

    Expired entries are never returned. In addition, whenever the cache is
    touched and cleanup_interval seconds have passed since the last sweep,
    all expired entries are dropped. There is no background thread.

    Args:
        ttl_seconds: Lifetime of every entry
        cleanup_interval_seconds: Minimum time between sweeps, >= ttl_seconds
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TOKEN_TTL_SECONDS,
        cleanup_interval_seconds: float = DEFAULT_CLEANUP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got: {ttl_seconds}")
        if cleanup_interval_seconds < ttl_seconds:
            raise ValueError(
                "cleanup_interval_seconds must be >= ttl_seconds, got: "
                f"{cleanup_interval_seconds} < {ttl_seconds}"
            )
        self.ttl_seconds = ttl_seconds
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}  # key -> (token, expires_at)
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    def get(self, key: str) -> Optional[str]:
        """Return the cached token for key, or None if absent or expired."""
        with self._lock:
            now = self._clock()
            self._maybe_cleanup(now)
            entry = self._entries.get(key)
            if entry is None:
                return None
            token, expires_at = entry
            if now >= expires_at:
                del self._entries[key]
                return None
            return token

    def put(self, key: str, token: str) -> None:
        """Store token under key for ttl_seconds, replacing any previous entry."""
        with self._lock:
            now = self._clock()
            self._maybe_cleanup(now)
            self._entries[key] = (token, now + self.ttl_seconds)

    def delete(self, key: str) -> None:
        """Forget the token for key, if any."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cleanup(self) -> int:
        """Drop every expired entry now. Returns how many were removed."""
        with self._lock:
            return self._sweep(self._clock())

    def _maybe_cleanup(self, now: float) -> None:
        # Caller holds the lock
        if now - self._last_cleanup >= self.cleanup_interval_seconds:
            self._sweep(now)

    def _sweep(self, now: float) -> int:
        # Caller holds the lock
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        self._last_cleanup = now
        if expired:
            logger.debug(
                "Swept expired access tokens",
                extra={"event": "token_cache.swept", "removed": len(expired)},
            )
        return len(expired)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for _, expires_at in self._entries.values() if now < expires_at)


_default_cache: Optional[AccessTokenCache] = None
_default_cache_lock = threading.Lock()


def default_token_cache() -> AccessTokenCache:
    """Process-wide cache for callers that do not manage their own."""
    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            _default_cache = AccessTokenCache()
        return _default_cache
