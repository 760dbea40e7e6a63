"""Fixed-window rate limiting for the login and registration endpoints.

The limiter is a pluggable collaborator stored on app.state.rate_limiter; any
object with the same hit() method can replace the in-memory default (for
example a Redis-backed counter shared by several workers).
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Annotated, Protocol

from fastapi import Depends, Request

from formula_access.core.config import Settings, get_settings
from formula_access.core.errors import RateLimitError

logger = logging.getLogger(__name__)


class RateLimiter(Protocol):
    def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        """Count one attempt for key; False once limit is exceeded in the window."""
        ...


class FixedWindowRateLimiter:
    """In-process counter per (key, window start); safe across worker threads.

    Entries from finished windows are swept the first time a hit lands in a
    newer window of the same length, so memory is bounded by the keys seen
    in the current window.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (window_seconds, window index, count)
        self._windows: dict[str, tuple[int, int, int]] = {}
        # window_seconds -> newest window index already swept
        self._swept: dict[int, int] = {}

    def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        window = int(self._clock() // window_seconds)
        with self._lock:
            if self._swept.get(window_seconds) != window:
                self._sweep(window_seconds, window)
            _, start, count = self._windows.get(key, (window_seconds, window, 0))
            if start != window:
                count = 0
            count += 1
            self._windows[key] = (window_seconds, window, count)
        return count <= limit

    def _sweep(self, window_seconds: int, window: int) -> None:
        stale = [
            key
            for key, (seconds, start, _) in self._windows.items()
            if seconds == window_seconds and start < window
        ]
        for key in stale:
            del self._windows[key]
        self._swept[window_seconds] = window

    def tracked_keys(self) -> int:
        """Number of keys currently holding a counter."""
        with self._lock:
            return len(self._windows)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
            self._swept.clear()


def _client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limit(scope: str, limit_setting: str, window_setting: str) -> Callable[..., None]:
    """Dependency factory enforcing a fixed-window limit per client address."""

    def _check(
        request: Request,
        settings: Annotated[Settings, Depends(get_settings)],
    ) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return
        limiter: RateLimiter | None = getattr(request.app.state, "rate_limiter", None)
        if limiter is None:
            return
        limit = getattr(settings, limit_setting)
        window = getattr(settings, window_setting)
        key = f"{scope}:{_client_address(request)}"
        if not limiter.hit(key, limit, window):
            logger.warning("Rate limit exceeded: scope=%s client=%s", scope, _client_address(request))
            raise RateLimitError(
                f"Too many {scope} attempts, please try again later",
                code=f"{scope.upper()}_RATE_LIMIT_EXCEEDED",
            )

    return _check


login_rate_limit = rate_limit("auth", "LOGIN_RATE_LIMIT", "LOGIN_RATE_WINDOW_SEC")
register_rate_limit = rate_limit("register", "REGISTER_RATE_LIMIT", "REGISTER_RATE_WINDOW_SEC")
