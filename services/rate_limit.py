"""Process-local fixed-window request throttling."""
from dataclasses import dataclass
from typing import Callable, Dict, NamedTuple, Optional
import math
import time

from exceptions import RateLimitedError


class RateLimitStatus(NamedTuple):
    allowed: bool
    limit: int
    remaining: int
    reset_after: float  # seconds until the client's window resets

    def headers(self) -> Dict[str, str]:
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(math.ceil(self.reset_after)),
        }


@dataclass
class _Window:
    started_at: float
    count: int = 0


class RateLimiter:
    """
    Counts requests per client key inside a window of `window_seconds`.

    State lives in this process only and is not shared between server
    instances. Once the table grows past `sweep_threshold` keys, expired
    windows are swept at most once per window.
    """

    def __init__(
        self,
        max_requests: int = 30,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sweep_threshold: int = 10_000,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._sweep_threshold = sweep_threshold
        self._windows: Dict[str, _Window] = {}
        self._last_sweep: Optional[float] = None

    def hit(self, key: str) -> RateLimitStatus:
        """Record one request for `key` and report whether it is within the limit."""
        now = self._clock()
        window = self._windows.get(key)
        if window is None or now - window.started_at >= self.window_seconds:
            if window is None and self._sweep_due(now):
                self._sweep(now)
            window = _Window(started_at=now)
            self._windows[key] = window

        window.count += 1
        reset_after = max(0.0, window.started_at + self.window_seconds - now)
        return RateLimitStatus(
            allowed=window.count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - window.count),
            reset_after=reset_after,
        )

    def check(self, key: str) -> RateLimitStatus:
        """Like `hit`, but raise RateLimitedError once the client is over the limit."""
        result = self.hit(key)
        if not result.allowed:
            headers = result.headers()
            headers["Retry-After"] = str(math.ceil(result.reset_after))
            raise RateLimitedError(headers=headers)
        return result

    def reset(self) -> None:
        self._windows.clear()
        self._last_sweep = None

    def _sweep_due(self, now: float) -> bool:
        if len(self._windows) < self._sweep_threshold:
            return False
        return self._last_sweep is None or now - self._last_sweep >= self.window_seconds

    def _sweep(self, now: float) -> None:
        self._last_sweep = now
        expired = [k for k, w in self._windows.items() if now - w.started_at >= self.window_seconds]
        for key in expired:
            del self._windows[key]
