"""
/**
 * @file translate_proxy/services/rate_limit_service.py
 * @description 固定窗口限流（按客户端标识计数），支持信任名单跳过。
 * @note 窗口边界处最多可放行 2 倍上限的突发请求，这是固定窗口算法的已知放宽。
 */
"""

from __future__ import annotations

import logging
import math
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, Optional, Tuple

from translate_proxy.models.translation_models import RateLimitDecision, RateLimitWindow


logger = logging.getLogger("rate_limit")


class CounterStore(ABC):
    @abstractmethod
    def hit(self, key: str, limit: int, window_seconds: float, now: float) -> Tuple[bool, RateLimitWindow]:
        """
        Atomically apply one request to the window for ``key``.
        Returns (allowed, window after the update).
        """

    @abstractmethod
    def sweep(self, window_seconds: float, now: float) -> int:
        ...


class InMemoryCounterStore(CounterStore):
    def __init__(self) -> None:
        self._windows: Dict[str, RateLimitWindow] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int, window_seconds: float, now: float) -> Tuple[bool, RateLimitWindow]:
        with self._lock:
            window = self._windows.get(key)
            if window is None or now - window.window_start >= window_seconds:
                window = RateLimitWindow(count=1, window_start=now)
                self._windows[key] = window
                return True, RateLimitWindow(window.count, window.window_start)
            if window.count >= limit:
                return False, RateLimitWindow(window.count, window.window_start)
            window.count += 1
            return True, RateLimitWindow(window.count, window.window_start)

    def sweep(self, window_seconds: float, now: float) -> int:
        with self._lock:
            stale = [k for k, w in self._windows.items() if now - w.window_start >= window_seconds]
            for k in stale:
                del self._windows[k]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)


class RateLimiter:
    def __init__(
        self,
        max_requests: int = 60,
        window_seconds: float = 60,
        trusted_clients: Optional[Iterable[str]] = None,
        store: Optional[CounterStore] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.trusted_clients = set(trusted_clients or [])
        self._store = store if store is not None else InMemoryCounterStore()
        self._clock = clock

    def check(self, client_id: str) -> RateLimitDecision:
        if client_id in self.trusted_clients:
            return RateLimitDecision(
                allowed=True,
                remaining=self.max_requests,
                retry_after_seconds=0,
                limit=self.max_requests,
                bypassed=True,
            )

        now = self._clock()
        allowed, window = self._store.hit(client_id, self.max_requests, self.window_seconds, now)
        reset_after = max(0, int(math.ceil(window.window_start + self.window_seconds - now)))
        if not allowed:
            logger.warning(f"Rate limit exceeded for {client_id} ({window.count}/{self.max_requests})")
            return RateLimitDecision(
                allowed=False,
                remaining=0,
                retry_after_seconds=int(math.ceil(self.window_seconds)),
                limit=self.max_requests,
                reset_after_seconds=reset_after,
            )
        return RateLimitDecision(
            allowed=True,
            remaining=max(0, self.max_requests - window.count),
            retry_after_seconds=0,
            limit=self.max_requests,
            reset_after_seconds=reset_after,
        )

    def sweep(self) -> int:
        return self._store.sweep(self.window_seconds, self._clock())
