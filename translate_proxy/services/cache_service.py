"""
/**
 * @file translate_proxy/services/cache_service.py
 * @description 翻译缓存：内容指纹键、TTL 过期（惰性淘汰 + 周期清理）、命中统计。
 */
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from translate_proxy.models.translation_models import CacheEntry


logger = logging.getLogger("translation_cache")


def make_cache_key(text: str, source_lang: str, target_lang: str, provider: str) -> str:
    data = json.dumps(
        {"text": text, "sourceLang": source_lang, "targetLang": target_lang, "provider": provider},
        sort_keys=True,
        ensure_ascii=False,
    )
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


class KeyValueStore(ABC):
    """
    Key/value storage for cache entries. Implementations must make each call atomic.
    Expiry is decided by TranslationCache, so stores keep entries until deleted or swept.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def sweep(self, is_stale: Callable[[Any], bool]) -> int:
        """Remove every value for which ``is_stale`` returns True; return the count removed."""

    @abstractmethod
    def __len__(self) -> int:
        ...


class InMemoryStore(KeyValueStore):
    def __init__(self) -> None:
        self._data: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def sweep(self, is_stale: Callable[[Any], bool]) -> int:
        with self._lock:
            stale = [k for k, v in self._data.items() if is_stale(v)]
            for k in stale:
                del self._data[k]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class TranslationCache:
    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        ttl_seconds: float = 72 * 60 * 60,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store if store is not None else InMemoryStore()
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._stats_lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def _is_expired(self, entry: Any, now: float) -> bool:
        # ttl_seconds is read on every check so a reloaded TTL applies to existing entries
        return not isinstance(entry, CacheEntry) or entry.age(now) >= self.ttl_seconds

    def lookup(self, key: str) -> Optional[CacheEntry]:
        now = self._clock()
        entry = self._store.get(key)
        if entry is not None and self._is_expired(entry, now):
            self._store.delete(key)
            entry = None
        with self._stats_lock:
            if entry is None:
                self.misses += 1
            else:
                self.hits += 1
        return entry

    def store(self, key: str, translation: str) -> CacheEntry:
        entry = CacheEntry(translation=translation, stored_at=self._clock())
        self._store.put(key, entry)
        return entry

    def sweep(self) -> int:
        now = self._clock()
        removed = self._store.sweep(lambda entry: self._is_expired(entry, now))
        if removed:
            logger.info(f"Cache cleanup: removed {removed} expired entries")
        return removed

    @property
    def size(self) -> int:
        return len(self._store)

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class CacheSweeper:
    """Daemon thread that periodically drops expired cache entries and elapsed rate-limit windows."""

    def __init__(self, cache: TranslationCache, interval_seconds: float, rate_limiter=None):
        self._cache = cache
        self._rate_limiter = rate_limiter
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True)
        self._thread.start()
        logger.info(f"Cache sweeper started (every {int(self._interval)}s)")

    def shutdown(self) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

    def _loop(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self._cache.sweep()
                if self._rate_limiter is not None:
                    self._rate_limiter.sweep()
            except Exception as e:
                logger.error(f"Cache sweep failed: {e}")
