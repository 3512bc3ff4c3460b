"""
/**
 * @file translate_proxy/services/translation_service.py
 * @description 翻译网关：校验 → 限流 → （自动）检测语言 → 同语种短路 → 查缓存 → 调用上游 → 写缓存。
 */
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from translate_proxy.config import Settings, load_settings
from translate_proxy.models.translation_models import RateLimitDecision, TranslationResult
from translate_proxy.services.cache_service import TranslationCache, make_cache_key
from translate_proxy.services.errors import RateLimitExceeded
from translate_proxy.services.gemini_client_service import GeminiClient
from translate_proxy.services.language_service import detect_language, resolve_source_language
from translate_proxy.services.rate_limit_service import RateLimiter
from translate_proxy.services.validation_service import validate_translate_request
from translate_proxy.utils.text_utils import count_lines, normalize_text


logger = logging.getLogger("translate")


class KeyedLocks:
    """One lock per in-flight cache key; entries are dropped when nobody holds or waits on them."""

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._refs: Dict[str, int] = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._refs[key] = self._refs.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._refs[key] -= 1
                if self._refs[key] == 0:
                    del self._refs[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class TranslationGateway:
    _instance = None
    _instance_lock = threading.Lock()

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        cache: Optional[TranslationCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
        settings: Optional[Settings] = None,
        single_flight: Optional[bool] = None,
    ):
        s = settings or load_settings()
        self.client = client or GeminiClient(settings=settings)
        self.cache = cache if cache is not None else TranslationCache(ttl_seconds=s.cache_ttl_seconds)
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter(
            max_requests=s.rate_limit_max_requests,
            window_seconds=s.rate_limit_window_seconds,
            trusted_clients=s.trusted_clients,
        )
        self.single_flight = s.single_flight if single_flight is None else single_flight
        self._inflight = KeyedLocks()

    @classmethod
    def instance(cls) -> "TranslationGateway":
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = TranslationGateway()
            return cls._instance

    @classmethod
    def reset_instance(cls, gateway: Optional["TranslationGateway"] = None) -> None:
        with cls._instance_lock:
            cls._instance = gateway

    def apply_settings(self, settings: Settings) -> None:
        """Pick up reloaded limits without dropping cached entries or open windows."""
        self.cache.ttl_seconds = settings.cache_ttl_seconds
        self.rate_limiter.max_requests = settings.rate_limit_max_requests
        self.rate_limiter.window_seconds = settings.rate_limit_window_seconds
        self.rate_limiter.trusted_clients = set(settings.trusted_clients)
        self.single_flight = settings.single_flight

    def translate(self, payload: Any, client_id: str) -> TranslationResult:
        req = validate_translate_request(payload)

        decision = self.rate_limiter.check(client_id)
        if not decision.allowed:
            raise RateLimitExceeded(retry_after=decision.retry_after_seconds, decision=decision)

        text = normalize_text(req.text)

        source_lang = req.source_lang
        if req.wants_detection:
            logger.info("Auto-detecting language...")
            source_lang = resolve_source_language(detect_language(self.client, text))
            logger.info(f"Detected language: {source_lang}")

        if source_lang == req.target_lang:
            logger.info("Source and target languages are the same, returning original text")
            return TranslationResult(
                translation=text,
                cached=False,
                detected_source_lang=source_lang,
                short_circuited=True,
                rate_limit=decision,
            )

        cache_key = make_cache_key(text, source_lang, req.target_lang, req.provider)
        if not self.single_flight:
            return self._lookup_or_translate(cache_key, text, source_lang, req.target_lang, decision)
        with self._inflight.hold(cache_key):
            return self._lookup_or_translate(cache_key, text, source_lang, req.target_lang, decision)

    def _lookup_or_translate(
        self,
        cache_key: str,
        text: str,
        source_lang: str,
        target_lang: str,
        decision: RateLimitDecision,
    ) -> TranslationResult:
        entry = self.cache.lookup(cache_key)
        if entry is not None:
            logger.info(f"Cache hit: {cache_key}")
            return TranslationResult(
                translation=entry.translation,
                cached=True,
                detected_source_lang=source_lang,
                cache_key=cache_key,
                rate_limit=decision,
            )

        logger.info(f"Translating from {source_lang} to {target_lang}...")
        translation = self.client.translate(text, source_lang, target_lang)

        expected, actual = count_lines(text), count_lines(translation)
        if expected != actual:
            logger.warning(f"Line count mismatch for {cache_key}: input {expected}, translation {actual}")

        self.cache.store(cache_key, translation)
        logger.info(f"Translation successful, cached with key: {cache_key}")
        return TranslationResult(
            translation=translation,
            cached=False,
            detected_source_lang=source_lang,
            cache_key=cache_key,
            rate_limit=decision,
        )
