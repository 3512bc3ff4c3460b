"""
/**
 * @file translate_proxy/models/translation_models.py
 * @description 内部数据类型：缓存条目、限流窗口与判定、翻译结果。
 */
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from translate_proxy.models.translate_request_model import TranslateResponse


@dataclass(frozen=True)
class CacheEntry:
    translation: str
    stored_at: float

    def age(self, now: float) -> float:
        return now - self.stored_at


@dataclass
class RateLimitWindow:
    count: int
    window_start: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after_seconds: int
    limit: int = 0
    reset_after_seconds: int = 0
    bypassed: bool = False


@dataclass(frozen=True)
class TranslationResult:
    translation: str
    cached: bool
    detected_source_lang: str
    cache_key: Optional[str] = None
    short_circuited: bool = False
    rate_limit: Optional[RateLimitDecision] = None

    @property
    def cache_status(self) -> str:
        if self.short_circuited:
            return "BYPASS"
        return "HIT" if self.cached else "MISS"

    def to_response(self) -> TranslateResponse:
        return TranslateResponse(
            translation=self.translation,
            cached=self.cached,
            detectedSourceLang=self.detected_source_lang,
        )
