"""
/**
 * @file translate_proxy/services/__init__.py
 * @description 业务服务层导出。
 */
"""

from .cache_service import CacheSweeper, InMemoryStore, KeyValueStore, TranslationCache, make_cache_key
from .gemini_client_service import GeminiClient
from .rate_limit_service import CounterStore, InMemoryCounterStore, RateLimiter
from .translation_service import TranslationGateway
from .validation_service import validate_translate_request

__all__ = [
    "CacheSweeper",
    "CounterStore",
    "GeminiClient",
    "InMemoryCounterStore",
    "InMemoryStore",
    "KeyValueStore",
    "RateLimiter",
    "TranslationCache",
    "TranslationGateway",
    "make_cache_key",
    "validate_translate_request",
]
