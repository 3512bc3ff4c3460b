"""
/**
 * @file translate_proxy/models/__init__.py
 * @description 数据模型导出。
 */
"""

from .translate_request_model import ErrorResponse, TranslateResponse, TranslationRequest
from .translation_models import CacheEntry, RateLimitDecision, RateLimitWindow, TranslationResult

__all__ = [
    "CacheEntry",
    "ErrorResponse",
    "RateLimitDecision",
    "RateLimitWindow",
    "TranslateResponse",
    "TranslationRequest",
    "TranslationResult",
]
