"""
/**
 * @file translate_proxy/services/validation_service.py
 * @description 翻译请求校验：按 text、targetLang、provider、sourceLang 顺序检查，首个失败即返回。
 */
"""

from __future__ import annotations

from typing import Any

from translate_proxy.models.translate_request_model import AUTO_LANGUAGE, SUPPORTED_PROVIDER, TranslationRequest
from translate_proxy.services.errors import InvalidRequestError
from translate_proxy.utils.validators import is_non_empty_string


def validate_translate_request(payload: Any) -> TranslationRequest:
    """Check fields in order (text, targetLang, provider, sourceLang); the first failure wins."""
    if not isinstance(payload, dict):
        payload = {}

    text = payload.get("text")
    if not is_non_empty_string(text):
        raise InvalidRequestError("text", 'Invalid request: "text" is required and must be a non-empty string')

    target_lang = payload.get("targetLang")
    if not is_non_empty_string(target_lang):
        raise InvalidRequestError("targetLang", 'Invalid request: "targetLang" is required')

    provider = payload.get("provider")
    if provider != SUPPORTED_PROVIDER:
        raise InvalidRequestError("provider", f'Invalid request: "provider" must be "{SUPPORTED_PROVIDER}"')

    source_lang = payload.get("sourceLang")
    if source_lang is not None and not isinstance(source_lang, str):
        raise InvalidRequestError("sourceLang", 'Invalid request: "sourceLang" must be a string')

    return TranslationRequest(
        text=text,
        source_lang=(source_lang or "").strip() or AUTO_LANGUAGE,
        target_lang=target_lang.strip(),
        provider=provider,
    )
