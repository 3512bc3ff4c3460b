"""
/**
 * @file translate_proxy/services/language_service.py
 * @description 源语言自动检测；检测失败时显式回退为默认语言。
 */
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from translate_proxy.services.errors import ConfigurationError, UpstreamError
from translate_proxy.services.gemini_client_service import GeminiClient
from translate_proxy.utils.validators import is_language_code


logger = logging.getLogger("language_detection")

FALLBACK_LANGUAGE = "en"


@dataclass(frozen=True)
class DetectedLanguage:
    code: str


@dataclass(frozen=True)
class DetectionFailed:
    reason: str


DetectionOutcome = Union[DetectedLanguage, DetectionFailed]


def detect_language(client: GeminiClient, text: str) -> DetectionOutcome:
    try:
        reply = client.detect_language(text)
    except (UpstreamError, ConfigurationError) as e:
        logger.error(f"Language detection error: {e}")
        return DetectionFailed(reason=str(e))
    if is_language_code(reply):
        return DetectedLanguage(code=reply)
    return DetectionFailed(reason=f"unexpected reply {reply!r}")


def resolve_source_language(outcome: DetectionOutcome, fallback: str = FALLBACK_LANGUAGE) -> str:
    if isinstance(outcome, DetectedLanguage):
        return outcome.code
    logger.warning(f'Language detection failed ({outcome.reason}), defaulting to "{fallback}"')
    return fallback
