"""
/**
 * @file translate_proxy/services/gemini_client_service.py
 * @description Gemini generateContent 调用封装：语言检测与翻译。
 */
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from translate_proxy.config import Settings, load_settings
from translate_proxy.services.errors import ConfigurationError, UpstreamError


logger = logging.getLogger("gemini_client")

LANGUAGE_NAMES = {
    "vi": "Vietnamese",
    "en": "English",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
    "pt": "Portuguese",
    "ru": "Russian",
    "th": "Thai",
    "id": "Indonesian",
    "auto": "auto-detect",
}

DETECTION_SAMPLE_CHARS = 500

TRANSLATION_RULES = """CRITICAL RULES:
1. PRESERVE ALL line breaks exactly as they appear in the original text
2. Keep ALL formatting: code blocks (```), HTML tags, markdown
3. Keep emojis and special characters unchanged
4. Do NOT add explanations, notes, or extra text
5. Return ONLY the translated text with same line structure
6. If text contains code, translate only comments and strings, not code syntax
7. Each line in original = each line in translation
8. Maintain the same tone and style

IMPORTANT: If the original text has multiple lines, your translation MUST have the same number of lines."""


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, code)


def build_detection_prompt(text: str) -> str:
    return (
        "Detect the language of the following text and respond with ONLY the ISO 639-1 two-letter "
        'language code (e.g., "en", "vi", "ja", "ko", "zh", "es", etc.). No explanations.\n\n'
        f'Text: "{text[:DETECTION_SAMPLE_CHARS]}"\n\n'
        "Language code:"
    )


def build_translation_prompt(text: str, source_lang: str, target_lang: str) -> str:
    system_prompt = (
        "You are a professional translation engine. "
        f"Translate the given text from {language_name(source_lang)} to {language_name(target_lang)}.\n\n"
        f"{TRANSLATION_RULES}"
    )
    return f"{system_prompt}\n\nText to translate:\n{text}\n\nTranslated text:"


class GeminiClient:
    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        # Settings are fetched dynamically so hot reloads take effect
        self._initial_settings = settings
        self._session = session or requests.Session()

    @property
    def settings(self) -> Settings:
        return self._initial_settings or load_settings()

    @property
    def api_key(self) -> Optional[str]:
        return self.settings.resolve_gemini_key()

    @property
    def model(self) -> str:
        return self.settings.gemini_model

    def require_api_key(self) -> str:
        key = self.api_key
        if not key:
            raise ConfigurationError("Missing API key. Set GOOGLE_API_KEY or config.local.json")
        return key

    def _extract_text(self, data: Any) -> str:
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise UpstreamError("Gemini returned no text", detail=str(data)[:500])

    def generate(self, prompt: str, temperature: float, max_output_tokens: int) -> str:
        key = self.require_api_key()
        url = f"{self.settings.gemini_endpoint}/{self.model}:generateContent"
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_output_tokens},
        }
        try:
            response = self._session.post(
                url,
                params={"key": key},
                json=payload,
                timeout=self.settings.upstream_timeout_seconds,
            )
        except requests.RequestException as e:
            raise UpstreamError("Translation failed", detail=str(e))

        if response.status_code != 200:
            logger.error(f"Gemini API error: {response.status_code} {response.text[:500]}")
            raise UpstreamError(
                f"Translation failed: {response.reason or response.status_code}",
                status=response.status_code,
                detail=response.text,
            )
        try:
            data = response.json()
        except ValueError:
            raise UpstreamError("Gemini returned invalid JSON", status=response.status_code, detail=response.text[:500])
        return self._extract_text(data).strip()

    def detect_language(self, text: str) -> str:
        """Returns the raw lower-cased reply; callers decide whether it is a usable code."""
        return self.generate(build_detection_prompt(text), temperature=0.1, max_output_tokens=10).lower()

    def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        prompt = build_translation_prompt(text, source_lang, target_lang)
        return self.generate(prompt, temperature=0.2, max_output_tokens=8192)
