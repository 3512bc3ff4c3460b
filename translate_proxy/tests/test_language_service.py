import unittest
from unittest.mock import MagicMock

from translate_proxy.services.errors import ConfigurationError, UpstreamError
from translate_proxy.services.gemini_client_service import GeminiClient
from translate_proxy.services.language_service import (
    DetectedLanguage,
    DetectionFailed,
    detect_language,
    resolve_source_language,
)


class TestDetectLanguage(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock(spec=GeminiClient)

    def test_two_letter_reply_is_detected(self):
        self.client.detect_language.return_value = "ja"
        outcome = detect_language(self.client, "こんにちは")
        self.assertEqual(outcome, DetectedLanguage(code="ja"))
        self.assertEqual(resolve_source_language(outcome), "ja")

    def test_non_conforming_reply_falls_back(self):
        for reply in ("japanese", "ja-jp", "", "j", "the language is ja"):
            with self.subTest(reply=reply):
                self.client.detect_language.return_value = reply
                outcome = detect_language(self.client, "text")
                self.assertIsInstance(outcome, DetectionFailed)
                self.assertEqual(resolve_source_language(outcome), "en")

    def test_upstream_failure_falls_back(self):
        self.client.detect_language.side_effect = UpstreamError("Translation failed", status=503)
        outcome = detect_language(self.client, "text")
        self.assertIsInstance(outcome, DetectionFailed)
        self.assertEqual(resolve_source_language(outcome), "en")

    def test_missing_key_falls_back(self):
        self.client.detect_language.side_effect = ConfigurationError()
        self.assertEqual(resolve_source_language(detect_language(self.client, "text")), "en")

    def test_custom_fallback(self):
        self.assertEqual(resolve_source_language(DetectionFailed(reason="x"), fallback="vi"), "vi")


if __name__ == "__main__":
    unittest.main()
