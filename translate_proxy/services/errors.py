"""
/**
 * @file translate_proxy/services/errors.py
 * @description 翻译代理错误分类，每种错误自带 HTTP 状态码与响应体。
 */
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from translate_proxy.models.translation_models import RateLimitDecision


class TranslationProxyError(Exception):
    status_code = 500
    error = "Internal server error"
    public_message = "An unexpected error occurred"

    def __init__(self, message: str = "", detail: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message
        self.detail = detail

    def to_body(self, expose_detail: bool = False) -> Dict[str, Any]:
        message = self.message
        if self.detail and expose_detail:
            message = f"{self.message}: {self.detail}"
        elif not expose_detail:
            message = self.public_message
        return {"error": self.error, "message": message}


class InvalidRequestError(TranslationProxyError):
    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.error = message

    def to_body(self, expose_detail: bool = False) -> Dict[str, Any]:
        return {"error": self.error}


class RateLimitExceeded(TranslationProxyError):
    status_code = 429
    error = "Too many requests from this IP, please try again later."

    def __init__(self, retry_after: int, decision: Optional["RateLimitDecision"] = None):
        super().__init__(self.error)
        self.retry_after = retry_after
        self.decision = decision

    def to_body(self, expose_detail: bool = False) -> Dict[str, Any]:
        return {"error": self.error, "retryAfter": self.retry_after}


class ConfigurationError(TranslationProxyError):
    status_code = 500
    error = "Server configuration error"
    public_message = "API key not set"


class UpstreamError(TranslationProxyError):
    status_code = 502
    error = "Translation service error"
    public_message = "An error occurred during translation"

    def __init__(self, message: str, status: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message, detail=detail)
        self.status = status


class NotFoundError(TranslationProxyError):
    status_code = 404
    error = "Not found"
    public_message = "Endpoint not found. Use POST /translate"

    def to_body(self, expose_detail: bool = False) -> Dict[str, Any]:
        return {"error": self.error, "message": self.public_message}


class CorsError(TranslationProxyError):
    status_code = 403
    error = "CORS error"
    public_message = "Origin not allowed"

    def to_body(self, expose_detail: bool = False) -> Dict[str, Any]:
        return {"error": self.error, "message": self.public_message}


class PayloadTooLargeError(TranslationProxyError):
    status_code = 413
    error = "Request body too large"

    def __init__(self, limit: int):
        super().__init__(self.error)
        self.limit = limit

    def to_body(self, expose_detail: bool = False) -> Dict[str, Any]:
        return {"error": self.error}
