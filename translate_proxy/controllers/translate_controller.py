"""
/**
 * @file translate_proxy/controllers/translate_controller.py
 * @description 翻译控制器（POST /translate）。
 */
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Request, Response

from translate_proxy.config import Settings, load_settings
from translate_proxy.models.translate_request_model import ErrorResponse, TranslateResponse
from translate_proxy.models.translation_models import RateLimitDecision
from translate_proxy.services.translation_service import TranslationGateway


router = APIRouter()


def client_identity(request: Request, settings: Settings) -> str:
    if settings.trust_proxy_headers:
        cf_ip = request.headers.get("CF-Connecting-IP")
        if cf_ip:
            return cf_ip.strip()
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit_headers(decision: Optional[RateLimitDecision]) -> dict:
    if decision is None or decision.bypassed:
        return {}
    return {
        "RateLimit-Limit": str(decision.limit),
        "RateLimit-Remaining": str(decision.remaining),
        "RateLimit-Reset": str(decision.reset_after_seconds),
    }


@router.post(
    "/translate",
    response_model=TranslateResponse,
    responses={code: {"model": ErrorResponse} for code in (400, 429, 500, 502)},
)
def translate(request: Request, response: Response, payload: Any = Body(None)):
    gateway = TranslationGateway.instance()
    result = gateway.translate(payload, client_identity(request, load_settings()))
    response.headers["X-Cache"] = result.cache_status
    response.headers.update(rate_limit_headers(result.rate_limit))
    return result.to_response()
