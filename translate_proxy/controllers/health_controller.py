"""
/**
 * @file translate_proxy/controllers/health_controller.py
 * @description 健康检查控制器（不受限流影响）。
 */
"""

import time
from datetime import datetime, timezone

from fastapi import APIRouter

from translate_proxy.config import load_settings
from translate_proxy.services.translation_service import TranslationGateway


router = APIRouter()

START_TIME = time.monotonic()


@router.get("/health")
def health():
    settings = load_settings()
    gateway = TranslationGateway.instance()
    return {
        "status": "healthy",
        "uptime": round(time.monotonic() - START_TIME, 3),
        "cacheSize": gateway.cache.size,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            "api_keys": {"gemini": bool(settings.resolve_gemini_key())},
        },
    }
