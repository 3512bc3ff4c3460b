"""
/**
 * @file translate_proxy/models/translate_request_model.py
 * @description 翻译请求/响应模型。
 * @note 请求体在控制器中以 dict 接收，由校验服务按字段顺序检查（首个失败即返回）。
 */
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel


SUPPORTED_PROVIDER = "gemini"
AUTO_LANGUAGE = "auto"


@dataclass(frozen=True)
class TranslationRequest:
    text: str
    source_lang: str
    target_lang: str
    provider: str

    @property
    def wants_detection(self) -> bool:
        return self.source_lang == AUTO_LANGUAGE


class TranslateResponse(BaseModel):
    translation: str
    cached: bool
    detectedSourceLang: str


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None
    retryAfter: Optional[int] = None
