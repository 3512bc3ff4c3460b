"""
/**
 * @file translate_proxy/utils/__init__.py
 * @description 工具函数导出。
 */
"""

from .text_utils import count_lines, normalize_text
from .validators import is_language_code, is_non_empty_string, is_origin_allowed

__all__ = ["normalize_text", "count_lines", "is_language_code", "is_non_empty_string", "is_origin_allowed"]
