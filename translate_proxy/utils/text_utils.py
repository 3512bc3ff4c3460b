"""
/**
 * @file translate_proxy/utils/text_utils.py
 * @description 文本规范化：行内空白折叠、逐行 trim、连续空行上限，保持行结构。
 */
"""

import re

_INLINE_WHITESPACE_RE = re.compile(r"\s+")
_BLANK_RUN_RE = re.compile(r"\n{3,}")


def normalize_text(text: str) -> str:
    lines = [_INLINE_WHITESPACE_RE.sub(" ", line.strip()) for line in text.split("\n")]
    # At most two consecutive line breaks
    return _BLANK_RUN_RE.sub("\n\n", "\n".join(lines))


def count_lines(text: str) -> int:
    return text.count("\n") + 1
