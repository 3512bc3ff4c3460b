import re

LANGUAGE_CODE_RE = re.compile(r"^[a-z]{2}$")
CHROME_EXTENSION_PREFIX = "chrome-extension://"


def is_non_empty_string(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def is_language_code(value: str) -> bool:
    return isinstance(value, str) and bool(LANGUAGE_CODE_RE.fullmatch(value))


def is_origin_allowed(origin: str, allowed: list) -> bool:
    if not origin:
        return True
    if origin.startswith(CHROME_EXTENSION_PREFIX):
        return True
    return "*" in allowed or origin in allowed
