"""
/**
 * @file translate_proxy/config/settings.py
 * @description 代理配置加载与合并（config.json + config.local.json + 环境变量）。
 */
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CONFIG_PATH = os.path.join(REPO_ROOT, "config.json")
CONFIG_LOCAL_PATH = os.path.join(REPO_ROOT, "config.local.json")
CONFIG_EXAMPLE_PATH = os.path.join(REPO_ROOT, "config.example.json")

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1/models"
DEFAULT_CACHE_TTL_HOURS = 72
DEFAULT_RATE_LIMIT_WINDOW_SECONDS = 60
DEFAULT_RATE_LIMIT_MAX_REQUESTS = 60
DEFAULT_MAX_BODY_BYTES = 10 * 1024 * 1024


def _load_json(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r") as f:
            value = json.load(f)
            return value if isinstance(value, dict) else {}
    except FileNotFoundError:
        return {}


def _merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _merge_dicts(base[key], value)
        else:
            base[key] = value
    return base


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _as_number(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


@dataclass(frozen=True)
class Settings:
    raw: Dict[str, Any]

    def _section(self, name: str) -> Dict[str, Any]:
        value = self.raw.get(name, {})
        return value if isinstance(value, dict) else {}

    @property
    def endpoints(self) -> Dict[str, str]:
        return self._section("endpoints")

    @property
    def models(self) -> Dict[str, str]:
        return self._section("models")

    @property
    def api_keys(self) -> Dict[str, str]:
        return self._section("api_keys")

    @property
    def environment(self) -> str:
        value = os.getenv("APP_ENV") or self.raw.get("environment")
        return value if isinstance(value, str) and value else "production"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def gemini_model(self) -> str:
        value = os.getenv("GEMINI_MODEL") or self.models.get("gemini")
        return value if isinstance(value, str) and value else DEFAULT_MODEL

    @property
    def gemini_endpoint(self) -> str:
        value = self.endpoints.get("gemini")
        return value.rstrip("/") if isinstance(value, str) and value else DEFAULT_ENDPOINT

    @property
    def max_body_bytes(self) -> int:
        value = os.getenv("MAX_BODY_BYTES") or self._section("server").get("max_body_bytes")
        return int(_as_number(value, DEFAULT_MAX_BODY_BYTES))

    @property
    def upstream_timeout_seconds(self) -> float:
        return _as_number(self._section("upstream").get("timeout_seconds"), 60.0)

    @property
    def cache_ttl_seconds(self) -> float:
        hours = os.getenv("CACHE_TTL_HOURS") or self._section("cache").get("ttl_hours")
        return _as_number(hours, DEFAULT_CACHE_TTL_HOURS) * 60 * 60

    @property
    def cache_sweep_interval_seconds(self) -> float:
        return _as_number(self._section("cache").get("sweep_interval_seconds"), 60 * 60)

    @property
    def single_flight(self) -> bool:
        return bool(self._section("cache").get("single_flight", True))

    @property
    def rate_limit_window_seconds(self) -> float:
        window_ms = os.getenv("RATE_LIMIT_WINDOW_MS")
        if window_ms:
            return _as_number(window_ms, DEFAULT_RATE_LIMIT_WINDOW_SECONDS * 1000) / 1000
        return _as_number(self._section("rate_limit").get("window_seconds"), DEFAULT_RATE_LIMIT_WINDOW_SECONDS)

    @property
    def rate_limit_max_requests(self) -> int:
        value = os.getenv("RATE_LIMIT_MAX_REQUESTS") or self._section("rate_limit").get("max_requests")
        return int(_as_number(value, DEFAULT_RATE_LIMIT_MAX_REQUESTS))

    @property
    def trusted_clients(self) -> List[str]:
        env = os.getenv("TRUSTED_IPS")
        if env is not None:
            return _split_csv(env)
        value = self._section("rate_limit").get("trusted_clients", [])
        return [str(v) for v in value] if isinstance(value, list) else []

    @property
    def trust_proxy_headers(self) -> bool:
        return bool(self._section("rate_limit").get("trust_proxy_headers", False))

    @property
    def allowed_origins(self) -> List[str]:
        env = os.getenv("ALLOWED_ORIGINS")
        if env:
            return _split_csv(env)
        value = self._section("cors").get("allowed_origins")
        if isinstance(value, list) and value:
            return [str(v) for v in value]
        return ["*"]

    def resolve_gemini_key(self) -> Optional[str]:
        return (
            os.getenv("GOOGLE_API_KEY")
            or os.getenv("GEMINI_API_KEY")
            or (self.api_keys.get("gemini") if isinstance(self.api_keys.get("gemini"), str) else None)
        )


logger = logging.getLogger("config_loader")

_CACHED_SETTINGS: Optional[Settings] = None
_LAST_LOAD_TIME = 0.0
_LAST_PATHS: tuple = ()
_CONFIG_HASH = ""
_SETTINGS_LOCK = threading.Lock()


def _deep_diff(d1: Dict[str, Any], d2: Dict[str, Any], path="") -> list:
    diffs = []
    for k in set(d1.keys()) | set(d2.keys()):
        p = f"{path}.{k}" if path else k
        if k not in d1:
            diffs.append(f"Added: {p}")
        elif k not in d2:
            diffs.append(f"Removed: {p}")
        elif isinstance(d1[k], dict) and isinstance(d2[k], dict):
            diffs.extend(_deep_diff(d1[k], d2[k], p))
        elif d1[k] != d2[k]:
            # api keys never reach the log
            shown = "***" if "key" in p.lower() else f"{d1[k]} -> {d2[k]}"
            diffs.append(f"Changed: {p} ({shown})")
    return diffs


def reload_settings(
    base_path: str = CONFIG_PATH,
    local_path: str = CONFIG_LOCAL_PATH,
    example_path: str = CONFIG_EXAMPLE_PATH,
) -> Settings:
    global _CACHED_SETTINGS, _LAST_LOAD_TIME, _LAST_PATHS, _CONFIG_HASH

    with _SETTINGS_LOCK:
        now = time.time()
        paths = (base_path, local_path, example_path)
        # Debounce: 500ms
        if _CACHED_SETTINGS and paths == _LAST_PATHS and (now - _LAST_LOAD_TIME < 0.5):
            return _CACHED_SETTINGS

        try:
            base_cfg = _load_json(base_path)
            if not base_cfg.get("endpoints") and os.path.exists(example_path):
                base_cfg = _merge_dicts(_load_json(example_path), base_cfg)

            local_cfg = _load_json(local_path)
            merged = _merge_dicts(base_cfg, local_cfg)

            new_hash = hashlib.md5(json.dumps(merged, sort_keys=True).encode("utf-8")).hexdigest()
            _LAST_PATHS = paths

            if _CACHED_SETTINGS and new_hash == _CONFIG_HASH:
                _LAST_LOAD_TIME = now
                return _CACHED_SETTINGS

            is_reload = _CACHED_SETTINGS is not None
            if is_reload:
                diffs = _deep_diff(_CACHED_SETTINGS.raw, merged)
                if diffs:
                    logger.info(f"Config changes detected: {'; '.join(diffs)}")

            _CACHED_SETTINGS = Settings(raw=merged)
            _CONFIG_HASH = new_hash
            _LAST_LOAD_TIME = now

            if is_reload:
                logger.info("Configuration reloaded successfully.")

        except Exception as e:
            logger.error(f"Failed to reload config: {e}. Keeping old config.")
            if not _CACHED_SETTINGS:
                logger.warning("Initializing with empty settings due to load failure.")
                _CACHED_SETTINGS = Settings(raw={})

    return _CACHED_SETTINGS


def load_settings() -> Settings:
    """
    Get current settings. Lazy loads on first call.
    Subsequent reloads are handled by the file watcher calling reload_settings().
    """
    if _CACHED_SETTINGS is None:
        return reload_settings()
    return _CACHED_SETTINGS
