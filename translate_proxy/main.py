"""
/**
 * @file translate_proxy/main.py
 * @description FastAPI 应用入口（装配路由、中间件、错误处理与后台任务）。
 */
"""

import logging
import os

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from translate_proxy.config import CONFIG_LOCAL_PATH, CONFIG_PATH, load_settings, reload_settings
from translate_proxy.controllers import health_router, translate_router
from translate_proxy.controllers.translate_controller import rate_limit_headers
from translate_proxy.services.cache_service import CacheSweeper
from translate_proxy.services.errors import (
    CorsError,
    InvalidRequestError,
    NotFoundError,
    PayloadTooLargeError,
    RateLimitExceeded,
    TranslationProxyError,
)
from translate_proxy.services.translation_service import TranslationGateway
from translate_proxy.utils.validators import is_origin_allowed

app = FastAPI(title="translate-proxy")
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("translate_proxy")


class ConfigEventHandler(FileSystemEventHandler):
    """Handler for config file changes"""
    def on_modified(self, event):
        if event.is_directory:
            return
        if event.src_path == CONFIG_PATH or event.src_path == CONFIG_LOCAL_PATH:
            try:
                settings = reload_settings()
                TranslationGateway.instance().apply_settings(settings)
            except Exception as e:
                logger.error(f"Failed to apply reloaded config: {e}")


_observer = None
_sweeper = None


@app.on_event("startup")
async def startup_event():
    global _observer, _sweeper
    settings = load_settings()
    gateway = TranslationGateway.instance()

    _sweeper = CacheSweeper(gateway.cache, settings.cache_sweep_interval_seconds, rate_limiter=gateway.rate_limiter)
    _sweeper.start()

    try:
        _observer = Observer()
        config_dir = os.path.dirname(CONFIG_PATH)
        _observer.schedule(ConfigEventHandler(), config_dir, recursive=False)
        _observer.start()
        logger.info(f"Config watcher started on {config_dir}")
    except Exception as e:
        logger.error(f"Failed to start config watcher: {e}")

    logger.info(
        f"Translation proxy ready: model={settings.gemini_model} "
        f"cache_ttl={settings.cache_ttl_seconds / 3600:g}h "
        f"rate_limit={settings.rate_limit_max_requests}/{settings.rate_limit_window_seconds:g}s "
        f"env={settings.environment}"
    )
    if not settings.resolve_gemini_key():
        logger.warning("GOOGLE_API_KEY is not set; translations will fail until it is configured")


@app.on_event("shutdown")
async def shutdown_event():
    global _observer, _sweeper
    if _observer:
        _observer.stop()
        _observer.join()
        _observer = None
    if _sweeper:
        _sweeper.shutdown()
        _sweeper = None


def _error_response(exc: TranslationProxyError) -> JSONResponse:
    body = exc.to_body(expose_detail=load_settings().is_development)
    headers = {}
    if isinstance(exc, RateLimitExceeded):
        headers.update(rate_limit_headers(exc.decision))
        headers["Retry-After"] = str(exc.retry_after)
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


@app.exception_handler(TranslationProxyError)
async def translation_error_handler(request: Request, exc: TranslationProxyError):
    if exc.status_code >= 500:
        logger.error(f"Translation endpoint error: {exc} ({exc.detail or 'no detail'})")
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Only reachable for bodies that are not valid JSON
    return _error_response(InvalidRequestError("body", "Invalid request: body must be valid JSON"))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code in (404, 405):
        return _error_response(NotFoundError())
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error")
    message = str(exc) if load_settings().is_development else "An unexpected error occurred"
    return JSONResponse(status_code=500, content={"error": "Internal server error", "message": message})


app.add_middleware(
    CORSMiddleware,
    allow_origins=load_settings().allowed_origins,
    allow_origin_regex=r"chrome-extension://.*",
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    expose_headers=["Retry-After", "X-Cache", "RateLimit-Limit", "RateLimit-Remaining", "RateLimit-Reset"],
    max_age=86400,
)


@app.middleware("http")
async def enforce_allowed_origin(request: Request, call_next):
    origin = request.headers.get("origin", "")
    if not is_origin_allowed(origin, load_settings().allowed_origins):
        logger.warning(f"Rejected origin {origin}")
        return _error_response(CorsError())
    return await call_next(request)


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    limit = load_settings().max_body_bytes
    length = request.headers.get("content-length", "")
    if length.isdigit() and int(length) > limit:
        logger.warning(f"Rejected request body of {length} bytes (limit {limit})")
        return _error_response(PayloadTooLargeError(limit))
    return await call_next(request)


app.include_router(health_router)
app.include_router(translate_router)


if __name__ == "__main__":
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "3000")))
