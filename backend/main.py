# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
FastAPI application factory.

Responsibilities
----------------
* Build the process-wide services exactly once: the EncryptionService (key
  validated here – a bad ENCRYPTION_KEY stops the process), the object
  storage backend, the upload pipeline and the rate limiter.
* Register CORS and request-logging middleware.
* Mount the feature routers (upload, vault).
* Map service exceptions to HTTP responses.
* Expose a /health endpoint for container liveness checks.
"""

import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from core.config import settings
from core.errors import ConfigurationError, InvalidInput, RateLimitExceeded
from core.logger import logger
from core.security import EncryptionService
from ratelimit.dependency import rate_limit_exceeded_handler
from ratelimit.limiter import FixedWindowRateLimiter, MemoryRateLimitStore
from storage.base import ObjectStorage
from storage.local import LocalObjectStorage
from storage.memory import InMemoryObjectStorage
from upload.pipeline import SecureUploadPipeline
from upload.router import router as upload_router
from upload.scanner import SignatureThreatScanner
from vault.router import router as vault_router


def build_object_storage() -> ObjectStorage:
    if settings.storage_backend == "local":
        return LocalObjectStorage(settings.storage_root, settings.public_base_url)
    if settings.storage_backend == "memory":
        logger.warning("Using in-memory object storage – uploads are lost on restart")
        return InMemoryObjectStorage(settings.public_base_url)
    raise ConfigurationError(f"Unknown STORAGE_BACKEND: {settings.storage_backend}")


# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# Logs every inbound request: method, path, client IP, status, latency.
# Bodies are never echoed – uploads and envelopes stay out of the log.


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            client_ip,
            response.status_code,
            elapsed_ms,
        )
        return response


def _invalid_input_handler(request: Request, exc: InvalidInput) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


def create_app() -> FastAPI:
    try:
        encryption_service = EncryptionService(settings.encryption_key)
        storage = build_object_storage()
    except ConfigurationError as exc:
        logger.critical("Startup aborted: %s", exc)
        raise

    app = FastAPI(title="vaultgate", version="1.0.0")

    app.state.encryption_service = encryption_service
    app.state.upload_pipeline = SecureUploadPipeline(
        encryption_service,
        storage,
        scanner=SignatureThreatScanner(delay_seconds=settings.scan_delay_ms / 1000),
    )
    app.state.rate_limiter = FixedWindowRateLimiter(MemoryRateLimitStore())

    # -- CORS ---------------------------------------------------------------
    # Tighten cors_origins to the production frontend before deploying.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
    )
    app.add_middleware(_RequestLogMiddleware)

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(InvalidInput, _invalid_input_handler)

    app.include_router(upload_router)
    app.include_router(vault_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    logger.info("vaultgate service ready (storage=%s)", settings.storage_backend)
    return app


app = create_app()
