# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
FastAPI dependencies for the process-wide services.

``main.py`` builds each service exactly once and parks it on ``app.state``;
handlers receive it through these functions, and tests swap it with
``app.dependency_overrides``.
"""

from fastapi import Request

from core.codec import StructuredDataCodec
from core.security import EncryptionService
from ratelimit.limiter import FixedWindowRateLimiter
from upload.pipeline import SecureUploadPipeline


def get_encryption_service(request: Request) -> EncryptionService:
    return request.app.state.encryption_service


def get_record_codec(request: Request) -> StructuredDataCodec:
    return StructuredDataCodec(request.app.state.encryption_service)


def get_upload_pipeline(request: Request) -> SecureUploadPipeline:
    return request.app.state.upload_pipeline


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    return request.app.state.rate_limiter
