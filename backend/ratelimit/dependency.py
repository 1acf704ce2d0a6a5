# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Route-level rate limiting.

    @router.post("/encrypt", dependencies=[Depends(RateLimit("encryption"))])

Admitted requests get X-RateLimit-* headers; rejected ones raise
``RateLimitExceeded``, which main.py turns into a 429 response.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, Request, Response
from fastapi.responses import JSONResponse

from core.config import settings
from core.deps import get_rate_limiter
from core.errors import RateLimitExceeded
from core.logger import logger
from core.security import get_client_ip
from ratelimit.limiter import (
    RATE_LIMIT_PROFILES,
    FixedWindowRateLimiter,
    RateLimitDecision,
    client_key,
)


class RateLimit:
    def __init__(self, profile: str):
        if profile not in RATE_LIMIT_PROFILES:
            raise KeyError(f"Unknown rate-limit profile: {profile}")
        self.profile = profile
        self.config = RATE_LIMIT_PROFILES[profile]

    def __call__(
        self,
        request: Request,
        response: Response,
        limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
    ) -> Optional[RateLimitDecision]:
        if not settings.rate_limit_enabled:
            return None

        key = f"{self.profile}:{client_key(get_client_ip(request), request.headers.get('user-agent'))}"
        decision = limiter.hit(key, self.config)

        if not decision.allowed:
            logger.warning(
                "Rate limit hit: profile=%s path=%s retry_after=%ds",
                self.profile,
                request.url.path,
                decision.retry_after,
            )
            raise RateLimitExceeded(decision, self.config)

        response.headers.update(decision.headers())
        return decision


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 body and Retry-After header for a rejected request."""
    decision = exc.decision
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": exc.config.message,
            "retryAfter": decision.retry_after,
            "limit": decision.limit,
            "windowMs": decision.window_ms,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        headers={"Retry-After": str(decision.retry_after)},
    )
