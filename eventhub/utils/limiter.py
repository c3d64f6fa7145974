"""
Rate limiter configuration.
Kept in its own module so routers and main can share it without import cycles.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
import logging

from .constants import AppConstants, ResponseMessages

logger = logging.getLogger(__name__)

# Keyed by client IP; applies to every route that is not explicitly exempt
limiter = Limiter(key_func=get_remote_address, default_limits=[AppConstants.RATE_LIMIT])


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"Rate limit hit by {get_remote_address(request)} on {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "detail": {
                "message": ResponseMessages.RATE_LIMITED,
                "error_code": "RATE_LIMITED",
            }
        },
    )
