"""Rate limiting middleware using SlowAPI."""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from config import get_settings

settings = get_settings()

# Create limiter instance using the socket peer address as key; forwarded
# headers are client-controlled and never used for bucketing
limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.rate_limit.active,
)

validate_limit = settings.rate_limit.limit_string


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Custom handler for rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "message": "Too many requests. Please try again later.",
            "retry_after": exc.detail,
        },
    )
