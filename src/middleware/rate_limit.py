"""Rate limiting middleware using slowapi."""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from ..config import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Per-route limits
UPLOAD_LIMIT = f"{settings.upload_rate_limit_per_minute}/minute"
CHUNK_LIMIT = f"{settings.chunk_rate_limit_per_minute}/minute"
COMPRESS_LIMIT = f"{settings.compress_rate_limit_per_minute}/minute"


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"],
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Reject throttled requests with 429 in the same shape as other errors."""
    logger.warning("Rate limit exceeded", path=request.url.path, limit=str(exc.detail))
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )
