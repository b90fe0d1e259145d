"""Request logging middleware."""

import time
import uuid
import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from ..utils.logger import get_logger

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the log context and log each request's outcome."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        user_id = request.query_params.get("user_id")
        if user_id:
            structlog.contextvars.bind_contextvars(user_id=user_id)

        logger.debug(
            "Request started",
            method=request.method,
            path=request.url.path,
            remote_ip=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
                error=str(exc),
            )
            raise

        fields = {
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round((time.perf_counter() - start) * 1000, 2),
        }
        if response.status_code >= 500:
            logger.error("Server error", **fields)
        elif response.status_code >= 400:
            logger.warning("Client error", **fields)
        else:
            logger.info("Request completed", **fields)

        response.headers["X-Request-ID"] = request_id
        return response
