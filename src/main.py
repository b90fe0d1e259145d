"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from .config import settings
from .config.database import init_db, close_db
from .config.redis import close_redis
from .core.dependencies import build_assembler, get_health_service, shared_storage_repo
from .middleware.rate_limit import limiter, rate_limit_exceeded_handler
from .middleware.request_logging import RequestLoggingMiddleware
from .routers import media, shares, uploads
from .services.health_service import HealthService
from .utils.logger import configure_logging, get_logger, mask_dsn

# Configure logging
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info(
        "Starting application",
        version=settings.app_version,
        database=mask_dsn(settings.database_url),
        share_base_url=settings.share_base_url,
    )
    await init_db()
    await shared_storage_repo().check_connectivity()
    app.state.assembler.start_sweeper(settings.chunk_sweep_interval_seconds)
    yield
    # Shutdown
    logger.info("Shutting down application")
    await app.state.assembler.stop_sweeper()
    await app.state.assembler.clear()
    await close_db()
    await close_redis()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="File sharing service with chunked uploads, share links, zip bundles and media compression",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# In-flight chunked uploads, owned by this app instance
app.state.assembler = build_assembler()

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Request logging
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests as 400 with a readable message."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        detail = f"Invalid {field}: {first.get('msg', 'invalid value')}" if field else first.get("msg", "Invalid request")
    else:
        detail = "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error("Unhandled exception", exc_info=exc, path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Health check endpoint
@app.get("/health")
def health_check(health_service: HealthService = Depends(get_health_service)):
    """Process and host health."""
    status_code, body = health_service.check()
    return JSONResponse(status_code=status_code, content=body)


# Include routers
app.include_router(uploads.router)
app.include_router(shares.router)
app.include_router(media.router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
    )
