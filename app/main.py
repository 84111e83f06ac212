"""Main FastAPI application"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import (
    ConflictError,
    DomainError,
    NotFoundError,
    NotProvisionedError,
    ProviderError,
    ProviderRateLimited,
    ProviderRejected,
    ProviderUnavailable,
)
from app.core.init import init_system
from app.core.redis import redis_client

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    await redis_client.connect()
    await init_system()
    yield
    # Shutdown
    await redis_client.disconnect()


app = FastAPI(
    title=settings.APP_NAME,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _status_for(exc: DomainError) -> int:
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, (ConflictError, NotProvisionedError)):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, ProviderRejected):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, ProviderRateLimited):
        return status.HTTP_429_TOO_MANY_REQUESTS
    if isinstance(exc, ProviderUnavailable):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(exc, ProviderError):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_400_BAD_REQUEST


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    code = _status_for(exc)
    content = {"detail": exc.message, "error": type(exc).__name__}
    if isinstance(exc, ProviderError):
        logger.warning(f"Provider error on {request.method} {request.url.path}: {exc.message}")
        content["retryable"] = exc.retryable
        if exc.errors:
            content["provider_errors"] = exc.errors
    return JSONResponse(status_code=code, content=content)


# Import and include routers
from app.api.v1 import domains, dns, monitoring

# API routes
app.include_router(domains.router, prefix="/api/v1/domains", tags=["domains"])
app.include_router(dns.router, prefix="/api/v1/dns", tags=["dns"])
app.include_router(monitoring.router, prefix="/api/v1/monitoring", tags=["monitoring"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Tenant Domains API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}
