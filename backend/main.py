"""reCAPTCHA Gateway - FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi.errors import RateLimitExceeded

from config import get_settings
from logging_setup import configure_logging
from middleware.client_ip import get_client_ip
from middleware.cors import DomainCORSMiddleware
from middleware.rate_limit import limiter, rate_limit_exceeded_handler
from routers import validate_router
from services.domain_registry import DomainRegistry
from services.recaptcha import build_http_client
from services.validation import Gateway

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

# Loaded once; read-only for the life of the process
registry = DomainRegistry.from_settings(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - open the verifier client on startup, close it on shutdown."""
    http_client = build_http_client(
        retries=settings.recaptcha_retries,
        timeout=settings.recaptcha_timeout_seconds,
    )
    app.state.gateway = Gateway.build(settings, http_client, registry=registry)

    logger.info(
        f"Server is running in {settings.environment} mode with "
        f"{len(registry)} registered domain(s)"
    )
    if len(registry) == 0:
        logger.warning("No domains configured - every validation will be rejected")

    yield

    await http_client.aclose()


app = FastAPI(
    title="reCAPTCHA Gateway API",
    description="Verifies reCAPTCHA v2/v3 tokens on behalf of registered domains",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(DomainCORSMiddleware, registry=registry)

# Include routers
app.include_router(validate_router)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Unreadable bodies get the same envelope as every other rejection."""
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Malformed request body."},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Last line of defence: log everything, reveal nothing."""
    status_code = getattr(exc, "status_code", 500)
    logger.error(
        f"{status_code} - {exc} - {request.url.path} - {request.method} - {get_client_ip(request)}",
        exc_info=exc,
    )
    return PlainTextResponse("Something failed!", status_code=500)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "recaptcha-gateway"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
