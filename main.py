"""Storefront Auth - account and session service."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from storefront_auth.config import get_settings
from storefront_auth.errors import AuthError, InternalError
from storefront_auth.routers import auth_router
from storefront_auth.services.auth import AuthService
from storefront_auth.services.email import EmailService, build_transport
from storefront_auth.services.notifications import Notifier

APP_VERSION = "0.1.0"

settings = get_settings()

# Logging
logger = logging.getLogger("storefront_auth")
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the notifier and auth service once per process."""
    for warning in settings.validate():
        logger.warning("Config: %s", warning)

    notifier = Notifier(EmailService(build_transport(settings), settings), settings.NOTIFICATION_WORKERS)
    app.state.notifier = notifier
    app.state.auth_service = AuthService(notifier=notifier)
    logger.info("Storefront auth %s started (%s)", APP_VERSION, settings.APP_ENV)
    try:
        yield
    finally:
        notifier.shutdown(wait=True)


app = FastAPI(title="Storefront Auth", version=APP_VERSION, lifespan=lifespan)


# --- Security headers middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"
        return response


# --- Request size limit middleware ---
class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    MAX_BODY_SIZE = 1024 * 1024  # 1MB of JSON is plenty for credentials

    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.MAX_BODY_SIZE:
            return JSONResponse(status_code=413, content={"error": "Request body too large"})
        return await call_next(request)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)

# API routers
app.include_router(auth_router)


# --- Error handlers ---
@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render service errors as {"error": message} with their status code."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": "Something went wrong, please try again"})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Storage failures never leak to the client."""
    logger.exception("Storage error on %s %s", request.method, request.url.path)
    return await auth_error_handler(request, InternalError(type(exc).__name__))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are a 400, like any other invalid input."""
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Something went wrong, please try again"})


# --- Health check ---
@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "app": "storefront-auth", "version": APP_VERSION}
