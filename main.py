"""Authgate - authentication service."""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.config import get_settings
from app.rate_limit import limiter
from app.routers import auth_router

APP_VERSION = "0.1.0"

# Logging
logger = logging.getLogger("authgate")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    for warning in settings.validate():
        logger.warning(warning)
    yield


app = FastAPI(title="Authgate", version=APP_VERSION, lifespan=lifespan)
app.state.limiter = limiter


# --- Security headers middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        response.headers["Cache-Control"] = "no-store"
        return response


# --- Request size limit middleware ---
class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    MAX_BODY_SIZE = 1024 * 1024  # credential bodies are tiny

    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.MAX_BODY_SIZE:
            return JSONResponse(status_code=413, content={"msg": "Request body too large"})
        return await call_next(request)


# --- Audit logging middleware ---
class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PATHS = {
        "/api/auth/register",
        "/api/auth/login",
        "/api/auth/forgot-password",
        "/api/auth/reset-password",
    }

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        path = request.url.path
        if request.method == "POST" and path in self.AUDIT_PATHS:
            logger.info(
                "AUDIT %s %s -> %d (%.0fms) from %s",
                request.method,
                path,
                response.status_code,
                duration_ms,
                request.client.host if request.client else "unknown",
            )

        return response


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(AuditLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routers
app.include_router(auth_router)


# --- Error handlers: every error body is {"msg": ...} ---
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Handle rate limit exceeded."""
    return JSONResponse(status_code=429, content={"msg": "Rate limit exceeded. Try again later."})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Render HTTP errors with the message under "msg"."""
    return JSONResponse(status_code=exc.status_code, content={"msg": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> Response:
    """Report malformed bodies as 400 with the first problem found."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        msg = f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg", "Invalid request")
    else:
        msg = "Invalid request"
    return JSONResponse(status_code=400, content={"msg": msg})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"msg": "Server error"})


# --- Liveness ---
@app.get("/api/test")
def api_test() -> dict:
    """Static liveness probe."""
    return {"message": "API is working"}


@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "app": "authgate", "version": APP_VERSION}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
