"""Sample App - users, sessions, account activation, password reset and microposts."""

import logging
import time

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.config import get_settings
from app.rate_limit import limiter
from app.routers import (
    account_activations_router,
    auth_router,
    microposts_router,
    password_resets_router,
    users_router,
)

# Logging
logger = logging.getLogger("sample_app")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

for warning in get_settings().validate():
    logger.warning(warning)

app = FastAPI(title="Sample App", version="0.1.0")
app.state.limiter = limiter


# --- Security headers middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


# --- Audit logging middleware ---
class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PATHS = (
        "/api/v1/auth/",
        "/api/v1/users",
        "/api/v1/account-activations/",
        "/api/v1/password-resets",
    )

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        # Log sensitive operations. Activation and reset paths carry a token and are redacted.
        path = request.url.path
        method = request.method
        audited_method = method in ("POST", "PATCH", "DELETE") or path.startswith("/api/v1/account-activations/")
        if audited_method and path.startswith(self.AUDIT_PATHS):
            logger.info(
                "AUDIT %s %s -> %d (%.0fms) from %s",
                method,
                _redact_token(path),
                response.status_code,
                duration_ms,
                request.client.host if request.client else "unknown",
            )

        return response


def _redact_token(path: str) -> str:
    for prefix in ("/api/v1/account-activations/", "/api/v1/password-resets/"):
        if path.startswith(prefix):
            return prefix + "[token]"
    return path


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(AuditLogMiddleware)

# API routers
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(account_activations_router)
app.include_router(password_resets_router)
app.include_router(microposts_router)


# --- Rate limit error handler ---
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Handle rate limit exceeded."""
    return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded. Try again later."})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTP errors as JSON, keeping any headers the route set."""
    if exc.status_code >= 500:
        logger.error("HTTP %d on %s %s: %s", exc.status_code, request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


# --- Health check ---
@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "app": "sample-app", "version": "0.1.0"}
