"""
Security module for the Kelly's Angels portal API.

Provides:
- IP-based rate limiting (slowapi), with stricter limits for login,
  public application submission and donation checkout
- Security headers and request ID middleware
- Request body size limits
- Exception handlers that keep CORS headers and hide internals in production

Configuration via environment variables:
- RATE_LIMIT_PER_MINUTE: default requests per minute per IP (default: 100)
- RATE_LIMIT_ENABLED: set to 'false' to switch limiting off (default: true)
- MAX_REQUEST_SIZE_MB: maximum request body size in MB (default: 10)
- ENVIRONMENT: 'production' or 'development'
"""

import ipaddress
import logging
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = logging.getLogger(__name__)

# =============================================================================
# Configuration
# =============================================================================

RATE_LIMIT_PER_MINUTE = int(os.getenv("RATE_LIMIT_PER_MINUTE", "100"))
DEFAULT_RATE_LIMIT = f"{RATE_LIMIT_PER_MINUTE}/minute"
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").strip().lower() not in (
    "0",
    "false",
    "no",
    "off",
)

MAX_REQUEST_SIZE_MB = int(os.getenv("MAX_REQUEST_SIZE_MB", "10"))
MAX_REQUEST_SIZE_BYTES = MAX_REQUEST_SIZE_MB * 1024 * 1024

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
IS_PRODUCTION = ENVIRONMENT.lower() == "production"

# Railway/Vercel put one proxy in front of the app
TRUSTED_PROXY_COUNT = int(os.getenv("TRUSTED_PROXY_COUNT", "1"))

AUTH_RATE_LIMIT = "5/minute"
SUBMISSION_RATE_LIMIT = "10/minute"
CHECKOUT_RATE_LIMIT = "10/minute"


# =============================================================================
# Client IP extraction
# =============================================================================


def _is_valid_ip(ip_str: str) -> bool:
    """Return True if *ip_str* parses as an IPv4 or IPv6 address."""
    if not ip_str or len(ip_str) > 45:
        return False
    try:
        ipaddress.ip_address(ip_str)
        return True
    except ValueError:
        return False


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP, trusting only the rightmost proxy hops.

    Proxies append the connecting address to X-Forwarded-For, so the entry
    just before our TRUSTED_PROXY_COUNT hops is the real client. Anything
    further left can be forged by the caller.
    """
    direct_ip = request.client.host if request.client else None

    if forwarded_for := request.headers.get("X-Forwarded-For"):
        ips = [ip.strip() for ip in forwarded_for.split(",") if ip.strip()]
        if ips:
            if len(ips) > TRUSTED_PROXY_COUNT:
                client_ip = ips[-(TRUSTED_PROXY_COUNT + 1)]
            else:
                client_ip = ips[0]
            if _is_valid_ip(client_ip):
                return client_ip
            logger.warning(
                "Invalid IP in X-Forwarded-For header: %r", client_ip[:50]
            )

    if real_ip := request.headers.get("X-Real-IP"):
        real_ip = real_ip.strip()
        if _is_valid_ip(real_ip):
            return real_ip
        logger.warning("Invalid X-Real-IP header: %r", real_ip[:50])

    return direct_ip if direct_ip and _is_valid_ip(direct_ip) else "unknown"


limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[DEFAULT_RATE_LIMIT],
    storage_uri="memory://",
    strategy="fixed-window",
    enabled=RATE_LIMIT_ENABLED,
)


def rate_limit_auth():
    """Decorator for login and signup endpoints."""
    return limiter.limit(AUTH_RATE_LIMIT)


def rate_limit_submission():
    """Decorator for public application submission and uploads."""
    return limiter.limit(SUBMISSION_RATE_LIMIT)


def rate_limit_checkout():
    """Decorator for donation checkout session creation."""
    return limiter.limit(CHECKOUT_RATE_LIMIT)


# =============================================================================
# Middleware
# =============================================================================


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers and an X-Request-ID to every response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        request.state.start_time = time.time()

        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # payment= stays allowed for the Stripe redirect
        response.headers["Permissions-Policy"] = (
            "camera=(), geolocation=(), microphone=(), usb=()"
        )
        if IS_PRODUCTION:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        response.headers["X-Request-ID"] = request_id
        if not response.headers.get("Cache-Control"):
            response.headers["Cache-Control"] = "no-store, private"

        duration = time.time() - request.state.start_time
        logger.info(
            "Request completed: %s %s status=%s duration=%.3fs request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration,
            request_id,
        )
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject bodies larger than MAX_REQUEST_SIZE_MB before they are read."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if content_length := request.headers.get("content-length"):
            try:
                size = int(content_length)
            except ValueError:
                return JSONResponse(
                    status_code=400,
                    content={
                        "detail": "Invalid Content-Length header",
                        "code": "INVALID_CONTENT_LENGTH",
                    },
                )
            if size > MAX_REQUEST_SIZE_BYTES:
                return JSONResponse(
                    status_code=413,
                    content={
                        "detail": f"Request body too large. Maximum size is {MAX_REQUEST_SIZE_MB}MB.",
                        "code": "REQUEST_TOO_LARGE",
                    },
                )
        return await call_next(request)


# =============================================================================
# Exception handlers
# =============================================================================


def _error_headers(request: Request, allowed_origins: list[str]) -> dict:
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    headers = {"X-Request-ID": request_id}
    origin = request.headers.get("origin", "")
    if origin in allowed_origins:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Access-Control-Allow-Credentials"] = "true"
    return headers


def create_secure_exception_handler(allowed_origins: list[str]) -> Callable:
    """Build the catch-all handler for unhandled exceptions.

    Production responses carry a generic message; development responses
    include the exception text so the dashboard banner shows what failed.
    """

    async def secure_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        headers = _error_headers(request, allowed_origins)
        logger.error(
            "Unhandled exception: %s: %s request_id=%s path=%s method=%s",
            type(exc).__name__,
            exc,
            headers["X-Request-ID"],
            request.url.path,
            request.method,
            exc_info=True,
        )
        if IS_PRODUCTION:
            content = {
                "detail": "An internal server error occurred. Please try again later.",
                "code": "INTERNAL_ERROR",
                "request_id": headers["X-Request-ID"],
            }
        else:
            content = {
                "detail": str(exc),
                "error_type": type(exc).__name__,
                "request_id": headers["X-Request-ID"],
            }
        return JSONResponse(status_code=500, content=content, headers=headers)

    return secure_exception_handler


def create_rate_limit_exceeded_handler(allowed_origins: list[str]) -> Callable:
    """Build the 429 handler used when a slowapi limit trips."""

    async def rate_limit_handler(
        request: Request, exc: RateLimitExceeded
    ) -> JSONResponse:
        headers = _error_headers(request, allowed_origins)
        headers["Retry-After"] = "60"
        logger.warning(
            "Rate limit exceeded: client_ip=%s path=%s request_id=%s",
            get_client_ip(request),
            request.url.path,
            headers["X-Request-ID"],
        )
        return JSONResponse(
            status_code=429,
            content={
                "detail": "Too many requests. Please wait a minute and try again.",
                "code": "RATE_LIMIT_EXCEEDED",
                "retry_after_seconds": 60,
                "request_id": headers["X-Request-ID"],
            },
            headers=headers,
        )

    return rate_limit_handler


def create_http_exception_handler(allowed_origins: list[str]) -> Callable:
    """Build the HTTPException handler; logs 401/403 for auditing."""

    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        headers = _error_headers(request, allowed_origins)
        if exc.headers:
            headers.update(exc.headers)
        if exc.status_code in (401, 403):
            logger.warning(
                "%s: client_ip=%s path=%s request_id=%s",
                "Authentication failed" if exc.status_code == 401 else "Authorization denied",
                get_client_ip(request),
                request.url.path,
                headers["X-Request-ID"],
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "request_id": headers["X-Request-ID"]},
            headers=headers,
        )

    return http_exception_handler


def setup_security(app: FastAPI, allowed_origins: list[str]) -> None:
    """Install rate limiting, middleware and exception handlers on *app*.

    Must be called after the CORS middleware is added.
    """
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestSizeLimitMiddleware)

    app.add_exception_handler(
        RateLimitExceeded, create_rate_limit_exceeded_handler(allowed_origins)
    )
    app.add_exception_handler(
        Exception, create_secure_exception_handler(allowed_origins)
    )
    app.add_exception_handler(
        HTTPException, create_http_exception_handler(allowed_origins)
    )

    logger.info(
        "Security middleware configured: rate_limit=%s enabled=%s "
        "max_request_size=%sMB environment=%s",
        DEFAULT_RATE_LIMIT,
        RATE_LIMIT_ENABLED,
        MAX_REQUEST_SIZE_MB,
        ENVIRONMENT,
    )


# =============================================================================
# Audit logging
# =============================================================================


def log_security_event(
    event_type: str, request: Request, details: Optional[dict] = None
) -> None:
    """Log a security-relevant event (failed login, bad token, role denial)."""
    log_data = {
        "event_type": event_type,
        "request_id": getattr(request.state, "request_id", "unknown"),
        "client_ip": get_client_ip(request),
        "path": request.url.path,
        "method": request.method,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        log_data |= details
    logger.warning("SECURITY_EVENT: %s", log_data)
