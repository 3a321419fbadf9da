"""
Rate Limit Middleware

Gates every request (static pages and the API alike) through the
store-backed RateLimiter before routing. CORS preflights are exempt.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from access_gate.core.client_ip import get_client_ip
from access_gate.core.service_manager import get_services

RATE_LIMITED_MESSAGE = "Too many requests. Please try again later."


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects clients over their window with 429."""

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            return await call_next(request)

        rate_limiter = get_services(request.app).rate_limiter
        decision = await rate_limiter.admit(get_client_ip(request))

        if not decision.allowed:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"success": False, "message": RATE_LIMITED_MESSAGE},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response


def add_rate_limit_middleware(app):
    app.add_middleware(RateLimitMiddleware)
