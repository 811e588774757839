"""Rate limiting middleware configuration."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.middleware import SlowAPIMiddleware
from slowapi.errors import RateLimitExceeded
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ...infrastructure.config import get_bool_env_var, get_env_var

DEFAULT_LIMIT = "120/minute"


def setup_rate_limiting(app: FastAPI) -> Limiter:
    """Set up rate limiting middleware."""
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[get_env_var("RATE_LIMIT_DEFAULT", DEFAULT_LIMIT)],
        enabled=get_bool_env_var("RATE_LIMIT_ENABLED", True),
    )
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    @app.exception_handler(RateLimitExceeded)
    def _rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(status_code=429, content={"error": "rate_limited", "message": str(exc)})

    return limiter
