"""
CORS and rate limiting

All traffic arrives from a handful of backend hosts, so limits are counted
per acting user (the user_id path parameter) rather than per client
address. Routes without a user fall back to the caller's key, then to the
remote address.
"""
import logging

from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from mindshift import config

logger = logging.getLogger(__name__)


def rate_limit_key(request: Request) -> str:
    """Bucket a request is counted against"""
    user_id = request.path_params.get("user_id")
    if user_id:
        return f"user:{user_id}"
    caller = getattr(request.state, "caller", None)
    if caller:
        return f"caller:{caller}"
    return f"addr:{get_remote_address(request)}"


limiter = Limiter(key_func=rate_limit_key)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the same body shape as application errors"""
    key = rate_limit_key(request)
    logger.warning(f"Rate limit {exc.detail} hit by {key} on {request.url.path}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitExceeded",
            "message": f"Rate limit exceeded: {exc.detail}",
            "user_message": "Too many requests. Please slow down and try again shortly.",
            "retryable": True,
        },
    )


def setup_cors(app):
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )
    logger.info(f"CORS configured for origins: {config.CORS_ORIGINS}")


def setup_rate_limiting(app):
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    logger.info(f"Rate limiting per user; practice submissions {config.PRACTICE_RATE_LIMIT}")
