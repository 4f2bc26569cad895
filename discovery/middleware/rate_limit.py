"""
Rate limiting for search endpoints
"""
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
import logging

from discovery.core.config import settings

logger = logging.getLogger(__name__)


def get_user_id_from_request(request: Request) -> str:
    """
    Extract user identifier for rate limiting
    Fallback to IP address if user is not authenticated
    """
    if hasattr(request.state, 'user') and request.state.user:
        return f"user:{request.state.user.id}"

    return f"ip:{get_remote_address(request)}"


# Create limiter instance; limits fall back to process memory when Redis is down
limiter = Limiter(
    key_func=get_user_id_from_request,
    storage_uri=settings.rate_limit_storage_uri,
    in_memory_fallback_enabled=True,
    swallow_errors=True,
    default_limits=["1000 per hour"]
)

SEARCH_RATE_LIMIT = settings.RATE_LIMIT_SEARCH


def setup_rate_limiting(app):
    """Setup rate limiting for the FastAPI application"""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    logger.info("Rate limiting configured")
