"""Request rate limiting (slowapi).

Counters live in the storage named by RATE_LIMIT_STORAGE_URI. With the
default ``memory://`` each process counts on its own, so the limits are
advisory once more than one instance serves traffic; point it at Redis to
share counters.
"""

import logging

from fastapi import Request
from jose import JWTError, jwt
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from partner_crm.core.config import settings
from partner_crm.core.responses import error_response

logger = logging.getLogger("partner_crm")


def client_ip(request: Request) -> str:
    """Originating address, honouring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for") or request.headers.get("x-real-ip")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def client_identifier(request: Request) -> str:
    """Rate-limit key: the bearer token's user id, else the client IP.

    The token is only read here, not verified; a forged token can at most
    move its sender into another user's bucket.
    """
    auth_header = request.headers.get("authorization", "")
    parts = auth_header.split(" ")
    if len(parts) == 2 and parts[0].lower() == "bearer":
        try:
            claims = jwt.get_unverified_claims(parts[1])
        except JWTError:
            claims = {}
        user_id = claims.get("userId")
        if user_id is not None:
            return f"user:{user_id}"
    return f"ip:{client_ip(request)}"


limiter = Limiter(
    key_func=client_identifier,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(
        "Rate limit exceeded for %s on %s (%s)",
        client_identifier(request), request.url.path, exc.detail,
    )
    return error_response(
        429,
        "Too many requests",
        code="RATE_LIMITED",
        message="Rate limit exceeded. Please try again later.",
        limit=str(exc.detail),
    )
