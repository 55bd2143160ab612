"""Request context, rate-limit and CORS middleware."""

import logging
import time
import uuid

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from partner_crm.core.config import settings
from partner_crm.core.rate_limiter import client_identifier

logger = logging.getLogger("partner_crm")

REQUEST_ID_HEADER = "X-Request-Id"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and the caller's identifier, then log it.

    An incoming ``X-Request-Id`` is reused so a proxy's id reaches the audit
    trail. The identifier is the rate-limit key (``user:<id>`` or
    ``ip:<addr>``).
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        caller = client_identifier(request)
        request.state.request_id = request_id
        request.state.caller = caller
        started = time.perf_counter()

        response: Response = await call_next(request)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time-Ms"] = str(elapsed_ms)

        level = logging.ERROR if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s %s %sms caller=%s request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            caller,
            request_id,
        )
        return response


def setup_middleware(app: FastAPI) -> None:
    """Install middleware; the last one added runs first."""
    # Default per-caller limit; per-route limits use @limiter.limit
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER, "X-Response-Time-Ms"],
    )
    app.add_middleware(RequestContextMiddleware)
