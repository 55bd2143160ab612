"""FastAPI main application entry point."""

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from partner_crm.core.config import settings
from partner_crm.core.exceptions import CRMError
from partner_crm.core.middleware import setup_middleware
from partner_crm.core.rate_limiter import limiter, rate_limit_exceeded_handler
from partner_crm.core.responses import error_response
from partner_crm.core.security import validate_jwt_secrets

from partner_crm.api.auth import router as auth_router
from partner_crm.api.roles import router as roles_router
from partner_crm.api.users import router as users_router
from partner_crm.api.clients import router as clients_router
from partner_crm.api.prospects import router as prospects_router
from partner_crm.api.partners import router as partners_router
from partner_crm.api.pricing_plans import router as pricing_plans_router
from partner_crm.api.support_materials import router as support_materials_router
from partner_crm.api.products import router as products_router
from partner_crm.api.remuneration_tables import router as remuneration_tables_router
from partner_crm.api.admin import router as admin_router, health_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("partner_crm")

HTTP_ERROR_CODES = {
    401: "NOT_AUTHENTICATED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("🚀 Starting %s (%s)", settings.APP_NAME, settings.ENVIRONMENT)
    validate_jwt_secrets()

    from partner_crm.services.cache_service import cache_service
    if cache_service.health_check():
        logger.info("✅ Cache backend '%s' ready", settings.CACHE_BACKEND)
    else:
        logger.warning("⚠️  Cache backend '%s' not available", settings.CACHE_BACKEND)

    yield

    logger.info("🔻 Shutting down %s", settings.APP_NAME)


app = FastAPI(
    title="Partners CRM API",
    description="Partner relationship management with role-based access control",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Rate limiting
app.state.limiter = limiter

# Middleware
setup_middleware(app)


@app.exception_handler(CRMError)
async def crm_exception_handler(request: Request, exc: CRMError):
    return error_response(exc.status_code, exc.message, code=exc.code, message=exc.details)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(
        exc.status_code,
        str(exc.detail),
        code=HTTP_ERROR_CODES.get(exc.status_code),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return error_response(400, "Validation failed", code="VALIDATION_ERROR", details=details)


app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if settings.is_production:
        return error_response(500, "Internal server error", code="INTERNAL_ERROR")
    return error_response(
        500,
        "Internal server error",
        code="INTERNAL_ERROR",
        message=str(exc),
        traceback=traceback.format_exception(type(exc), exc, exc.__traceback__),
    )


# Register routers
app.include_router(auth_router, prefix="/api")
app.include_router(roles_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(clients_router, prefix="/api")
app.include_router(prospects_router, prefix="/api")
app.include_router(partners_router, prefix="/api")
app.include_router(pricing_plans_router, prefix="/api")
app.include_router(support_materials_router, prefix="/api")
app.include_router(products_router, prefix="/api")
app.include_router(remuneration_tables_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(health_router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": "0.1.0",
        "docs": "/docs",
    }
