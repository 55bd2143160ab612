"""Admin API router: audit trail and service health."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from partner_crm.core.config import settings
from partner_crm.core.permissions import Permission
from partner_crm.core.responses import error_response, success_response
from partner_crm.core.security import RequirePermission
from partner_crm.db.session import get_db
from partner_crm.models.user import User
from partner_crm.schemas.schemas import AuditLogOut
from partner_crm.services.audit_service import audit_service
from partner_crm.services.cache_service import cache_service

logger = logging.getLogger("partner_crm")

router = APIRouter(prefix="/admin", tags=["admin"])
health_router = APIRouter(tags=["health"])


@router.get("/audit")
async def get_audit_logs(
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    resource_id: Optional[str] = Query(None),
    actor_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    user: User = Depends(RequirePermission(Permission.ADMIN_ACCESS.value)),
):
    """Query audit logs (admin only)."""
    result = audit_service.query_logs(
        db,
        actor_id=actor_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        page=page,
        page_size=page_size,
    )
    return success_response({
        "logs": [AuditLogOut.model_validate(log) for log in result["logs"]],
        "total": result["total"],
        "page": result["page"],
        "page_size": result["page_size"],
    })


@health_router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """System health check: database and key-value store."""
    db_ok = True
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database health check failed: %s", e)
        db_ok = False

    checks = {
        "database": "ok" if db_ok else "error",
        "cache": "ok" if cache_service.health_check() else "error",
        "environment": settings.ENVIRONMENT,
    }
    if not db_ok:
        return error_response(
            503,
            "Service unavailable",
            code="SERVICE_UNAVAILABLE",
            checks=checks,
        )
    return success_response({"status": "healthy", **checks})
