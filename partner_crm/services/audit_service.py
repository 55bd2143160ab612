"""Audit trail for CRM mutations."""

import json
import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import Request
from sqlalchemy.orm import Session

from partner_crm.core.rate_limiter import client_ip
from partner_crm.models.audit_log import AuditLog

logger = logging.getLogger("partner_crm")


def _dump(value: Optional[Any]) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=str)


def changed_fields(old: Dict[str, Any], new: Dict[str, Any]) -> Tuple[dict, dict]:
    """Reduce two snapshots of a record to the keys whose values differ."""
    keys = [k for k in {**old, **new} if old.get(k) != new.get(k)]
    return {k: old.get(k) for k in keys}, {k: new.get(k) for k in keys}


class AuditService:
    """Writes and queries audit entries; each entry is committed on its own."""

    @staticmethod
    def record(
        db: Session,
        request: Optional[Request],
        actor,
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        old_value: Optional[Dict[str, Any]] = None,
        new_value: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        """Append an entry for ``actor`` acting through ``request``.

        When both snapshots are given only the changed fields are kept.
        """
        if old_value is not None and new_value is not None:
            old_value, new_value = changed_fields(old_value, new_value)

        entry = AuditLog(
            actor_id=getattr(actor, "id", None),
            actor_email=getattr(actor, "email", None),
            actor_role=getattr(actor, "role", None),
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            old_value_json=_dump(old_value),
            new_value_json=_dump(new_value),
        )
        if request is not None:
            entry.request_id = getattr(request.state, "request_id", None)
            entry.ip_address = client_ip(request)
            entry.user_agent = request.headers.get("user-agent", "")[:500]

        db.add(entry)
        db.commit()
        logger.info(
            "audit %s %s:%s by %s",
            action, resource_type, entry.resource_id, entry.actor_email or "system",
        )
        return entry

    @staticmethod
    def query_logs(
        db: Session,
        actor_id: Optional[int] = None,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> dict:
        """Newest first, filtered and paginated."""
        query = db.query(AuditLog)
        if actor_id:
            query = query.filter(AuditLog.actor_id == actor_id)
        if action:
            query = query.filter(AuditLog.action.ilike(f"%{action}%"))
        if resource_type:
            query = query.filter(AuditLog.resource_type == resource_type)
        if resource_id:
            query = query.filter(AuditLog.resource_id == resource_id)

        total = query.count()
        logs = (
            query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {"logs": logs, "total": total, "page": page, "page_size": page_size}


audit_service = AuditService()
