"""Prospects API router: partner referrals and their validation."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from partner_crm.core.config import settings
from partner_crm.core.exceptions import not_found
from partner_crm.core.rate_limiter import limiter
from partner_crm.core.responses import created_response, success_response
from partner_crm.core.permissions import Permission
from partner_crm.core.security import RequirePermission, require_manager
from partner_crm.db.base import utcnow
from partner_crm.db.session import get_db
from partner_crm.models.prospect import Prospect, ProspectStatus
from partner_crm.models.user import User
from partner_crm.schemas.schemas import (
    ProspectCreate,
    ProspectOut,
    ProspectUpdate,
    ProspectValidateRequest,
)
from partner_crm.services.audit_service import audit_service
from partner_crm.services.ownership import assign_owner, can_access_owner, scope_query

router = APIRouter(prefix="/prospects", tags=["prospects"])

require_referrals_view = RequirePermission(Permission.REFERRALS_VIEW.value)
require_referrals_create = RequirePermission(Permission.REFERRALS_CREATE.value)
require_referrals_validate = RequirePermission(Permission.REFERRALS_VALIDATE.value)


def _scoped_prospect(db: Session, user: User, prospect_id: int) -> Prospect:
    prospect = db.query(Prospect).filter(Prospect.id == prospect_id).first()
    if not prospect or not can_access_owner(db, user, prospect.partner_id):
        raise not_found("Indicação não encontrada")
    return prospect


@router.get("")
async def list_prospects(
    status: Optional[str] = Query(None, pattern="^(pending|validated|rejected)$"),
    partner_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    user: User = Depends(require_referrals_view),
):
    query = scope_query(db.query(Prospect), Prospect.partner_id, db, user)
    if status:
        query = query.filter(Prospect.status == status)
    if partner_id:
        query = query.filter(Prospect.partner_id == partner_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            Prospect.company_name.ilike(pattern) | Prospect.contact_name.ilike(pattern)
        )

    total = query.count()
    prospects = (
        query.order_by(Prospect.submitted_at.desc(), Prospect.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return success_response({
        "prospects": [ProspectOut.model_validate(p) for p in prospects],
        "total": total,
        "page": page,
        "page_size": page_size,
    })


@router.get("/{prospect_id}")
async def get_prospect(
    prospect_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_referrals_view),
):
    return success_response(ProspectOut.model_validate(_scoped_prospect(db, user, prospect_id)))


@router.post("")
@limiter.limit(settings.RATE_LIMIT_CREATE)
async def create_prospect(
    request: Request,
    body: ProspectCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_referrals_create),
):
    fields = body.model_dump(exclude_none=True)
    fields["partner_id"] = assign_owner(db, user, body.partner_id)
    fields["status"] = ProspectStatus.pending.value

    prospect = Prospect(**fields)
    db.add(prospect)
    db.commit()
    db.refresh(prospect)

    data = ProspectOut.model_validate(prospect)
    audit_service.record(
        db, request, user,
        action="prospect.created",
        resource_type="prospect",
        resource_id=str(prospect.id),
        new_value=data.model_dump(),
    )
    return created_response(data, "Indicação enviada com sucesso")


@router.put("/{prospect_id}")
async def update_prospect(
    prospect_id: int,
    body: ProspectUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_referrals_create),
):
    prospect = _scoped_prospect(db, user, prospect_id)
    before = ProspectOut.model_validate(prospect).model_dump()

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(prospect, field, value)
    db.commit()
    db.refresh(prospect)

    data = ProspectOut.model_validate(prospect)
    audit_service.record(
        db, request, user,
        action="prospect.updated",
        resource_type="prospect",
        resource_id=str(prospect.id),
        old_value=before,
        new_value=data.model_dump(),
    )
    return success_response(data, "Indicação atualizada com sucesso")


@router.patch("/{prospect_id}/validate", dependencies=[Depends(require_referrals_validate)])
async def validate_prospect(
    prospect_id: int,
    body: ProspectValidateRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_manager),
):
    """Approve or reject a referral (manager level and ``referrals.validate``)."""
    prospect = _scoped_prospect(db, user, prospect_id)
    before = ProspectOut.model_validate(prospect).model_dump()

    if body.status:
        status = body.status
    elif body.is_approved:
        status = ProspectStatus.validated.value
    else:
        status = ProspectStatus.rejected.value

    prospect.status = status
    prospect.is_approved = status == ProspectStatus.validated.value
    prospect.validated_at = utcnow()
    prospect.validated_by = user.name
    prospect.validation_notes = body.validation_notes
    db.commit()
    db.refresh(prospect)

    data = ProspectOut.model_validate(prospect)
    audit_service.record(
        db, request, user,
        action=f"prospect.{status}",
        resource_type="prospect",
        resource_id=str(prospect.id),
        old_value=before,
        new_value=data.model_dump(),
    )
    message = "Indicação validada" if prospect.is_approved else "Indicação atualizada"
    return success_response(data, message)


@router.delete("/{prospect_id}")
async def delete_prospect(
    prospect_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_referrals_validate),
):
    prospect = _scoped_prospect(db, user, prospect_id)
    before = ProspectOut.model_validate(prospect).model_dump()
    db.delete(prospect)
    db.commit()
    audit_service.record(
        db, request, user,
        action="prospect.deleted",
        resource_type="prospect",
        resource_id=str(prospect_id),
        old_value=before,
    )
    return success_response(message="Indicação excluída com sucesso")
