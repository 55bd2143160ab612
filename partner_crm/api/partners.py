"""Partners API router: partner profiles and payout data."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from partner_crm.core.exceptions import AuthorizationError, not_found
from partner_crm.core.responses import success_response
from partner_crm.core.role_hierarchy import Role
from partner_crm.core.security import get_current_user
from partner_crm.db.session import get_db
from partner_crm.models.client import Client
from partner_crm.models.prospect import Prospect
from partner_crm.models.user import User
from partner_crm.schemas.schemas import PartnerUpdateRequest
from partner_crm.services.audit_service import audit_service
from partner_crm.services.ownership import can_access_owner, is_admin_level, scope_query

router = APIRouter(prefix="/partners", tags=["partners"])


def partner_to_dict(db: Session, partner: User) -> dict:
    return {
        "id": partner.id,
        "name": partner.name,
        "email": partner.email,
        "phone": partner.phone,
        "company": partner.company,
        "cnpj": partner.cnpj,
        "address": partner.address,
        "status": partner.status,
        "manager_id": partner.manager_id,
        "manager_name": partner.manager.name if partner.manager else None,
        "bank_data": {
            "bank_name": partner.bank_name,
            "agency": partner.bank_agency,
            "account": partner.bank_account,
            "account_type": partner.bank_account_type,
            "pix_key": partner.pix_key,
        },
        "clients_count": db.query(Client).filter(Client.partner_id == partner.id).count(),
        "prospects_count": db.query(Prospect).filter(Prospect.partner_id == partner.id).count(),
        "created_at": partner.created_at,
    }


def _scoped_partner(db: Session, user: User, partner_id: int) -> User:
    partner = (
        db.query(User)
        .filter(User.id == partner_id, User.role == Role.PARTNER.value)
        .first()
    )
    if not partner or not can_access_owner(db, user, partner.id):
        raise not_found("Parceiro não encontrado")
    return partner


@router.get("")
async def list_partners(
    status: Optional[str] = Query(None),
    manager_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = scope_query(
        db.query(User).filter(User.role == Role.PARTNER.value), User.id, db, user
    )
    if status:
        query = query.filter(User.status == status)
    if manager_id:
        query = query.filter(User.manager_id == manager_id)
    partners = query.order_by(User.name.asc()).all()
    return success_response([partner_to_dict(db, p) for p in partners])


@router.get("/{partner_id}")
async def get_partner(
    partner_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return success_response(partner_to_dict(db, _scoped_partner(db, user, partner_id)))


@router.put("/{partner_id}")
async def update_partner(
    partner_id: int,
    body: PartnerUpdateRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Update profile and bank data. Reassigning the manager needs admin level."""
    partner = _scoped_partner(db, user, partner_id)
    before = partner_to_dict(db, partner)
    changes = body.model_dump(exclude_unset=True)

    if "manager_id" in changes and changes["manager_id"] != partner.manager_id:
        if not is_admin_level(user):
            raise AuthorizationError("Apenas administradores podem alterar o gerente")
        if changes["manager_id"] is not None:
            manager = db.query(User).filter(User.id == changes["manager_id"]).first()
            if not manager or manager.role != Role.MANAGER.value:
                raise not_found("Gerente não encontrado")

    for field, value in changes.items():
        setattr(partner, field, value)
    db.commit()
    db.refresh(partner)

    data = partner_to_dict(db, partner)
    audit_service.record(
        db, request, user,
        action="partner.updated",
        resource_type="partner",
        resource_id=str(partner.id),
        old_value=before,
        new_value=data,
    )
    return success_response(data, "Parceiro atualizado com sucesso")
