"""Clients API router: CRUD scoped to the caller's partner portfolio."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from partner_crm.core.config import settings
from partner_crm.core.exceptions import not_found
from partner_crm.core.rate_limiter import limiter
from partner_crm.core.responses import created_response, success_response
from partner_crm.core.permissions import Permission
from partner_crm.core.security import RequirePermission
from partner_crm.db.session import get_db
from partner_crm.models.client import Client
from partner_crm.models.user import User
from partner_crm.schemas.schemas import ClientCreate, ClientOut, ClientUpdate
from partner_crm.services.audit_service import audit_service
from partner_crm.services.ownership import assign_owner, can_access_owner, scope_query

router = APIRouter(prefix="/clients", tags=["clients"])

require_clients_view = RequirePermission(Permission.CLIENTS_VIEW.value)
require_clients_create = RequirePermission(Permission.CLIENTS_CREATE.value)
require_clients_edit = RequirePermission(Permission.CLIENTS_EDIT.value)
require_clients_delete = RequirePermission(Permission.CLIENTS_DELETE.value)


def _scoped_client(db: Session, user: User, client_id: int) -> Client:
    client = db.query(Client).filter(Client.id == client_id).first()
    if not client or not can_access_owner(db, user, client.partner_id):
        raise not_found("Cliente não encontrado")
    return client


def _partner_name(db: Session, partner_id: Optional[int]) -> Optional[str]:
    if partner_id is None:
        return None
    partner = db.query(User).filter(User.id == partner_id).first()
    return partner.name if partner else None


@router.get("")
async def list_clients(
    status: Optional[str] = Query(None),
    stage: Optional[str] = Query(None),
    temperature: Optional[str] = Query(None),
    partner_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    user: User = Depends(require_clients_view),
):
    query = scope_query(db.query(Client), Client.partner_id, db, user)
    if status:
        query = query.filter(Client.status == status)
    if stage:
        query = query.filter(Client.stage == stage)
    if temperature:
        query = query.filter(Client.temperature == temperature)
    if partner_id:
        query = query.filter(Client.partner_id == partner_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(Client.name.ilike(pattern) | Client.email.ilike(pattern))

    total = query.count()
    clients = (
        query.order_by(Client.registration_date.desc(), Client.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return success_response({
        "clients": [ClientOut.model_validate(c) for c in clients],
        "total": total,
        "page": page,
        "page_size": page_size,
    })


@router.get("/{client_id}")
async def get_client(
    client_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_clients_view),
):
    return success_response(ClientOut.model_validate(_scoped_client(db, user, client_id)))


@router.post("")
@limiter.limit(settings.RATE_LIMIT_CREATE)
async def create_client(
    request: Request,
    body: ClientCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_clients_create),
):
    fields = body.model_dump(exclude_none=True)
    fields["partner_id"] = assign_owner(db, user, body.partner_id)
    fields["partner_name"] = _partner_name(db, fields["partner_id"])

    client = Client(**fields)
    db.add(client)
    db.commit()
    db.refresh(client)

    data = ClientOut.model_validate(client)
    audit_service.record(
        db, request, user,
        action="client.created",
        resource_type="client",
        resource_id=str(client.id),
        new_value=data.model_dump(),
    )
    return created_response(data, "Cliente criado com sucesso")


@router.put("/{client_id}")
async def update_client(
    client_id: int,
    body: ClientUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_clients_edit),
):
    client = _scoped_client(db, user, client_id)
    before = ClientOut.model_validate(client).model_dump()
    changes = body.model_dump(exclude_unset=True)

    if "partner_id" in changes:
        changes["partner_id"] = assign_owner(db, user, changes["partner_id"])
        changes["partner_name"] = _partner_name(db, changes["partner_id"])

    for field, value in changes.items():
        setattr(client, field, value)
    db.commit()
    db.refresh(client)

    data = ClientOut.model_validate(client)
    audit_service.record(
        db, request, user,
        action="client.updated",
        resource_type="client",
        resource_id=str(client.id),
        old_value=before,
        new_value=data.model_dump(),
    )
    return success_response(data, "Cliente atualizado com sucesso")


@router.delete("/{client_id}")
async def delete_client(
    client_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_clients_delete),
):
    client = _scoped_client(db, user, client_id)
    before = ClientOut.model_validate(client).model_dump()
    db.delete(client)
    db.commit()
    audit_service.record(
        db, request, user,
        action="client.deleted",
        resource_type="client",
        resource_id=str(client_id),
        old_value=before,
    )
    return success_response(message="Cliente excluído com sucesso")
