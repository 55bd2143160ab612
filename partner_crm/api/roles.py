"""Roles API router: role records, permission registry and hierarchy."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from partner_crm.core.exceptions import AuthorizationError
from partner_crm.core.permissions import Permission, grouped_permissions, list_permissions
from partner_crm.core.responses import created_response, success_response
from partner_crm.core.role_hierarchy import (
    can_create_role,
    get_creatable_roles,
    get_role_level,
    get_viewable_roles,
    parse_role,
)
from partner_crm.core.security import RequirePermission, get_current_user
from partner_crm.db.session import get_db
from partner_crm.models.user import User
from partner_crm.schemas.schemas import RoleCreateRequest, RoleUpdateRequest
from partner_crm.services.audit_service import audit_service
from partner_crm.services.role_service import role_service, role_to_dict

router = APIRouter(prefix="/roles", tags=["roles"])

require_role_admin = RequirePermission(Permission.ADMIN_ROLES.value)


@router.get("")
async def list_roles(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return success_response([role_to_dict(r) for r in role_service.list_roles(db)])


@router.get("/permissions")
async def list_available_permissions(user: User = Depends(get_current_user)):
    """Permission registry, flat and grouped by category."""
    return success_response({
        "permissions": list_permissions(),
        "grouped": grouped_permissions(),
    })


@router.get("/hierarchy")
async def my_hierarchy(user: User = Depends(get_current_user)):
    """Caller's level plus the roles they may create and see."""
    return success_response({
        "role": user.role,
        "level": get_role_level(user.role),
        "creatable_roles": get_creatable_roles(user.role),
        "viewable_roles": get_viewable_roles(user.role),
    })


@router.get("/{role_id}")
async def get_role(
    role_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return success_response(role_to_dict(role_service.get_role(db, role_id)))


@router.post("")
async def create_role(
    body: RoleCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_role_admin),
):
    if parse_role(body.base_role) is not None and not can_create_role(user.role, body.base_role):
        raise AuthorizationError("Você não pode criar funções acima do seu nível")
    role = role_service.create_role(
        db, body.name, body.description, body.permissions, base_role=body.base_role,
    )
    data = role_to_dict(role)
    audit_service.record(
        db, request, user,
        action="role.created",
        resource_type="role",
        resource_id=str(role.id),
        new_value=data,
    )
    return created_response(data, "Função criada com sucesso")


@router.put("/{role_id}")
async def update_role(
    role_id: int,
    body: RoleUpdateRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_role_admin),
):
    before = role_to_dict(role_service.get_role(db, role_id))
    role = role_service.update_role(
        db, role_id,
        name=body.name,
        description=body.description,
        permissions=body.permissions,
        is_active=body.is_active,
    )
    data = role_to_dict(role)
    audit_service.record(
        db, request, user,
        action="role.updated",
        resource_type="role",
        resource_id=str(role_id),
        old_value=before,
        new_value=data,
    )
    return success_response(data, "Função atualizada com sucesso")


@router.delete("/{role_id}")
async def delete_role(
    role_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_role_admin),
):
    removed = role_service.delete_role(db, role_id)
    audit_service.record(
        db, request, user,
        action="role.deleted",
        resource_type="role",
        resource_id=str(role_id),
        old_value=removed,
    )
    return success_response(message="Função excluída com sucesso")
