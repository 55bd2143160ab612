"""Users API router: user management under the creation/visibility policies.

Changing another user needs ``admin.users``, or a manager acting on a
partner they manage. Everyone may edit their own profile fields.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from partner_crm.core.exceptions import AuthorizationError, ValidationError, not_found
from partner_crm.core.permissions import Permission
from partner_crm.core.responses import created_response, success_response
from partner_crm.core.role_hierarchy import (
    Role,
    can_create_role,
    can_view_role,
    filter_users_by_permission,
    parse_role,
)
from partner_crm.core.security import get_current_user
from partner_crm.db.session import get_db
from partner_crm.models.refresh_token import RefreshToken
from partner_crm.models.user import User
from partner_crm.schemas.schemas import (
    PasswordChangeRequest,
    UserCreateRequest,
    UserOut,
    UserUpdateRequest,
)
from partner_crm.services.audit_service import audit_service
from partner_crm.services.auth_service import auth_service
from partner_crm.services.permission_service import permission_service
from partner_crm.services.role_service import role_service

logger = logging.getLogger("partner_crm")

router = APIRouter(prefix="/users", tags=["users"])


def _visible_user(db: Session, viewer: User, user_id: int) -> User:
    """Load a user the viewer may see; hidden users look missing."""
    target = db.query(User).filter(User.id == user_id).first()
    if not target or not can_view_role(viewer.role, target.role):
        raise not_found("Usuário não encontrado")
    return target


def _require_creatable(actor: User, role: Role) -> None:
    if not can_create_role(actor.role, role):
        logger.warning("Access denied: %s (role: %s) cannot assign %s", actor.email, actor.role, role.value)
        raise AuthorizationError("Você não tem permissão para criar usuários com esta função")


def _is_user_admin(db: Session, actor: User) -> bool:
    return permission_service.has_permission(db, actor, Permission.ADMIN_USERS.value)


def _manages(actor: User, target: User) -> bool:
    return parse_role(actor.role) is Role.MANAGER and target.manager_id == actor.id


def _require_authority(db: Session, actor: User, target: User) -> None:
    """The actor may change ``target``: user admin or its manager, never above their level."""
    allowed = (_is_user_admin(db, actor) or _manages(actor, target)) and can_create_role(
        actor.role, target.role
    )
    if not allowed:
        logger.warning("Access denied: %s (role: %s) cannot change user %s", actor.email, actor.role, target.id)
        raise AuthorizationError("Você não tem permissão para alterar este usuário")


@router.get("")
async def list_users(
    role: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """List the users the caller is allowed to see."""
    query = db.query(User)
    if role:
        query = query.filter(User.role == role.strip().lower())
    if status:
        query = query.filter(User.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.filter(User.name.ilike(pattern) | User.email.ilike(pattern))

    visible = filter_users_by_permission(query.order_by(User.name.asc()).all(), user.role)
    start = (page - 1) * page_size
    return success_response({
        "users": [UserOut.model_validate(u) for u in visible[start:start + page_size]],
        "total": len(visible),
        "page": page,
        "page_size": page_size,
    })


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return success_response(UserOut.model_validate(_visible_user(db, user, user_id)))


@router.post("")
async def create_user(
    body: UserCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Create a user with a role at or below the caller's level.

    User admins may give any creatable role or custom role record. A
    manager without ``admin.users`` may only add plain partners to their
    own portfolio.
    """
    if body.role is None and body.role_id is None:
        raise ValidationError("Função é obrigatória")
    role, record = role_service.resolve_assignment(db, body.role, body.role_id)
    _require_creatable(user, role)

    manager_id = body.manager_id
    if not _is_user_admin(db, user):
        if parse_role(user.role) is not Role.MANAGER or role is not Role.PARTNER or record is not None:
            logger.warning("Access denied: %s (role: %s) cannot create users", user.email, user.role)
            raise AuthorizationError("Você não tem permissão para criar usuários")
        manager_id = user.id
    elif manager_id is None and role is Role.PARTNER and parse_role(user.role) is Role.MANAGER:
        manager_id = user.id

    created = auth_service.create_user(
        db, body.email, body.password, body.name, role.value,
        manager_id=manager_id,
        role_id=record.id if record else None,
        phone=body.phone,
        company=body.company,
        cnpj=body.cnpj,
    )
    data = UserOut.model_validate(created)
    audit_service.record(
        db, request, user,
        action="user.created",
        resource_type="user",
        resource_id=str(created.id),
        new_value=data.model_dump(),
    )
    return created_response(data, "Usuário criado com sucesso")


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    body: UserUpdateRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Update a user. Role, status and manager are never self-service."""
    target = _visible_user(db, user, user_id)
    before = UserOut.model_validate(target).model_dump()
    changes = body.model_dump(exclude_unset=True)

    new_role = changes.pop("role", None)
    new_role_id = changes.pop("role_id", None)
    reassigning = new_role is not None or new_role_id is not None

    if target.id == user.id:
        if reassigning or "status" in changes or "manager_id" in changes:
            raise AuthorizationError("Só é possível alterar os próprios dados de perfil")
    else:
        _require_authority(db, user, target)
        if (reassigning or "manager_id" in changes) and not _is_user_admin(db, user):
            raise AuthorizationError("Você não tem permissão para alterar função ou gerente")

    if reassigning:
        role, record = role_service.resolve_assignment(db, new_role, new_role_id)
        _require_creatable(user, role)
        target.role = role.value
        target.role_id = record.id if record else None

    for field, value in changes.items():
        setattr(target, field, value)
    db.commit()
    db.refresh(target)

    if reassigning:
        permission_service.invalidate_user(target.id)

    data = UserOut.model_validate(target)
    audit_service.record(
        db, request, user,
        action="user.updated",
        resource_type="user",
        resource_id=str(target.id),
        old_value=before,
        new_value=data.model_dump(),
    )
    return success_response(data, "Usuário atualizado com sucesso")


@router.put("/{user_id}/password")
async def change_password(
    user_id: int,
    body: PasswordChangeRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Change the caller's own password."""
    if user_id != user.id:
        raise AuthorizationError("Só é possível alterar a própria senha")
    auth_service.change_password(db, user, body.current_password, body.new_password)
    audit_service.record(
        db, request, user,
        action="user.password_changed",
        resource_type="user",
        resource_id=str(user.id),
    )
    return success_response(message="Senha alterada com sucesso")


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if user_id == user.id:
        raise ValidationError("Não é possível excluir o próprio usuário")
    target = _visible_user(db, user, user_id)
    _require_authority(db, user, target)

    before = UserOut.model_validate(target).model_dump()
    db.query(RefreshToken).filter(RefreshToken.user_id == target.id).delete()
    db.query(User).filter(User.manager_id == target.id).update({"manager_id": None})
    db.delete(target)
    db.commit()
    permission_service.invalidate_user(user_id)

    audit_service.record(
        db, request, user,
        action="user.deleted",
        resource_type="user",
        resource_id=str(user_id),
        old_value=before,
    )
    return success_response(message="Usuário excluído com sucesso")
