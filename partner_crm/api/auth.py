"""Auth API router: login, refresh, logout, me, permissions."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from partner_crm.core.config import settings
from partner_crm.core.rate_limiter import limiter
from partner_crm.core.responses import success_response
from partner_crm.core.role_hierarchy import get_role_level
from partner_crm.core.security import get_current_user
from partner_crm.db.session import get_db
from partner_crm.models.user import User
from partner_crm.schemas.schemas import LoginRequest, RefreshRequest, UserOut
from partner_crm.services.auth_service import auth_service
from partner_crm.services.audit_service import audit_service
from partner_crm.services.permission_service import permission_service

router = APIRouter(prefix="/auth", tags=["auth"])


def _permissions_payload(db: Session, user: User) -> dict:
    return {
        "role": user.role,
        "level": get_role_level(user.role),
        "permissions": permission_service.get_permissions(db, user),
    }


@router.post("/login")
@limiter.limit(settings.RATE_LIMIT_AUTH)
async def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate and return JWT tokens."""
    result = auth_service.authenticate(db, body.email, body.password)
    user = auth_service.get_user(db, result["user"]["id"])
    audit_service.record(
        db, request, user,
        action="user.login",
        resource_type="user",
        resource_id=str(user.id),
    )
    return success_response(result, "Login realizado com sucesso")


@router.post("/refresh")
async def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new access token."""
    return success_response(auth_service.refresh_access_token(db, body.refresh_token))


@router.post("/logout")
async def logout(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Revoke all refresh tokens."""
    auth_service.logout(db, user.id)
    audit_service.record(
        db, request, user,
        action="user.logout",
        resource_type="user",
        resource_id=str(user.id),
    )
    return success_response(message="Logout realizado com sucesso")


@router.get("/me")
async def get_me(user: User = Depends(get_current_user)):
    """Get current user profile."""
    return success_response(UserOut.model_validate(user))


@router.get("/permissions")
async def get_my_permissions(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return success_response(_permissions_payload(db, user))


@router.post("/permissions/refresh")
async def refresh_my_permissions(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Drop the cached permissions and resolve them again."""
    permission_service.invalidate_user(user.id)
    return success_response(_permissions_payload(db, user), "Permissões atualizadas")
