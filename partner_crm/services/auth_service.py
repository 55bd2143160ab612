"""Auth service: JWT login, refresh, logout, user management."""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
import hashlib

from sqlalchemy.orm import Session

from partner_crm.core.config import settings
from partner_crm.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ResourceConflictError,
    ResourceNotFoundError,
    ValidationError,
)
from partner_crm.core.role_hierarchy import parse_role
from partner_crm.core.security import (
    REFRESH,
    hash_password, verify_password,
    create_access_token, create_refresh_token, decode_token,
)
from partner_crm.db.base import utcnow
from partner_crm.models.refresh_token import RefreshToken
from partner_crm.models.user import User, UserStatus
from partner_crm.services.permission_service import permission_service

MIN_PASSWORD_LENGTH = 6


def _token_hash(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def user_summary(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "role_id": user.role_id,
        "status": user.status,
    }


class AuthService:
    """Handles authentication and user accounts."""

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> Dict[str, Any]:
        """Authenticate user and return JWT tokens.

        Raises:
            AuthenticationError: If credentials are invalid.
            AuthorizationError: If the account is inactive.
        """
        user = db.query(User).filter(User.email == email.strip().lower()).first()
        if not user or not verify_password(password, user.hashed_password):
            raise AuthenticationError("Email ou senha inválidos", code="INVALID_CREDENTIALS")

        if user.status != UserStatus.active.value:
            raise AuthorizationError("Conta inativa", code="ACCOUNT_INACTIVE")

        access_token = create_access_token(user)
        refresh_token_str = create_refresh_token(user)

        # Store refresh token hash
        rt = RefreshToken(
            user_id=user.id,
            token_hash=_token_hash(refresh_token_str),
            expires_at=datetime.fromtimestamp(
                decode_token(refresh_token_str, REFRESH)["exp"], tz=timezone.utc
            ).replace(tzinfo=None),
        )
        db.add(rt)

        # Update last login
        user.last_login_at = utcnow()
        db.commit()

        return {
            "access_token": access_token,
            "refresh_token": refresh_token_str,
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRY_MINUTES * 60,
            "user": user_summary(user),
        }

    @staticmethod
    def refresh_access_token(db: Session, refresh_token: str) -> Dict[str, Any]:
        """Issue a new access token from a valid, unrevoked refresh token."""
        payload = decode_token(refresh_token, REFRESH)

        stored = db.query(RefreshToken).filter(
            RefreshToken.token_hash == _token_hash(refresh_token),
            RefreshToken.revoked_at.is_(None),
        ).first()

        if not stored:
            raise AuthenticationError("Invalid refresh token", code="INVALID_REFRESH_TOKEN")

        user = db.query(User).filter(User.id == payload["userId"]).first()
        if not user or user.status != UserStatus.active.value:
            raise AuthenticationError("User not found or deactivated", code="INVALID_REFRESH_TOKEN")

        return {
            "access_token": create_access_token(user),
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRY_MINUTES * 60,
        }

    @staticmethod
    def logout(db: Session, user_id: int) -> None:
        """Revoke all refresh tokens for a user and drop their cached permissions."""
        db.query(RefreshToken).filter(
            RefreshToken.user_id == user_id,
            RefreshToken.revoked_at.is_(None),
        ).update({"revoked_at": utcnow()})
        db.commit()
        permission_service.invalidate_user(user_id)

    @staticmethod
    def create_user(
        db: Session,
        email: str,
        password: str,
        name: str,
        role_name: str,
        manager_id: Optional[int] = None,
        role_id: Optional[int] = None,
        **profile: Any,
    ) -> User:
        """Create a new user.

        Raises:
            ValidationError: unknown role or short password.
            ResourceConflictError: email already registered.
        """
        role = parse_role(role_name)
        if role is None:
            raise ValidationError(f"Role '{role_name}' inválida")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"A senha deve ter no mínimo {MIN_PASSWORD_LENGTH} caracteres")

        email = email.strip().lower()
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            raise ResourceConflictError("Email já cadastrado")

        user = User(
            email=email,
            hashed_password=hash_password(password),
            name=name,
            role=role.value,
            role_id=role_id,
            status=UserStatus.active.value,
            manager_id=manager_id,
            **profile,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def get_user(db: Session, user_id: int) -> User:
        """Get a user by id."""
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ResourceNotFoundError("Usuário não encontrado")
        return user

    @staticmethod
    def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
        """Replace ``user``'s password after checking the current one."""
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"A nova senha deve ter no mínimo {MIN_PASSWORD_LENGTH} caracteres")
        if not verify_password(current_password, user.hashed_password):
            raise AuthenticationError("Senha atual incorreta", code="INVALID_CREDENTIALS")
        user.hashed_password = hash_password(new_password)
        db.commit()

    @staticmethod
    def set_password(db: Session, email: str, new_password: str) -> User:
        """Administrative password reset (CLI)."""
        user = db.query(User).filter(User.email == email.strip().lower()).first()
        if not user:
            raise ResourceNotFoundError(f"User {email} not found")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        user.hashed_password = hash_password(new_password)
        db.commit()
        return user


auth_service = AuthService()
