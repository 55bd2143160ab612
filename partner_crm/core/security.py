"""JWT authentication and RBAC authorization helpers."""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from partner_crm.core.config import PLACEHOLDER_SECRET_MARKER, settings
from partner_crm.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ServiceUnavailableError,
)
from partner_crm.core.role_hierarchy import Role, get_role_level
from partner_crm.db.session import get_db
from partner_crm.models.user import User, UserStatus
from partner_crm.services.permission_service import permission_service

logger = logging.getLogger("partner_crm")

ACCESS = "access"
REFRESH = "refresh"

# JWT bearer scheme
security_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pwd_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    pwd_bytes = plain_password.encode("utf-8")
    hashed_bytes = hashed_password.encode("utf-8")
    return bcrypt.checkpw(pwd_bytes, hashed_bytes)


def _secret_for(token_type: str) -> str:
    return settings.JWT_ACCESS_SECRET if token_type == ACCESS else settings.JWT_REFRESH_SECRET


def _encode_token(
    user: User,
    token_type: str,
    lifetime: timedelta,
    issued_at: Optional[datetime] = None,
) -> str:
    issued_at = issued_at or datetime.now(timezone.utc)
    claims = {
        "userId": user.id,
        "email": user.email,
        "role": user.role,
        "type": token_type,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + lifetime).timestamp()),
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, _secret_for(token_type), algorithm=settings.JWT_ALGORITHM)


def create_access_token(user: User, issued_at: Optional[datetime] = None) -> str:
    """Create a JWT access token (1 hour by default)."""
    lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRY_MINUTES)
    return _encode_token(user, ACCESS, lifetime, issued_at)


def create_refresh_token(user: User, issued_at: Optional[datetime] = None) -> str:
    """Create a JWT refresh token (7 days by default)."""
    lifetime = timedelta(days=settings.REFRESH_TOKEN_EXPIRY_DAYS)
    return _encode_token(user, REFRESH, lifetime, issued_at)


def decode_token(token: str, token_type: str = ACCESS) -> Dict[str, Any]:
    """Decode and validate a JWT token of the given type.

    Raises:
        AuthenticationError: expired, tampered, wrong type or malformed.
    """
    prefix = "Token" if token_type == ACCESS else "Refresh token"
    try:
        payload = jwt.decode(
            token,
            _secret_for(token_type),
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except ExpiredSignatureError:
        raise AuthenticationError(f"{prefix} expired", code="TOKEN_EXPIRED")
    except JWTError:
        raise AuthenticationError(f"Invalid {prefix.lower()}")

    if payload.get("type") != token_type or payload.get("userId") is None:
        raise AuthenticationError(f"Invalid {prefix.lower()}")
    return payload


def validate_jwt_secrets() -> None:
    """Refuse to run in production with the placeholder secrets."""
    secrets = (settings.JWT_ACCESS_SECRET, settings.JWT_REFRESH_SECRET)
    if not settings.is_production:
        if any(PLACEHOLDER_SECRET_MARKER in s for s in secrets):
            logger.warning("Using default JWT secrets; configure them before deploying")
        return
    for secret in secrets:
        if not secret or PLACEHOLDER_SECRET_MARKER in secret:
            raise ServiceUnavailableError("JWT secrets are not configured", code="JWT_NOT_CONFIGURED")
        if len(secret) < 32:
            logger.warning("JWT secret shorter than 32 characters")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Token de autenticação não fornecido", code="NO_TOKEN")

    payload = decode_token(credentials.credentials, ACCESS)
    user = db.query(User).filter(User.id == payload["userId"]).first()
    if not user:
        raise AuthenticationError("Usuário não encontrado", code="USER_NOT_FOUND")
    if user.status != UserStatus.active.value:
        raise AuthorizationError("Conta inativa", code="ACCOUNT_INACTIVE")
    return user


class RequireRole:
    """Dependency that checks if the user has a required role level."""

    def __init__(self, min_role: Role):
        self.min_role = min_role
        self.min_level = get_role_level(min_role)

    async def __call__(self, user: User = Depends(get_current_user)) -> User:
        if get_role_level(user.role) < self.min_level:
            logger.warning(
                "Access denied: %s (role: %s) requires %s+",
                user.email, user.role, self.min_role.value,
            )
            raise AuthorizationError(
                f"Role '{user.role}' insufficient. Requires {self.min_role.value} or above."
            )
        return user


class RequirePermission:
    """Dependency that checks the user holds the given permission(s)."""

    def __init__(self, *permissions: str, require_all: bool = False):
        self.permissions = list(permissions)
        self.require_all = require_all

    async def __call__(
        self,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        if self.require_all:
            allowed = permission_service.has_all_permissions(db, user, self.permissions)
        else:
            allowed = permission_service.has_any_permission(db, user, self.permissions)
        if not allowed:
            logger.warning(
                "Access denied: %s (role: %s) lacks %s",
                user.email, user.role, ", ".join(self.permissions),
            )
            raise AuthorizationError("Permissão negada")
        return user


# Convenience dependency
require_manager = RequireRole(Role.MANAGER)
