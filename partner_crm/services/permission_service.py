"""Effective permissions per user, cached in the key-value store."""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from partner_crm.core.permissions import WILDCARD, WILDCARD_ROLES, default_permissions, grants
from partner_crm.core.role_hierarchy import parse_role
from partner_crm.models.role import RoleRecord
from partner_crm.services.cache_service import KeyValueStore, cache_service

logger = logging.getLogger("partner_crm")

CACHE_PREFIX = "permissions:user:"


class PermissionService:
    """Resolves and caches the permission list each user holds.

    Resolution order: wildcard for the administrative roles, then the
    user's assigned role record, then the record named after the user's
    role, then the built-in defaults. Inactive records are skipped and
    unknown roles resolve to no permissions.

    Cached lists never expire on their own; role and user changes call
    ``invalidate_user`` or ``invalidate_all``.
    """

    def __init__(self, cache: KeyValueStore):
        self.cache = cache

    def _key(self, user_id) -> str:
        return f"{CACHE_PREFIX}{user_id}"

    def resolve(self, db: Session, role_name: Optional[str], role_id: Optional[int] = None) -> List[str]:
        """Permissions for a role (and optional assigned record), ignoring the cache."""
        role = parse_role(role_name)
        if role is None:
            return []
        if role in WILDCARD_ROLES:
            return [WILDCARD]

        active = db.query(RoleRecord).filter(RoleRecord.is_active.is_(True))
        if role_id is not None:
            assigned = active.filter(RoleRecord.id == role_id).first()
            if assigned is not None:
                return assigned.permissions

        record = active.filter(func.lower(RoleRecord.name) == role.value).first()
        if record is not None:
            return record.permissions
        return default_permissions(role)

    def get_permissions(self, db: Session, user) -> List[str]:
        cached = self.cache.get_json(self._key(user.id))
        if cached is not None:
            return cached
        permissions = self.resolve(db, user.role, getattr(user, "role_id", None))
        self.cache.set_json(self._key(user.id), permissions)
        return permissions

    def has_permission(self, db: Session, user, permission: str) -> bool:
        return grants(self.get_permissions(db, user), permission)

    def has_any_permission(self, db: Session, user, permissions: Iterable[str]) -> bool:
        held = self.get_permissions(db, user)
        return any(grants(held, p) for p in permissions)

    def has_all_permissions(self, db: Session, user, permissions: Iterable[str]) -> bool:
        held = self.get_permissions(db, user)
        return all(grants(held, p) for p in permissions)

    def invalidate_user(self, user_id) -> None:
        self.cache.delete(self._key(user_id))

    def invalidate_all(self) -> None:
        logger.info("Invalidating permission cache")
        self.cache.invalidate_pattern(f"{CACHE_PREFIX}*")


permission_service = PermissionService(cache_service)
