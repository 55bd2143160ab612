"""Row-level scoping for partner-owned records (clients, prospects, partners).

Administrator level and above see everything, a manager sees the records
of the partners they manage plus their own, a partner sees their own and
every other role sees nothing.
"""

from typing import List, Optional

from sqlalchemy import false
from sqlalchemy.orm import Query, Session

from partner_crm.core.exceptions import AuthorizationError
from partner_crm.core.role_hierarchy import Role, get_role_level, parse_role
from partner_crm.models.user import User

ADMIN_LEVEL = get_role_level(Role.ADMINISTRATOR)


def is_admin_level(user: User) -> bool:
    return get_role_level(user.role) >= ADMIN_LEVEL


def managed_partner_ids(db: Session, manager: User) -> List[int]:
    rows = db.query(User.id).filter(User.manager_id == manager.id).all()
    return [row[0] for row in rows]


def owner_ids(db: Session, user: User) -> Optional[List[int]]:
    """Owner ids ``user`` may see; ``None`` means unrestricted."""
    if is_admin_level(user):
        return None
    role = parse_role(user.role)
    if role is Role.MANAGER:
        return managed_partner_ids(db, user) + [user.id]
    if role is Role.PARTNER:
        return [user.id]
    return []


def scope_query(query: Query, owner_column, db: Session, user: User) -> Query:
    ids = owner_ids(db, user)
    if ids is None:
        return query
    if not ids:
        return query.filter(false())
    return query.filter(owner_column.in_(ids))


def can_access_owner(db: Session, user: User, owner_id: Optional[int]) -> bool:
    ids = owner_ids(db, user)
    return ids is None or owner_id in ids


def assign_owner(db: Session, user: User, requested_id: Optional[int]) -> Optional[int]:
    """Owner id for a record ``user`` creates or reassigns.

    Partners always own what they create. Managers may pick one of their
    partners and default to themselves. Administrators may pick anyone.
    """
    ids = owner_ids(db, user)
    if ids is None:
        return requested_id
    if not ids:
        raise AuthorizationError("Permissão negada")
    if requested_id is None:
        return user.id
    if requested_id not in ids:
        raise AuthorizationError("Parceiro fora da sua carteira")
    return requested_id
