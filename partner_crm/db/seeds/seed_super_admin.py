"""Seed the super-admin user from env vars."""

from typing import Optional

from sqlalchemy.orm import Session

from partner_crm.core.config import settings
from partner_crm.core.role_hierarchy import Role
from partner_crm.core.security import hash_password
from partner_crm.models.user import User, UserStatus


def seed_super_admin(db: Session) -> Optional[User]:
    """Create the super-admin user if not already present.

    Returns the new user, or ``None`` when the account already exists.
    """
    email = settings.SUPER_ADMIN_EMAIL.strip().lower()
    if db.query(User).filter(User.email == email).first():
        return None

    admin = User(
        email=email,
        hashed_password=hash_password(settings.SUPER_ADMIN_PASSWORD),
        name="Super Admin",
        role=Role.SUPERADMIN.value,
        status=UserStatus.active.value,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin
