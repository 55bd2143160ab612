"""Seed the built-in system roles into the database."""

from sqlalchemy import func
from sqlalchemy.orm import Session

from partner_crm.core.permissions import DEFAULT_ROLE_PERMISSIONS
from partner_crm.core.role_hierarchy import Role
from partner_crm.models.role import RoleRecord

ROLE_DESCRIPTIONS = {
    Role.SUPERADMIN: "Acesso total ao sistema",
    Role.ADMINISTRATOR: "Administra usuários, funções e catálogo",
    Role.ADMIN: "Administra usuários, funções e catálogo",
    Role.MANAGER: "Gerencia uma carteira de parceiros e valida indicações",
    Role.PARTNER: "Cadastra clientes e envia indicações",
    Role.CLIENT: "Acesso ao painel do cliente",
}


def seed_roles(db: Session) -> int:
    """Insert the system roles that don't already exist. Returns how many were added."""
    added = 0
    for role, permissions in DEFAULT_ROLE_PERMISSIONS.items():
        existing = (
            db.query(RoleRecord)
            .filter(func.lower(RoleRecord.name) == role.value)
            .first()
        )
        if existing:
            continue
        record = RoleRecord(
            name=role.value,
            description=ROLE_DESCRIPTIONS[role],
            base_role=role.value,
            is_system=True,
            is_active=True,
        )
        record.permissions = permissions
        db.add(record)
        added += 1

    db.commit()
    return added
