"""Role record service: CRUD over the editable role/permission table."""

from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from partner_crm.core.exceptions import (
    AuthorizationError,
    ResourceConflictError,
    ResourceNotFoundError,
    ValidationError,
)
from partner_crm.core.permissions import unknown_permissions
from partner_crm.core.role_hierarchy import Role, parse_role
from partner_crm.models.role import RoleRecord
from partner_crm.models.user import User
from partner_crm.services.permission_service import permission_service


def role_to_dict(role: RoleRecord) -> dict:
    return {
        "id": role.id,
        "name": role.name,
        "description": role.description,
        "base_role": role.base_role,
        "permissions": role.permissions,
        "is_system": role.is_system,
        "is_active": role.is_active,
        "created_at": role.created_at,
        "updated_at": role.updated_at,
    }


def _validate_permissions(permissions: List[str]) -> List[str]:
    unknown = unknown_permissions(permissions)
    if unknown:
        raise ValidationError(f"Permissões inválidas: {', '.join(unknown)}", code="UNKNOWN_PERMISSION")
    # keep first occurrence order, drop duplicates
    return list(dict.fromkeys(permissions))


class RoleService:
    """Role records: built-in system roles plus administrator-defined ones."""

    @staticmethod
    def list_roles(db: Session) -> List[RoleRecord]:
        return (
            db.query(RoleRecord)
            .order_by(RoleRecord.is_system.desc(), RoleRecord.name.asc())
            .all()
        )

    @staticmethod
    def get_role(db: Session, role_id: int) -> RoleRecord:
        role = db.query(RoleRecord).filter(RoleRecord.id == role_id).first()
        if not role:
            raise ResourceNotFoundError("Função não encontrada")
        return role

    @staticmethod
    def find_by_name(db: Session, name: str) -> Optional[RoleRecord]:
        return (
            db.query(RoleRecord)
            .filter(func.lower(RoleRecord.name) == name.strip().lower())
            .first()
        )

    @staticmethod
    def resolve_assignment(
        db: Session,
        role_name: Optional[str] = None,
        role_id: Optional[int] = None,
    ) -> Tuple[Role, Optional[RoleRecord]]:
        """Hierarchy role and custom record a user would be given.

        ``role_id`` wins over ``role_name``. A name that is not a hierarchy
        role is looked up among the role records.

        Raises:
            ValidationError: unknown or inactive role.
        """
        record = None
        if role_id is not None:
            record = db.query(RoleRecord).filter(RoleRecord.id == role_id).first()
            if record is None:
                raise ValidationError(f"Função {role_id} inexistente")
        else:
            role = parse_role(role_name)
            if role is not None:
                return role, None
            record = RoleService.find_by_name(db, role_name or "")
            if record is None:
                raise ValidationError(f"Role '{role_name}' inválida")

        if not record.is_active:
            raise ValidationError(f"Função '{record.name}' está inativa")
        base = parse_role(record.base_role)
        if base is None:
            raise ValidationError(f"Função '{record.name}' sem nível válido")
        if record.is_system:
            return base, None
        return base, record

    @staticmethod
    def create_role(
        db: Session,
        name: str,
        description: Optional[str] = None,
        permissions: Optional[List[str]] = None,
        is_system: bool = False,
        base_role: str = Role.PARTNER.value,
    ) -> RoleRecord:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Nome da função é obrigatório")
        base = parse_role(base_role)
        if base is None:
            raise ValidationError(f"Role base '{base_role}' inválida")
        if RoleService.find_by_name(db, name):
            raise ResourceConflictError("Já existe uma função com este nome")

        role = RoleRecord(
            name=name,
            description=description or "",
            base_role=base.value,
            is_system=is_system,
            is_active=True,
        )
        role.permissions = _validate_permissions(permissions or [])
        db.add(role)
        db.commit()
        db.refresh(role)
        permission_service.invalidate_all()
        return role

    @staticmethod
    def update_role(
        db: Session,
        role_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        permissions: Optional[List[str]] = None,
        is_active: Optional[bool] = None,
    ) -> RoleRecord:
        """Update a role. System roles may change everything but their name."""
        role = RoleService.get_role(db, role_id)

        if name is not None and name.strip() != role.name:
            if role.is_system:
                raise AuthorizationError(
                    "O nome de funções do sistema não pode ser alterado", code="SYSTEM_ROLE"
                )
            name = name.strip()
            if not name:
                raise ValidationError("Nome da função é obrigatório")
            clash = RoleService.find_by_name(db, name)
            if clash and clash.id != role.id:
                raise ResourceConflictError("Já existe uma função com este nome")
            role.name = name

        if description is not None:
            role.description = description
        if permissions is not None:
            role.permissions = _validate_permissions(permissions)
        if is_active is not None:
            role.is_active = is_active

        db.commit()
        db.refresh(role)
        permission_service.invalidate_all()
        return role

    @staticmethod
    def delete_role(db: Session, role_id: int) -> dict:
        """Delete a custom role and return its last state."""
        role = RoleService.get_role(db, role_id)
        if role.is_system:
            raise AuthorizationError("Funções do sistema não podem ser excluídas", code="SYSTEM_ROLE")

        assigned = (
            db.query(User)
            .filter(or_(User.role_id == role.id, func.lower(User.role) == role.name.lower()))
            .count()
        )
        if assigned > 0:
            raise ValidationError(
                "Não é possível excluir função com usuários vinculados", code="ROLE_IN_USE"
            )

        snapshot = role_to_dict(role)
        db.delete(role)
        db.commit()
        permission_service.invalidate_all()
        return snapshot


role_service = RoleService()
