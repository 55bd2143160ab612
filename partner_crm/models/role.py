"""Role record: a named, editable permission assignment."""

import json
from typing import List

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, func
from partner_crm.db.base import Base


class RoleRecord(Base):
    """Role with its JSON list of permission strings.

    Hierarchy levels are static (see core.role_hierarchy). A record only
    stores which permissions it grants; ``base_role`` names the hierarchy
    role whose level its users get.
    """
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(String(255), nullable=True, default="")
    base_role = Column(String(50), nullable=False, default="partner")
    permissions_json = Column(Text, nullable=False, default="[]")
    is_system = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def permissions(self) -> List[str]:
        return json.loads(self.permissions_json or "[]")

    @permissions.setter
    def permissions(self, value: List[str]) -> None:
        self.permissions_json = json.dumps(list(value))
