"""User model."""

import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from partner_crm.db.base import Base


class UserStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"


class User(Base):
    """CRM user.

    ``role`` holds a hierarchy role name from core.role_hierarchy and decides
    the level. ``role_id`` optionally points at a custom role record.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default="partner", index=True)
    # Assigned role record; its permissions replace the defaults of ``role``
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=UserStatus.active.value)
    manager_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    phone = Column(String(50), nullable=True)
    company = Column(String(255), nullable=True)
    cnpj = Column(String(20), nullable=True)
    address = Column(String(500), nullable=True)

    # Partner payout data
    bank_name = Column(String(100), nullable=True)
    bank_agency = Column(String(20), nullable=True)
    bank_account = Column(String(30), nullable=True)
    bank_account_type = Column(String(20), nullable=True)
    pix_key = Column(String(255), nullable=True)

    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    manager = relationship("User", remote_side=[id])
    role_record = relationship("RoleRecord")
