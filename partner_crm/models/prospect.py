"""Prospect (referral) model."""

import enum

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, func
from partner_crm.db.base import Base


class ProspectStatus(str, enum.Enum):
    pending = "pending"
    validated = "validated"
    rejected = "rejected"


class Prospect(Base):
    """A company referred by a partner, awaiting manager validation."""
    __tablename__ = "prospects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_name = Column(String(255), nullable=False)
    contact_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    cnpj = Column(String(20), nullable=True)
    employees = Column(String(50), nullable=True)
    segment = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default=ProspectStatus.pending.value)
    partner_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    submitted_at = Column(DateTime, server_default=func.now(), nullable=False)
    validated_at = Column(DateTime, nullable=True)
    validated_by = Column(String(255), nullable=True)
    validation_notes = Column(Text, nullable=True)
    is_approved = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
