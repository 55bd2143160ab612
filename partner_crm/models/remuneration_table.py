"""Remuneration (commission) table model."""

import enum

from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, func
from partner_crm.db.base import Base


class ValueType(str, enum.Enum):
    percentage = "percentage"
    fixed = "fixed"


class RemunerationTable(Base):
    """Commission rates for one company-size bracket.

    A bracket covers companies with ``employee_range_start`` up to
    ``employee_range_end`` employees; an open end means "and above".
    """
    __tablename__ = "remuneration_tables"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_range_start = Column(Integer, nullable=False)
    employee_range_end = Column(Integer, nullable=True)
    finder_negotiation_margin = Column(Numeric(12, 2), nullable=False)
    max_company_cashback = Column(Numeric(12, 2), nullable=False)
    final_finder_cashback = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=True)
    value_type = Column(String(20), nullable=False, default=ValueType.percentage.value)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
