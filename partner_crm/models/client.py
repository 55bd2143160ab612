"""Client model."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, func
from partner_crm.db.base import Base


class Client(Base):
    """A company brought in by a partner."""
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    cnpj = Column(String(20), nullable=True)
    cpf = Column(String(14), nullable=True)
    status = Column(String(20), nullable=False, default="active")
    stage = Column(String(50), nullable=False, default="prospeccao")
    temperature = Column(String(10), nullable=False, default="cold")  # cold, warm, hot
    total_lives = Column(Integer, nullable=False, default=0)
    partner_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    partner_name = Column(String(255), nullable=True)
    contract_end_date = Column(DateTime, nullable=True)
    last_contact_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    hubspot_id = Column(String(50), nullable=True)
    netsuite_id = Column(String(50), nullable=True)
    registration_date = Column(DateTime, server_default=func.now(), nullable=False)
    last_updated = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
