"""Product model."""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, func
from partner_crm.db.base import Base


class Product(Base):
    """A product line partners can sell, shown as a card in the CRM."""
    __tablename__ = "products"

    id = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(100), nullable=False)  # icon name or image URL
    color = Column(String(50), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    order = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
