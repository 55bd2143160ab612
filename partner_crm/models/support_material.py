"""Support material model."""

from sqlalchemy import Column, Integer, String, Text, DateTime, func
from partner_crm.db.base import Base


class SupportMaterial(Base):
    """Sales collateral (documents, videos, links) available to partners."""
    __tablename__ = "support_materials"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    type = Column(String(20), nullable=False)  # pdf, document, image, video, link
    description = Column(Text, nullable=True)
    download_url = Column(String(500), nullable=True)
    view_url = Column(String(500), nullable=True)
    file_size = Column(String(50), nullable=True)
    duration = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
