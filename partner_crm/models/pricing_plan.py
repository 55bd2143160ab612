"""Pricing plan model."""

import json

from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric
from partner_crm.db.base import Base


class PricingPlan(Base):
    """Subscription plan shown on the public pricing page."""
    __tablename__ = "pricing_plans"

    id = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    base_price = Column(Numeric(12, 2), nullable=False)
    included_users = Column(Integer, nullable=False)
    additional_user_price = Column(Numeric(12, 2), nullable=False)
    features_json = Column(Text, nullable=False, default="[]")
    is_active = Column(Boolean, default=True, nullable=False)
    order = Column(Integer, default=1, nullable=False)

    @property
    def features(self) -> list:
        return json.loads(self.features_json or "[]")

    @features.setter
    def features(self, value: list) -> None:
        self.features_json = json.dumps(list(value))
