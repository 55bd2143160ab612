"""Models package: import all models so metadata.create_all sees them."""

from partner_crm.models.role import RoleRecord
from partner_crm.models.user import User, UserStatus
from partner_crm.models.refresh_token import RefreshToken
from partner_crm.models.audit_log import AuditLog
from partner_crm.models.client import Client
from partner_crm.models.prospect import Prospect, ProspectStatus
from partner_crm.models.pricing_plan import PricingPlan
from partner_crm.models.support_material import SupportMaterial
from partner_crm.models.product import Product
from partner_crm.models.remuneration_table import RemunerationTable, ValueType

__all__ = [
    "RoleRecord", "User", "UserStatus", "RefreshToken", "AuditLog",
    "Client", "Prospect", "ProspectStatus", "PricingPlan", "SupportMaterial",
    "Product", "RemunerationTable", "ValueType",
]
