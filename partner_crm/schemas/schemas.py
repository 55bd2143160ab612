"""Pydantic schemas for API request/response serialization."""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


# ---- Auth ----
class LoginRequest(BaseModel):
    email: str = Field(..., min_length=4)
    password: str = Field(..., min_length=1)

class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)

class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str


# ---- User ----
class UserOut(BaseModel):
    id: int
    email: str
    name: str
    role: str
    role_id: Optional[int] = None
    status: str
    manager_id: Optional[int] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    cnpj: Optional[str] = None
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class UserCreateRequest(BaseModel):
    email: str = Field(..., min_length=4)
    name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    role: Optional[str] = None
    role_id: Optional[int] = None
    manager_id: Optional[int] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    cnpj: Optional[str] = None

class UserUpdateRequest(BaseModel):
    name: Optional[str] = None
    role: Optional[str] = None
    role_id: Optional[int] = None
    status: Optional[str] = Field(None, pattern="^(active|inactive)$")
    manager_id: Optional[int] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    cnpj: Optional[str] = None
    address: Optional[str] = None


# ---- Role ----
class RoleCreateRequest(BaseModel):
    name: str
    description: Optional[str] = None
    base_role: str = "partner"
    permissions: List[str] = []

class RoleUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    permissions: Optional[List[str]] = None
    is_active: Optional[bool] = None


# ---- Client ----
class ClientBase(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    cnpj: Optional[str] = None
    cpf: Optional[str] = None
    status: Optional[str] = None
    stage: Optional[str] = None
    temperature: Optional[str] = Field(None, pattern="^(cold|warm|hot)$")
    total_lives: Optional[int] = Field(None, ge=0)
    partner_id: Optional[int] = None
    contract_end_date: Optional[datetime] = None
    last_contact_date: Optional[datetime] = None
    notes: Optional[str] = None
    hubspot_id: Optional[str] = None
    netsuite_id: Optional[str] = None

class ClientCreate(ClientBase):
    name: str = Field(..., min_length=1)

class ClientUpdate(ClientBase):
    name: Optional[str] = Field(None, min_length=1)

class ClientOut(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    cnpj: Optional[str] = None
    cpf: Optional[str] = None
    status: str
    stage: str
    temperature: str
    total_lives: int
    partner_id: Optional[int] = None
    partner_name: Optional[str] = None
    contract_end_date: Optional[datetime] = None
    registration_date: Optional[datetime] = None
    last_contact_date: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    notes: Optional[str] = None
    hubspot_id: Optional[str] = None
    netsuite_id: Optional[str] = None

    class Config:
        from_attributes = True


# ---- Prospect ----
class ProspectCreate(BaseModel):
    company_name: str = Field(..., min_length=1)
    contact_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=4)
    phone: Optional[str] = None
    cnpj: Optional[str] = None
    employees: Optional[str] = None
    segment: Optional[str] = None
    partner_id: Optional[int] = None

class ProspectUpdate(BaseModel):
    company_name: Optional[str] = Field(None, min_length=1)
    contact_name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    cnpj: Optional[str] = None
    employees: Optional[str] = None
    segment: Optional[str] = None

class ProspectValidateRequest(BaseModel):
    is_approved: bool = True
    validation_notes: Optional[str] = None
    status: Optional[str] = Field(None, pattern="^(pending|validated|rejected)$")

class ProspectOut(BaseModel):
    id: int
    company_name: str
    contact_name: str
    email: str
    phone: Optional[str] = None
    cnpj: Optional[str] = None
    employees: Optional[str] = None
    segment: Optional[str] = None
    status: str
    partner_id: Optional[int] = None
    submitted_at: Optional[datetime] = None
    validated_at: Optional[datetime] = None
    validated_by: Optional[str] = None
    validation_notes: Optional[str] = None
    is_approved: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Partner ----
class PartnerUpdateRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    cnpj: Optional[str] = None
    address: Optional[str] = None
    bank_name: Optional[str] = None
    bank_agency: Optional[str] = None
    bank_account: Optional[str] = None
    bank_account_type: Optional[str] = None
    pix_key: Optional[str] = None
    manager_id: Optional[int] = None


# ---- Pricing plan ----
class PricingPlanCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    base_price: float = Field(..., ge=0)
    included_users: int = Field(..., ge=1)
    additional_user_price: float = Field(..., ge=0)
    features: List[str] = []
    order: int = 1

class PricingPlanUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    base_price: Optional[float] = Field(None, ge=0)
    included_users: Optional[int] = Field(None, ge=1)
    additional_user_price: Optional[float] = Field(None, ge=0)
    features: Optional[List[str]] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None

class PricingPlanOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    base_price: float
    included_users: int
    additional_user_price: float
    features: List[str] = []
    is_active: bool
    order: int

    class Config:
        from_attributes = True


# ---- Support material ----
class SupportMaterialCreate(BaseModel):
    title: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    type: str = Field(..., pattern="^(pdf|document|image|video|link)$")
    description: Optional[str] = None
    download_url: Optional[str] = None
    view_url: Optional[str] = None
    file_size: Optional[str] = None
    duration: Optional[str] = None

class SupportMaterialUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    type: Optional[str] = Field(None, pattern="^(pdf|document|image|video|link)$")
    description: Optional[str] = None
    download_url: Optional[str] = None
    view_url: Optional[str] = None
    file_size: Optional[str] = None
    duration: Optional[str] = None

class SupportMaterialOut(BaseModel):
    id: int
    title: str
    category: str
    type: str
    description: Optional[str] = None
    download_url: Optional[str] = None
    view_url: Optional[str] = None
    file_size: Optional[str] = None
    duration: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Product ----
class ProductCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    icon: str = Field(..., min_length=1)
    color: str = Field(..., min_length=1)
    order: int = 1

class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    icon: Optional[str] = Field(None, min_length=1)
    color: Optional[str] = Field(None, min_length=1)
    order: Optional[int] = None
    is_active: Optional[bool] = None

class ProductOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    icon: str
    color: str
    is_active: bool
    order: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Remuneration table ----
class RemunerationTableCreate(BaseModel):
    employee_range_start: int = Field(..., ge=1)
    employee_range_end: Optional[int] = Field(None, ge=1)
    finder_negotiation_margin: float = Field(..., ge=0)
    max_company_cashback: float = Field(..., ge=0)
    final_finder_cashback: float = Field(..., ge=0)
    description: Optional[str] = None
    value_type: str = Field("percentage", pattern="^(percentage|fixed)$")

class RemunerationTableUpdate(BaseModel):
    employee_range_start: Optional[int] = Field(None, ge=1)
    employee_range_end: Optional[int] = Field(None, ge=1)
    finder_negotiation_margin: Optional[float] = Field(None, ge=0)
    max_company_cashback: Optional[float] = Field(None, ge=0)
    final_finder_cashback: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    value_type: Optional[str] = Field(None, pattern="^(percentage|fixed)$")

class RemunerationTableOut(BaseModel):
    id: int
    employee_range_start: int
    employee_range_end: Optional[int] = None
    finder_negotiation_margin: float
    max_company_cashback: float
    final_finder_cashback: float
    description: Optional[str] = None
    value_type: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Audit ----
class AuditLogOut(BaseModel):
    id: int
    actor_id: Optional[int] = None
    actor_email: Optional[str] = None
    actor_role: Optional[str] = None
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    old_value_json: Optional[str] = None
    new_value_json: Optional[str] = None
    request_id: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
