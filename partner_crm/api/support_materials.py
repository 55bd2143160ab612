"""Support materials API router: sales collateral for partners."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from partner_crm.core.exceptions import not_found
from partner_crm.core.permissions import Permission
from partner_crm.core.responses import created_response, success_response
from partner_crm.core.security import RequirePermission, get_current_user
from partner_crm.db.session import get_db
from partner_crm.models.support_material import SupportMaterial
from partner_crm.models.user import User
from partner_crm.schemas.schemas import (
    SupportMaterialCreate,
    SupportMaterialOut,
    SupportMaterialUpdate,
)
from partner_crm.services.audit_service import audit_service

router = APIRouter(prefix="/support-materials", tags=["support-materials"])

require_support_manager = RequirePermission(Permission.SUPPORT_MANAGE.value)


def _get_material(db: Session, material_id: int) -> SupportMaterial:
    material = db.query(SupportMaterial).filter(SupportMaterial.id == material_id).first()
    if not material:
        raise not_found("Material não encontrado")
    return material


@router.get("")
async def list_materials(
    category: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = db.query(SupportMaterial)
    if category:
        query = query.filter(SupportMaterial.category == category)
    if type:
        query = query.filter(SupportMaterial.type == type)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            SupportMaterial.title.ilike(pattern) | SupportMaterial.description.ilike(pattern)
        )
    materials = query.order_by(SupportMaterial.category.asc(), SupportMaterial.title.asc()).all()
    return success_response([SupportMaterialOut.model_validate(m) for m in materials])


@router.get("/{material_id}")
async def get_material(
    material_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return success_response(SupportMaterialOut.model_validate(_get_material(db, material_id)))


@router.post("")
async def create_material(
    body: SupportMaterialCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_support_manager),
):
    material = SupportMaterial(**body.model_dump())
    db.add(material)
    db.commit()
    db.refresh(material)

    data = SupportMaterialOut.model_validate(material)
    audit_service.record(
        db, request, user,
        action="support_material.created",
        resource_type="support_material",
        resource_id=str(material.id),
        new_value=data.model_dump(),
    )
    return created_response(data, "Material criado com sucesso")


@router.put("/{material_id}")
async def update_material(
    material_id: int,
    body: SupportMaterialUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_support_manager),
):
    material = _get_material(db, material_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(material, field, value)
    db.commit()
    db.refresh(material)

    data = SupportMaterialOut.model_validate(material)
    audit_service.record(
        db, request, user,
        action="support_material.updated",
        resource_type="support_material",
        resource_id=str(material.id),
        new_value=data.model_dump(),
    )
    return success_response(data, "Material atualizado com sucesso")


@router.delete("/{material_id}")
async def delete_material(
    material_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_support_manager),
):
    material = _get_material(db, material_id)
    title = material.title
    db.delete(material)
    db.commit()
    audit_service.record(
        db, request, user,
        action="support_material.deleted",
        resource_type="support_material",
        resource_id=str(material_id),
        old_value={"title": title},
    )
    return success_response(message="Material excluído com sucesso")
