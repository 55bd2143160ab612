"""Pricing plans API router: public catalogue, admin-managed."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from partner_crm.core.exceptions import ResourceConflictError, not_found
from partner_crm.core.permissions import Permission
from partner_crm.core.responses import created_response, success_response
from partner_crm.core.security import RequirePermission
from partner_crm.db.session import get_db
from partner_crm.models.pricing_plan import PricingPlan
from partner_crm.models.user import User
from partner_crm.schemas.schemas import PricingPlanCreate, PricingPlanOut, PricingPlanUpdate
from partner_crm.services.audit_service import audit_service

router = APIRouter(prefix="/pricing-plans", tags=["pricing-plans"])

require_pricing_admin = RequirePermission(Permission.ADMIN_PRICING.value)


def _get_plan(db: Session, plan_id: str) -> PricingPlan:
    plan = db.query(PricingPlan).filter(PricingPlan.id == plan_id).first()
    if not plan:
        raise not_found("Plano não encontrado")
    return plan


@router.get("")
async def list_plans(db: Session = Depends(get_db)):
    """Active plans in display order."""
    plans = (
        db.query(PricingPlan)
        .filter(PricingPlan.is_active.is_(True))
        .order_by(PricingPlan.order.asc(), PricingPlan.id.asc())
        .all()
    )
    return success_response([PricingPlanOut.model_validate(p) for p in plans])


@router.get("/{plan_id}")
async def get_plan(plan_id: str, db: Session = Depends(get_db)):
    return success_response(PricingPlanOut.model_validate(_get_plan(db, plan_id)))


@router.post("")
async def create_plan(
    body: PricingPlanCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_pricing_admin),
):
    if db.query(PricingPlan).filter(PricingPlan.id == body.id).first():
        raise ResourceConflictError("Já existe um plano com este identificador")

    plan = PricingPlan(**body.model_dump(exclude={"features"}))
    plan.features = body.features
    db.add(plan)
    db.commit()
    db.refresh(plan)

    data = PricingPlanOut.model_validate(plan)
    audit_service.record(
        db, request, user,
        action="pricing_plan.created",
        resource_type="pricing_plan",
        resource_id=plan.id,
        new_value=data.model_dump(),
    )
    return created_response(data, "Plano criado com sucesso")


@router.put("/{plan_id}")
async def update_plan(
    plan_id: str,
    body: PricingPlanUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_pricing_admin),
):
    plan = _get_plan(db, plan_id)
    before = PricingPlanOut.model_validate(plan).model_dump()

    changes = body.model_dump(exclude_unset=True)
    if "features" in changes:
        plan.features = changes.pop("features") or []
    for field, value in changes.items():
        setattr(plan, field, value)
    db.commit()
    db.refresh(plan)

    data = PricingPlanOut.model_validate(plan)
    audit_service.record(
        db, request, user,
        action="pricing_plan.updated",
        resource_type="pricing_plan",
        resource_id=plan.id,
        old_value=before,
        new_value=data.model_dump(),
    )
    return success_response(data, "Plano atualizado com sucesso")


@router.delete("/{plan_id}")
async def delete_plan(
    plan_id: str,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_pricing_admin),
):
    plan = _get_plan(db, plan_id)
    before = PricingPlanOut.model_validate(plan).model_dump()
    db.delete(plan)
    db.commit()
    audit_service.record(
        db, request, user,
        action="pricing_plan.deleted",
        resource_type="pricing_plan",
        resource_id=plan_id,
        old_value=before,
    )
    return success_response(message="Plano excluído com sucesso")
