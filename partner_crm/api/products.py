"""Products API router: the product lines partners sell."""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from partner_crm.core.exceptions import ResourceConflictError, not_found
from partner_crm.core.permissions import Permission
from partner_crm.core.responses import created_response, success_response
from partner_crm.core.security import RequirePermission
from partner_crm.db.session import get_db
from partner_crm.models.product import Product
from partner_crm.models.user import User
from partner_crm.schemas.schemas import ProductCreate, ProductOut, ProductUpdate
from partner_crm.services.audit_service import audit_service

router = APIRouter(prefix="/products", tags=["products"])

require_product_admin = RequirePermission(Permission.ADMIN_PRODUCTS.value)


def _get_product(db: Session, product_id: str) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise not_found("Produto não encontrado")
    return product


@router.get("")
async def list_products(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
):
    query = db.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    products = query.order_by(Product.order.asc(), Product.id.asc()).all()
    return success_response([ProductOut.model_validate(p) for p in products])


@router.get("/{product_id}")
async def get_product(product_id: str, db: Session = Depends(get_db)):
    return success_response(ProductOut.model_validate(_get_product(db, product_id)))


@router.post("")
async def create_product(
    body: ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_product_admin),
):
    if db.query(Product).filter(Product.id == body.id).first():
        raise ResourceConflictError("Já existe um produto com este identificador")

    product = Product(**body.model_dump(), is_active=True)
    db.add(product)
    db.commit()
    db.refresh(product)

    data = ProductOut.model_validate(product)
    audit_service.record(
        db, request, user,
        action="product.created",
        resource_type="product",
        resource_id=product.id,
        new_value=data.model_dump(),
    )
    return created_response(data, "Produto criado com sucesso")


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    body: ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_product_admin),
):
    product = _get_product(db, product_id)
    before = ProductOut.model_validate(product).model_dump()

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)

    data = ProductOut.model_validate(product)
    audit_service.record(
        db, request, user,
        action="product.updated",
        resource_type="product",
        resource_id=product.id,
        old_value=before,
        new_value=data.model_dump(),
    )
    return success_response(data, "Produto atualizado com sucesso")


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_product_admin),
):
    product = _get_product(db, product_id)
    before = ProductOut.model_validate(product).model_dump()
    db.delete(product)
    db.commit()
    audit_service.record(
        db, request, user,
        action="product.deleted",
        resource_type="product",
        resource_id=product_id,
        old_value=before,
    )
    return success_response(message="Produto excluído com sucesso")
