"""Remuneration tables API router: commission rates per company size."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from partner_crm.core.exceptions import ValidationError, not_found
from partner_crm.core.permissions import Permission
from partner_crm.core.responses import created_response, success_response
from partner_crm.core.security import RequirePermission
from partner_crm.db.session import get_db
from partner_crm.models.remuneration_table import RemunerationTable
from partner_crm.models.user import User
from partner_crm.schemas.schemas import (
    RemunerationTableCreate,
    RemunerationTableOut,
    RemunerationTableUpdate,
)
from partner_crm.services.audit_service import audit_service

router = APIRouter(prefix="/remuneration-tables", tags=["remuneration-tables"])

require_commissions_view = RequirePermission(Permission.COMMISSIONS_VIEW.value)
require_commissions_manage = RequirePermission(Permission.COMMISSIONS_MANAGE.value)


def _get_table(db: Session, table_id: int) -> RemunerationTable:
    table = db.query(RemunerationTable).filter(RemunerationTable.id == table_id).first()
    if not table:
        raise not_found("Tabela de remuneração não encontrada")
    return table


def _check_range(start: int, end: Optional[int]) -> None:
    if end is not None and end < start:
        raise ValidationError("O fim da faixa de funcionários deve ser maior ou igual ao início")


@router.get("")
async def list_tables(
    employees: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    user: User = Depends(require_commissions_view),
):
    """All brackets, or only the ones covering a company of ``employees``."""
    query = db.query(RemunerationTable)
    if employees is not None:
        query = query.filter(
            RemunerationTable.employee_range_start <= employees,
            (RemunerationTable.employee_range_end.is_(None))
            | (RemunerationTable.employee_range_end >= employees),
        )
    tables = query.order_by(RemunerationTable.employee_range_start.asc(), RemunerationTable.id.asc()).all()
    return success_response([RemunerationTableOut.model_validate(t) for t in tables])


@router.get("/{table_id}")
async def get_table(
    table_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_commissions_view),
):
    return success_response(RemunerationTableOut.model_validate(_get_table(db, table_id)))


@router.post("")
async def create_table(
    body: RemunerationTableCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_commissions_manage),
):
    _check_range(body.employee_range_start, body.employee_range_end)
    table = RemunerationTable(**body.model_dump())
    db.add(table)
    db.commit()
    db.refresh(table)

    data = RemunerationTableOut.model_validate(table)
    audit_service.record(
        db, request, user,
        action="remuneration_table.created",
        resource_type="remuneration_table",
        resource_id=str(table.id),
        new_value=data.model_dump(),
    )
    return created_response(data, "Tabela de remuneração criada com sucesso")


@router.put("/{table_id}")
async def update_table(
    table_id: int,
    body: RemunerationTableUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_commissions_manage),
):
    table = _get_table(db, table_id)
    before = RemunerationTableOut.model_validate(table).model_dump()
    changes = body.model_dump(exclude_unset=True)
    _check_range(
        changes.get("employee_range_start", table.employee_range_start),
        changes.get("employee_range_end", table.employee_range_end),
    )

    for field, value in changes.items():
        setattr(table, field, value)
    db.commit()
    db.refresh(table)

    data = RemunerationTableOut.model_validate(table)
    audit_service.record(
        db, request, user,
        action="remuneration_table.updated",
        resource_type="remuneration_table",
        resource_id=str(table.id),
        old_value=before,
        new_value=data.model_dump(),
    )
    return success_response(data, "Tabela de remuneração atualizada com sucesso")


@router.delete("/{table_id}")
async def delete_table(
    table_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_commissions_manage),
):
    table = _get_table(db, table_id)
    before = RemunerationTableOut.model_validate(table).model_dump()
    db.delete(table)
    db.commit()
    audit_service.record(
        db, request, user,
        action="remuneration_table.deleted",
        resource_type="remuneration_table",
        resource_id=str(table_id),
        old_value=before,
    )
    return success_response(message="Tabela de remuneração excluída com sucesso")
