"""Work order API: create, list, lifecycle transitions, part lines."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.db.engine import get_db
from workshop.dependencies import get_dispatcher, require_auth
from workshop.schemas import (
    AssignRequest, CancelRequest, PartLineCreate,
    WorkOrderCreate, WorkOrderPartRead, WorkOrderRead,
)
from workshop.services import workflow
from workshop.services.auth import AuthContext
from workshop.services.ws_manager import Dispatcher

router = APIRouter(prefix="/api/work-orders", tags=["work_orders"])


@router.get("", response_model=list[WorkOrderRead])
async def list_work_orders(
    status: str | None = None,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await workflow.list_work_orders(db, auth, status=status)


@router.post("", response_model=WorkOrderRead, status_code=201)
async def create_work_order(
    body: WorkOrderCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await workflow.create_work_order(
        db, auth,
        customer_id=body.customer_id,
        service_id=body.service_id,
        vehicle_ident=body.vehicle_ident,
        vehicle_make=body.vehicle_make,
        vehicle_model=body.vehicle_model,
        notes=body.notes,
    )


@router.get("/{wo_id}", response_model=WorkOrderRead)
async def get_work_order(
    wo_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await workflow.get_work_order(db, auth, wo_id)


@router.post("/{wo_id}/assign", response_model=WorkOrderRead)
async def assign_engineer(
    wo_id: str,
    body: AssignRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    return await workflow.assign_engineer(db, auth, wo_id, body.engineer_id, dispatcher=dispatcher)


@router.post("/{wo_id}/start", response_model=WorkOrderRead)
async def start_work_order(
    wo_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    return await workflow.start(db, auth, wo_id, dispatcher=dispatcher)


@router.post("/{wo_id}/finish", response_model=WorkOrderRead)
async def finish_work_order(
    wo_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    return await workflow.finish(db, auth, wo_id, dispatcher=dispatcher)


@router.post("/{wo_id}/deliver", response_model=WorkOrderRead)
async def deliver_work_order(
    wo_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    return await workflow.deliver(db, auth, wo_id, dispatcher=dispatcher)


@router.post("/{wo_id}/cancel", response_model=WorkOrderRead)
async def cancel_work_order(
    wo_id: str,
    body: CancelRequest | None = None,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    notes = body.notes if body else None
    return await workflow.cancel(db, auth, wo_id, notes=notes, dispatcher=dispatcher)


@router.post("/{wo_id}/parts", response_model=WorkOrderPartRead, status_code=201)
async def add_part_line(
    wo_id: str,
    body: PartLineCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await workflow.add_part_line(db, auth, wo_id, body.part_id, body.qty)
