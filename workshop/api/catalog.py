"""Read-only catalog listing used when opening work orders."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.db import crud
from workshop.db.engine import get_db
from workshop.dependencies import require_auth
from workshop.schemas import ServiceRead, SparePartRead
from workshop.services.auth import AuthContext

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


@router.get("/services", response_model=list[ServiceRead])
async def list_services(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_services(db, active_only=True)


@router.get("/parts", response_model=list[SparePartRead])
async def list_parts(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_parts(db, active_only=True)
