from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.db.engine import get_db
from workshop.dependencies import require_auth
from workshop.schemas import NotificationRead
from workshop.services import notifications
from workshop.services.auth import AuthContext

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationRead])
async def list_notifications(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await notifications.list_for_user(db, auth)


@router.patch("/read-all")
async def mark_all_read(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    count = await notifications.mark_all_read(db, auth)
    return {"ok": True, "updated": count}


@router.patch("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(
    notification_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await notifications.mark_read(db, auth, notification_id)


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await notifications.delete(db, auth, notification_id)
