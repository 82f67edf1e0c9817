"""Chat REST API: channels, history, posting messages."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.db import crud
from workshop.db.engine import get_db
from workshop.dependencies import get_dispatcher, require_auth
from workshop.schemas import ChannelRead, MessageCreate, MessageRead
from workshop.services import chat
from workshop.services.auth import AuthContext
from workshop.services.ws_manager import Dispatcher

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.get("/channels", response_model=list[ChannelRead])
async def list_channels(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_channels(db)


@router.get("/channels/{channel_id}/messages", response_model=list[MessageRead])
async def channel_messages(
    channel_id: str,
    limit: int | None = Query(default=None, ge=1, le=500),
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await chat.channel_history(db, channel_id, limit=limit)


@router.get("/direct/{user_id}", response_model=list[MessageRead])
async def direct_messages(
    user_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await chat.direct_history(db, auth, user_id)


@router.post("/messages", response_model=MessageRead, status_code=201)
async def post_message(
    body: MessageCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    return await chat.post_message(
        db, dispatcher, auth,
        body=body.body,
        channel_id=body.channel_id,
        recipient_id=body.recipient_id,
        attachment_meta=body.attachment_meta,
    )
