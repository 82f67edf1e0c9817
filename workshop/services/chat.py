"""Chat protocol: turns websocket frames into registry and dispatcher calls."""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from workshop.db import crud
from workshop.errors import NotFound, Unauthenticated, ValidationError, WorkshopError
from workshop.models import Message
from workshop.schemas import AuthFrame, ChatMessageFrame, JoinChannelFrame, client_frame_adapter
from workshop.schemas import ws_messages
from workshop.services.auth import AuthContext, verify_credential
from workshop.services.ws_manager import Connection, Dispatcher

logger = logging.getLogger(__name__)

AUTH_FAILED_CLOSE_CODE = 4001


class ChatProtocol:
    """Per-application handler for inbound websocket frames.

    ``handle`` returns False when the connection must be closed.
    """

    def __init__(self, dispatcher: Dispatcher, session_factory: async_sessionmaker[AsyncSession]):
        self.dispatcher = dispatcher
        self.registry = dispatcher.registry
        self.session_factory = session_factory

    async def handle(self, conn: Connection, raw: str) -> bool:
        try:
            frame = client_frame_adapter.validate_python(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError, TypeError):
            logger.warning("Malformed frame on connection %s", conn.id)
            await self.dispatcher.send(conn, ws_messages.error("Invalid message format"))
            return True

        if isinstance(frame, AuthFrame):
            return await self._auth(conn, frame)

        try:
            if isinstance(frame, JoinChannelFrame):
                await self._join(conn, frame)
            elif isinstance(frame, ChatMessageFrame):
                await self._chat_message(conn, frame)
        except WorkshopError as e:
            logger.warning("Rejected %s frame on connection %s: %s", frame.type, conn.id, e.message)
            await self.dispatcher.send(conn, ws_messages.error(e.message))
        return True

    async def _auth(self, conn: Connection, frame: AuthFrame) -> bool:
        try:
            async with self.session_factory() as db:
                user = await verify_credential(frame.token, db)
        except Unauthenticated as e:
            logger.warning("Websocket auth failed on connection %s: %s", conn.id, e.message)
            await self.dispatcher.send(conn, ws_messages.auth_error(e.message))
            return False

        self.registry.authenticate(conn, user)
        logger.info("Websocket authenticated: connection=%s user=%s", conn.id, user.user_id)
        await self.dispatcher.send(conn, ws_messages.auth_success())
        return True

    def _require_user(self, conn: Connection) -> AuthContext:
        if not conn.authenticated:
            raise Unauthenticated("Not authenticated")
        return conn.user

    async def _join(self, conn: Connection, frame: JoinChannelFrame) -> None:
        self._require_user(conn)
        async with self.session_factory() as db:
            channel = await crud.get_channel(db, frame.channel_id)
        if not channel or not channel.is_active:
            raise NotFound("Channel not found")
        self.registry.join(conn, channel.id)
        await self.dispatcher.send(conn, ws_messages.joined(channel.id))

    async def _chat_message(self, conn: Connection, frame: ChatMessageFrame) -> Message:
        user = self._require_user(conn)
        if conn.channel_id is None or conn.channel_id != frame.channel_id:
            raise ValidationError("Join the channel before sending to it")
        body = frame.body.strip()
        if not body:
            raise ValidationError("Message body is required")
        async with self.session_factory() as db:
            return await self.dispatcher.publish_channel_message(
                db, sender_id=user.user_id, channel_id=frame.channel_id, body=body,
            )


async def post_message(
    db: AsyncSession,
    dispatcher: Dispatcher,
    auth: AuthContext,
    body: str,
    channel_id: str | None = None,
    recipient_id: str | None = None,
    attachment_meta: dict | None = None,
) -> Message:
    """REST entry point: channel messages broadcast, direct messages go to both parties."""
    body = (body or "").strip()
    if not body:
        raise ValidationError("Message body is required")
    if bool(channel_id) == bool(recipient_id):
        raise ValidationError("Exactly one of channelId or recipientId is required")

    if channel_id:
        channel = await crud.get_channel(db, channel_id)
        if not channel or not channel.is_active:
            raise NotFound("Channel not found")
        return await dispatcher.publish_channel_message(
            db, auth.user_id, channel.id, body, attachment_meta=attachment_meta,
        )

    recipient = await crud.get_user(db, recipient_id)
    if not recipient or not recipient.is_active:
        raise NotFound("Recipient not found")
    return await dispatcher.publish_direct_message(
        db, auth.user_id, recipient.id, body, attachment_meta=attachment_meta,
    )


async def channel_history(db: AsyncSession, channel_id: str, limit: int | None = None) -> list[Message]:
    channel = await crud.get_channel(db, channel_id)
    if not channel:
        raise NotFound("Channel not found")
    return await crud.list_channel_messages(db, channel_id, limit=limit)


async def direct_history(db: AsyncSession, auth: AuthContext, other_user_id: str) -> list[Message]:
    other = await crud.get_user(db, other_user_id)
    if not other:
        raise NotFound("User not found")
    return await crud.list_direct_messages(db, auth.user_id, other.id)
