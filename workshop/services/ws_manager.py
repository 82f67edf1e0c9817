"""Websocket connection registry and real-time dispatcher.

The registry is a plain object owned by the application (``app.state``), not
a module global, so each test can build an isolated one.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from fastapi import WebSocket
from sqlalchemy.ext.asyncio import AsyncSession
from ulid import ULID

from workshop.db import crud
from workshop.models import Message, Notification
from workshop.schemas import MessageRead, NotificationRead
from workshop.schemas import ws_messages
from workshop.services.auth import AuthContext

logger = logging.getLogger(__name__)

# "going away": the server gave up on a peer that stopped reading
DROPPED_CLOSE_CODE = 1001


@dataclass(eq=False)
class Connection:
    websocket: WebSocket
    id: str = field(default_factory=lambda: str(ULID()))
    user: AuthContext | None = None
    channel_id: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> str | None:
        return self.user.user_id if self.user else None


class ConnectionRegistry:
    def __init__(self):
        self._connections: dict[str, Connection] = {}

    def register(self, websocket: WebSocket) -> Connection:
        conn = Connection(websocket=websocket)
        self._connections[conn.id] = conn
        return conn

    def unregister(self, conn: Connection) -> None:
        self._connections.pop(conn.id, None)

    def authenticate(self, conn: Connection, user: AuthContext) -> None:
        conn.user = user

    def join(self, conn: Connection, channel_id: str) -> None:
        """Bind to a channel, replacing any previous binding."""
        conn.channel_id = channel_id

    def snapshot(self) -> list[Connection]:
        return list(self._connections.values())

    def in_channel(self, channel_id: str) -> list[Connection]:
        return [c for c in self.snapshot() if c.channel_id == channel_id]

    def for_user(self, user_id: str) -> list[Connection]:
        return [c for c in self.snapshot() if c.user_id == user_id]

    def __contains__(self, conn: Connection) -> bool:
        return conn.id in self._connections

    def __len__(self) -> int:
        return len(self._connections)


class Dispatcher:
    """Store-then-fan-out delivery of chat messages and notifications."""

    def __init__(self, registry: ConnectionRegistry, send_timeout: float = 5.0):
        self.registry = registry
        self.send_timeout = send_timeout
        self._channel_locks: dict[str, asyncio.Lock] = {}

    def _lock(self, channel_id: str) -> asyncio.Lock:
        lock = self._channel_locks.get(channel_id)
        if lock is None:
            lock = self._channel_locks[channel_id] = asyncio.Lock()
        return lock

    async def send(self, conn: Connection, message: dict[str, Any]) -> bool:
        """Send one JSON frame. A failed or slow send drops and closes the connection."""
        try:
            await asyncio.wait_for(
                conn.websocket.send_text(json.dumps(message)), timeout=self.send_timeout
            )
            return True
        except Exception:
            logger.info("Dropping dead connection %s (user=%s)", conn.id, conn.user_id)
            await self.drop(conn)
            return False

    async def drop(self, conn: Connection) -> None:
        """Unregister and close. The socket may already be gone."""
        self.registry.unregister(conn)
        with contextlib.suppress(Exception):
            await asyncio.wait_for(
                conn.websocket.close(code=DROPPED_CLOSE_CODE), timeout=self.send_timeout
            )

    async def _fan_out(self, targets: Iterable[Connection], message: dict[str, Any]) -> int:
        # sends run concurrently: a stalled peer delays the batch by at most send_timeout
        results = await asyncio.gather(*(self.send(conn, message) for conn in targets))
        return sum(results)

    async def broadcast_to_channel(self, channel_id: str, message: dict[str, Any]) -> int:
        return await self._fan_out(self.registry.in_channel(channel_id), message)

    async def send_to_user(self, user_id: str, message: dict[str, Any]) -> int:
        return await self._fan_out(self.registry.for_user(user_id), message)

    async def publish_channel_message(
        self, db: AsyncSession, sender_id: str, channel_id: str, body: str,
        attachment_meta: dict | None = None,
    ) -> Message:
        """Persist a channel message, then push it to everyone joined to the channel.

        The per-channel lock makes broadcast order match persistence order.
        """
        async with self._lock(channel_id):
            msg = await crud.create_message(
                db, sender_id=sender_id, body=body,
                channel_id=channel_id, attachment_meta=attachment_meta,
            )
            payload = MessageRead.model_validate(msg).model_dump(mode="json")
            delivered = await self.broadcast_to_channel(channel_id, ws_messages.new_message(payload))
        logger.debug("Message %s delivered to %d connection(s) in %s", msg.id, delivered, channel_id)
        return msg

    async def publish_direct_message(
        self, db: AsyncSession, sender_id: str, recipient_id: str, body: str,
        attachment_meta: dict | None = None,
    ) -> Message:
        msg = await crud.create_message(
            db, sender_id=sender_id, body=body,
            recipient_id=recipient_id, attachment_meta=attachment_meta,
        )
        frame = ws_messages.new_message(MessageRead.model_validate(msg).model_dump(mode="json"))
        await self.send_to_user(recipient_id, frame)
        if sender_id != recipient_id:
            await self.send_to_user(sender_id, frame)
        return msg

    async def push_notifications(self, notifications: Iterable[Notification]) -> int:
        """Push already-committed notifications to their owners' live connections."""
        delivered = 0
        for notif in notifications:
            payload = NotificationRead.model_validate(notif).model_dump(mode="json")
            delivered += await self.send_to_user(notif.user_id, ws_messages.new_notification(payload))
        return delivered
