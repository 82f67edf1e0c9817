"""Chat channels and messages (channel broadcast or direct)."""

from __future__ import annotations

from sqlalchemy import String, Boolean, ForeignKey, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column

from workshop.models.base import Base, ULIDMixin


class ChatChannel(Base, ULIDMixin):
    __tablename__ = "chat_channels"

    name: Mapped[str] = mapped_column(String(100))
    type: Mapped[str] = mapped_column(String(30), default="general")
    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class Message(Base, ULIDMixin):
    __tablename__ = "messages"

    sender_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"))
    channel_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("chat_channels.id"), nullable=True, index=True
    )
    recipient_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("users.id"), nullable=True, index=True
    )
    body: Mapped[str] = mapped_column(Text)
    attachment_meta: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
