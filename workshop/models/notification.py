"""Per-user notifications, localized when they are created."""

from __future__ import annotations

from sqlalchemy import String, Boolean, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from workshop.models.base import Base, ULIDMixin


class Notification(Base, ULIDMixin):
    __tablename__ = "notifications"

    user_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(20), default="info")  # info | success | warning | error
    related_entity_type: Mapped[str | None] = mapped_column(String(50), nullable=True, default=None)
    related_entity_id: Mapped[str | None] = mapped_column(String(26), nullable=True, default=None)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
