"""User accounts and the DB-backed bearer sessions that authenticate them."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from workshop.models.base import Base, ULIDMixin, utcnow
from workshop.models.types import UTCDateTime

ROLES = ("admin", "supervisor", "engineer", "sales", "customer")
LANGUAGES = ("en", "ar")


class User(Base, ULIDMixin):
    __tablename__ = "users"

    full_name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(20), default="customer")  # admin | supervisor | engineer | sales | customer
    preferred_language: Mapped[str] = mapped_column(String(5), default="en")  # en | ar
    specialization: Mapped[str | None] = mapped_column(String(50), nullable=True, default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)


class UserSession(Base, ULIDMixin):
    __tablename__ = "user_sessions"

    user_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"))
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime)
