"""Service catalog and spare parts."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import String, Boolean, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from workshop.models.base import Base, ULIDMixin


class Service(Base, ULIDMixin):
    __tablename__ = "services"

    name_en: Mapped[str] = mapped_column(String(200))
    name_ar: Mapped[str] = mapped_column(String(200))
    desc_en: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    desc_ar: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    expected_duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class SparePart(Base, ULIDMixin):
    __tablename__ = "spare_parts"

    name_en: Mapped[str] = mapped_column(String(200))
    name_ar: Mapped[str] = mapped_column(String(200))
    part_code: Mapped[str | None] = mapped_column(String(50), nullable=True, default=None)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
