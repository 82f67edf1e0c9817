"""Work orders, their part lines and the append-only event log."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, ForeignKey, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workshop.models.base import Base, ULIDMixin, utcnow
from workshop.models.types import UTCDateTime


class WorkOrder(Base, ULIDMixin):
    __tablename__ = "work_orders"

    customer_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"))
    vehicle_ident: Mapped[str] = mapped_column(String(100))  # VIN or plate
    vehicle_make: Mapped[str | None] = mapped_column(String(100), nullable=True, default=None)
    vehicle_model: Mapped[str | None] = mapped_column(String(100), nullable=True, default=None)
    service_id: Mapped[str] = mapped_column(String(26), ForeignKey("services.id"))
    status: Mapped[str] = mapped_column(String(20), default="new", index=True)
    opened_by_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"))
    assigned_engineer_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("users.id"), nullable=True, default=None
    )
    opened_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    started_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True, default=None)
    finished_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True, default=None)
    delivered_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True, default=None)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=Decimal("0"))

    parts = relationship(
        "WorkOrderPart", back_populates="work_order",
        order_by="WorkOrderPart.created_at", lazy="selectin",
    )
    events = relationship(
        "WorkOrderEvent", back_populates="work_order",
        order_by="WorkOrderEvent.created_at", lazy="selectin",
    )


class WorkOrderPart(Base, ULIDMixin):
    __tablename__ = "work_order_parts"

    work_order_id: Mapped[str] = mapped_column(String(26), ForeignKey("work_orders.id"), index=True)
    part_id: Mapped[str] = mapped_column(String(26), ForeignKey("spare_parts.id"))
    qty: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    line_total: Mapped[Decimal] = mapped_column(Numeric(12, 4))  # exact qty * unit_price

    work_order = relationship("WorkOrder", back_populates="parts")


class WorkOrderEvent(Base, ULIDMixin):
    __tablename__ = "work_order_events"

    work_order_id: Mapped[str] = mapped_column(String(26), ForeignKey("work_orders.id"), index=True)
    event_type: Mapped[str] = mapped_column(String(20))  # created | assigned | started | finished | delivered | cancelled | part_added
    previous_value: Mapped[str | None] = mapped_column(String(100), nullable=True, default=None)
    new_value: Mapped[str | None] = mapped_column(String(100), nullable=True, default=None)
    performed_by_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("users.id"), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    work_order = relationship("WorkOrder", back_populates="events")
