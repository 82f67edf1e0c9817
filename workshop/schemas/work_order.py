from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field


class WorkOrderCreate(BaseModel):
    customer_id: str = Field(alias="customerId")
    service_id: str = Field(alias="serviceId")
    vehicle_ident: str = Field(alias="vehicleIdent")
    vehicle_make: str | None = Field(default=None, alias="vehicleMake")
    vehicle_model: str | None = Field(default=None, alias="vehicleModel")
    notes: str | None = None

    model_config = {"populate_by_name": True}


class AssignRequest(BaseModel):
    engineer_id: str = Field(alias="engineerId")

    model_config = {"populate_by_name": True}


class CancelRequest(BaseModel):
    notes: str | None = None


class PartLineCreate(BaseModel):
    part_id: str = Field(alias="partId")
    qty: Decimal = Decimal("1")

    model_config = {"populate_by_name": True}


class WorkOrderPartRead(BaseModel):
    id: str
    work_order_id: str
    part_id: str
    qty: Decimal
    unit_price: Decimal
    line_total: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


class WorkOrderEventRead(BaseModel):
    id: str
    event_type: str
    previous_value: str | None = None
    new_value: str | None = None
    performed_by_id: str | None = None
    notes: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class WorkOrderRead(BaseModel):
    id: str
    customer_id: str
    vehicle_ident: str
    vehicle_make: str | None = None
    vehicle_model: str | None = None
    service_id: str
    status: str
    opened_by_id: str
    assigned_engineer_id: str | None = None
    opened_at: datetime
    started_at: datetime | None = None
    finished_at: datetime | None = None
    delivered_at: datetime | None = None
    notes: str | None = None
    total_cost: Decimal
    parts: list[WorkOrderPartRead] = []
    events: list[WorkOrderEventRead] = []

    model_config = {"from_attributes": True}
