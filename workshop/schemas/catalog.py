from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel


class ServiceRead(BaseModel):
    id: str
    name_en: str
    name_ar: str
    desc_en: str | None = None
    desc_ar: str | None = None
    price: Decimal
    expected_duration_minutes: int | None = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class SparePartRead(BaseModel):
    id: str
    name_en: str
    name_ar: str
    part_code: str | None = None
    unit_price: Decimal
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
