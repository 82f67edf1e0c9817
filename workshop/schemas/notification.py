from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel


class NotificationRead(BaseModel):
    id: str
    user_id: str
    title: str
    message: str
    type: str
    related_entity_type: str | None = None
    related_entity_id: str | None = None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
