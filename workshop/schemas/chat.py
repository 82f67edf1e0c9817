from __future__ import annotations
from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field, model_validator


class ChannelRead(BaseModel):
    id: str
    name: str
    type: str
    description: str | None = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class MessageCreate(BaseModel):
    """REST message post: exactly one of channelId / recipientId."""

    channel_id: str | None = Field(default=None, alias="channelId")
    recipient_id: str | None = Field(default=None, alias="recipientId")
    body: str
    attachment_meta: dict[str, Any] | None = Field(default=None, alias="attachmentMeta")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _one_address(self) -> "MessageCreate":
        if bool(self.channel_id) == bool(self.recipient_id):
            raise ValueError("exactly one of channelId or recipientId is required")
        return self


class MessageRead(BaseModel):
    id: str
    sender_id: str
    channel_id: str | None = None
    recipient_id: str | None = None
    body: str
    attachment_meta: dict[str, Any] | None = None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
