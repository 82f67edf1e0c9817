"""Websocket envelopes. Every frame is a JSON object with a ``type`` key."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


# ── client -> server ─────────────────────────────────────

class AuthFrame(BaseModel):
    type: Literal["auth"]
    token: str = ""


class JoinChannelFrame(BaseModel):
    type: Literal["join_channel"]
    channel_id: str = Field(alias="channelId")

    model_config = {"populate_by_name": True}


class ChatMessageFrame(BaseModel):
    type: Literal["chat_message"]
    channel_id: str = Field(alias="channelId")
    body: str = ""

    model_config = {"populate_by_name": True}


ClientFrame = Annotated[
    Union[AuthFrame, JoinChannelFrame, ChatMessageFrame],
    Field(discriminator="type"),
]
client_frame_adapter: TypeAdapter[ClientFrame] = TypeAdapter(ClientFrame)


# ── server -> client ─────────────────────────────────────

class WSMessage(BaseModel):
    type: str  # auth_success | auth_error | joined | new_message | new_notification | error
    message: Any = None
    channel_id: str | None = Field(default=None, alias="channelId")
    notification: dict[str, Any] | None = None

    model_config = {"populate_by_name": True}

    def dump(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def auth_success() -> dict[str, Any]:
    return WSMessage(type="auth_success").dump()


def auth_error(message: str) -> dict[str, Any]:
    return WSMessage(type="auth_error", message=message).dump()


def joined(channel_id: str) -> dict[str, Any]:
    return WSMessage(type="joined", channel_id=channel_id).dump()


def new_message(message: dict[str, Any]) -> dict[str, Any]:
    return WSMessage(type="new_message", message=message).dump()


def new_notification(notification: dict[str, Any]) -> dict[str, Any]:
    return WSMessage(type="new_notification", notification=notification).dump()


def error(message: str) -> dict[str, Any]:
    return WSMessage(type="error", message=message).dump()
