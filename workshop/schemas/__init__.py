"""Pydantic request/response schemas."""

from workshop.schemas.user import (
    LoginRequest, RegisterRequest, UserCreate, UserUpdate, ProfileUpdate, UserRead, TokenResponse,
)
from workshop.schemas.catalog import ServiceRead, SparePartRead
from workshop.schemas.work_order import (
    WorkOrderCreate, AssignRequest, CancelRequest, PartLineCreate,
    WorkOrderRead, WorkOrderPartRead, WorkOrderEventRead,
)
from workshop.schemas.notification import NotificationRead
from workshop.schemas.chat import ChannelRead, MessageCreate, MessageRead
from workshop.schemas.ws_messages import (
    AuthFrame, JoinChannelFrame, ChatMessageFrame, client_frame_adapter, WSMessage,
)

__all__ = [
    "LoginRequest", "RegisterRequest", "UserCreate", "UserUpdate", "ProfileUpdate",
    "UserRead", "TokenResponse",
    "ServiceRead", "SparePartRead",
    "WorkOrderCreate", "AssignRequest", "CancelRequest", "PartLineCreate",
    "WorkOrderRead", "WorkOrderPartRead", "WorkOrderEventRead",
    "NotificationRead",
    "ChannelRead", "MessageCreate", "MessageRead",
    "AuthFrame", "JoinChannelFrame", "ChatMessageFrame", "client_frame_adapter", "WSMessage",
]
