"""SQLAlchemy ORM models for the workshop record store."""

from workshop.models.base import Base
from workshop.models.user import User, UserSession
from workshop.models.catalog import Service, SparePart
from workshop.models.work_order import WorkOrder, WorkOrderPart, WorkOrderEvent
from workshop.models.chat import ChatChannel, Message
from workshop.models.notification import Notification

__all__ = [
    "Base",
    "User", "UserSession",
    "Service", "SparePart",
    "WorkOrder", "WorkOrderPart", "WorkOrderEvent",
    "ChatChannel", "Message",
    "Notification",
]
