"""Notification generator: localized notification rows per lifecycle event.

Titles and messages are rendered in the recipient's preferred language when
the row is created and stored as plain text, so a later language change does
not rewrite history.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from workshop.config import get_settings
from workshop.db import crud
from workshop.errors import NotFound, Unauthorized
from workshop.models import Notification, User, WorkOrder
from workshop.services.auth import AuthContext

logger = logging.getLogger(__name__)

# event -> notification type, {language: (title, message)}
TEMPLATES: dict[str, tuple[str, dict[str, tuple[str, str]]]] = {
    "assigned": ("info", {
        "en": ("New Work Order Assigned",
               "You have been assigned work order #{short_id}"),
        "ar": ("تم تعيين أمر عمل جديد",
               "تم تعيينك لأمر العمل #{short_id}"),
    }),
    "started": ("info", {
        "en": ("Work Order Started",
               "Work order #{short_id} is now in progress"),
        "ar": ("بدأ تنفيذ أمر العمل",
               "أمر العمل #{short_id} قيد التنفيذ الآن"),
    }),
    "finished": ("success", {
        "en": ("Work Order Completed",
               "Work order #{short_id} has been completed and is ready for review"),
        "ar": ("اكتمل أمر العمل",
               "تم إكمال أمر العمل #{short_id} وهو جاهز للمراجعة"),
    }),
    "delivered": ("success", {
        "en": ("Order Delivered",
               "Your work order #{short_id} has been delivered. Thank you for your business!"),
        "ar": ("تم تسليم الطلب",
               "تم تسليم أمر العمل الخاص بك #{short_id}. شكراً لتعاملكم معنا!"),
    }),
}


def short_id(work_order_id: str) -> str:
    """Last 8 ULID characters: the random part, not the timestamp prefix."""
    return work_order_id[-8:]


def render(event: str, language: str, work_order_id: str) -> tuple[str, str]:
    """Return (title, message) for an event in the given language."""
    _, texts = TEMPLATES[event]
    fallback = get_settings().notifications.default_language
    title, message = texts.get(language) or texts.get(fallback) or texts["en"]
    return title, message.format(short_id=short_id(work_order_id))


async def _recipients(db: AsyncSession, event: str, order: WorkOrder) -> list[User]:
    ids: list[str] = []
    if event == "assigned":
        ids = [order.assigned_engineer_id]
    elif event in ("started", "delivered"):
        ids = [order.customer_id]
    elif event == "finished":
        roles = get_settings().notifications.reviewer_roles
        reviewers = await crud.list_users(db, roles=roles, active_only=True)
        ids = [u.id for u in reviewers] + [order.customer_id]

    users = []
    seen = set()
    for uid in ids:
        if not uid or uid in seen:
            continue
        seen.add(uid)
        user = await crud.get_user(db, uid)
        if user:
            users.append(user)
    return users


async def notify_transition(db: AsyncSession, event: str, order: WorkOrder) -> list[Notification]:
    """Stage one notification per affected user. Caller commits.

    Events without a template (created, cancelled, part_added) produce none.
    """
    if event not in TEMPLATES:
        return []

    notif_type, _ = TEMPLATES[event]
    created = []
    for user in await _recipients(db, event, order):
        title, message = render(event, user.preferred_language, order.id)
        notif = await crud.add_notification(
            db,
            user_id=user.id,
            title=title,
            message=message,
            type=notif_type,
            related_entity_type="work_order",
            related_entity_id=order.id,
        )
        created.append(notif)
    logger.info("Staged %d '%s' notification(s) for work order %s", len(created), event, order.id)
    return created


# ── Owner operations ─────────────────────────────────────

async def list_for_user(db: AsyncSession, auth: AuthContext) -> list[Notification]:
    return await crud.list_notifications(db, auth.user_id)


async def _owned(db: AsyncSession, auth: AuthContext, notification_id: str) -> Notification:
    notif = await crud.get_notification(db, notification_id)
    if not notif:
        raise NotFound("Notification not found")
    if notif.user_id != auth.user_id:
        raise Unauthorized("Notification belongs to another user")
    return notif


async def mark_read(db: AsyncSession, auth: AuthContext, notification_id: str) -> Notification:
    notif = await _owned(db, auth, notification_id)
    return await crud.mark_notification_read(db, notif)


async def mark_all_read(db: AsyncSession, auth: AuthContext) -> int:
    return await crud.mark_all_notifications_read(db, auth.user_id)


async def delete(db: AsyncSession, auth: AuthContext, notification_id: str) -> None:
    notif = await _owned(db, auth, notification_id)
    await crud.delete_notification(db, notif)
