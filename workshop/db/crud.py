"""Record store operations over the workshop DB.

User, session, catalog and chat writes commit immediately. Work-order,
event and notification writes only flush: the workflow service groups them
into one transaction and commits once per transition.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy import select, update, or_, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workshop.errors import Conflict
from workshop.models import (
    User, UserSession, Service, SparePart,
    WorkOrder, WorkOrderPart, WorkOrderEvent,
    ChatChannel, Message, Notification,
)


# ── Users ────────────────────────────────────────────────

async def get_user(db: AsyncSession, user_id: str) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalars().first()


async def list_users(
    db: AsyncSession, roles: Iterable[str] | None = None, active_only: bool = False,
) -> list[User]:
    stmt = select(User).order_by(User.created_at)
    if roles is not None:
        stmt = stmt.where(User.role.in_(list(roles)))
    if active_only:
        stmt = stmt.where(User.is_active == True)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def create_user(
    db: AsyncSession,
    full_name: str,
    email: str,
    username: str,
    password_hash: str,
    role: str = "customer",
    preferred_language: str = "en",
    specialization: str | None = None,
) -> User:
    """Insert a user. Duplicate username or email raises Conflict."""
    user = User(
        full_name=full_name, email=email, username=username,
        password_hash=password_hash, role=role,
        preferred_language=preferred_language, specialization=specialization,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("Username or email already exists")
    await db.refresh(user)
    return user


async def update_user(db: AsyncSession, user: User, **kwargs) -> User:
    for k, v in kwargs.items():
        if v is not None:
            setattr(user, k, v)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("Username or email already exists")
    await db.refresh(user)
    return user


async def deactivate_user(db: AsyncSession, user: User) -> User:
    user.is_active = False
    await db.commit()
    await db.refresh(user)
    return user


# ── UserSession ──────────────────────────────────────────

async def create_user_session(
    db: AsyncSession, user_id: str, token_hash: str, expires_at: datetime
) -> UserSession:
    session = UserSession(user_id=user_id, token_hash=token_hash, expires_at=expires_at)
    db.add(session)
    await db.commit()
    return session


async def get_live_session_by_token_hash(db: AsyncSession, token_hash: str) -> UserSession | None:
    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == token_hash,
            UserSession.expires_at > datetime.now(timezone.utc),
        )
    )
    return result.scalars().first()


async def delete_session_by_token_hash(db: AsyncSession, token_hash: str) -> None:
    result = await db.execute(select(UserSession).where(UserSession.token_hash == token_hash))
    session = result.scalars().first()
    if session:
        await db.delete(session)
        await db.commit()


# ── Services ─────────────────────────────────────────────

async def get_service(db: AsyncSession, service_id: str) -> Service | None:
    return await db.get(Service, service_id)


async def list_services(db: AsyncSession, active_only: bool = False) -> list[Service]:
    stmt = select(Service).order_by(Service.created_at)
    if active_only:
        stmt = stmt.where(Service.is_active == True)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def create_service(
    db: AsyncSession, name_en: str, name_ar: str, price: Decimal,
    desc_en: str | None = None, desc_ar: str | None = None,
    expected_duration_minutes: int | None = None,
) -> Service:
    service = Service(
        name_en=name_en, name_ar=name_ar, price=price,
        desc_en=desc_en, desc_ar=desc_ar,
        expected_duration_minutes=expected_duration_minutes,
    )
    db.add(service)
    await db.commit()
    await db.refresh(service)
    return service


async def deactivate_service(db: AsyncSession, service: Service) -> Service:
    service.is_active = False
    await db.commit()
    await db.refresh(service)
    return service


# ── Spare parts ──────────────────────────────────────────

async def get_part(db: AsyncSession, part_id: str) -> SparePart | None:
    return await db.get(SparePart, part_id)


async def list_parts(db: AsyncSession, active_only: bool = False) -> list[SparePart]:
    stmt = select(SparePart).order_by(SparePart.created_at)
    if active_only:
        stmt = stmt.where(SparePart.is_active == True)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def create_part(
    db: AsyncSession, name_en: str, name_ar: str, unit_price: Decimal,
    part_code: str | None = None,
) -> SparePart:
    part = SparePart(name_en=name_en, name_ar=name_ar, unit_price=unit_price, part_code=part_code)
    db.add(part)
    await db.commit()
    await db.refresh(part)
    return part


async def update_part(db: AsyncSession, part: SparePart, **kwargs) -> SparePart:
    for k, v in kwargs.items():
        if v is not None:
            setattr(part, k, v)
    await db.commit()
    await db.refresh(part)
    return part


async def deactivate_part(db: AsyncSession, part: SparePart) -> SparePart:
    part.is_active = False
    await db.commit()
    await db.refresh(part)
    return part


# ── Work orders (flush only) ─────────────────────────────

async def get_work_order(db: AsyncSession, wo_id: str) -> WorkOrder | None:
    """Fresh read of a work order with its part lines and event log."""
    result = await db.execute(
        select(WorkOrder)
        .where(WorkOrder.id == wo_id)
        .options(selectinload(WorkOrder.parts), selectinload(WorkOrder.events))
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def list_work_orders(
    db: AsyncSession,
    customer_id: str | None = None,
    engineer_id: str | None = None,
    status: str | None = None,
) -> list[WorkOrder]:
    stmt = (
        select(WorkOrder)
        .options(selectinload(WorkOrder.parts), selectinload(WorkOrder.events))
        .order_by(WorkOrder.opened_at.desc())
    )
    if customer_id is not None:
        stmt = stmt.where(WorkOrder.customer_id == customer_id)
    if engineer_id is not None:
        stmt = stmt.where(WorkOrder.assigned_engineer_id == engineer_id)
    if status is not None:
        stmt = stmt.where(WorkOrder.status == status)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def add_work_order(db: AsyncSession, **fields: Any) -> WorkOrder:
    wo = WorkOrder(**fields)
    db.add(wo)
    await db.flush()
    return wo


async def transition_work_order(
    db: AsyncSession, wo_id: str, expected_status: Iterable[str], **values: Any
) -> bool:
    """Conditional update: apply ``values`` only if status is still expected.

    Returns False when no row matched, i.e. another request moved the order
    first or it never was in an expected status.
    """
    result = await db.execute(
        update(WorkOrder)
        .where(WorkOrder.id == wo_id, WorkOrder.status.in_(list(expected_status)))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def increment_total_cost(
    db: AsyncSession, wo_id: str, amount: Decimal, active_statuses: Iterable[str]
) -> bool:
    result = await db.execute(
        update(WorkOrder)
        .where(WorkOrder.id == wo_id, WorkOrder.status.in_(list(active_statuses)))
        .values(total_cost=WorkOrder.total_cost + amount)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def add_work_order_part(
    db: AsyncSession, work_order_id: str, part_id: str,
    qty: Decimal, unit_price: Decimal, line_total: Decimal,
) -> WorkOrderPart:
    line = WorkOrderPart(
        work_order_id=work_order_id, part_id=part_id,
        qty=qty, unit_price=unit_price, line_total=line_total,
    )
    db.add(line)
    await db.flush()
    return line


async def list_work_order_parts(db: AsyncSession, wo_id: str) -> list[WorkOrderPart]:
    result = await db.execute(
        select(WorkOrderPart)
        .where(WorkOrderPart.work_order_id == wo_id)
        .order_by(WorkOrderPart.created_at, WorkOrderPart.id)
    )
    return list(result.scalars().all())


async def append_event(
    db: AsyncSession, work_order_id: str, event_type: str,
    performed_by_id: str | None = None,
    previous_value: str | None = None, new_value: str | None = None,
    notes: str | None = None,
) -> WorkOrderEvent:
    event = WorkOrderEvent(
        work_order_id=work_order_id, event_type=event_type,
        performed_by_id=performed_by_id,
        previous_value=previous_value, new_value=new_value, notes=notes,
    )
    db.add(event)
    await db.flush()
    return event


async def list_events(db: AsyncSession, wo_id: str) -> list[WorkOrderEvent]:
    result = await db.execute(
        select(WorkOrderEvent)
        .where(WorkOrderEvent.work_order_id == wo_id)
        .order_by(WorkOrderEvent.created_at, WorkOrderEvent.id)
    )
    return list(result.scalars().all())


# ── Chat ─────────────────────────────────────────────────

async def get_channel(db: AsyncSession, channel_id: str) -> ChatChannel | None:
    return await db.get(ChatChannel, channel_id)


async def list_channels(db: AsyncSession, active_only: bool = True) -> list[ChatChannel]:
    stmt = select(ChatChannel).order_by(ChatChannel.created_at)
    if active_only:
        stmt = stmt.where(ChatChannel.is_active == True)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def create_channel(
    db: AsyncSession, name: str, type: str = "general", description: str | None = None,
) -> ChatChannel:
    channel = ChatChannel(name=name, type=type, description=description)
    db.add(channel)
    await db.commit()
    await db.refresh(channel)
    return channel


async def create_message(
    db: AsyncSession, sender_id: str, body: str,
    channel_id: str | None = None, recipient_id: str | None = None,
    attachment_meta: dict | None = None,
) -> Message:
    msg = Message(
        sender_id=sender_id, body=body,
        channel_id=channel_id, recipient_id=recipient_id,
        attachment_meta=attachment_meta,
    )
    db.add(msg)
    await db.commit()
    await db.refresh(msg)
    return msg


async def list_channel_messages(
    db: AsyncSession, channel_id: str, limit: int | None = None
) -> list[Message]:
    stmt = (
        select(Message)
        .where(Message.channel_id == channel_id)
        .order_by(Message.created_at, Message.id)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_direct_messages(db: AsyncSession, user_a: str, user_b: str) -> list[Message]:
    result = await db.execute(
        select(Message)
        .where(
            Message.channel_id.is_(None),
            or_(
                and_(Message.sender_id == user_a, Message.recipient_id == user_b),
                and_(Message.sender_id == user_b, Message.recipient_id == user_a),
            ),
        )
        .order_by(Message.created_at, Message.id)
    )
    return list(result.scalars().all())


# ── Notifications ────────────────────────────────────────

async def add_notification(
    db: AsyncSession, user_id: str, title: str, message: str,
    type: str = "info",
    related_entity_type: str | None = None, related_entity_id: str | None = None,
) -> Notification:
    notif = Notification(
        user_id=user_id, title=title, message=message, type=type,
        related_entity_type=related_entity_type, related_entity_id=related_entity_id,
    )
    db.add(notif)
    await db.flush()
    return notif


async def get_notification(db: AsyncSession, notification_id: str) -> Notification | None:
    return await db.get(Notification, notification_id)


async def list_notifications(db: AsyncSession, user_id: str) -> list[Notification]:
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def mark_notification_read(db: AsyncSession, notif: Notification) -> Notification:
    notif.is_read = True
    await db.commit()
    await db.refresh(notif)
    return notif


async def mark_all_notifications_read(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read == False)
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount


async def delete_notification(db: AsyncSession, notif: Notification) -> None:
    await db.delete(notif)
    await db.commit()
