"""Work order lifecycle: permission table, guarded transitions, part lines.

Every successful transition is one transaction holding the conditional status
update, its audit event and the notifications it generates. Notifications
are pushed to live connections only after that transaction commits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from workshop.db import crud
from workshop.errors import InvalidTransition, NotFound, Unauthorized, ValidationError
from workshop.models import WorkOrder, WorkOrderPart
from workshop.services import notifications
from workshop.services.auth import AuthContext
from workshop.services.ws_manager import Dispatcher

logger = logging.getLogger(__name__)


class Status(str, Enum):
    NEW = "new"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = ("new", "assigned", "in_progress", "done")

CREATE_ROLES = frozenset({"admin", "supervisor", "sales"})
PART_LINE_ROLES = frozenset({"admin", "supervisor", "engineer"})

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class Rule:
    sources: tuple[str, ...]
    target: str
    roles: frozenset[str]
    event: str
    owner_only: bool = False
    stamp: str | None = None


# action -> who may move the order from where to where
RULES: dict[str, Rule] = {
    "assign": Rule(
        sources=("new",), target="assigned",
        roles=frozenset({"admin", "supervisor"}), event="assigned",
    ),
    "start": Rule(
        sources=("assigned",), target="in_progress",
        roles=frozenset({"engineer"}), event="started",
        owner_only=True, stamp="started_at",
    ),
    "finish": Rule(
        sources=("in_progress",), target="done",
        roles=frozenset({"engineer"}), event="finished",
        owner_only=True, stamp="finished_at",
    ),
    "deliver": Rule(
        sources=("done",), target="delivered",
        roles=frozenset({"admin", "supervisor", "sales"}), event="delivered",
        stamp="delivered_at",
    ),
    "cancel": Rule(
        sources=ACTIVE_STATUSES, target="cancelled",
        roles=frozenset({"admin", "supervisor"}), event="cancelled",
    ),
}


def _now_after(order: WorkOrder) -> datetime:
    """Current UTC time, never earlier than a timestamp already on the order."""
    now = datetime.now(timezone.utc)
    stamps = [
        t for t in (order.opened_at, order.started_at, order.finished_at, order.delivered_at)
        if t is not None
    ]
    return max([now, *stamps])


def check_transition(rule: Rule, auth: AuthContext, order: WorkOrder, action: str) -> None:
    """Raise if ``auth`` may not apply ``rule`` to ``order`` in its current state."""
    if auth.role not in rule.roles:
        raise Unauthorized(f"Role '{auth.role}' may not {action} work orders")
    if order.status not in rule.sources:
        logger.warning("Rejected %s on work order %s in status '%s'", action, order.id, order.status)
        raise InvalidTransition(
            f"Cannot {action} a work order in status '{order.status}'"
        )
    if rule.owner_only and order.assigned_engineer_id != auth.user_id:
        raise Unauthorized("Only the assigned engineer may do this")


async def _load(db: AsyncSession, wo_id: str) -> WorkOrder:
    order = await crud.get_work_order(db, wo_id)
    if not order:
        raise NotFound("Work order not found")
    return order


async def _transition(
    db: AsyncSession,
    auth: AuthContext,
    order: WorkOrder,
    action: str,
    dispatcher: Dispatcher | None = None,
    notes: str | None = None,
    **values,
) -> WorkOrder:
    rule = RULES[action]
    previous = order.status
    values["status"] = rule.target
    if rule.stamp:
        values[rule.stamp] = _now_after(order)

    try:
        applied = await crud.transition_work_order(db, order.id, (previous,), **values)
        if not applied:
            logger.warning("Lost race on work order %s: %s from '%s'", order.id, action, previous)
            raise InvalidTransition(
                f"Work order changed concurrently; cannot {action} from '{previous}'"
            )
        await crud.append_event(
            db, order.id, rule.event,
            performed_by_id=auth.user_id,
            previous_value=previous, new_value=rule.target, notes=notes,
        )
        order = await crud.get_work_order(db, order.id)
        staged = await notifications.notify_transition(db, rule.event, order)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Work order %s: %s -> %s by %s", order.id, previous, rule.target, auth.user_id)
    if dispatcher is not None and staged:
        await dispatcher.push_notifications(staged)
    return order


# ── Operations ───────────────────────────────────────────

async def create_work_order(
    db: AsyncSession,
    auth: AuthContext,
    customer_id: str,
    service_id: str,
    vehicle_ident: str,
    vehicle_make: str | None = None,
    vehicle_model: str | None = None,
    notes: str | None = None,
) -> WorkOrder:
    if auth.role not in CREATE_ROLES:
        raise Unauthorized(f"Role '{auth.role}' may not create work orders")
    if not vehicle_ident or not vehicle_ident.strip():
        raise ValidationError("vehicle_ident is required")

    customer = await crud.get_user(db, customer_id)
    if not customer or not customer.is_active:
        raise NotFound("Customer not found")
    if customer.role != "customer":
        raise ValidationError("customer_id must reference a customer account")

    service = await crud.get_service(db, service_id)
    if not service:
        raise NotFound("Service not found")
    if not service.is_active:
        raise ValidationError("Service is not active")

    try:
        order = await crud.add_work_order(
            db,
            customer_id=customer.id,
            service_id=service.id,
            vehicle_ident=vehicle_ident.strip(),
            vehicle_make=vehicle_make,
            vehicle_model=vehicle_model,
            notes=notes,
            status=Status.NEW.value,
            opened_by_id=auth.user_id,
            opened_at=datetime.now(timezone.utc),
            total_cost=Decimal("0"),
        )
        await crud.append_event(
            db, order.id, "created",
            performed_by_id=auth.user_id, new_value=Status.NEW.value,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Work order %s opened by %s for customer %s", order.id, auth.user_id, customer.id)
    return await crud.get_work_order(db, order.id)


async def assign_engineer(
    db: AsyncSession, auth: AuthContext, wo_id: str, engineer_id: str,
    dispatcher: Dispatcher | None = None,
) -> WorkOrder:
    order = await _load(db, wo_id)
    check_transition(RULES["assign"], auth, order, "assign")

    engineer = await crud.get_user(db, engineer_id)
    if not engineer:
        raise NotFound("Engineer not found")
    if engineer.role != "engineer" or not engineer.is_active:
        raise ValidationError("Assignee must be an active engineer")

    return await _transition(
        db, auth, order, "assign", dispatcher,
        assigned_engineer_id=engineer.id,
    )


async def start(
    db: AsyncSession, auth: AuthContext, wo_id: str, dispatcher: Dispatcher | None = None,
) -> WorkOrder:
    order = await _load(db, wo_id)
    check_transition(RULES["start"], auth, order, "start")
    return await _transition(db, auth, order, "start", dispatcher)


async def finish(
    db: AsyncSession, auth: AuthContext, wo_id: str, dispatcher: Dispatcher | None = None,
) -> WorkOrder:
    order = await _load(db, wo_id)
    check_transition(RULES["finish"], auth, order, "finish")
    return await _transition(db, auth, order, "finish", dispatcher)


async def deliver(
    db: AsyncSession, auth: AuthContext, wo_id: str, dispatcher: Dispatcher | None = None,
) -> WorkOrder:
    order = await _load(db, wo_id)
    check_transition(RULES["deliver"], auth, order, "deliver")
    return await _transition(db, auth, order, "deliver", dispatcher)


async def cancel(
    db: AsyncSession, auth: AuthContext, wo_id: str, notes: str | None = None,
    dispatcher: Dispatcher | None = None,
) -> WorkOrder:
    order = await _load(db, wo_id)
    check_transition(RULES["cancel"], auth, order, "cancel")
    return await _transition(db, auth, order, "cancel", dispatcher, notes=notes)


async def add_part_line(
    db: AsyncSession, auth: AuthContext, wo_id: str, part_id: str, qty,
) -> WorkOrderPart:
    """Attach a spare part at its current catalog price.

    The unit price and line total are frozen on the line; later catalog
    price changes do not touch it.
    """
    if auth.role not in PART_LINE_ROLES:
        raise Unauthorized(f"Role '{auth.role}' may not add parts")

    order = await _load(db, wo_id)
    if order.status not in ACTIVE_STATUSES:
        raise InvalidTransition(f"Cannot add parts to a work order in status '{order.status}'")
    if auth.role == "engineer" and order.assigned_engineer_id != auth.user_id:
        raise Unauthorized("Only the assigned engineer may add parts")

    try:
        qty = Decimal(str(qty))
    except (InvalidOperation, ValueError):
        raise ValidationError("qty must be a number")
    if not qty.is_finite() or qty <= 0:
        raise ValidationError("qty must be greater than zero")
    # qty is stored as Numeric(10, 2); anything finer would be rounded away
    if qty != qty.quantize(CENTS):
        raise ValidationError("qty allows at most 2 decimal places")

    part = await crud.get_part(db, part_id)
    if not part:
        raise NotFound("Part not found")
    if not part.is_active:
        raise ValidationError("Part is not active")

    unit_price = Decimal(part.unit_price)
    line_total = qty * unit_price

    try:
        if not await crud.increment_total_cost(db, order.id, line_total, ACTIVE_STATUSES):
            raise InvalidTransition("Work order closed while adding the part")
        line = await crud.add_work_order_part(
            db, order.id, part.id, qty=qty, unit_price=unit_price, line_total=line_total,
        )
        await crud.append_event(
            db, order.id, "part_added",
            performed_by_id=auth.user_id, new_value=part.id,
            notes=f"qty={qty} line_total={line_total}",
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Part %s x%s added to work order %s (%s)", part.id, qty, order.id, line_total)
    return line


async def get_work_order(db: AsyncSession, auth: AuthContext, wo_id: str) -> WorkOrder:
    order = await _load(db, wo_id)
    if auth.role == "customer" and order.customer_id != auth.user_id:
        raise Unauthorized("Work order belongs to another customer")
    if auth.role == "engineer" and order.assigned_engineer_id != auth.user_id:
        raise Unauthorized("Work order is not assigned to you")
    return order


async def list_work_orders(
    db: AsyncSession, auth: AuthContext, status: str | None = None,
) -> list[WorkOrder]:
    """Newest first. Customers see their own orders, engineers their assignments."""
    if status is not None and status not in {s.value for s in Status}:
        raise ValidationError(f"Unknown status '{status}'")
    if auth.role == "customer":
        return await crud.list_work_orders(db, customer_id=auth.user_id, status=status)
    if auth.role == "engineer":
        return await crud.list_work_orders(db, engineer_id=auth.user_id, status=status)
    return await crud.list_work_orders(db, status=status)
